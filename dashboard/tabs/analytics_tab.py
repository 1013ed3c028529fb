import streamlit as st

from dashboard.constants import ANALYTICS_RANGES
from dashboard.data import repositories
from dashboard.visualizations import category_pie, expense_chart, focus_chart, mood_chart, task_chart


def _show(fig, empty_message):
    if fig is None:
        st.caption(empty_message)
        return
    st.plotly_chart(fig, use_container_width=True)


def render_analytics_tab(ctx):
    st.subheader("Analytics & Insights")
    range_name = st.radio(
        "Range",
        list(ANALYTICS_RANGES),
        format_func=ANALYTICS_RANGES.get,
        horizontal=True,
        key="analytics.range",
    )
    data = repositories.analytics(range_name)
    summary = data.get("summary") or {}

    cols = st.columns(4)
    cols[0].metric("Focus", f"{summary.get('total_focus_minutes', 0)} min")
    cols[1].metric(
        "Tasks completed",
        f"{summary.get('completed_tasks', 0)}/{summary.get('total_tasks', 0)}",
        f"{summary.get('completion_rate', 0):.0f}%",
    )
    cols[2].metric("Avg mood", f"{summary.get('avg_mood', 0):.1f}/10")
    cols[3].metric("Spent", f"{summary.get('total_expenses', 0):.2f}")

    focus_tab, mood_tab, tasks_tab, money_tab = st.tabs(["Focus", "Mood", "Tasks", "Spending"])
    with focus_tab:
        _show(focus_chart(data.get("focus")), "No focus sessions in this range.")
    with mood_tab:
        _show(mood_chart(data.get("mood")), "No check-ins in this range.")
    with tasks_tab:
        _show(task_chart(data.get("tasks")), "No tasks created in this range.")
    with money_tab:
        _show(expense_chart(data.get("expenses")), "No expenses in this range.")
        _show(category_pie(data.get("expense_categories")), "")
