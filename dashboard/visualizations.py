import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from dashboard.constants import PRIORITY_META

PALETTE = ["#8884d8", "#82ca9d", "#ffc658", "#ff7300", "#ff8042", "#3772A6"]


def apply_common_plot_style(fig, title):
    fig.update_layout(
        title=title,
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=40, r=20, t=40, b=30),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
    )
    fig.update_xaxes(showgrid=False)
    return fig


def series_frame(rows, date_column="date"):
    frame = pd.DataFrame(rows or [])
    if frame.empty:
        return frame
    frame[date_column] = pd.to_datetime(frame[date_column])
    return frame.sort_values(date_column)


def focus_chart(rows):
    frame = series_frame(rows)
    if frame.empty:
        return None
    fig = px.bar(frame, x="date", y="total_minutes", hover_data=["sessions"], color_discrete_sequence=[PALETTE[0]])
    fig.update_yaxes(title="Minutes")
    return apply_common_plot_style(fig, "Focus time")


def mood_chart(rows):
    frame = series_frame(rows)
    if frame.empty:
        return None
    fig = go.Figure(
        go.Scatter(
            x=frame["date"],
            y=frame["mood"].round(1),
            mode="lines+markers",
            line=dict(color=PALETTE[1], width=3),
            customdata=frame["count"],
            hovertemplate="%{x|%b %d}: %{y} (%{customdata} check-ins)<extra></extra>",
        )
    )
    fig.update_yaxes(range=[0, 10.5], title="Mood score")
    return apply_common_plot_style(fig, "Mood trend")


def task_chart(rows):
    frame = series_frame(rows)
    if frame.empty:
        return None
    long = frame.melt(id_vars="date", value_vars=["created", "completed"], var_name="kind", value_name="count")
    fig = px.bar(long, x="date", y="count", color="kind", barmode="group", color_discrete_sequence=PALETTE[2:4])
    return apply_common_plot_style(fig, "Tasks created vs completed")


def expense_chart(rows):
    frame = series_frame(rows)
    if frame.empty:
        return None
    fig = px.area(frame, x="date", y="amount", color_discrete_sequence=[PALETTE[4]])
    fig.update_yaxes(title="Spent")
    return apply_common_plot_style(fig, "Daily spending")


def category_pie(rows):
    frame = pd.DataFrame(rows or [])
    if frame.empty:
        return None
    fig = px.pie(frame, names="category", values="amount", hole=0.45, color_discrete_sequence=PALETTE)
    return apply_common_plot_style(fig, "Spending by category")


def task_table(tasks):
    frame = pd.DataFrame(tasks or [])
    if frame.empty:
        return frame
    frame["weight"] = frame["priority"].map(lambda value: PRIORITY_META.get(value, {}).get("weight", 0))
    frame = frame.sort_values(["weight", "created_at"], ascending=[False, False])
    columns = ["title", "priority", "status", "due_date", "assigned_to_email"]
    return frame[[column for column in columns if column in frame.columns]]
