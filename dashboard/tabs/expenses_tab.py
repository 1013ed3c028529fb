from datetime import date, timedelta

import pandas as pd
import streamlit as st

from dashboard.constants import EXPENSE_CATEGORIES
from dashboard.data import repositories
from dashboard.visualizations import category_pie


def render_expenses_tab(ctx):
    st.subheader("Expenses")
    with st.form("expenses.add_form", clear_on_submit=True):
        cols = st.columns(3)
        amount = cols[0].number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        category = cols[1].selectbox("Category", EXPENSE_CATEGORIES)
        day = cols[2].date_input("Date", value=date.fromisoformat(ctx.today))
        description = st.text_input("Description")
        submitted = st.form_submit_button("Log expense", type="primary")
    if submitted:
        if amount <= 0:
            st.toast("Amount must be greater than zero.")
        else:
            try:
                repositories.add_expense(amount, category, description, day)
            except RuntimeError as exc:
                st.error(f"Could not log expense: {exc}")
            else:
                st.toast("Expense logged.")

    end = date.fromisoformat(ctx.today)
    payload = repositories.list_expenses(end - timedelta(days=30), end)
    items = payload.get("items") or []
    st.metric("Last 30 days", f"{payload.get('total', 0):.2f}")
    if not items:
        st.caption("No expenses logged yet.")
        return
    fig = category_pie(payload.get("by_category"))
    if fig is not None:
        st.plotly_chart(fig, use_container_width=True)
    frame = pd.DataFrame(items)[["date", "category", "amount", "description"]]
    st.dataframe(frame.sort_values("date", ascending=False), hide_index=True, use_container_width=True)
