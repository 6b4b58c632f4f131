from datetime import date

import streamlit as st

from workshop_tracker import charts
from workshop_tracker.access import Viewer
from workshop_tracker.analytics import expense_breakdown, six_month_income, summary_statistics, top_workshops
from workshop_tracker.expenses import list_expenses
from workshop_tracker.insights import generate_insights, load_insight_data
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, require_viewer

CARD_STYLE = {
    "positive": st.success,
    "achievement": st.success,
    "warning": st.warning,
    "info": st.info,
    "suggestion": st.info,
}


def render_dashboard(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title(f"👋 Welcome back, {ctx.auth.display_name}")

    if ctx.auth.profile is None:
        st.warning("Your profile could not be found. Some features are limited until an admin fixes it.")

    today = date.today()
    try:
        data = load_insight_data(ctx.client, viewer, today)
        # personal view, even for admins
        expenses = list_expenses(ctx.client, Viewer(viewer.id))
    except Exception as e:
        error_panel(str(e), "dashboard")
        return

    # --- Quick metrics (this month) ---
    month = summary_statistics(data.current_month_incomes, data.current_month_expenses)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Income this month", format_currency(month["total_income"]))
    c2.metric("Expenses this month", format_currency(month["total_expenses"]))
    c3.metric("Profit this month", format_currency(month["total_profit"]))
    c4.metric("Workshops this month", month["total_workshops"])

    # --- Insights ---
    st.divider()
    st.subheader("💡 Financial Insights")
    insights = generate_insights(data)
    if not insights:
        st.caption("Add more income and expense records to unlock insights.")
    for insight in insights:
        show = CARD_STYLE.get(insight.type, st.info)
        show(f"**{insight.title}**\n\n{insight.message}\n\n_{insight.action}_")

    # --- Mini charts ---
    st.divider()
    left, mid, right = st.columns(3)
    with left:
        st.plotly_chart(charts.six_month_bar(six_month_income(data.all_incomes, today)), use_container_width=True)
    with mid:
        fig = charts.distribution_pie(top_workshops(data.all_incomes), "name", "count", "Popular Workshops")
        if fig:
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.caption("No participant data yet.")
    with right:
        fig = charts.category_bar(expense_breakdown(expenses, "category", "Uncategorized")[:4], "Top Expenses")
        if fig:
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.caption("No expenses recorded yet.")
