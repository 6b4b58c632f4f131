from datetime import date

import pandas as pd
import streamlit as st

from workshop_tracker import charts
from workshop_tracker.analytics import (
    AnalyticsFilters,
    TimeWindow,
    available_years,
    class_type_distribution,
    expense_breakdown,
    instructor_leaderboard,
    load_analytics_data,
    monthly_trend,
    summary_statistics,
)
from workshop_tracker.errors import DataLoadError
from workshop_tracker.exports import INCOME_COLUMNS, export_csv, export_excel
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, option_label, require_viewer

MONTH_NAMES = [date(2000, m, 1).strftime("%B") for m in range(1, 13)]


def _filters(viewer, years, class_types, instructors) -> AnalyticsFilters:
    c1, c2, c3, c4 = st.columns(4)
    kind = c1.selectbox(
        "Time period", ["all", "year", "month"],
        format_func={"all": "All time", "year": "Year", "month": "Month"}.get,
    )
    window = TimeWindow(kind=kind)
    if kind in ("year", "month"):
        window.year = c2.selectbox("Year", years or [date.today().year])
    if kind == "month":
        window.month = c3.selectbox(
            "Month", list(range(1, 13)),
            index=date.today().month - 1,
            format_func=lambda m: MONTH_NAMES[m - 1],
        )

    class_type_id = c4.selectbox(
        "Class type", [None] + [c["id"] for c in class_types],
        format_func=option_label(class_types, "name"),
    )

    instructor_id = None
    if viewer.is_admin and instructors:
        instructor_id = st.selectbox(
            "Instructor", [None] + [i["id"] for i in instructors],
            format_func=option_label(instructors, "full_name"),
        )
    return AnalyticsFilters(time_window=window, class_type_id=class_type_id, instructor_id=instructor_id)


def render_analytics_dashboard(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("📊 Analytics Dashboard")

    # --- Filters ---
    class_types = st.session_state.get("analytics_class_types", [])
    instructors = st.session_state.get("analytics_instructors", [])
    years = st.session_state.get("analytics_years", [])
    filters = _filters(viewer, years, class_types, instructors)

    # --- Fetch Data ---
    try:
        data = load_analytics_data(ctx.client, viewer, filters)
    except DataLoadError as e:
        error_panel(str(e), "analytics")
        return

    # remembered for the selectors on the next run
    st.session_state["analytics_class_types"] = data.class_types
    st.session_state["analytics_instructors"] = data.instructors
    if filters.time_window.kind == "all":
        st.session_state["analytics_years"] = available_years(data.incomes, data.expenses)

    if not data.incomes and not data.expenses:
        st.info("No records found for this period.")
        return

    # --- KPI Metrics ---
    stats = summary_statistics(data.incomes, data.expenses)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Income", format_currency(stats["total_income"]))
    c2.metric("Total Expenses", format_currency(stats["total_expenses"]))
    c3.metric("Net Profit", format_currency(stats["total_profit"]))
    c4.metric("Profit Margin", f"{stats['profit_margin']:.1f}%")
    c5, c6, c7 = st.columns(3)
    c5.metric("Workshops", stats["total_workshops"])
    c6.metric("Participants", stats["total_participants"])
    c7.metric("Avg Income / Workshop", format_currency(stats["avg_income_per_workshop"]))

    # --- Charts ---
    st.divider()
    fig = charts.monthly_trend_chart(monthly_trend(data.incomes, data.expenses))
    if fig:
        st.plotly_chart(fig, use_container_width=True)

    left, right = st.columns(2)
    with left:
        fig = charts.distribution_pie(class_type_distribution(data.incomes), "name", "value", "Income by Class Type")
        if fig:
            st.plotly_chart(fig, use_container_width=True)
    with right:
        fig = charts.category_bar(expense_breakdown(data.expenses, "category", "Uncategorized"), "Expenses by Category")
        if fig:
            st.plotly_chart(fig, use_container_width=True)

    payer_fig = charts.category_bar(expense_breakdown(data.expenses, "who_paid", "Unknown"), "Who Paid")
    if payer_fig:
        st.plotly_chart(payer_fig, use_container_width=True)

    if viewer.is_admin:
        st.subheader("🏆 Instructor Leaderboard")
        board = instructor_leaderboard(data.incomes)
        fig = charts.leaderboard_bar(board)
        if fig:
            st.plotly_chart(fig, use_container_width=True)
        st.dataframe(pd.DataFrame(board), use_container_width=True, hide_index=True)

    # --- Export ---
    if data.incomes:
        st.divider()
        st.write("### Export")
        e1, e2 = st.columns(2)
        e1.download_button(
            "📥 Download as CSV", export_csv(data.incomes, INCOME_COLUMNS),
            "workshop_income.csv", "text/csv", key="analytics-csv",
        )
        e2.download_button(
            "📥 Download as Excel", export_excel(data.incomes, INCOME_COLUMNS, "Income"),
            "workshop_income.xlsx",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            key="analytics-xlsx",
        )
