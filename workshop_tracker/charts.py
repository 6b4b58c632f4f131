"""Plotly figures for the dashboard and analytics pages. Each returns None when there is nothing to draw."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

COLORS = ["#3B82F6", "#EF4444", "#10B981", "#F59E0B", "#8B5CF6", "#F97316", "#06B6D4", "#84CC16"]


def _layout(fig: go.Figure, title: str, height: int = 320) -> go.Figure:
    fig.update_layout(
        title=dict(text=title, font=dict(size=14)),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=40, b=10),
        height=height,
        legend=dict(orientation="h", yanchor="bottom", y=-0.25),
    )
    return fig


def monthly_trend_chart(trend: List[Dict[str, Any]]) -> Optional[go.Figure]:
    if not trend:
        return None
    df = pd.DataFrame(trend)
    fig = px.line(
        df,
        x="month",
        y=["income", "expenses", "profit"],
        markers=True,
        color_discrete_sequence=["#10B981", "#EF4444", "#3B82F6"],
        labels={"value": "Amount ($)", "month": "Month", "variable": ""},
    )
    fig.update_yaxes(tickprefix="$", tickformat=",.0f")
    return _layout(fig, "Monthly Income vs Expenses")


def distribution_pie(rows: List[Dict[str, Any]], names: str, values: str, title: str) -> Optional[go.Figure]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    fig = px.pie(df, names=names, values=values, hole=0.4, color_discrete_sequence=COLORS)
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return _layout(fig, title)


def leaderboard_bar(board: List[Dict[str, Any]]) -> Optional[go.Figure]:
    if not board:
        return None
    df = pd.DataFrame(board)
    fig = px.bar(
        df,
        x="name",
        y=["total_income", "avg_per_workshop"],
        barmode="group",
        color_discrete_sequence=["#3B82F6", "#10B981"],
        labels={"name": "Instructor", "value": "Amount ($)", "variable": ""},
    )
    return _layout(fig, "Instructor Performance")


def six_month_bar(series: List[Dict[str, Any]]) -> go.Figure:
    df = pd.DataFrame(series)
    fig = px.bar(df, x="label", y="income", color_discrete_sequence=["#3B82F6"],
                 labels={"label": "", "income": "Income ($)"})
    return _layout(fig, "Last 6 Months", height=220)


def category_bar(rows: List[Dict[str, Any]], title: str) -> Optional[go.Figure]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    fig = px.bar(df, x="amount", y="name", orientation="h",
                 color="name", color_discrete_sequence=COLORS,
                 labels={"amount": "Amount ($)", "name": ""})
    fig.update_layout(showlegend=False)
    return _layout(fig, title, height=260)
