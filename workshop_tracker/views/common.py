from __future__ import annotations

from typing import Any, Dict, List, Optional

import streamlit as st

from workshop_tracker.access import Viewer
from workshop_tracker.session import AppContext


def require_viewer(ctx: AppContext) -> Viewer:
    viewer = ctx.auth.viewer
    if viewer is None:
        st.warning("Please sign in to continue.")
        st.stop()
    return viewer


def error_panel(message: str, key: str) -> None:
    """Page level failure with a manual retry."""
    st.error(f"Error loading data: {message}")
    if st.button("🔄 Retry", key=f"retry-{key}"):
        st.rerun()


def format_currency(amount: Optional[float]) -> str:
    return f"${(amount or 0):,.2f}"


def option_label(options: List[Dict[str, Any]], label_field: str):
    """format_func for selectboxes whose values are row ids (None = not set)."""
    names = {o["id"]: o.get(label_field) or "" for o in options}

    def fmt(value):
        if value is None:
            return "—"
        return names.get(value, str(value))

    return fmt
