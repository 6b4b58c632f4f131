from __future__ import annotations

import os
import sys

# --- Add project root to sys.path (streamlit runs this file as a script) ---
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

import streamlit as st

from workshop_tracker.config import configure_logging
from workshop_tracker.routing import navigation, resolve_route
from workshop_tracker.session import get_app_context
from workshop_tracker.views.analytics_dashboard import render_analytics_dashboard
from workshop_tracker.views.auth_pages import (
    render_forgot_password,
    render_login,
    render_reset_password,
    render_signup,
)
from workshop_tracker.views.class_types_page import render_class_types
from workshop_tracker.views.clients_page import render_clients
from workshop_tracker.views.dashboard import render_dashboard
from workshop_tracker.views.documents_page import render_documents
from workshop_tracker.views.expenses_page import render_expenses
from workshop_tracker.views.incomes_page import render_incomes
from workshop_tracker.views.notifications_page import render_notifications
from workshop_tracker.views.profile_page import render_profile
from workshop_tracker.views.workshops_page import render_workshops

PAGES = {
    "Login": render_login,
    "Sign up": render_signup,
    "Forgot password": render_forgot_password,
    "Reset password": render_reset_password,
    "Dashboard": render_dashboard,
    "Analytics": render_analytics_dashboard,
    "Workshops": render_workshops,
    "Incomes": render_incomes,
    "Expenses": render_expenses,
    "Documents": render_documents,
    "Profile": render_profile,
    "Clients": render_clients,
    "Class types": render_class_types,
    "Email notifications": render_notifications,
}

NAV_KEY = "nav_page"


# --- CSS STYLING ---
def inject_custom_css():
    st.markdown("""
    <style>
        /* --- Hide footer for clean look --- */
        footer {visibility: hidden;}

        /* --- Metric cards --- */
        div[data-testid="stMetric"] {
            background-color: rgba(37, 99, 235, 0.05);
            border-radius: 8px;
            padding: 12px;
        }
    </style>
    """, unsafe_allow_html=True)


def _on_nav_change():
    st.query_params["page"] = st.session_state[NAV_KEY]


def main():
    configure_logging()
    st.set_page_config(
        page_title="Workshop Tracker",
        page_icon="🎨",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    inject_custom_css()

    ctx = get_app_context()
    auth = ctx.auth

    # --- ROUTING ---
    requested = st.query_params.get("page")
    route = resolve_route(requested, auth.is_authenticated, auth.is_admin)
    if route.next_page:
        st.query_params["next"] = route.next_page
    if route.page != requested:
        st.query_params["page"] = route.page

    # --- SIDEBAR NAVIGATION ---
    pages = navigation(auth.is_authenticated, auth.is_admin)
    with st.sidebar:
        st.title(ctx.cfg.branding.app_name)
        if route.page in pages:
            st.session_state[NAV_KEY] = route.page
        st.radio("Go to", pages, key=NAV_KEY, on_change=_on_nav_change)
        st.divider()
        if auth.is_authenticated:
            st.caption(f"Signed in as **{auth.display_name}**")
            if st.button("Sign out"):
                ctx.auth.sign_out()
                st.query_params.clear()
                st.rerun()

    if route.denied:
        st.error("You do not have permission to view that page.")

    PAGES[route.page](ctx)


if __name__ == "__main__":
    main()
