import pandas as pd
import streamlit as st

from workshop_tracker.clients import (
    client_statistics,
    create_client,
    delete_client,
    filter_clients,
    list_clients,
    related_records,
    update_client,
)
from workshop_tracker.errors import ReferentialIntegrityError, TrackerError
from workshop_tracker.exports import CLIENT_COLUMNS, export_csv
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, require_viewer


def _client_form(key: str, existing=None):
    existing = existing or {}
    with st.form(key, clear_on_submit=existing == {}):
        c1, c2 = st.columns(2)
        form = {
            "full_name": c1.text_input("Full name", value=existing.get("full_name") or ""),
            "email": c2.text_input("Email", value=existing.get("email") or ""),
            "phone": c1.text_input("Phone", value=existing.get("phone") or ""),
            "company": c2.text_input("Company", value=existing.get("company") or ""),
            "address": st.text_input("Address", value=existing.get("address") or ""),
            "notes": st.text_area("Notes", value=existing.get("notes") or ""),
            "is_active": st.checkbox("Active", value=existing.get("is_active") is not False),
        }
        submitted = st.form_submit_button("Save")
    return submitted, form


def render_clients(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("👥 Client Management")

    try:
        clients = list_clients(ctx.client, viewer)
    except TrackerError as e:
        st.error(str(e))
        return
    except Exception as e:
        error_panel(str(e), "clients")
        return

    # --- KPI Metrics ---
    stats = client_statistics(clients)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Clients", stats["total_clients"])
    c2.metric("Active", stats["active_clients"])
    c3.metric("Total Revenue", format_currency(stats["total_revenue"]))
    c4.metric("Sessions", stats["total_sessions"])

    # --- Add ---
    with st.expander("➕ Add client"):
        submitted, form = _client_form("add-client")
        if submitted:
            try:
                create_client(ctx.client, viewer, form)
                st.success("Client added!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))

    # --- Table ---
    st.divider()
    term = st.text_input("🔍 Search by name, email or company")
    shown = filter_clients(clients, term)
    if not shown:
        st.info("No clients found.")
        return
    df = pd.DataFrame(shown)
    display_cols = ["id", "full_name", "email", "phone", "company", "total_spent", "total_sessions", "is_active"]
    st.dataframe(df[[c for c in display_cols if c in df.columns]], use_container_width=True, hide_index=True)
    st.download_button("📥 Download as CSV", export_csv(shown, CLIENT_COLUMNS), "clients.csv", "text/csv")

    # --- Actions ---
    st.write("### Actions")
    by_id = {c["id"]: c for c in shown}
    selected = st.selectbox("Select a client", list(by_id), format_func=lambda i: by_id[i]["full_name"])

    with st.expander("📂 Related records"):
        try:
            related = related_records(ctx.client, viewer, selected)
            st.write(f"{len(related['incomes'])} income record(s), {len(related['expenses'])} expense record(s)")
            if related["incomes"]:
                st.dataframe(pd.DataFrame(related["incomes"]), use_container_width=True, hide_index=True)
            if related["expenses"]:
                st.dataframe(pd.DataFrame(related["expenses"]), use_container_width=True, hide_index=True)
        except Exception as e:
            st.error(f"Error loading records: {e}")

    with st.expander("✏️ Edit client"):
        submitted, form = _client_form(f"edit-client-{selected}", by_id[selected])
        if submitted:
            try:
                update_client(ctx.client, viewer, selected, form)
                st.success("Client updated!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))

    if st.button("🗑️ Delete client", key="delete-client"):
        try:
            delete_client(ctx.client, viewer, selected)
            st.success("Client deleted!")
            st.rerun()
        except ReferentialIntegrityError as e:
            st.error(str(e))
        except Exception as e:
            st.error(f"Failed to delete: {e}")
