import pandas as pd
import streamlit as st

from workshop_tracker.class_types import list_class_types
from workshop_tracker.clients import client_options
from workshop_tracker.errors import TrackerError
from workshop_tracker.exports import INCOME_COLUMNS, export_csv, export_excel
from workshop_tracker.incomes import create_income, delete_income, list_incomes, update_income
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, option_label, require_viewer


def _income_form(key: str, class_types, clients, income=None):
    income = income or {}
    with st.form(key, clear_on_submit=income == {}):
        c1, c2 = st.columns(2)
        name = c1.text_input("Workshop name", value=income.get("name", ""))
        platform = c2.text_input("Platform", value=income.get("platform") or "", placeholder="Eventbrite, Instagram...")
        payment = c1.number_input("Payment ($)", min_value=0.0, step=10.0, value=float(income.get("payment") or 0))
        guest_count = c2.number_input("Participants", min_value=0, step=1, value=int(income.get("guest_count") or 0))

        type_ids = [None] + [c["id"] for c in class_types]
        class_type_id = c1.selectbox(
            "Class type", type_ids,
            index=type_ids.index(income.get("class_type_id")) if income.get("class_type_id") in type_ids else 0,
            format_func=option_label(class_types, "name"),
        )
        client_ids = [None] + [c["id"] for c in clients]
        client_id = c2.selectbox(
            "Client", client_ids,
            index=client_ids.index(income.get("client_id")) if income.get("client_id") in client_ids else 0,
            format_func=option_label(clients, "full_name"),
        )
        submitted = st.form_submit_button("Save")

    form = {
        "name": name, "platform": platform, "payment": payment,
        "guest_count": guest_count, "class_type_id": class_type_id, "client_id": client_id,
    }
    return submitted, form


def render_incomes(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("💵 Income")

    try:
        incomes = list_incomes(ctx.client, viewer)
        class_types = list_class_types(ctx.client)
        clients = client_options(ctx.client, viewer)
    except Exception as e:
        error_panel(str(e), "incomes")
        return

    # --- Add ---
    with st.expander("➕ Add income", expanded=not incomes):
        submitted, form = _income_form("add-income", class_types, clients)
        if submitted:
            try:
                create_income(ctx.client, ctx.cfg, viewer, form)
                st.success("Income recorded!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))
            except Exception as e:
                st.error(f"Failed to save income: {e}")

    if not incomes:
        st.info("No income records yet.")
        return

    # --- Table ---
    st.metric("Total income", format_currency(sum(i.get("payment") or 0 for i in incomes)))
    df = pd.DataFrame(incomes)
    df["class_type"] = [(i.get("class_types") or {}).get("name", "") for i in incomes]
    display_cols = ["id", "created_at", "name", "platform", "guest_count", "payment", "class_type"]
    st.dataframe(df[[c for c in display_cols if c in df.columns]], use_container_width=True, hide_index=True)

    # --- Actions ---
    st.write("### Actions")
    by_id = {i["id"]: i for i in incomes}
    selected = st.selectbox(
        "Select a record", list(by_id),
        format_func=lambda i: f"#{i} {by_id[i].get('name', '')} ({format_currency(by_id[i].get('payment'))})",
    )
    with st.expander("✏️ Edit selected"):
        submitted, form = _income_form(f"edit-income-{selected}", class_types, clients, by_id[selected])
        if submitted:
            try:
                update_income(ctx.client, viewer, selected, form)
                st.success("Income updated!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))
    if st.button("🗑️ Delete selected", key="delete-income"):
        try:
            delete_income(ctx.client, viewer, selected)
            st.success(f"Income {selected} deleted!")
            st.rerun()
        except Exception as e:
            st.error(f"Failed to delete: {e}")

    # --- Export ---
    e1, e2 = st.columns(2)
    e1.download_button("📥 Download as CSV", export_csv(incomes, INCOME_COLUMNS), "income.csv", "text/csv")
    e2.download_button(
        "📥 Download as Excel", export_excel(incomes, INCOME_COLUMNS, "Income"), "income.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
