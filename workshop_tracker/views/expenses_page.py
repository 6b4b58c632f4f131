import pandas as pd
import streamlit as st

from workshop_tracker.clients import client_options
from workshop_tracker.db.models import EXPENSE_CATEGORIES
from workshop_tracker.errors import TrackerError
from workshop_tracker.expenses import MONTHS, create_expense, delete_expense, list_expenses, update_expense
from workshop_tracker.exports import EXPENSE_COLUMNS, export_csv, export_excel
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, format_currency, option_label, require_viewer


def _pick(label, options, current, container=st, **kwargs):
    values = [None] + list(options)
    index = values.index(current) if current in values else 0
    return container.selectbox(label, values, index=index, **kwargs)


def _expense_form(key: str, clients, expense=None):
    expense = expense or {}
    with st.form(key, clear_on_submit=expense == {}):
        c1, c2 = st.columns(2)
        name = c1.text_input("Expense name", value=expense.get("name", ""))
        cost = c2.number_input("Cost ($)", min_value=0.0, step=5.0, value=float(expense.get("cost") or 0))
        category = _pick("Category", EXPENSE_CATEGORIES, expense.get("category"), c1,
                         format_func=lambda v: v or "—")
        month = _pick("Month", MONTHS, expense.get("month"), c2, format_func=lambda v: v or "—")
        who_paid = c1.text_input("Who paid", value=expense.get("who_paid") or "")
        client_id = _pick("Client", [c["id"] for c in clients], expense.get("client_id"), c2,
                          format_func=option_label(clients, "full_name"))
        submitted = st.form_submit_button("Save")

    form = {
        "name": name, "cost": cost, "category": category, "month": month,
        "who_paid": who_paid, "client_id": client_id,
    }
    return submitted, form


def render_expenses(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("🧾 Expenses")

    category = st.selectbox("Filter by category", ["All"] + EXPENSE_CATEGORIES)
    try:
        expenses = list_expenses(ctx.client, viewer, category=None if category == "All" else category)
        clients = client_options(ctx.client, viewer)
    except Exception as e:
        error_panel(str(e), "expenses")
        return

    # --- Add ---
    with st.expander("➕ Add expense", expanded=not expenses):
        submitted, form = _expense_form("add-expense", clients)
        if submitted:
            try:
                create_expense(ctx.client, ctx.cfg, viewer, form)
                st.success("Expense recorded!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))
            except Exception as e:
                st.error(f"Failed to save expense: {e}")

    if not expenses:
        st.info("No expenses found.")
        return

    # --- Table ---
    st.metric("Total expenses", format_currency(sum(e.get("cost") or 0 for e in expenses)))
    df = pd.DataFrame(expenses)
    display_cols = ["id", "created_at", "name", "category", "who_paid", "month", "cost"]
    st.dataframe(df[[c for c in display_cols if c in df.columns]], use_container_width=True, hide_index=True)

    # --- Actions ---
    st.write("### Actions")
    by_id = {e["id"]: e for e in expenses}
    selected = st.selectbox(
        "Select a record", list(by_id),
        format_func=lambda i: f"#{i} {by_id[i].get('name', '')} ({format_currency(by_id[i].get('cost'))})",
    )
    with st.expander("✏️ Edit selected"):
        submitted, form = _expense_form(f"edit-expense-{selected}", clients, by_id[selected])
        if submitted:
            try:
                update_expense(ctx.client, viewer, selected, form)
                st.success("Expense updated!")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))
    if st.button("🗑️ Delete selected", key="delete-expense"):
        try:
            delete_expense(ctx.client, viewer, selected)
            st.success(f"Expense {selected} deleted!")
            st.rerun()
        except Exception as e:
            st.error(f"Failed to delete: {e}")

    # --- Export ---
    e1, e2 = st.columns(2)
    e1.download_button("📥 Download as CSV", export_csv(expenses, EXPENSE_COLUMNS), "expenses.csv", "text/csv")
    e2.download_button(
        "📥 Download as Excel", export_excel(expenses, EXPENSE_COLUMNS, "Expenses"), "expenses.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
