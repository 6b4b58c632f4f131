import pandas as pd
import streamlit as st

from workshop_tracker.class_types import create_class_type, delete_class_type, list_class_types, rename_class_type
from workshop_tracker.errors import TrackerError
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, require_viewer


def render_class_types(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("🏷️ Class Types")

    try:
        class_types = list_class_types(ctx.client)
    except Exception as e:
        error_panel(str(e), "class-types")
        return

    with st.form("add-class-type", clear_on_submit=True):
        name = st.text_input("Name")
        description = st.text_input("Description")
        if st.form_submit_button("➕ Add class type"):
            try:
                create_class_type(ctx.client, viewer, name, description)
                st.success("Class type created successfully")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))

    if not class_types:
        st.info("No class types yet.")
        return

    st.dataframe(pd.DataFrame(class_types), use_container_width=True, hide_index=True)

    by_id = {c["id"]: c for c in class_types}
    selected = st.selectbox("Select a class type", list(by_id), format_func=lambda i: by_id[i]["name"])
    with st.form(f"edit-class-type-{selected}"):
        new_name = st.text_input("Name", value=by_id[selected]["name"])
        new_description = st.text_input("Description", value=by_id[selected].get("description") or "")
        if st.form_submit_button("Save"):
            try:
                rename_class_type(ctx.client, viewer, selected, new_name, new_description)
                st.success("Class type updated successfully")
                st.rerun()
            except TrackerError as e:
                st.error(str(e))

    if st.button("🗑️ Delete class type"):
        try:
            delete_class_type(ctx.client, viewer, selected)
            st.success("Class type deleted successfully")
            st.rerun()
        except TrackerError as e:
            st.error(str(e))
