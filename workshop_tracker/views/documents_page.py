import pandas as pd
import streamlit as st

from workshop_tracker.db.models import DOCUMENT_TYPES
from workshop_tracker.documents import (
    ALLOWED_FILE_TYPES,
    SOURCES,
    delete_document,
    filter_documents,
    format_file_size,
    list_documents,
    source_info,
    upload_document,
)
from workshop_tracker.errors import TrackerError
from workshop_tracker.session import AppContext
from workshop_tracker.views.common import error_panel, require_viewer


def render_documents(ctx: AppContext):
    viewer = require_viewer(ctx)
    st.title("📁 Documents")

    # --- Upload ---
    with st.expander("⬆️ Upload documents"):
        with st.form("upload-form", clear_on_submit=True):
            files = st.file_uploader("Files", accept_multiple_files=True)
            document_type = st.selectbox("Document type", DOCUMENT_TYPES, index=len(DOCUMENT_TYPES) - 1)
            description = st.text_input("Description")
            submitted = st.form_submit_button("Upload")
        if submitted and files:
            uploaded = 0
            for f in files:
                try:
                    upload_document(
                        ctx.client, viewer, f.name, f.getvalue(), f.type or "",
                        document_type=document_type, description=description,
                    )
                    uploaded += 1
                except TrackerError as e:
                    st.error(str(e))
                except Exception as e:
                    st.error(f"Failed to upload {f.name}: {e}")
            if uploaded:
                st.success(f"Successfully uploaded {uploaded} document(s)")
        st.caption(f"Allowed: {', '.join(t.split('/')[-1] for t in ALLOWED_FILE_TYPES)}")

    try:
        docs = list_documents(ctx.client, viewer)
    except Exception as e:
        error_panel(str(e), "documents")
        return

    # --- Filters ---
    c1, c2, c3 = st.columns(3)
    search = c1.text_input("🔍 Search")
    type_filter = c2.selectbox("Type", ["all"] + DOCUMENT_TYPES)
    source_filter = c3.selectbox("Source", ["all"] + SOURCES)
    shown = filter_documents(docs, search, type_filter, source_filter)
    st.caption(f"{len(shown)} document(s)")

    if not shown:
        st.info("Try adjusting your filters to see more documents." if docs else "No documents uploaded yet.")
        return

    rows = []
    for doc in shown:
        source = source_info(doc)
        rows.append({
            "id": doc["id"],
            "file": doc.get("file_name"),
            "type": doc.get("document_type"),
            "source": f"{source['type']}: {source['name']}",
            "size": format_file_size(doc.get("file_size")),
            "uploaded by": (doc.get("profiles") or {}).get("full_name", ""),
            "link": doc.get("file_url"),
        })
    st.dataframe(
        pd.DataFrame(rows), use_container_width=True, hide_index=True,
        column_config={"link": st.column_config.LinkColumn("Open")},
    )

    # --- Delete ---
    by_id = {d["id"]: d for d in shown}
    selected = st.selectbox("Select a document", list(by_id), format_func=lambda i: by_id[i]["file_name"])
    if st.button("🗑️ Delete document"):
        try:
            delete_document(ctx.client, viewer, selected)
            st.success("Document deleted successfully")
            st.rerun()
        except Exception as e:
            st.error(f"Failed to delete: {e}")
