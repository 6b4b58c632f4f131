from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

from supabase import Client

from workshop_tracker.access import Viewer, ensure_owner_or_admin
from workshop_tracker.db import models
from workshop_tracker.db.database import get_row
from workshop_tracker.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_FILE_TYPES = [
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain", "text/csv",
]
SOURCES = ["workshop", "income", "expense", "client", "standalone"]
LINK_FIELDS = ("workshop_id", "income_id", "expense_id", "client_id")

DOCUMENT_SELECT = (
    "*, workshops:workshop_id(name), incomes:income_id(name), "
    "expenses:expense_id(name), clients:client_id(full_name, email), "
    "profiles:uploaded_by(full_name, email)"
)


# ---------------------- HELPERS ----------------------

def format_file_size(size: Optional[int]) -> str:
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    value = float(size)
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    # 1.50 -> 1.5, 2.00 -> 2
    return f"{round(value, 2):g} {units[i]}"


def validate_upload(file_name: str, content_type: str, size: int) -> None:
    if size > MAX_FILE_SIZE:
        raise ValidationError(f"File size must be less than {format_file_size(MAX_FILE_SIZE)}")
    if content_type not in ALLOWED_FILE_TYPES:
        raise ValidationError(f"File type not supported: {file_name}")


def source_info(doc: Dict[str, Any]) -> Dict[str, str]:
    if doc.get("workshop_id") and doc.get("workshops"):
        return {"type": "Workshop", "name": doc["workshops"].get("name") or ""}
    if doc.get("income_id") and doc.get("incomes"):
        return {"type": "Income", "name": doc["incomes"].get("name") or ""}
    if doc.get("expense_id") and doc.get("expenses"):
        return {"type": "Expense", "name": doc["expenses"].get("name") or ""}
    if doc.get("client_id") and doc.get("clients"):
        return {"type": "Client", "name": doc["clients"].get("full_name") or ""}
    return {"type": "Standalone", "name": "General Upload"}


def matches_source(doc: Dict[str, Any], source: str) -> bool:
    if source in (None, "", "all"):
        return True
    if source == "standalone":
        return not any(doc.get(f) for f in LINK_FIELDS)
    return bool(doc.get(f"{source}_id"))


def filter_documents(
    docs: List[Dict[str, Any]],
    search: str = "",
    document_type: str = "all",
    source: str = "all",
) -> List[Dict[str, Any]]:
    term = (search or "").strip().lower()
    result = []
    for doc in docs:
        if term and not any(
            term in (doc.get(f) or "").lower() for f in ("file_name", "description")
        ):
            continue
        if document_type not in (None, "", "all") and doc.get("document_type") != document_type:
            continue
        if not matches_source(doc, source):
            continue
        result.append(doc)
    return result


def storage_path(file_url: str, bucket: str = models.DOCUMENTS_BUCKET) -> str:
    """Recovers the object path inside the bucket from its public URL."""
    path = unquote(urlparse(file_url).path)
    marker = f"/{bucket}/"
    if marker in path:
        return path.split(marker, 1)[1]
    return path.rsplit("/", 1)[-1]


# ---------------------- DATA ACCESS ----------------------

def list_documents(client: Client, viewer: Viewer) -> List[Dict[str, Any]]:
    query = client.table(models.DOCUMENTS).select(DOCUMENT_SELECT)
    if not viewer.is_admin:
        query = query.eq("uploaded_by", viewer.id)
    return query.order("created_at", desc=True).execute().data or []


def upload_document(
    client: Client,
    viewer: Viewer,
    file_name: str,
    content: bytes,
    content_type: str,
    document_type: str = "other",
    description: str = "",
    links: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    validate_upload(file_name, content_type, len(content))
    if document_type not in models.DOCUMENT_TYPES:
        raise ValidationError(f"Unknown document type: {document_type}")

    ext = file_name.rsplit(".", 1)[-1] if "." in file_name else "bin"
    path = f"{viewer.id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}.{ext}"

    bucket = client.storage.from_(models.DOCUMENTS_BUCKET)
    bucket.upload(path, content, {"content-type": content_type, "cache-control": "3600", "upsert": "false"})
    file_url = bucket.get_public_url(path)

    row = {
        "file_name": file_name,
        "file_url": file_url,
        "file_size": len(content),
        "file_type": content_type,
        "document_type": document_type,
        "description": description or None,
        "uploaded_by": viewer.id,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    for f in LINK_FIELDS:
        row[f] = (links or {}).get(f) or None

    try:
        res = client.table(models.DOCUMENTS).insert(row).execute()
    except Exception:
        # the stored object goes too when the row insert fails
        bucket.remove([path])
        raise
    logger.info("Document %s uploaded by %s", file_name, viewer.id)
    return res.data[0] if res.data else row


def delete_document(client: Client, viewer: Viewer, document_id: Any) -> None:
    doc = get_row(client, models.DOCUMENTS, document_id)
    ensure_owner_or_admin(viewer, doc, owner_field="uploaded_by")

    client.table(models.DOCUMENTS).delete().eq("id", document_id).execute()
    logger.info("Document %s deleted by %s", document_id, viewer.id)

    # row first, then the stored object
    path = storage_path(doc["file_url"])
    try:
        client.storage.from_(models.DOCUMENTS_BUCKET).remove([path])
    except Exception as e:
        logger.warning("Stored file %s for document %s could not be removed: %s", path, document_id, e)
