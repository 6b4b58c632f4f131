from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from supabase import Client

from workshop_tracker.access import Viewer, ensure_admin
from workshop_tracker.db import models
from workshop_tracker.db.database import get_row
from workshop_tracker.errors import (
    PermissionDeniedError,
    ReferentialIntegrityError,
    ValidationError,
)
from workshop_tracker.validators import require_text, validate_email

logger = logging.getLogger(__name__)


def _clean(form: Dict[str, Any]) -> Dict[str, Any]:
    row = {f: (form.get(f) or "").strip() for f in models.CLIENT_FIELDS}
    row["full_name"] = require_text(row["full_name"], "Full name")
    if row["email"] and not validate_email(row["email"]):
        raise ValidationError("Please enter a valid email address")
    row["is_active"] = bool(form.get("is_active", True))
    return row


# ---------------------- READ ----------------------

def list_clients(client: Client, viewer: Viewer) -> List[Dict[str, Any]]:
    ensure_admin(viewer, "view clients")
    res = (
        client.table(models.CLIENTS)
        .select("*, profiles:created_by(full_name, email)")
        .order("created_at", desc=True)
        .execute()
    )
    return res.data or []


def client_options(client: Client, viewer: Viewer) -> List[Dict[str, Any]]:
    """Id and name pairs for the income and expense forms. Non-admins only see clients they created."""
    query = client.table(models.CLIENTS).select("id, full_name")
    if not viewer.is_admin:
        query = query.eq("created_by", viewer.id)
    return query.order("full_name").execute().data or []


def filter_clients(clients: List[Dict[str, Any]], term: str) -> List[Dict[str, Any]]:
    term = (term or "").strip().lower()
    if not term:
        return list(clients)
    return [
        c for c in clients
        if any(term in (c.get(f) or "").lower() for f in ("full_name", "email", "company"))
    ]


def client_statistics(clients: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "total_clients": len(clients),
        # missing is_active counts as active
        "active_clients": sum(1 for c in clients if c.get("is_active") is not False),
        "total_revenue": sum(c.get("total_spent") or 0 for c in clients),
        "total_sessions": sum(c.get("total_sessions") or 0 for c in clients),
    }


def related_records(client: Client, viewer: Viewer, client_id: Any) -> Dict[str, List[Dict[str, Any]]]:
    ensure_admin(viewer, "view client records")
    incomes = (
        client.table(models.INCOMES)
        .select("*")
        .eq("client_id", client_id)
        .order("created_at", desc=True)
        .execute()
    )
    expenses = (
        client.table(models.EXPENSES)
        .select("*")
        .eq("client_id", client_id)
        .order("created_at", desc=True)
        .execute()
    )
    return {"incomes": incomes.data or [], "expenses": expenses.data or []}


# ---------------------- WRITE ----------------------

def create_client(client: Client, viewer: Viewer, form: Dict[str, Any]) -> Dict[str, Any]:
    ensure_admin(viewer, "add clients")
    row = _clean(form)
    row.update({
        "total_spent": 0,
        "total_sessions": 0,
        "created_by": viewer.id,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    res = client.table(models.CLIENTS).insert(row).execute()
    return res.data[0] if res.data else row


def update_client(client: Client, viewer: Viewer, client_id: Any, form: Dict[str, Any]) -> Dict[str, Any]:
    ensure_admin(viewer, "edit clients")
    if get_row(client, models.CLIENTS, client_id) is None:
        raise PermissionDeniedError("Record not found")

    changes = _clean(form)
    res = client.table(models.CLIENTS).update(changes).eq("id", client_id).execute()
    return res.data[0] if res.data else changes


def has_related_records(client: Client, client_id: Any) -> bool:
    for table in (models.INCOMES, models.EXPENSES):
        res = client.table(table).select("id").eq("client_id", client_id).limit(1).execute()
        if res.data:
            return True
    return False


def delete_client(client: Client, viewer: Viewer, client_id: Any) -> None:
    ensure_admin(viewer, "delete clients")
    if has_related_records(client, client_id):
        raise ReferentialIntegrityError(
            "Cannot delete client with existing income or expense records. "
            "Please remove or reassign those records first."
        )
    client.table(models.CLIENTS).delete().eq("id", client_id).execute()
    logger.info("Client %s deleted by %s", client_id, viewer.id)
