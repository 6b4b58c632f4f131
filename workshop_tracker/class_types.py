from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from supabase import Client

from workshop_tracker.access import Viewer, ensure_admin
from workshop_tracker.db import models
from workshop_tracker.errors import ReferentialIntegrityError, ValidationError
from workshop_tracker.validators import require_text

logger = logging.getLogger(__name__)


def list_class_types(client: Client) -> List[Dict[str, Any]]:
    return client.table(models.CLASS_TYPES).select("*").order("name").execute().data or []


def _check_unique(client: Client, name: str, exclude_id: Any = None) -> None:
    res = client.table(models.CLASS_TYPES).select("id").eq("name", name).execute()
    if any(row["id"] != exclude_id for row in res.data or []):
        raise ValidationError(f'A class type named "{name}" already exists')


def create_class_type(client: Client, viewer: Viewer, name: str, description: str = "") -> Dict[str, Any]:
    ensure_admin(viewer, "manage class types")
    name = require_text(name, "Name")
    _check_unique(client, name)

    row = {
        "name": name,
        "description": (description or "").strip() or None,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    res = client.table(models.CLASS_TYPES).insert(row).execute()
    return res.data[0] if res.data else row


def rename_class_type(
    client: Client, viewer: Viewer, class_type_id: Any, name: str, description: str = ""
) -> Dict[str, Any]:
    ensure_admin(viewer, "manage class types")
    name = require_text(name, "Name")
    _check_unique(client, name, exclude_id=class_type_id)

    changes = {"name": name, "description": (description or "").strip() or None}
    res = client.table(models.CLASS_TYPES).update(changes).eq("id", class_type_id).execute()
    return res.data[0] if res.data else changes


def delete_class_type(client: Client, viewer: Viewer, class_type_id: Any) -> None:
    ensure_admin(viewer, "manage class types")
    used = (
        client.table(models.INCOMES)
        .select("id")
        .eq("class_type_id", class_type_id)
        .limit(1)
        .execute()
    )
    if used.data:
        raise ReferentialIntegrityError("Cannot delete a class type that is used by income records")
    client.table(models.CLASS_TYPES).delete().eq("id", class_type_id).execute()
    logger.info("Class type %s deleted by %s", class_type_id, viewer.id)
