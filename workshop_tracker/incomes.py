from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from workshop_tracker.access import Viewer, ensure_owner_or_admin, scoped_owner
from workshop_tracker.config import AppConfig
from workshop_tracker.db import models
from workshop_tracker.db.database import get_row
from workshop_tracker.notifications import notify_new_income
from workshop_tracker.validators import parse_amount, parse_count, require_text

logger = logging.getLogger(__name__)

INCOME_LIST_SELECT = "*, class_types:class_type_id(name), clients:client_id(full_name)"


def _clean(form: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": require_text(form.get("name"), "Workshop name"),
        "payment": parse_amount(form.get("payment"), "Payment"),
        "platform": (form.get("platform") or "").strip(),
        "guest_count": parse_count(form.get("guest_count")),
        "class_type_id": form.get("class_type_id") or None,
        "client_id": form.get("client_id") or None,
    }


def list_incomes(client: Client, viewer: Viewer, instructor_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = client.table(models.INCOMES).select(INCOME_LIST_SELECT)
    owner = scoped_owner(viewer, instructor_id)
    if owner:
        query = query.eq("user_id", owner)
    return query.order("created_at", desc=True).execute().data or []


def create_income(client: Client, cfg: AppConfig, viewer: Viewer, form: Dict[str, Any]) -> Dict[str, Any]:
    row = _clean(form)
    row["user_id"] = viewer.id
    row["created_at"] = datetime.now(timezone.utc).isoformat()

    res = client.table(models.INCOMES).insert(row).execute()
    income = res.data[0] if res.data else row
    logger.info("Income %s recorded by %s", income.get("id"), viewer.id)

    notify_new_income(client, cfg, income)
    return income


def update_income(client: Client, viewer: Viewer, income_id: Any, form: Dict[str, Any]) -> Dict[str, Any]:
    existing = get_row(client, models.INCOMES, income_id)
    ensure_owner_or_admin(viewer, existing)

    changes = _clean(form)
    res = (
        client.table(models.INCOMES)
        .update(changes)
        .eq("id", income_id)
        .eq("user_id", existing["user_id"])
        .execute()
    )
    return res.data[0] if res.data else {**existing, **changes}


def delete_income(client: Client, viewer: Viewer, income_id: Any) -> None:
    existing = get_row(client, models.INCOMES, income_id)
    ensure_owner_or_admin(viewer, existing)

    client.table(models.INCOMES).delete().eq("id", income_id).eq("user_id", existing["user_id"]).execute()
    logger.info("Income %s deleted by %s", income_id, viewer.id)
