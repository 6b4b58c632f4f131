from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from workshop_tracker.access import Viewer, ensure_owner_or_admin, scoped_owner
from workshop_tracker.config import AppConfig
from workshop_tracker.db import models
from workshop_tracker.db.database import get_row
from workshop_tracker.errors import ValidationError
from workshop_tracker.notifications import notify_new_expense
from workshop_tracker.validators import parse_amount, require_text

logger = logging.getLogger(__name__)

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _clean(form: Dict[str, Any]) -> Dict[str, Any]:
    category = form.get("category") or None
    if category and category not in models.EXPENSE_CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")
    month = form.get("month") or None
    if month and month not in MONTHS:
        raise ValidationError(f"Unknown month: {month}")
    return {
        "name": require_text(form.get("name"), "Expense name"),
        "cost": parse_amount(form.get("cost"), "Cost"),
        "category": category,
        "who_paid": (form.get("who_paid") or "").strip() or None,
        "month": month,
        "client_id": form.get("client_id") or None,
    }


def list_expenses(
    client: Client,
    viewer: Viewer,
    instructor_id: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Dict[str, Any]]:
    query = client.table(models.EXPENSES).select("*, profiles:user_id(full_name, email)")
    owner = scoped_owner(viewer, instructor_id)
    if owner:
        query = query.eq("user_id", owner)
    if category:
        query = query.eq("category", category)
    return query.order("created_at", desc=True).execute().data or []


def create_expense(client: Client, cfg: AppConfig, viewer: Viewer, form: Dict[str, Any]) -> Dict[str, Any]:
    row = _clean(form)
    row["user_id"] = viewer.id
    row["created_at"] = datetime.now(timezone.utc).isoformat()

    res = client.table(models.EXPENSES).insert(row).execute()
    expense = res.data[0] if res.data else row
    logger.info("Expense %s recorded by %s", expense.get("id"), viewer.id)

    notify_new_expense(client, cfg, expense)
    return expense


def update_expense(client: Client, viewer: Viewer, expense_id: Any, form: Dict[str, Any]) -> Dict[str, Any]:
    existing = get_row(client, models.EXPENSES, expense_id)
    ensure_owner_or_admin(viewer, existing)

    changes = _clean(form)
    res = (
        client.table(models.EXPENSES)
        .update(changes)
        .eq("id", expense_id)
        .eq("user_id", existing["user_id"])
        .execute()
    )
    return res.data[0] if res.data else {**existing, **changes}


def delete_expense(client: Client, viewer: Viewer, expense_id: Any) -> None:
    existing = get_row(client, models.EXPENSES, expense_id)
    ensure_owner_or_admin(viewer, existing)

    client.table(models.EXPENSES).delete().eq("id", expense_id).eq("user_id", existing["user_id"]).execute()
    logger.info("Expense %s deleted by %s", expense_id, viewer.id)
