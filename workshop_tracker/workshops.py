from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from workshop_tracker.access import Viewer, scoped_owner
from workshop_tracker.analytics import parse_timestamp
from workshop_tracker.db import models

logger = logging.getLogger(__name__)

WORKSHOP_SELECT = "*, profiles:instructor_id(full_name, email), class_types:class_type_id(name)"

# PostgREST code for a table that does not exist
MISSING_TABLE_CODE = "42P01"
UPCOMING_DAYS = 30


def _run_optional(query) -> List[Dict[str, Any]]:
    try:
        return query.execute().data or []
    except APIError as e:
        if e.code == MISSING_TABLE_CODE:
            logger.info("Workshops table not found, showing income records only")
            return []
        raise


def list_workshops(client: Client, viewer: Viewer, instructor_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Scheduled workshops, oldest first. A missing workshops table reads as no workshops."""
    query = client.table(models.WORKSHOPS).select(WORKSHOP_SELECT)
    owner = scoped_owner(viewer, instructor_id)
    if owner:
        query = query.eq("instructor_id", owner)
    return _run_optional(query.order("date"))


def upcoming_workshops(
    client: Client, viewer: Viewer, today: Optional[date] = None, days: int = UPCOMING_DAYS
) -> List[Dict[str, Any]]:
    today = today or date.today()
    end = today + timedelta(days=days)
    query = (
        client.table(models.WORKSHOPS)
        .select(WORKSHOP_SELECT)
        .gte("date", today.isoformat())
        .lte("date", end.isoformat())
    )
    owner = scoped_owner(viewer)
    if owner:
        query = query.eq("instructor_id", owner)
    return _run_optional(query.order("date"))


# ---------------------- CALENDAR ----------------------

def workshop_title(workshop: Dict[str, Any]) -> str:
    return workshop.get("name") or workshop.get("title") or "Workshop"


def event_format(platform: Optional[str]) -> str:
    return "Online" if platform == "Zoom" else "In-person"


def calendar_events(
    workshops: List[Dict[str, Any]], incomes: List[Dict[str, Any]]
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Merges scheduled workshops and recorded incomes into one list of events
    and groups them by day ("YYYY-MM-DD"), oldest day first.
    Rows without a readable date are left out.
    """
    events = []
    for w in workshops:
        events.append({
            "id": w.get("id"),
            "type": "workshop",
            "name": workshop_title(w),
            "when": parse_timestamp(w.get("date")),
            "location": w.get("platform") or "TBD",
            "instructor": (w.get("profiles") or {}).get("full_name") or "Unknown",
            "class_type": (w.get("class_types") or {}).get("name") or "General",
            "participants": w.get("attendance") or 0,
            "capacity": w.get("capacity"),
            "revenue": None,
        })
    for i in incomes:
        events.append({
            "id": f"income-{i.get('id')}",
            "type": "income-based",
            "name": i.get("name") or "Workshop",
            "when": parse_timestamp(i.get("created_at")),
            "location": i.get("platform") or "Unknown",
            "instructor": (i.get("profiles") or {}).get("full_name") or "Unknown",
            "class_type": (i.get("class_types") or {}).get("name") or "General",
            "participants": i.get("guest_count") or 0,
            "capacity": None,
            "revenue": i.get("payment") or 0,
        })

    events = sorted((e for e in events if e["when"] is not None), key=lambda e: e["when"])
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for event in events:
        grouped.setdefault(event["when"].strftime("%Y-%m-%d"), []).append(event)
    return grouped
