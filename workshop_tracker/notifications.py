from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from supabase import Client

from workshop_tracker.access import Viewer
from workshop_tracker.config import AppConfig
from workshop_tracker.db import models

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


# ---------------------- SENDING ----------------------

def send_email_notification(
    client: Client,
    cfg: AppConfig,
    *,
    type: str,
    record_id: Any,
    user_id: Any,
    amount: float,
    name: str,
    date: Optional[str],
) -> bool:
    """
    Asks the edge function to mail admins about a new record.
    Never raises; a failed notification only costs the email.
    """
    try:
        client.functions.invoke(
            cfg.notifications.function_name,
            invoke_options={
                "body": {
                    "type": type,
                    "recordId": record_id,
                    "userId": user_id,
                    "amount": amount,
                    "name": name,
                    "date": date,
                }
            },
        )
    except Exception as e:
        logger.error("Failed to send %s email notification for %s: %s", type, record_id, e)
        return False
    logger.info("Email notification sent for %s %s", type, record_id)
    return True


def notify_new_income(client: Client, cfg: AppConfig, income: Dict[str, Any]) -> bool:
    return send_email_notification(
        client, cfg,
        type="income",
        record_id=income.get("id"),
        user_id=income.get("user_id"),
        amount=income.get("payment") or 0,
        name=income.get("name") or "Workshop Income",
        date=income.get("date") or income.get("created_at"),
    )


def notify_new_expense(client: Client, cfg: AppConfig, expense: Dict[str, Any]) -> bool:
    return send_email_notification(
        client, cfg,
        type="expense",
        record_id=expense.get("id"),
        user_id=expense.get("user_id"),
        amount=expense.get("cost") or 0,
        name=expense.get("name") or "Workshop Expense",
        date=expense.get("month") or expense.get("created_at"),
    )


def send_test_notification(client: Client, cfg: AppConfig, viewer: Viewer) -> Dict[str, Any]:
    if not viewer.is_admin:
        return {"success": False, "error": "Only administrators can test email notifications"}

    ok = send_email_notification(
        client, cfg,
        type="income",
        record_id="test-record-id",
        user_id="test-user-id",
        amount=100,
        name="Test Email Notification",
        date=datetime.now(timezone.utc).isoformat(),
    )
    if not ok:
        return {"success": False, "error": "Failed to send test email notification"}
    return {"success": True, "error": None}


# ---------------------- HISTORY / STATUS ----------------------

def notification_history(client: Client, viewer: Viewer, limit: int = 50) -> List[Dict[str, Any]]:
    if not viewer.is_admin:
        return []
    try:
        res = (
            client.table(models.EMAIL_NOTIFICATIONS)
            .select("*, profiles:user_id(full_name, email)")
            .order("sent_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.warning("Failed to fetch email notification history: %s", e)
        return []


def function_url(cfg: AppConfig) -> str:
    return f"{cfg.supabase.url.rstrip('/')}/functions/v1/{cfg.notifications.function_name}"


def check_configuration(cfg: AppConfig, transport: Optional[httpx.BaseTransport] = None) -> bool:
    """Pings the edge function with an OPTIONS request; True when it answers 2xx."""
    try:
        with httpx.Client(timeout=DEFAULT_TIMEOUT, transport=transport) as http:
            r = http.options(
                function_url(cfg),
                headers={"Authorization": f"Bearer {cfg.supabase.anon_key}"},
            )
        return r.is_success
    except httpx.HTTPError as e:
        logger.warning("Email notification configuration check failed: %s", e)
        return False
