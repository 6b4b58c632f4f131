# db/database.py

from typing import Any, Dict, Optional

from supabase import create_client, Client

from workshop_tracker.config import SupabaseConfig


def get_supabase_client(cfg: SupabaseConfig) -> Client:
    """
    Returns a new Supabase client bound to the anon key.
    Each browser session owns one client, so the auth session it holds
    belongs to exactly one signed-in user.
    """
    return create_client(cfg.url, cfg.anon_key)


def get_admin_client(cfg: SupabaseConfig) -> Optional[Client]:
    """
    Returns a client using the service_role key, or None when no key is set.
    Only used for admin auth calls such as removing an orphaned identity.
    """
    if not cfg.service_key:
        return None
    return create_client(cfg.url, cfg.service_key)


def get_row(client: Client, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
    """Returns the row with the given id, or None when there is no such row."""
    res = client.table(table).select("*").eq("id", row_id).limit(1).execute()
    if not res.data:
        return None
    return res.data[0]
