from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import streamlit as st
from supabase import Client

from workshop_tracker.auth import AuthContext
from workshop_tracker.config import AppConfig, load_config
from workshop_tracker.db.database import get_admin_client, get_supabase_client

logger = logging.getLogger(__name__)

SESSION_KEY = "app_context"


@dataclass
class AppContext:
    """Everything a page needs, built once per browser session."""
    cfg: AppConfig
    client: Client
    auth: AuthContext
    admin_client: Optional[Client] = None

    def close(self) -> None:
        self.auth.close()


def build_app_context(cfg: AppConfig) -> AppContext:
    client = get_supabase_client(cfg.supabase)
    admin_client = get_admin_client(cfg.supabase)
    auth = AuthContext(client, cfg, admin_client=admin_client).initialize()
    logger.info("Session ready (%s)", auth.status.value)
    return AppContext(cfg=cfg, client=client, auth=auth, admin_client=admin_client)


def get_app_context() -> AppContext:
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = build_app_context(load_config())
    return st.session_state[SESSION_KEY]
