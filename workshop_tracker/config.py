from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

import streamlit as st


DEFAULT_ALLOWED_DOMAINS = ("kraftstories.com", "kraftuniverse.com")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------------- DATA CLASSES ----------------------

@dataclass
class SupabaseConfig:
    url: str
    anon_key: str
    service_key: str = ""  # only needed for admin calls (compensating deletes)


@dataclass
class AuthConfig:
    allowed_domains: Tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    min_password_length: int = 8
    profile_fetch_timeout: float = 5.0
    reset_redirect_url: str = "http://localhost:8501/?page=Reset+password"


@dataclass
class NotificationConfig:
    function_name: str = "send-notification-email"
    history_limit: int = 20


@dataclass
class BrandingConfig:
    company_name: str = "Kraft Universe"
    app_name: str = "Workshop Tracker"

    @property
    def company_domain(self) -> str:
        return DEFAULT_ALLOWED_DOMAINS[-1]

    @property
    def auth_restriction_message(self) -> str:
        return (
            "Only company email addresses are allowed "
            f"(e.g., example@{self.company_domain})"
        )

    @property
    def signup_restriction_message(self) -> str:
        return (
            "You must sign up with a company email "
            f"(e.g., example@{self.company_domain})"
        )


@dataclass
class AppConfig:
    supabase: SupabaseConfig
    auth: AuthConfig = field(default_factory=AuthConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    branding: BrandingConfig = field(default_factory=BrandingConfig)


# ---------------------- LOADING ----------------------

def _section(secrets: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    if name in secrets:
        return secrets[name]
    return {}


def load_config(secrets: Optional[Mapping[str, Any]] = None) -> AppConfig:
    if secrets is None:
        secrets = st.secrets

    # --- Supabase (required) ---
    supabase = secrets["supabase"]
    supabase_cfg = SupabaseConfig(
        url=supabase["url"],
        anon_key=supabase["anon_key"],
        service_key=supabase.get("service_key", ""),
    )

    # --- Auth ---
    auth = _section(secrets, "auth")
    domains: List[str] = list(auth.get("allowed_domains", DEFAULT_ALLOWED_DOMAINS))
    auth_cfg = AuthConfig(
        allowed_domains=tuple(d.lower().strip() for d in domains),
        # numbers may arrive as strings from the secrets file
        min_password_length=int(auth.get("min_password_length", 8)),
        profile_fetch_timeout=float(auth.get("profile_fetch_timeout", 5.0)),
        reset_redirect_url=auth.get(
            "reset_redirect_url", AuthConfig.reset_redirect_url
        ),
    )

    # --- Notifications ---
    notifications = _section(secrets, "notifications")
    notification_cfg = NotificationConfig(
        function_name=notifications.get(
            "function_name", NotificationConfig.function_name
        ),
        history_limit=int(notifications.get("history_limit", 20)),
    )

    # --- Branding ---
    branding = _section(secrets, "branding")
    branding_cfg = BrandingConfig(
        company_name=branding.get("company_name", BrandingConfig.company_name),
        app_name=branding.get("app_name", BrandingConfig.app_name),
    )

    return AppConfig(
        supabase=supabase_cfg,
        auth=auth_cfg,
        notifications=notification_cfg,
        branding=branding_cfg,
    )


def configure_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
