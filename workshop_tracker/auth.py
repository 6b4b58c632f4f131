from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import AuthError, Client

from workshop_tracker.access import Viewer
from workshop_tracker.config import AppConfig
from workshop_tracker.db import models
from workshop_tracker.errors import AuthenticationError, TrackerError
from workshop_tracker.validators import require_allowed_email, require_password

logger = logging.getLogger(__name__)

PROFILE_ALREADY_LOADING = "Profile already loading"
PROFILE_NOT_FOUND = "Profile not found. Please contact support."
PROFILE_TIMEOUT = "Profile fetch timeout"


class AuthStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    ANONYMOUS = "anonymous"


def error_message(e: Exception) -> str:
    msg = getattr(e, "message", None)
    if msg:
        return str(msg)
    details = getattr(e, "details", None)
    if details:
        return str(details)
    return str(e)


def _result(success: bool, data: Any = None, error: Optional[str] = None) -> Dict[str, Any]:
    return {"success": success, "data": data, "error": error}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------- AUTH CONTEXT ----------------------

class AuthContext:
    """
    Session and profile state for one browser session.

    Built once per Streamlit session and handed to every page. It listens to
    the client's auth change events and re-resolves the profile on each one.
    """

    def __init__(self, client: Client, cfg: AppConfig, admin_client: Optional[Client] = None):
        self.client = client
        self.admin_client = admin_client
        self.cfg = cfg

        self.status = AuthStatus.UNINITIALIZED
        self.is_initialized = False
        self.session = None
        self.user = None
        self.profile: Optional[Dict[str, Any]] = None

        self._lock = threading.Lock()
        self._profile_loading = False
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="profile-fetch")
        self._subscription = None

    # --- lifecycle ---

    def initialize(self) -> "AuthContext":
        self.status = AuthStatus.LOADING
        try:
            session = self.client.auth.get_session()
            self._apply_session(session)
        except Exception as e:
            logger.error("Error initializing session: %s", error_message(e))
            self.session = None
            self.user = None
            self.profile = None
            self.status = AuthStatus.ANONYMOUS
        finally:
            self.is_initialized = True

        if self._subscription is None:
            self._subscription = self.client.auth.on_auth_state_change(self._on_auth_change)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._executor.shutdown(wait=False)

    def _on_auth_change(self, event, session) -> None:
        logger.info("Auth state change: %s (%s)", event, "session" if session else "no session")
        previous = (self.status, self.session, self.user, self.profile)
        self.status = AuthStatus.LOADING
        try:
            self._apply_session(session)
        except Exception as e:
            logger.error("Error handling auth change %s, keeping existing state: %s", event, error_message(e))
            self.status, self.session, self.user, self.profile = previous
        finally:
            self.is_initialized = True

    def _apply_session(self, session) -> None:
        user = getattr(session, "user", None) if session else None
        if user is None:
            self.session = None
            self.user = None
            self.profile = None
            self.status = AuthStatus.ANONYMOUS
            return

        self.session = session
        self.user = user
        self.profile = self._resolve_profile(user)
        self.status = (
            AuthStatus.AUTHENTICATED if self.profile is not None
            else AuthStatus.AUTHENTICATED_NO_PROFILE
        )

    # --- profile ---

    def _query_profile(self, user_id: str) -> Dict[str, Any]:
        res = (
            self.client.table(models.PROFILES)
            .select("*")
            .eq("id", user_id)
            .single()
            .execute()
        )
        return res.data

    def fetch_user_profile(self, user_id: str) -> Dict[str, Any]:
        with self._lock:
            if self._profile_loading:
                logger.info("Profile already loading for %s, skipping", user_id)
                return _result(False, error=PROFILE_ALREADY_LOADING)
            self._profile_loading = True

        try:
            future = self._executor.submit(self._query_profile, user_id)
            data = future.result(timeout=self.cfg.auth.profile_fetch_timeout)
            if not data:
                return _result(False, error=PROFILE_NOT_FOUND)
            return _result(True, data=data)
        except FutureTimeout:
            logger.warning("Profile fetch for %s timed out", user_id)
            return _result(False, error=PROFILE_TIMEOUT)
        except APIError as e:
            if e.code == models.NO_ROWS_CODE:
                logger.error("No profile found for user %s", user_id)
                return _result(False, error=PROFILE_NOT_FOUND)
            logger.error("Error fetching profile: %s", error_message(e))
            return _result(False, error=error_message(e))
        except Exception as e:
            logger.error("Error fetching profile: %s", error_message(e))
            return _result(False, error=error_message(e))
        finally:
            with self._lock:
                self._profile_loading = False

    def _resolve_profile(self, user) -> Optional[Dict[str, Any]]:
        res = self.fetch_user_profile(user.id)
        if res["success"]:
            return res["data"]
        if res["error"] == PROFILE_NOT_FOUND:
            return None
        if res["error"] == PROFILE_ALREADY_LOADING:
            return self.profile
        logger.warning("Profile unavailable (%s), using basic profile", res["error"])
        return models.placeholder_profile(
            user.id, getattr(user, "email", None), getattr(user, "user_metadata", None)
        )

    def refresh_profile(self) -> Optional[Dict[str, Any]]:
        if self.user is None:
            return None
        self._apply_session(self.session)
        return self.profile

    # --- derived state ---

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.profile) and self.profile.get("role") == models.ROLE_ADMIN

    @property
    def viewer(self) -> Optional[Viewer]:
        if self.user is None:
            return None
        return Viewer.from_profile(self.user.id, self.profile)

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.get("full_name"):
            return self.profile["full_name"]
        if self.user is not None and getattr(self.user, "email", None):
            return self.user.email
        return "User"

    # ---------------------- IDENTITY OPERATIONS ----------------------

    def sign_up(self, email: str, password: str, user_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        user_data = user_data or {}
        try:
            email = require_allowed_email(
                email, self.cfg.auth.allowed_domains,
                self.cfg.branding.signup_restriction_message,
            )
            require_password(password, self.cfg.auth.min_password_length)

            auth_res = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {
                    "data": {
                        "full_name": user_data.get("full_name", ""),
                        "role": models.ROLE_USER,
                    }
                },
            })
            user = getattr(auth_res, "user", None)
            if user is None:
                raise AuthenticationError("User creation failed")
            logger.info("Auth user created: %s", user.id)
        except (TrackerError, AuthError) as e:
            logger.info("Sign-up rejected for %s: %s", email, error_message(e))
            return _result(False, error=error_message(e))
        except Exception as e:
            logger.error("Sign-up error: %s", error_message(e))
            return _result(False, error=error_message(e))

        # --- Step 2: profile provisioning ---
        now = _now()
        profile_row = {
            "id": user.id,
            "full_name": user_data.get("full_name", ""),
            "username": user_data.get("username") or email.split("@")[0],
            "avatar_url": user_data.get("avatar_url", ""),
            "phone_number": user_data.get("phone_number", ""),
            "role": models.ROLE_USER,
            "email": email,
            "created_at": now,
            "updated_at": now,
        }
        try:
            inserted = self.client.table(models.PROFILES).insert(profile_row).execute()
            profile = inserted.data[0] if inserted.data else profile_row
        except Exception as e:
            logger.error("Profile creation failed for %s: %s", user.id, error_message(e))
            return self._rollback_identity(user)

        if self.user is not None and self.user.id == user.id:
            self.profile = profile
            self.status = AuthStatus.AUTHENTICATED
        return _result(True, data={"user": user, "profile": profile})

    def _rollback_identity(self, user) -> Dict[str, Any]:
        if self.admin_client is None:
            logger.warning(
                "Auth user %s created but profile creation failed; no service key to remove it", user.id
            )
            return _result(True, data={"user": user, "profile": None})
        try:
            self.admin_client.auth.admin.delete_user(user.id)
        except Exception as e:
            logger.warning(
                "Auth user %s created but profile creation failed and removal failed: %s",
                user.id, error_message(e),
            )
            return _result(True, data={"user": user, "profile": None})

        logger.info("Removed auth user %s after failed profile creation", user.id)
        if self.user is not None and self.user.id == user.id:
            self.session = None
            self.user = None
            self.profile = None
            self.status = AuthStatus.ANONYMOUS
        return _result(False, error="Account setup failed, please try signing up again")

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        try:
            email = require_allowed_email(
                email, self.cfg.auth.allowed_domains,
                self.cfg.branding.auth_restriction_message,
            )
            # profile is loaded by the SIGNED_IN event
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
            return _result(True, data=res)
        except (TrackerError, AuthError) as e:
            return _result(False, error=error_message(e))
        except Exception as e:
            logger.error("Sign-in error: %s", error_message(e))
            return _result(False, error=error_message(e))

    def sign_out(self) -> Dict[str, Any]:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.error("Sign-out error: %s", error_message(e))
            return _result(False, error=error_message(e))
        # the SIGNED_OUT event normally clears this already
        self.session = None
        self.user = None
        self.profile = None
        self.status = AuthStatus.ANONYMOUS
        return _result(True)

    def update_profile(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        if self.user is None:
            return _result(False, error="No user logged in")

        data = {k: v for k, v in updates.items() if k in models.PROFILE_FIELDS}
        data["updated_at"] = _now()
        try:
            # only ever the current user's row
            res = (
                self.client.table(models.PROFILES)
                .update(data)
                .eq("id", self.user.id)
                .execute()
            )
        except Exception as e:
            logger.error("Profile update error: %s", error_message(e))
            return _result(False, error=error_message(e))

        if not res.data:
            return _result(False, error=PROFILE_NOT_FOUND)
        self.profile = res.data[0]
        self.status = AuthStatus.AUTHENTICATED
        return _result(True, data=self.profile)

    def reset_password(self, email: str) -> Dict[str, Any]:
        try:
            email = require_allowed_email(
                email, self.cfg.auth.allowed_domains,
                self.cfg.branding.auth_restriction_message,
            )
            self.client.auth.reset_password_for_email(
                email, {"redirect_to": self.cfg.auth.reset_redirect_url}
            )
            return _result(True)
        except (TrackerError, AuthError) as e:
            return _result(False, error=error_message(e))
        except Exception as e:
            logger.error("Password reset error: %s", error_message(e))
            return _result(False, error=error_message(e))

    def update_password(self, new_password: str) -> Dict[str, Any]:
        try:
            require_password(new_password, self.cfg.auth.min_password_length)
            res = self.client.auth.update_user({"password": new_password})
            return _result(True, data=res)
        except (TrackerError, AuthError) as e:
            return _result(False, error=error_message(e))
        except Exception as e:
            logger.error("Password update error: %s", error_message(e))
            return _result(False, error=error_message(e))
