"""
Who is asking, and what they may touch.

Row level security on the Supabase side stays enabled, but every data access
function also checks ownership here so the rules hold even for a client built
on the service key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from workshop_tracker.db.models import ROLE_ADMIN
from workshop_tracker.errors import PermissionDeniedError


@dataclass(frozen=True)
class Viewer:
    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_profile(cls, user_id: str, profile: Optional[Dict[str, Any]]) -> "Viewer":
        # no profile row means least privilege
        role = (profile or {}).get("role") or "user"
        return cls(id=user_id, role=role)


def can_access(viewer: Viewer, owner_id: Optional[str]) -> bool:
    return viewer.is_admin or (owner_id is not None and owner_id == viewer.id)


def ensure_owner_or_admin(viewer: Viewer, row: Optional[Dict[str, Any]], owner_field: str = "user_id") -> None:
    if row is None:
        raise PermissionDeniedError("Record not found")
    if not can_access(viewer, row.get(owner_field)):
        raise PermissionDeniedError("You do not have permission to modify this record")


def ensure_admin(viewer: Viewer, action: str = "perform this action") -> None:
    if not viewer.is_admin:
        raise PermissionDeniedError(f"Only admins can {action}")


def scoped_owner(viewer: Viewer, requested_owner: Optional[str] = None) -> Optional[str]:
    """
    Returns the user_id filter to send with a query.
    Non-admins are always pinned to themselves; admins get the requested
    instructor or None for everyone.
    """
    if not viewer.is_admin:
        return viewer.id
    return requested_owner or None
