from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from supabase import Client

from workshop_tracker.access import Viewer
from workshop_tracker.db import models
from workshop_tracker.errors import ValidationError

logger = logging.getLogger(__name__)

AVATAR_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
MAX_AVATAR_SIZE = 5 * 1024 * 1024


def clean_profile_form(form: Dict[str, Any]) -> Dict[str, Any]:
    updates = {f: (form.get(f) or "").strip() for f in models.PROFILE_FIELDS}
    if not updates["username"]:
        raise ValidationError("Username is required")
    return updates


def upload_avatar(client: Client, viewer: Viewer, file_name: str, content: bytes, content_type: str) -> str:
    """Stores the image in the avatars bucket and returns its public URL."""
    if content_type not in AVATAR_TYPES:
        raise ValidationError("Please choose a JPEG, PNG, GIF or WebP image")
    if len(content) > MAX_AVATAR_SIZE:
        raise ValidationError("Image must be smaller than 5 MB")

    ext = file_name.rsplit(".", 1)[-1] if "." in file_name else "png"
    path = f"{viewer.id}-{int(time.time() * 1000)}.{ext}"
    bucket = client.storage.from_(models.AVATARS_BUCKET)
    bucket.upload(path, content, {"content-type": content_type, "cache-control": "3600", "upsert": "false"})
    logger.info("Avatar uploaded for %s", viewer.id)
    return bucket.get_public_url(path)


def list_instructors(client: Client, viewer: Viewer) -> List[Dict[str, Any]]:
    if not viewer.is_admin:
        return []
    res = (
        client.table(models.PROFILES)
        .select("id, full_name, email")
        .order("full_name")
        .execute()
    )
    return res.data or []
