from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from email_validator import validate_email as _validate_email, EmailNotValidError

from workshop_tracker.errors import (
    DomainNotAllowedError,
    ValidationError,
    WeakPasswordError,
)


# ---------------------- EMAIL ----------------------

def validate_email(email: str) -> bool:
    try:
        _validate_email(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def email_domain(email: str) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def is_allowed_domain(email: str, allowed_domains: Iterable[str]) -> bool:
    domain = email_domain(email)
    return bool(domain) and domain in {d.lower() for d in allowed_domains}


def require_allowed_email(email: str, allowed_domains: Iterable[str], message: str) -> str:
    """Normalizes the address and raises DomainNotAllowedError when it is off-list."""
    email = (email or "").strip()
    if not validate_email(email) or not is_allowed_domain(email, allowed_domains):
        raise DomainNotAllowedError(message)
    return email


# ---------------------- PASSWORD ----------------------

def require_password(password: str, min_length: int = 8) -> None:
    if not password or len(password) < min_length:
        raise WeakPasswordError(
            f"Password must be at least {min_length} characters long"
        )


# ---------------------- FORM FIELDS ----------------------

def require_text(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required")
    return value


def parse_amount(value: Any, label: str = "Amount") -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a number")
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative")
    return amount


def parse_count(value: Any, label: str = "Guest count") -> int:
    if value in (None, ""):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number")
    if count < 0:
        raise ValidationError(f"{label} cannot be negative")
    return count
