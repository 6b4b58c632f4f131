import pytest

from workshop_tracker.access import Viewer, can_access, ensure_owner_or_admin, scoped_owner
from workshop_tracker.config import load_config
from workshop_tracker.db.models import placeholder_profile
from workshop_tracker.errors import DomainNotAllowedError, PermissionDeniedError, ValidationError, WeakPasswordError
from workshop_tracker.profiles import clean_profile_form, list_instructors, upload_avatar
from workshop_tracker.validators import (
    email_domain,
    is_allowed_domain,
    parse_amount,
    parse_count,
    require_allowed_email,
    require_password,
)

ALLOWED = ("kraftstories.com", "kraftuniverse.com")


# ---------------------- VALIDATORS ----------------------

def test_email_domain_checks():
    assert email_domain("Maya@KraftUniverse.com") == "kraftuniverse.com"
    assert email_domain("no-at-sign") == ""
    assert is_allowed_domain("maya@KRAFTSTORIES.COM", ALLOWED)
    assert not is_allowed_domain("maya@kraftstories.com.evil.io", ALLOWED)


def test_require_allowed_email():
    assert require_allowed_email("  maya@kraftuniverse.com ", ALLOWED, "nope") == "maya@kraftuniverse.com"
    with pytest.raises(DomainNotAllowedError, match="nope"):
        require_allowed_email("maya@gmail.com", ALLOWED, "nope")
    with pytest.raises(DomainNotAllowedError):
        require_allowed_email("not an email", ALLOWED, "nope")


def test_require_password():
    require_password("12345678")
    with pytest.raises(WeakPasswordError, match="at least 8 characters"):
        require_password("1234567")
    with pytest.raises(WeakPasswordError, match="at least 12 characters"):
        require_password("", 12)


def test_number_parsing():
    assert parse_amount("12.5") == 12.5
    assert parse_count("") == 0
    assert parse_count(None) == 0
    with pytest.raises(ValidationError):
        parse_amount(None)
    with pytest.raises(ValidationError):
        parse_count("2.5")


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan"), float("inf")])
def test_parse_amount_rejects_non_finite(value):
    with pytest.raises(ValidationError, match="Payment must be a number"):
        parse_amount(value, "Payment")


# ---------------------- ACCESS ----------------------

def test_viewer_from_profile_defaults_to_user():
    assert Viewer.from_profile("u", None).role == "user"
    assert Viewer.from_profile("u", {"role": "admin"}).is_admin


def test_ownership_rules(user, admin):
    assert can_access(user, "user-1")
    assert not can_access(user, "user-2")
    assert not can_access(user, None)
    assert can_access(admin, "anyone")
    with pytest.raises(PermissionDeniedError):
        ensure_owner_or_admin(user, {"uploaded_by": "user-2"}, owner_field="uploaded_by")
    ensure_owner_or_admin(admin, {"user_id": "user-2"})


def test_scoped_owner(user, admin):
    assert scoped_owner(user, "user-2") == "user-1"
    assert scoped_owner(admin, "user-2") == "user-2"
    assert scoped_owner(admin, "") is None


def test_placeholder_profile():
    profile = placeholder_profile("u", "maya@kraftuniverse.com", {"full_name": "Maya"})
    assert profile["username"] == "maya"
    assert profile["full_name"] == "Maya"
    assert profile["role"] == "user"
    assert placeholder_profile("u", None, None)["username"] == "user"


# ---------------------- PROFILES ----------------------

def test_clean_profile_form():
    assert clean_profile_form({"username": " maya ", "full_name": None}) == {
        "full_name": "", "username": "maya", "avatar_url": "", "phone_number": "",
    }
    with pytest.raises(ValidationError, match="Username is required"):
        clean_profile_form({"full_name": "Maya"})


def test_upload_avatar(fake, user):
    url = upload_avatar(fake, user, "me.png", b"png", "image/png")
    assert url.startswith("https://fake.supabase.co/storage/v1/object/public/avatars/user-1-")
    with pytest.raises(ValidationError):
        upload_avatar(fake, user, "me.bmp", b"bmp", "image/bmp")


def test_list_instructors_admin_only(fake, user, admin):
    assert list_instructors(fake, user) == []
    assert [p["full_name"] for p in list_instructors(fake, admin)] == ["Ada Admin", "Maya Lee", "Sam Ortiz"]


# ---------------------- CONFIG ----------------------

def test_load_config_from_mapping():
    cfg = load_config({
        "supabase": {"url": "https://x.supabase.co", "anon_key": "anon"},
        "auth": {"allowed_domains": [" Example.ORG "], "min_password_length": "10"},
        "notifications": {"history_limit": "5"},
    })
    assert cfg.supabase.service_key == ""
    assert cfg.auth.allowed_domains == ("example.org",)
    assert cfg.auth.min_password_length == 10
    assert cfg.auth.profile_fetch_timeout == 5.0
    assert cfg.notifications.history_limit == 5
    assert cfg.notifications.function_name == "send-notification-email"
    assert cfg.branding.app_name == "Workshop Tracker"


def test_load_config_requires_supabase():
    with pytest.raises(KeyError):
        load_config({})


def test_restriction_messages_name_company_domain():
    cfg = load_config({"supabase": {"url": "u", "anon_key": "k"}})
    assert cfg.branding.auth_restriction_message.endswith("(e.g., example@kraftuniverse.com)")
    assert cfg.branding.signup_restriction_message.startswith("You must sign up with a company email")
