import pytest

from tests.fakes import FakeClient
from workshop_tracker.access import Viewer
from workshop_tracker.config import AppConfig, AuthConfig, SupabaseConfig

USER_ID = "user-1"
OTHER_ID = "user-2"
ADMIN_ID = "admin-1"


@pytest.fixture
def cfg():
    return AppConfig(
        supabase=SupabaseConfig(url="https://fake.supabase.co", anon_key="anon-key"),
        auth=AuthConfig(profile_fetch_timeout=0.2),
    )


@pytest.fixture
def fake():
    return FakeClient({
        "profiles": [
            {"id": USER_ID, "full_name": "Maya Lee", "username": "maya", "email": "maya@kraftuniverse.com",
             "role": "user", "avatar_url": "", "phone_number": ""},
            {"id": OTHER_ID, "full_name": "Sam Ortiz", "username": "sam", "email": "sam@kraftstories.com",
             "role": "user", "avatar_url": "", "phone_number": ""},
            {"id": ADMIN_ID, "full_name": "Ada Admin", "username": "ada", "email": "ada@kraftuniverse.com",
             "role": "admin", "avatar_url": "", "phone_number": ""},
        ],
        "class_types": [
            {"id": 1, "name": "Pottery"},
            {"id": 2, "name": "Painting"},
        ],
    })


@pytest.fixture
def user():
    return Viewer(id=USER_ID, role="user")


@pytest.fixture
def other_user():
    return Viewer(id=OTHER_ID, role="user")


@pytest.fixture
def admin():
    return Viewer(id=ADMIN_ID, role="admin")
