from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

DEFAULT_PAGE = "Dashboard"
LOGIN_PAGE = "Login"

PUBLIC_PAGES = ["Login", "Sign up", "Forgot password", "Reset password"]
USER_PAGES = ["Dashboard", "Analytics", "Workshops", "Incomes", "Expenses", "Documents", "Profile"]
ADMIN_PAGES = ["Clients", "Class types", "Email notifications"]


@dataclass
class Route:
    page: str
    next_page: Optional[str] = None  # where to go after a successful login
    denied: bool = False


def navigation(is_authenticated: bool, is_admin: bool) -> List[str]:
    if not is_authenticated:
        return ["Login", "Sign up", "Forgot password"]
    pages = list(USER_PAGES)
    if is_admin:
        pages += ADMIN_PAGES
    return pages


def resolve_route(requested: Optional[str], is_authenticated: bool, is_admin: bool) -> Route:
    """Maps the requested page to the one to render for this viewer."""
    known = PUBLIC_PAGES + USER_PAGES + ADMIN_PAGES
    if requested not in known:
        requested = DEFAULT_PAGE if is_authenticated else LOGIN_PAGE

    if requested in PUBLIC_PAGES:
        # "Reset password" is reached from the emailed link with a recovery session
        if is_authenticated and requested != "Reset password":
            return Route(DEFAULT_PAGE)
        return Route(requested)

    if not is_authenticated:
        return Route(LOGIN_PAGE, next_page=requested)

    if requested in ADMIN_PAGES and not is_admin:
        return Route(DEFAULT_PAGE, denied=True)

    return Route(requested)


def after_login(next_page: Optional[str]) -> str:
    if next_page and next_page in USER_PAGES + ADMIN_PAGES:
        return next_page
    return DEFAULT_PAGE
