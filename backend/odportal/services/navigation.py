from __future__ import annotations

from dataclasses import dataclass

from odportal.models.user import User, UserRole

AUTH_PATH = "/auth"
HOME_PATH = "/"


@dataclass(frozen=True)
class PortalRoute:
    path: str
    title: str
    required_role: UserRole | None = None


ROUTES: tuple[PortalRoute, ...] = (
    PortalRoute(HOME_PATH, "Home"),
    PortalRoute(AUTH_PATH, "Sign in"),
    PortalRoute("/student-dashboard", "Student Dashboard", UserRole.student),
    PortalRoute("/class-incharge-dashboard", "Class In Charge Dashboard", UserRole.class_incharge),
    PortalRoute("/hod-dashboard", "HOD Dashboard", UserRole.hod),
    PortalRoute("/faculty-dashboard", "Faculty Dashboard", UserRole.faculty),
)
ROUTE_ALIASES = {"/login": AUTH_PATH}

_ROUTES_BY_PATH = {route.path: route for route in ROUTES}
DASHBOARD_BY_ROLE = {route.required_role: route.path for route in ROUTES if route.required_role is not None}


@dataclass(frozen=True)
class RouteDecision:
    path: str
    allowed: bool
    reason: str
    redirect_to: str | None = None


def normalize_path(path: str) -> str:
    cleaned = "/" + path.strip().split("?", 1)[0].strip("/")
    return ROUTE_ALIASES.get(cleaned, cleaned)


def home_path_for(user: User | None) -> str:
    if user is None:
        return AUTH_PATH
    return DASHBOARD_BY_ROLE[user.role]


def find_route(path: str) -> PortalRoute | None:
    return _ROUTES_BY_PATH.get(normalize_path(path))


def resolve_route(path: str, user: User | None) -> RouteDecision:
    normalized = normalize_path(path)
    route = _ROUTES_BY_PATH.get(normalized)
    if route is None:
        return RouteDecision(path=normalized, allowed=False, reason="not_found")

    if route.path == AUTH_PATH and user is not None:
        # Signed-in users skip the sign-in page.
        return RouteDecision(path=normalized, allowed=False, reason="authenticated", redirect_to=home_path_for(user))

    if route.required_role is None:
        return RouteDecision(path=normalized, allowed=True, reason="public")
    if user is None:
        return RouteDecision(path=normalized, allowed=False, reason="unauthenticated", redirect_to=AUTH_PATH)
    if user.role != route.required_role:
        return RouteDecision(path=normalized, allowed=False, reason="wrong_role", redirect_to=home_path_for(user))
    return RouteDecision(path=normalized, allowed=True, reason="authorized")
