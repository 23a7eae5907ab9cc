import pytest

from odportal.models.user import User, UserRole
from odportal.services.navigation import AUTH_PATH, home_path_for, normalize_path, resolve_route


def _user(role: UserRole) -> User:
    return User(id=f"{role.value}-1", name="Someone", email="someone@example.com", hashed_password="x", role=role)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("/hod-dashboard/", "/hod-dashboard"),
        ("hod-dashboard", "/hod-dashboard"),
        ("/login", "/auth"),
        ("/student-dashboard?tab=history", "/student-dashboard"),
        ("", "/"),
    ],
)
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


def test_home_paths_per_role():
    assert home_path_for(None) == AUTH_PATH
    assert home_path_for(_user(UserRole.student)) == "/student-dashboard"
    assert home_path_for(_user(UserRole.class_incharge)) == "/class-incharge-dashboard"
    assert home_path_for(_user(UserRole.hod)) == "/hod-dashboard"
    assert home_path_for(_user(UserRole.faculty)) == "/faculty-dashboard"


def test_unauthenticated_user_is_sent_to_sign_in():
    decision = resolve_route("/hod-dashboard", None)
    assert decision.allowed is False
    assert decision.reason == "unauthenticated"
    assert decision.redirect_to == "/auth"


def test_wrong_role_is_redirected_to_own_dashboard():
    decision = resolve_route("/hod-dashboard", _user(UserRole.student))
    assert decision.allowed is False
    assert decision.reason == "wrong_role"
    assert decision.redirect_to == "/student-dashboard"


def test_matching_role_and_public_pages_are_allowed():
    assert resolve_route("/faculty-dashboard", _user(UserRole.faculty)).allowed is True
    assert resolve_route("/", None).reason == "public"
    assert resolve_route("/auth", None).allowed is True


def test_signed_in_user_skips_sign_in_page():
    decision = resolve_route("/login", _user(UserRole.hod))
    assert decision.reason == "authenticated"
    assert decision.redirect_to == "/hod-dashboard"


def test_unknown_path_is_not_found():
    assert resolve_route("/admin", _user(UserRole.hod)).reason == "not_found"


def test_navigation_endpoints(client, users):
    anonymous = client.get("/api/navigation/resolve", params={"path": "/student-dashboard"})
    assert anonymous.status_code == 200
    assert anonymous.json()["redirect_to"] == "/auth"

    wrong_role = client.get(
        "/api/navigation/resolve",
        params={"path": "/class-incharge-dashboard"},
        headers=users["faculty"]["headers"],
    )
    assert wrong_role.json() == {
        "path": "/class-incharge-dashboard",
        "allowed": False,
        "reason": "wrong_role",
        "redirect_to": "/faculty-dashboard",
    }

    missing = client.get("/api/navigation/resolve", params={"path": "/nowhere"})
    assert missing.status_code == 404

    home = client.get("/api/navigation/home", headers=users["class_incharge"]["headers"])
    assert home.json() == {"path": "/class-incharge-dashboard"}
