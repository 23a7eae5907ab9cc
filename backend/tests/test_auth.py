from conftest import DEFAULT_PASSWORD, PROFILES, login_headers, register_user

from odportal.core.config import get_settings
from odportal.services import rate_limit


def test_register_login_logout(client):
    data = register_user(client, "student")
    assert data["email"] == PROFILES["student"]["email"]
    assert data["role"] == "student"
    assert data["class_label"] == "3rd Year CSE A"
    assert "password" not in data
    assert "hashed_password" not in data

    login_response = client.post(
        "/api/auth/login",
        json={"email": "asha@example.com", "password": DEFAULT_PASSWORD, "role": "student"},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["token_type"] == "bearer"
    assert login_data["home_path"] == "/student-dashboard"
    token = login_data["access_token"]

    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["registration_number"] == "21CSE001"

    logout_response = client.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
    assert logout_response.status_code == 200
    assert logout_response.json()["success"] is True


def test_student_registration_requires_class_details(client):
    payload = {**PROFILES["student"], "password": DEFAULT_PASSWORD}
    payload.pop("section")
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 422


def test_hod_registration_drops_class_fields(client):
    data = register_user(client, "hod", year="2nd Year", section="B")
    assert data["year"] is None
    assert data["section"] is None
    assert data["class_label"] is None


def test_duplicate_email_or_registration_number_conflicts(client):
    register_user(client, "student")

    same_email = client.post(
        "/api/auth/register",
        json={**PROFILES["student"], "registration_number": "21CSE999", "password": DEFAULT_PASSWORD},
    )
    assert same_email.status_code == 409

    same_registration = client.post(
        "/api/auth/register",
        json={**PROFILES["student"], "email": "other@example.com", "password": DEFAULT_PASSWORD},
    )
    assert same_registration.status_code == 409


def test_login_rejects_wrong_password_and_role(client):
    register_user(client, "faculty")

    wrong_password = client.post(
        "/api/auth/login",
        json={"email": "kumar@example.com", "password": "not-the-password"},
    )
    assert wrong_password.status_code == 401

    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "kumar@example.com", "password": DEFAULT_PASSWORD, "role": "hod"},
    )
    assert wrong_role.status_code == 403


def test_me_requires_valid_token(client):
    assert client.get("/api/auth/me").status_code in {401, 403}
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_password_change(client):
    register_user(client, "hod")
    headers = login_headers(client, "meena@example.com")

    wrong_current = client.post(
        "/api/auth/password/change",
        json={"current_password": "wrong-password", "new_password": "newpassword456"},
        headers=headers,
    )
    assert wrong_current.status_code == 400

    unchanged = client.post(
        "/api/auth/password/change",
        json={"current_password": DEFAULT_PASSWORD, "new_password": DEFAULT_PASSWORD},
        headers=headers,
    )
    assert unchanged.status_code == 400

    changed = client.post(
        "/api/auth/password/change",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "newpassword456"},
        headers=headers,
    )
    assert changed.status_code == 200

    old_login = client.post("/api/auth/login", json={"email": "meena@example.com", "password": DEFAULT_PASSWORD})
    assert old_login.status_code == 401
    login_headers(client, "meena@example.com", "newpassword456")


def test_login_is_rate_limited(client):
    register_user(client, "faculty")
    limit = get_settings().auth_rate_limit_login_max_requests

    for _ in range(limit):
        response = client.post("/api/auth/login", json={"email": "kumar@example.com", "password": "wrong-password"})
        assert response.status_code == 401

    blocked = client.post("/api/auth/login", json={"email": "kumar@example.com", "password": DEFAULT_PASSWORD})
    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) >= 1


def test_successful_login_clears_failed_attempts(client):
    register_user(client, "faculty")
    limit = get_settings().auth_rate_limit_login_max_requests
    wrong = {"email": "kumar@example.com", "password": "wrong-password"}

    for _ in range(limit - 1):
        assert client.post("/api/auth/login", json=wrong).status_code == 401
    ok = client.post("/api/auth/login", json={"email": "kumar@example.com", "password": DEFAULT_PASSWORD})
    assert ok.status_code == 200

    for _ in range(limit - 1):
        assert client.post("/api/auth/login", json=wrong).status_code == 401


def test_login_throttle_is_per_account(client):
    register_user(client, "faculty")
    register_user(client, "hod")
    limit = get_settings().auth_rate_limit_login_max_requests

    for _ in range(limit + 1):
        client.post("/api/auth/login", json={"email": "kumar@example.com", "password": "wrong-password"})

    other = client.post("/api/auth/login", json={"email": "meena@example.com", "password": DEFAULT_PASSWORD})
    assert other.status_code == 200


def test_attempt_ledger_window(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(rate_limit.time, "monotonic", lambda: clock[0])
    ledger = rate_limit.AttemptLedger()
    policy = rate_limit.RateLimitPolicy(scope="auth.login", limit=2, window_seconds=60)
    key = ("auth.login", "10.0.0.1", "kumar@example.com")

    assert ledger.record(key, policy) == rate_limit.RateLimitDecision(allowed=True, remaining=1)
    assert ledger.record(key, policy).remaining == 0
    clock[0] += 15
    blocked = ledger.record(key, policy)
    assert not blocked.allowed
    assert blocked.retry_after == 45

    clock[0] += 45
    assert ledger.record(key, policy).allowed

    ledger.forget(key)
    assert ledger.record(key, policy).remaining == 1
