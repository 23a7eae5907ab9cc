import os
import tempfile
from pathlib import Path

# The app reads settings at import time; point it at throwaway resources first.
_RUNTIME_DIR = Path(tempfile.mkdtemp(prefix="odportal-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_RUNTIME_DIR / 'bootstrap.db'}")
os.environ.setdefault("STORAGE_ROOT", str(_RUNTIME_DIR / "storage"))
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from odportal.api.deps import get_db, get_document_storage
from odportal.core.config import get_settings
from odportal.db.base import Base
from odportal.main import app
from odportal.services.rate_limit import clear_rate_limiter
from odportal.services.storage import LocalDocumentStorage

DEFAULT_PASSWORD = "password123"
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"

PROFILES = {
    "student": {
        "name": "Asha Student",
        "email": "asha@example.com",
        "role": "student",
        "registration_number": "21CSE001",
        "year": "3rd Year",
        "department": "CSE",
        "section": "A",
    },
    "class_incharge": {
        "name": "Ravi Incharge",
        "email": "ravi@example.com",
        "role": "class_incharge",
        "department": "CSE",
    },
    "hod": {
        "name": "Meena HOD",
        "email": "meena@example.com",
        "role": "hod",
        "department": "CSE",
    },
    "faculty": {
        "name": "Kumar Faculty",
        "email": "kumar@example.com",
        "role": "faculty",
        "department": "CSE",
    },
}


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def storage(tmp_path):
    return LocalDocumentStorage(
        tmp_path,
        "od-documents",
        download_path="/api/documents/download",
        allowed_types=get_settings().allowed_document_types,
    )


@pytest.fixture()
def client(session_factory, storage):
    clear_rate_limiter()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_rate_limiter()


def register_user(client, role: str, **overrides) -> dict:
    payload = {**PROFILES[role], "password": DEFAULT_PASSWORD, **overrides}
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def login_headers(client, email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def submit_request(client, headers, *, proof=True, supporting=False, **fields):
    data = {
        "event_name": "Inter-college Hackathon",
        "date": "2026-03-14",
        "from_period": "2",
        "to_period": "4",
        "reason": "Representing the department",
        **{key: str(value) for key, value in fields.items()},
    }
    files = {}
    if proof:
        files["proof_document"] = ("invite.pdf", PDF_BYTES, "application/pdf")
    if supporting:
        files["supporting_document"] = ("poster.png", b"\x89PNG\r\n\x1a\nposter", "image/png")
    return client.post("/api/od-requests", data=data, files=files or None, headers=headers)


@pytest.fixture()
def users(client):
    """One account per role, each with ready-to-use auth headers."""
    accounts = {}
    for role, profile in PROFILES.items():
        user = register_user(client, role)
        accounts[role] = {**user, "headers": login_headers(client, profile["email"])}
    return accounts
