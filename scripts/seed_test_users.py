"""Seed one demo account per portal role.

Run:
  PYTHONPATH=backend python scripts/seed_test_users.py
"""

from __future__ import annotations

import os
from typing import Iterable

from sqlalchemy import select

from odportal.core.security import get_password_hash
from odportal.db.bootstrap import ensure_runtime_schema_compatibility
from odportal.db.session import SessionLocal
from odportal.models.user import User, UserRole

DEFAULT_PASSWORD = os.getenv("DEMO_PASSWORD", "DemoPass123!")
DEPARTMENT = "CSE"


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "student": {
        "name": "Demo Student",
        "email": _env_email("DEMO_STUDENT_EMAIL", "student.demo@example.com"),
        "role": UserRole.student,
        "registration_number": "DEMO-CSE-001",
        "year": "3rd Year",
        "section": "A",
    },
    "class_incharge": {
        "name": "Demo Class In Charge",
        "email": _env_email("DEMO_CLASS_INCHARGE_EMAIL", "incharge.demo@example.com"),
        "role": UserRole.class_incharge,
        "registration_number": None,
        "year": "3rd Year",
        "section": "A",
    },
    "hod": {
        "name": "Demo HOD",
        "email": _env_email("DEMO_HOD_EMAIL", "hod.demo@example.com"),
        "role": UserRole.hod,
        "registration_number": None,
        "year": None,
        "section": None,
    },
    "faculty": {
        "name": "Demo Faculty",
        "email": _env_email("DEMO_FACULTY_EMAIL", "faculty.demo@example.com"),
        "role": UserRole.faculty,
        "registration_number": None,
        "year": None,
        "section": None,
    },
}


def _upsert_user(
    *,
    name: str,
    email: str,
    role: UserRole,
    registration_number: str | None,
    year: str | None,
    section: str | None,
) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(DEFAULT_PASSWORD),
                role=role,
                registration_number=registration_number,
                year=year,
                department=DEPARTMENT,
                section=section,
                is_active=True,
            )
            session.add(existing)
        else:
            existing.name = name
            existing.role = role
            existing.hashed_password = get_password_hash(DEFAULT_PASSWORD)
            existing.registration_number = registration_number
            existing.year = year
            existing.department = DEPARTMENT
            existing.section = section
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        scope = f", class={user.class_label}" if user.class_label else ""
        print(f"  - {label}: {user.email} | role={user.role.value}{scope}")
    print(f"\nPassword for all demo accounts: {DEFAULT_PASSWORD}")


def main() -> None:
    ensure_runtime_schema_compatibility()
    created_users: dict[str, User] = {}
    for key, item in DEMO_ACCOUNTS.items():
        created_users[key] = _upsert_user(**item)
    _print_accounts(created_users.items())


if __name__ == "__main__":
    main()
