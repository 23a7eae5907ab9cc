"""Per-role dashboard views over OD requests.

The aggregation helpers are pure: they take an already-loaded list of
requests and never touch the database, so every view is recomputed from
the latest fetch.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
import datetime as dt

from sqlalchemy import select
from sqlalchemy.orm import Session

from odportal.models.od_request import ODRequest, ODStatus, format_period_range
from odportal.models.user import User

period_text = format_period_range


def class_label(request: ODRequest) -> str:
    return request.class_label


class ClassGroup:
    def __init__(self, class_label: str, requests: list[ODRequest] | None = None) -> None:
        self.class_label = class_label
        self.requests = list(requests or [])

    @property
    def count(self) -> int:
        return len(self.requests)


def filter_requests(
    requests: Iterable[ODRequest],
    *,
    class_label: str | None = None,
    on_date: dt.date | None = None,
    status: ODStatus | None = None,
) -> list[ODRequest]:
    """Return the requests matching every given predicate, in input order."""
    return [
        item
        for item in requests
        if (class_label is None or item.class_label == class_label)
        and (on_date is None or item.date == on_date)
        and (status is None or item.status == status)
    ]


def group_by_class(
    requests: Iterable[ODRequest],
    class_labels: Sequence[str],
    *,
    include_unlisted: bool = False,
) -> list[ClassGroup]:
    groups = {label: ClassGroup(class_label=label) for label in class_labels}
    unlisted: dict[str, ClassGroup] = {}
    for item in requests:
        group = groups.get(item.class_label)
        if group is None:
            if not include_unlisted:
                continue
            group = unlisted.setdefault(item.class_label, ClassGroup(class_label=item.class_label))
        group.requests.append(item)
    return list(groups.values()) + [unlisted[label] for label in sorted(unlisted)]


def status_counts(requests: Iterable[ODRequest]) -> dict[str, int]:
    counter = Counter(item.status for item in requests)
    return {status.value: counter.get(status, 0) for status in ODStatus}


def load_requests(
    db: Session,
    *,
    status: ODStatus | None = None,
    on_date: dt.date | None = None,
    student_user_id: str | None = None,
) -> list[ODRequest]:
    query = select(ODRequest)
    if status is not None:
        query = query.where(ODRequest.status == status)
    if on_date is not None:
        query = query.where(ODRequest.date == on_date)
    if student_user_id is not None:
        query = query.where(ODRequest.student_user_id == student_user_id)
    query = query.order_by(ODRequest.created_at.desc(), ODRequest.id.desc())
    return list(db.execute(query).scalars())


def student_dashboard(db: Session, student: User) -> dict:
    requests = load_requests(db, student_user_id=student.id)
    return {"requests": requests, "counts": status_counts(requests)}


def class_incharge_dashboard(db: Session, reviewer: User, *, on_date: dt.date | None = None) -> dict:
    scope = reviewer.class_label
    requests = filter_requests(load_requests(db, on_date=on_date), class_label=scope)
    queue = filter_requests(requests, status=ODStatus.pending)
    return {
        "date": on_date,
        "class_label": scope,
        "queue": queue,
        "total": len(queue),
        "counts": status_counts(requests),
    }


def hod_dashboard(db: Session, *, on_date: dt.date | None = None) -> dict:
    requests = load_requests(db, on_date=on_date)
    queue = filter_requests(requests, status=ODStatus.class_approved)
    return {
        "date": on_date,
        "class_label": None,
        "queue": queue,
        "total": len(queue),
        "counts": status_counts(requests),
        "requests_on_date": requests if on_date is not None else [],
    }


def faculty_dashboard(
    db: Session,
    *,
    class_labels: Sequence[str],
    on_date: dt.date | None = None,
    selected_class: str | None = None,
) -> dict:
    approved = load_requests(db, status=ODStatus.hod_approved, on_date=on_date)
    groups = group_by_class(approved, class_labels, include_unlisted=True)
    selected = None
    if selected_class:
        selected = next((group for group in groups if group.class_label == selected_class), None)
        if selected is None:
            selected = ClassGroup(class_label=selected_class)
    return {
        "date": on_date,
        "classes": groups,
        "total_on_od": sum(group.count for group in groups),
        "selected_class": selected,
    }
