"""OD request lifecycle: submission and the two-stage approval chain.

A class in-charge moves a pending request to class_approved or rejected;
the HOD then moves a class_approved request to hod_approved or rejected.
hod_approved and rejected are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from odportal.core.config import Settings
from odportal.core.exceptions import (
    DocumentValidationError,
    InvalidTransitionError,
    PermissionDeniedError,
    ResourceNotFoundError,
    StaleRequestError,
)
from odportal.models.od_request import ODRequest, ODStatus
from odportal.models.user import User, UserRole
from odportal.schemas.od_request import ODRequestCreate
from odportal.services.audit import log_activity
from odportal.services.storage import DocumentKind, DocumentStorage, build_object_key, validate_document

logger = logging.getLogger(__name__)

TRANSITIONS: dict[UserRole, dict[ODStatus, frozenset[ODStatus]]] = {
    UserRole.class_incharge: {
        ODStatus.pending: frozenset({ODStatus.class_approved, ODStatus.rejected}),
    },
    UserRole.hod: {
        ODStatus.class_approved: frozenset({ODStatus.hod_approved, ODStatus.rejected}),
    },
}
REVIEWER_ROLES = frozenset(TRANSITIONS)
TERMINAL_STATUSES = frozenset({ODStatus.hod_approved, ODStatus.rejected})


@dataclass(frozen=True)
class DocumentUpload:
    filename: str | None
    content_type: str | None
    data: bytes


def allowed_targets(role: UserRole, current: ODStatus) -> frozenset[ODStatus]:
    return TRANSITIONS.get(role, {}).get(current, frozenset())


def check_transition(role: UserRole, current: ODStatus, target: ODStatus) -> None:
    if role not in REVIEWER_ROLES:
        raise PermissionDeniedError("Only class in-charges and HODs can review OD requests")
    if target in allowed_targets(role, current):
        return
    if current in TERMINAL_STATUSES:
        message = f"OD request is already {current.value}"
    else:
        message = f"A {role.value} cannot move an OD request from {current.value} to {target.value}"
    raise InvalidTransitionError(
        message,
        details={
            "current_status": current.value,
            "requested_status": target.value,
            "allowed": sorted(item.value for item in allowed_targets(role, current)),
        },
    )


def check_reviewer_scope(reviewer: User, request: ODRequest) -> None:
    # A class in-charge with a class on their profile only reviews that class.
    if reviewer.role != UserRole.class_incharge:
        return
    scope = reviewer.class_label
    if scope is not None and scope != request.class_label:
        raise PermissionDeniedError(
            "OD request belongs to another class",
            details={"reviewer_class": scope, "request_class": request.class_label},
        )


def submit_od_request(
    db: Session,
    storage: DocumentStorage,
    *,
    student: User,
    payload: ODRequestCreate,
    proof: DocumentUpload | None,
    supporting: DocumentUpload | None,
    settings: Settings,
) -> ODRequest:
    if proof is None or not proof.data:
        raise DocumentValidationError("A proof document is required", details={"field": "proof_document"})
    proof_type = validate_document(
        kind=DocumentKind.proof,
        data=proof.data,
        content_type=proof.content_type,
        settings=settings,
    )
    supporting_type = None
    if supporting is not None:
        supporting_type = validate_document(
            kind=DocumentKind.supporting,
            data=supporting.data,
            content_type=supporting.content_type,
            settings=settings,
        )

    uploaded: list[str] = []
    try:
        proof_key = build_object_key(DocumentKind.proof, proof.filename, proof_type)
        storage.upload(proof_key, proof.data, proof_type)
        uploaded.append(proof_key)

        supporting_key = None
        if supporting is not None:
            supporting_key = build_object_key(DocumentKind.supporting, supporting.filename, supporting_type)
            storage.upload(supporting_key, supporting.data, supporting_type)
            uploaded.append(supporting_key)

        request = ODRequest(
            student_user_id=student.id,
            student_name=payload.student_name,
            student_id=payload.student_id,
            student_year=payload.student_year,
            student_department=payload.student_department,
            student_section=payload.student_section,
            event_name=payload.event_name,
            date=payload.date,
            from_period=payload.from_period,
            to_period=payload.to_period,
            reason=payload.reason,
            proof_document_path=proof_key,
            supporting_document_path=supporting_key,
            status=ODStatus.pending,
        )
        db.add(request)
        db.flush()
        log_activity(
            db,
            user=student,
            action="od.submit",
            entity_type="od_request",
            entity_id=request.id,
            details={"new_status": ODStatus.pending.value, "date": payload.date.isoformat()},
        )
        db.commit()
    except Exception:
        db.rollback()
        if uploaded:
            logger.warning("Submission failed, removing %d uploaded document(s)", len(uploaded))
            storage.delete_quietly(uploaded)
        raise

    db.refresh(request)
    logger.info("OD request %s submitted by %s for %s", request.id, student.id, request.date)
    return request


def change_status(
    db: Session,
    *,
    request_id: str,
    reviewer: User,
    target: ODStatus,
    comment: str | None = None,
) -> ODRequest:
    request = db.get(ODRequest, request_id)
    if request is None:
        raise ResourceNotFoundError("OD request", request_id)

    previous = request.status
    check_transition(reviewer.role, previous, target)
    check_reviewer_scope(reviewer, request)

    now = datetime.now(timezone.utc)
    comment = (comment or "").strip() or None
    result = db.execute(
        update(ODRequest)
        .where(ODRequest.id == request_id, ODRequest.status == previous)
        .values(
            status=target,
            review_comment=comment,
            reviewed_by_id=reviewer.id,
            reviewed_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.info("OD request %s changed before %s could review it", request_id, reviewer.id)
        raise StaleRequestError(request_id, previous.value)

    log_activity(
        db,
        user=reviewer,
        action="od.status.update",
        entity_type="od_request",
        entity_id=request_id,
        details={
            "previous_status": previous.value,
            "new_status": target.value,
            "comment": comment,
            "reviewer_role": reviewer.role.value,
        },
    )
    db.commit()
    db.refresh(request)
    logger.info("OD request %s moved %s -> %s by %s", request_id, previous.value, target.value, reviewer.id)
    return request
