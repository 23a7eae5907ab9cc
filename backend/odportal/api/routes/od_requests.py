import datetime as dt
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from odportal.api.deps import get_app_settings, get_current_user, get_db, get_document_storage, require_roles
from odportal.core.config import Settings
from odportal.core.exceptions import ResourceNotFoundError, SubmissionValidationError
from odportal.models.od_request import ODRequest, ODStatus
from odportal.models.user import User, UserRole
from odportal.schemas.activity import ODHistoryEntryOut
from odportal.schemas.od_request import ODRequestCreate, ODRequestOut, ODRequestStatusUpdate, SignedUrlOut
from odportal.services.audit import entity_history
from odportal.services.dashboard import load_requests
from odportal.services.od_workflow import DocumentUpload, change_status, submit_od_request
from odportal.services.storage import DocumentKind, DocumentStorage

router = APIRouter()
logger = logging.getLogger(__name__)


def _read_upload(upload: UploadFile | None) -> DocumentUpload | None:
    if upload is None:
        return None
    data = upload.file.read()
    if not data and not upload.filename:
        # Browsers post an empty part for an untouched file input.
        return None
    return DocumentUpload(filename=upload.filename, content_type=upload.content_type, data=data)


def _get_visible_request(db: Session, request_id: str, current_user: User) -> ODRequest:
    request = db.get(ODRequest, request_id)
    if request is None:
        raise ResourceNotFoundError("OD request", request_id)
    if current_user.role == UserRole.student and request.student_user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this OD request")
    if current_user.role == UserRole.faculty and request.status != ODStatus.hod_approved:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Faculty only see HOD-approved OD requests")
    return request


@router.post("/od-requests", response_model=ODRequestOut, status_code=status.HTTP_201_CREATED)
def create_od_request(
    event_name: str = Form(...),
    date: dt.date = Form(...),
    from_period: int = Form(...),
    to_period: int = Form(...),
    reason: str = Form(...),
    student_name: str | None = Form(None),
    student_id: str | None = Form(None),
    student_year: str | None = Form(None),
    student_department: str | None = Form(None),
    student_section: str | None = Form(None),
    proof_document: UploadFile | None = File(None),
    supporting_document: UploadFile | None = File(None),
    current_user: User = Depends(require_roles(UserRole.student)),
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
    settings: Settings = Depends(get_app_settings),
) -> ODRequestOut:
    identity = {
        "student_name": student_name or current_user.name,
        "student_id": student_id or current_user.registration_number,
        "student_year": student_year or current_user.year,
        "student_department": student_department or current_user.department,
        "student_section": student_section or current_user.section,
    }
    missing = sorted(field for field, value in identity.items() if not (value or "").strip())
    if missing:
        raise SubmissionValidationError(
            "Student details are incomplete; fill them in or update your profile",
            details={"missing_fields": missing},
        )

    try:
        payload = ODRequestCreate(
            **identity,
            event_name=event_name,
            date=date,
            from_period=from_period,
            to_period=to_period,
            reason=reason,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc

    return submit_od_request(
        db,
        storage,
        student=current_user,
        payload=payload,
        proof=_read_upload(proof_document),
        supporting=_read_upload(supporting_document),
        settings=settings,
    )


@router.get("/od-requests", response_model=list[ODRequestOut])
def list_od_requests(
    status_filter: ODStatus | None = Query(default=None, alias="status"),
    on_date: dt.date | None = Query(default=None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ODRequestOut]:
    student_user_id = current_user.id if current_user.role == UserRole.student else None
    if current_user.role == UserRole.faculty:
        if status_filter not in (None, ODStatus.hod_approved):
            return []
        status_filter = ODStatus.hod_approved
    return load_requests(db, status=status_filter, on_date=on_date, student_user_id=student_user_id)


@router.get("/od-requests/{request_id}", response_model=ODRequestOut)
def get_od_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ODRequestOut:
    return _get_visible_request(db, request_id, current_user)


@router.put("/od-requests/{request_id}/status", response_model=ODRequestOut)
def update_od_request_status(
    request_id: str,
    payload: ODRequestStatusUpdate,
    current_user: User = Depends(require_roles(UserRole.class_incharge, UserRole.hod)),
    db: Session = Depends(get_db),
) -> ODRequestOut:
    return change_status(
        db,
        request_id=request_id,
        reviewer=current_user,
        target=payload.status,
        comment=payload.comment,
    )


@router.get("/od-requests/{request_id}/history", response_model=list[ODHistoryEntryOut])
def get_od_request_history(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ODHistoryEntryOut]:
    _get_visible_request(db, request_id, current_user)
    rows = entity_history(db, entity_type="od_request", entity_id=request_id)
    return [
        ODHistoryEntryOut(
            action=row.action,
            actor_id=row.user_id,
            previous_status=row.details.get("previous_status"),
            new_status=row.details.get("new_status"),
            comment=row.details.get("comment"),
            created_at=row.created_at,
        )
        for row in rows
    ]


@router.get("/od-requests/{request_id}/documents/{kind}/signed-url", response_model=SignedUrlOut)
def sign_od_request_document(
    request_id: str,
    kind: DocumentKind,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
    settings: Settings = Depends(get_app_settings),
) -> SignedUrlOut:
    request = _get_visible_request(db, request_id, current_user)
    key = request.proof_document_path if kind == DocumentKind.proof else request.supporting_document_path
    if not key:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No {kind.value} document on this request")

    expires_in = settings.signed_url_expire_seconds
    url = storage.signed_url(key, expires_in)
    logger.info("Signed %s document of OD request %s for %s", kind.value, request_id, current_user.id)
    return SignedUrlOut(url=url, expires_in=expires_in)

