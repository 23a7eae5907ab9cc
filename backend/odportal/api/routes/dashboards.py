import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from odportal.api.deps import get_app_settings, get_db, require_roles
from odportal.core.config import Settings
from odportal.models.user import User, UserRole
from odportal.schemas.dashboard import FacultyDashboardOut, HODDashboardOut, ReviewQueueOut, StudentDashboardOut
from odportal.services import dashboard as dashboard_service

router = APIRouter()


@router.get("/dashboards/student", response_model=StudentDashboardOut)
def student_dashboard(
    current_user: User = Depends(require_roles(UserRole.student)),
    db: Session = Depends(get_db),
) -> StudentDashboardOut:
    return dashboard_service.student_dashboard(db, current_user)


@router.get("/dashboards/class-incharge", response_model=ReviewQueueOut)
def class_incharge_dashboard(
    on_date: dt.date | None = Query(default=None, alias="date"),
    current_user: User = Depends(require_roles(UserRole.class_incharge)),
    db: Session = Depends(get_db),
) -> ReviewQueueOut:
    return dashboard_service.class_incharge_dashboard(db, current_user, on_date=on_date)


@router.get("/dashboards/hod", response_model=HODDashboardOut)
def hod_dashboard(
    on_date: dt.date | None = Query(default=None, alias="date"),
    current_user: User = Depends(require_roles(UserRole.hod)),
    db: Session = Depends(get_db),
) -> HODDashboardOut:
    return dashboard_service.hod_dashboard(db, on_date=on_date)


@router.get("/dashboards/faculty", response_model=FacultyDashboardOut)
def faculty_dashboard(
    on_date: dt.date | None = Query(default=None, alias="date"),
    class_label: str | None = Query(default=None, max_length=100),
    current_user: User = Depends(require_roles(UserRole.faculty)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> FacultyDashboardOut:
    return dashboard_service.faculty_dashboard(
        db,
        class_labels=settings.class_labels,
        on_date=on_date,
        selected_class=class_label,
    )
