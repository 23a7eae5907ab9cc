import uuid
import datetime as dt
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from odportal.db.base import Base


def format_period_range(from_period: int, to_period: int) -> str:
    if from_period == to_period:
        return f"Period {from_period}"
    return f"Period {from_period} to {to_period}"


class ODStatus(str, Enum):
    pending = "pending"
    class_approved = "class_approved"
    hod_approved = "hod_approved"
    rejected = "rejected"


class ODRequest(Base):
    __tablename__ = "od_requests"
    __table_args__ = (CheckConstraint("from_period <= to_period", name="ck_od_requests_period_range"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    student_id: Mapped[str] = mapped_column(String(50), nullable=False)
    student_year: Mapped[str] = mapped_column(String(20), nullable=False)
    student_department: Mapped[str] = mapped_column(String(100), nullable=False)
    student_section: Mapped[str] = mapped_column(String(20), nullable=False)
    event_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    from_period: Mapped[int] = mapped_column(Integer, nullable=False)
    to_period: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    supporting_document_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    proof_document_path: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[ODStatus] = mapped_column(
        SAEnum(ODStatus, name="od_status"),
        nullable=False,
        default=ODStatus.pending,
        index=True,
    )
    review_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def class_label(self) -> str:
        return f"{self.student_year} {self.student_department} {self.student_section}"

    @property
    def period_text(self) -> str:
        return format_period_range(self.from_period, self.to_period)

    @property
    def has_supporting_document(self) -> bool:
        return bool(self.supporting_document_path)
