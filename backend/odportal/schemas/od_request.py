import datetime as dt

from pydantic import BaseModel, Field, field_validator, model_validator

from odportal.models.od_request import ODStatus

MIN_PERIOD = 1
MAX_PERIOD = 8


class ODRequestCreate(BaseModel):
    student_name: str = Field(min_length=1, max_length=200)
    student_id: str = Field(min_length=1, max_length=50)
    student_year: str = Field(min_length=1, max_length=20)
    student_department: str = Field(min_length=1, max_length=100)
    student_section: str = Field(min_length=1, max_length=20)
    event_name: str = Field(min_length=1, max_length=200)
    date: dt.date
    from_period: int = Field(ge=MIN_PERIOD, le=MAX_PERIOD)
    to_period: int = Field(ge=MIN_PERIOD, le=MAX_PERIOD)
    reason: str = Field(min_length=1, max_length=2000)

    @field_validator(
        "student_name",
        "student_id",
        "student_year",
        "student_department",
        "student_section",
        "event_name",
        "reason",
        mode="before",
    )
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def validate_period_range(self) -> "ODRequestCreate":
        if self.from_period > self.to_period:
            raise ValueError("from_period cannot be after to_period")
        return self


class ODRequestStatusUpdate(BaseModel):
    status: ODStatus
    comment: str | None = Field(default=None, max_length=1000)


class ODRequestOut(BaseModel):
    id: str
    student_user_id: str
    student_name: str
    student_id: str
    student_year: str
    student_department: str
    student_section: str
    class_label: str
    event_name: str
    date: dt.date
    from_period: int
    to_period: int
    period_text: str
    reason: str
    has_supporting_document: bool
    status: ODStatus
    review_comment: str | None = None
    reviewed_by_id: str | None = None
    reviewed_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    model_config = {"from_attributes": True}


class SignedUrlOut(BaseModel):
    url: str
    expires_in: int
