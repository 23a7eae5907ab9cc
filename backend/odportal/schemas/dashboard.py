import datetime as dt

from pydantic import BaseModel

from odportal.schemas.od_request import ODRequestOut


class StatusCounts(BaseModel):
    pending: int = 0
    class_approved: int = 0
    hod_approved: int = 0
    rejected: int = 0


class StudentDashboardOut(BaseModel):
    requests: list[ODRequestOut]
    counts: StatusCounts


class ReviewQueueOut(BaseModel):
    date: dt.date | None = None
    class_label: str | None = None
    queue: list[ODRequestOut]
    total: int
    counts: StatusCounts


class HODDashboardOut(ReviewQueueOut):
    requests_on_date: list[ODRequestOut] = []


class ClassGroupOut(BaseModel):
    class_label: str
    count: int
    requests: list[ODRequestOut]

    model_config = {"from_attributes": True}


class FacultyDashboardOut(BaseModel):
    date: dt.date | None = None
    classes: list[ClassGroupOut]
    total_on_od: int
    selected_class: ClassGroupOut | None = None
