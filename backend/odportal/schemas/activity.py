from datetime import datetime

from pydantic import BaseModel

from odportal.models.od_request import ODStatus


class ActivityLogOut(BaseModel):
    id: str
    user_id: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    details: dict
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ODHistoryEntryOut(BaseModel):
    action: str
    actor_id: str | None
    previous_status: ODStatus | None = None
    new_status: ODStatus | None = None
    comment: str | None = None
    created_at: datetime | None
