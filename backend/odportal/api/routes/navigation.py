from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from odportal.api.deps import get_current_user, get_optional_user
from odportal.models.user import User
from odportal.services.navigation import home_path_for, resolve_route

router = APIRouter()


class RouteDecisionOut(BaseModel):
    path: str
    allowed: bool
    reason: str
    redirect_to: str | None = None


@router.get("/resolve", response_model=RouteDecisionOut)
def resolve(
    path: str = Query(..., min_length=1, max_length=300),
    current_user: User | None = Depends(get_optional_user),
) -> RouteDecisionOut:
    decision = resolve_route(path, current_user)
    if decision.reason == "not_found":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No page at {decision.path}")
    return RouteDecisionOut(
        path=decision.path,
        allowed=decision.allowed,
        reason=decision.reason,
        redirect_to=decision.redirect_to,
    )


@router.get("/home")
def home(current_user: User = Depends(get_current_user)) -> dict:
    return {"path": home_path_for(current_user)}
