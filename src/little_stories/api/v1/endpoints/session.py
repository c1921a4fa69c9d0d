# src/little_stories/api/v1/endpoints/session.py
"""Navigation display of the signed-in caller."""

from fastapi import APIRouter

from little_stories.api.v1.dependencies import PrincipalDep, SessionDep
from little_stories.schemas.user import SessionResponse
from little_stories.services import user_service

router = APIRouter(tags=["session"])


@router.get("/session", response_model=SessionResponse)
def read_session(db: SessionDep, principal: PrincipalDep) -> SessionResponse:
    """Report whether the caller is signed in and under which username."""
    return user_service.get_session(db, principal)
