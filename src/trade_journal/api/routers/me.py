from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from trade_journal.auth.deps import get_user_allow_pending
from trade_journal.auth.models import CurrentUser

router = APIRouter(prefix="/v1", tags=["me"])


class MeResponse(BaseModel):
    id: str
    email: str
    name: str | None
    role: str
    status: str


@router.get("/me", response_model=MeResponse)
async def me(user: CurrentUser = Depends(get_user_allow_pending)) -> MeResponse:
    # Pending users may call this to learn their status.
    return MeResponse(id=str(user.id), email=user.email, name=user.name, role=user.role, status=user.status)
