"""User directory endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wastetrack.core.deps import get_current_user, require_role
from wastetrack.core.errors import InvalidInput
from wastetrack.db.session import get_session
from wastetrack.models.user import ROLES, User
from wastetrack.schemas.user import UserListResponse, UserOut

router = APIRouter()


@router.get(
    "/me",
    response_model=UserOut,
    summary="Get current authenticated user info",
)
async def get_current_user_info(
    current_user: Annotated[User, Depends(get_current_user)],
):
    return UserOut.model_validate(current_user)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List active users, e.g. to pick approvers for a level (ADMIN)",
    dependencies=[Depends(require_role("admin"))],
)
async def list_users(
    db: Annotated[AsyncSession, Depends(get_session)],
    role: str | None = Query(default=None),
):
    if role and role not in ROLES:
        raise InvalidInput(f"Unknown role '{role}'. Expected one of {', '.join(ROLES)}.")

    stmt = select(User).where(User.is_active.is_(True))
    if role:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt.order_by(User.name.asc()))
    users = result.scalars().all()
    return UserListResponse(items=[UserOut.model_validate(u) for u in users], total=len(users))
