"""
Shared FastAPI dependencies.

Centralizes common dependencies so routers import from a single place
(DB session, principal/role guards, side-effect wiring, pagination).
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from domain.enums import UserRole
from domain.errors import UnauthenticatedError, UnauthorizedError
from middleware.auth import require_token_user_id
from services.side_effects import SideEffects

STAFF_ROLES = {UserRole.ADMIN.value, UserRole.COURIER.value}


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def get_side_effects(request: Request) -> SideEffects:
    """The application's SideEffects (dispatcher + event bus), created in main.py."""
    return request.app.state.side_effects


async def require_user(
    user_id: int = Depends(require_token_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a User row."""
    q = await db.execute(select(User).where(User.id == user_id))
    user = q.scalar_one_or_none()
    if not user:
        raise UnauthenticatedError("User not found")
    return user


async def require_customer(user: User = Depends(require_user)) -> User:
    if user.role != UserRole.CUSTOMER.value:
        raise UnauthorizedError("Customer account required for this endpoint.")
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    """ADMIN-role principal; no built-in admin accounts exist."""
    if user.role != UserRole.ADMIN.value:
        raise UnauthorizedError("Admin role required for this endpoint.")
    return user


async def require_staff(user: User = Depends(require_user)) -> User:
    """ADMIN or COURIER — may move orders along the status table."""
    if user.role not in STAFF_ROLES:
        raise UnauthorizedError("Staff role required for this endpoint.")
    return user
