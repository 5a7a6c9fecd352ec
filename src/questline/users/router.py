"""User API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.gamification.xp_service import create_user, get_user
from questline.users.schemas import CreateUserRequest, UserResponse

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(body: CreateUserRequest, db: AsyncSession = Depends(get_session)):
    """Create a learner with zero XP."""
    try:
        user = await create_user(db, body.name, body.email)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(409, "Email already registered") from None
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(user_id: int, db: AsyncSession = Depends(get_session)):
    return await get_user(db, user_id)
