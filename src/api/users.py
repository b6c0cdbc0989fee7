"""Operator account management (admin only)."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_admin
from src.db import get_db
from src.models import AuditAction, User, UserRole
from src.schemas.user import OperatorCreate, UserResponse
from src.utils.audit import record_action
from src.utils.password import hash_password

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List all accounts."""
    result = await db.execute(select(User).order_by(User.display_name))
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_operator(
    request: Request,
    data: OperatorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create a new operator account."""
    existing = await db.execute(
        select(User).where(User.username == data.username)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )

    operator = User(
        username=data.username,
        password_hash=hash_password(data.password),
        role=UserRole.OPERATOR,
        display_name=data.display_name,
        is_active=True,
    )
    db.add(operator)
    await db.flush()

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.CREATE_OPERATOR,
        target_type="user",
        target_id=operator.id,
        username=data.username,
        display_name=data.display_name,
    )

    await db.refresh(operator)
    return UserResponse.model_validate(operator)
