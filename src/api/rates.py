"""Commission rate settings API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import AuditAction, SubCategory, User, UserRole
from src.schemas.rates import RateItem, RateTableResponse, RateTableUpdate
from src.services.errors import ContractValidationError
from src.services.formulas import RATE_UNITS, strategy_for
from src.services.products import CATEGORY_BY_SUB_CATEGORY
from src.services.rates import RateTable, effective_rates, load_rate_table, replace_rates
from src.utils.audit import record_action

router = APIRouter(prefix="/rates", tags=["Rates"])


async def _target_user_id(
    db: AsyncSession,
    user_id: Optional[int],
    current_user: User,
) -> int:
    """Operators manage their own rates; admins may manage anyone's."""
    if user_id is None or user_id == current_user.id:
        return current_user.id

    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot access another operator's rates",
        )

    if not await db.get(User, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user_id


def _rate_table_response(user_id: int, saved: RateTable) -> RateTableResponse:
    return RateTableResponse(
        user_id=user_id,
        rates=[
            RateItem(
                sub_category=sub.value,
                category=CATEGORY_BY_SUB_CATEGORY[sub],
                rate_value=rate,
                unit=RATE_UNITS[strategy_for(sub)],
                is_default=sub not in saved,
            )
            for sub, rate in effective_rates(saved).items()
        ],
    )


@router.get("", response_model=RateTableResponse)
async def get_rates(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
):
    """Get the rates in effect, defaults filled in for unsaved sub-categories."""
    target_id = await _target_user_id(db, user_id, current_user)
    saved = await load_rate_table(db, target_id)
    return _rate_table_response(target_id, saved)


@router.put("", response_model=RateTableResponse)
async def update_rates(
    request: Request,
    data: RateTableUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
):
    """
    Replace the saved rates.

    Existing rates are deleted and the submitted ones inserted in the
    same transaction.
    """
    target_id = await _target_user_id(db, user_id, current_user)

    try:
        saved = await replace_rates(db, target_id, data.rates)
    except ContractValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.to_detail(),
        )

    await record_action(
        db,
        request,
        current_user.id,
        AuditAction.UPDATE_RATES,
        target_type="rates",
        target_id=target_id,
        rates=saved,
    )

    return _rate_table_response(target_id, saved)


@router.get("/sub-categories")
async def list_sub_categories(
    current_user: User = Depends(require_operator),
):
    """Sub-categories with their category and rate unit, in catalog order."""
    return [
        {
            "sub_category": sub.value,
            "category": CATEGORY_BY_SUB_CATEGORY[sub].value,
            "unit": RATE_UNITS[strategy_for(sub)],
        }
        for sub in SubCategory
    ]
