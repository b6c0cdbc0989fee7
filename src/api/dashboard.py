"""Production dashboard API endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import ContractStatus, ProductCategory, User, UserRole
from src.schemas.dashboard import (
    CategoryShareResponse,
    DashboardSummaryResponse,
    LeaderboardRowResponse,
    MonthlyPointResponse,
)
from src.services.aggregation import build_snapshot
from src.services.contracts import contract_query

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
    category: Optional[ProductCategory] = Query(None),
    contract_status: Optional[ContractStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
):
    """
    Production report for the filtered contracts.

    Returns:
    - monthly: commission per month, trailing six months, oldest first
    - categories: commission per category, highest first
    - leaderboard: operators ranked by commission
    Operators get their own contracts unless they filter by user.
    """
    if user_id is None and current_user.role != UserRole.ADMIN:
        user_id = current_user.id

    query = contract_query(
        current_user,
        user_id=user_id,
        category=category,
        status=contract_status,
        start_date=start_date,
        end_date=end_date,
    )
    entries = (await db.execute(query)).scalars().all()

    snapshot = build_snapshot(entries, today=date.today())

    names_result = await db.execute(select(User.id, User.display_name))
    names = {row.id: row.display_name for row in names_result.all()}

    return DashboardSummaryResponse(
        monthly=[
            MonthlyPointResponse(month=point.label, total=point.total)
            for point in snapshot.monthly
        ],
        categories=[
            CategoryShareResponse(category=share.category, total=share.total)
            for share in snapshot.categories
        ],
        leaderboard=[
            LeaderboardRowResponse(
                rank=row.rank,
                user_id=row.user_id,
                display_name=names.get(row.user_id),
                total=row.total,
                contracts=row.contracts,
            )
            for row in snapshot.leaderboard
        ],
        total_commission=snapshot.total,
        current_month_commission=snapshot.current_month_total,
        contracts=len(entries),
    )
