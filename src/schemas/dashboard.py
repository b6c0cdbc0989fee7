"""Dashboard (production report) schemas."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class MonthlyPointResponse(BaseModel):
    """Commission for one calendar month."""

    month: str  # YYYY-MM
    total: Decimal


class CategoryShareResponse(BaseModel):
    """Commission for one product category."""

    category: str
    total: Decimal


class LeaderboardRowResponse(BaseModel):
    """One operator's place on the leaderboard."""

    rank: int
    user_id: int
    display_name: Optional[str] = None
    total: Decimal
    contracts: int


class DashboardSummaryResponse(BaseModel):
    """All production report views for one filtered set of contracts."""

    monthly: List[MonthlyPointResponse]
    categories: List[CategoryShareResponse]
    leaderboard: List[LeaderboardRowResponse]
    total_commission: Decimal
    current_month_commission: Decimal
    contracts: int
