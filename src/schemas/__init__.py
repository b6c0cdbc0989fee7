"""Pydantic schemas for request/response validation."""

from src.schemas.auth import LoginRequest, LoginResponse, TokenPayload
from src.schemas.contract import (
    ContractCreate,
    ContractFigures,
    ContractListResponse,
    ContractPreviewRequest,
    ContractResponse,
    ContractStatusUpdate,
    ContractUpdate,
)
from src.schemas.dashboard import (
    CategoryShareResponse,
    DashboardSummaryResponse,
    LeaderboardRowResponse,
    MonthlyPointResponse,
)
from src.schemas.rates import RateItem, RateTableResponse, RateTableUpdate
from src.schemas.user import OperatorCreate, UserResponse

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "TokenPayload",
    # Contracts
    "ContractCreate",
    "ContractFigures",
    "ContractListResponse",
    "ContractPreviewRequest",
    "ContractResponse",
    "ContractStatusUpdate",
    "ContractUpdate",
    # Dashboard
    "CategoryShareResponse",
    "DashboardSummaryResponse",
    "LeaderboardRowResponse",
    "MonthlyPointResponse",
    # Rates
    "RateItem",
    "RateTableResponse",
    "RateTableUpdate",
    # Users
    "OperatorCreate",
    "UserResponse",
]
