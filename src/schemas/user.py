"""User and operator schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.user import UserRole


class OperatorCreate(BaseModel):
    """Create a new operator account."""

    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100)


class UserResponse(BaseModel):
    """User information."""

    id: int
    username: str
    display_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    last_active_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
