"""Commission rate settings schemas."""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field

from src.models.contract import ProductCategory


class RateItem(BaseModel):
    """Effective rate for one sub-category."""

    sub_category: str
    category: ProductCategory
    rate_value: Decimal
    unit: str  # "‰", "MB" (monthly premiums) or "%"
    is_default: bool


class RateTableResponse(BaseModel):
    """An operator's complete effective rate table."""

    user_id: int
    rates: List[RateItem]


class RateTableUpdate(BaseModel):
    """Replace an operator's saved rates.

    Sub-categories left out fall back to the default rate.
    """

    rates: Dict[str, Decimal] = Field(default_factory=dict)
