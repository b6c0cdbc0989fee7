"""
Contract entry schemas.

Premiums, duration and sub-category are only loosely typed here; their
ranges are checked by the commission engine so that every rejection
names the offending field the same way for previews and saves.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.contract import ContractStatus, PaymentFrequency, ProductCategory


class ContractCreate(BaseModel):
    """Submit a new contract."""

    # Credited operator; defaults to the submitting user
    user_id: Optional[int] = None
    # Supervising operator; defaults to the credited operator
    managed_by: Optional[int] = None

    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_firstname: Optional[str] = Field(None, max_length=200)
    policy_number: Optional[str] = Field(None, max_length=100)

    sub_category: str = Field(..., min_length=1, max_length=50)

    submission_date: date = Field(default_factory=date.today)
    start_date: Optional[date] = None
    policing_date: Optional[date] = None
    commission_received_date: Optional[date] = None

    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    duration_years: int = 1
    net_premium: Decimal = Decimal("0")
    gross_premium: Decimal = Decimal("0")

    reserve_active: bool = False
    reserve_percent: Optional[Decimal] = None

    notes: Optional[str] = Field(None, max_length=2000)


class ContractUpdate(BaseModel):
    """Edit a contract. Only the fields sent are changed."""

    user_id: Optional[int] = None
    managed_by: Optional[int] = None

    customer_name: Optional[str] = Field(None, min_length=1, max_length=200)
    customer_firstname: Optional[str] = Field(None, max_length=200)
    policy_number: Optional[str] = Field(None, max_length=100)

    sub_category: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[ContractStatus] = None

    submission_date: Optional[date] = None
    start_date: Optional[date] = None
    policing_date: Optional[date] = None
    commission_received_date: Optional[date] = None

    payment_frequency: Optional[PaymentFrequency] = None
    duration_years: Optional[int] = None
    net_premium: Optional[Decimal] = None
    gross_premium: Optional[Decimal] = None

    reserve_active: Optional[bool] = None
    reserve_percent: Optional[Decimal] = None

    notes: Optional[str] = Field(None, max_length=2000)


class ContractStatusUpdate(BaseModel):
    """Move a contract to a new status."""

    status: ContractStatus
    policing_date: Optional[date] = None
    commission_received_date: Optional[date] = None


class ContractPreviewRequest(BaseModel):
    """Live preview of the derived figures while a contract is being entered."""

    # Whose rate table to use; defaults to the current user
    user_id: Optional[int] = None

    sub_category: str = Field(..., min_length=1, max_length=50)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    duration_years: int = 1
    net_premium: Decimal = Decimal("0")
    gross_premium: Decimal = Decimal("0")

    reserve_active: bool = False
    reserve_percent: Optional[Decimal] = None


class ContractFigures(BaseModel):
    """Derived figures of a contract, unrounded."""

    category: ProductCategory
    sub_category: str
    strategy: str
    rate_unit: str

    net_premium_yearly: Decimal
    gross_premium_yearly: Decimal
    valuation_sum: Decimal
    commission_rate: Decimal
    commission_amount: Decimal

    reserve_active: bool = False
    reserve_percent: Optional[Decimal] = None
    reserve_amount: Decimal = Decimal("0")


class ContractResponse(BaseModel):
    """A stored contract with its derived figures."""

    id: int
    user_id: int
    managed_by: Optional[int]

    customer_name: str
    customer_firstname: Optional[str]
    policy_number: Optional[str]

    category: ProductCategory
    sub_category: str
    status: ContractStatus

    submission_date: date
    start_date: Optional[date]
    policing_date: Optional[date]
    commission_received_date: Optional[date]

    payment_frequency: PaymentFrequency
    duration_years: int
    net_premium: Decimal
    gross_premium: Decimal

    net_premium_yearly: Decimal
    gross_premium_yearly: Decimal
    valuation_sum: Decimal
    commission_rate: Decimal
    commission_amount: Decimal

    reserve_active: bool
    reserve_percent: Optional[Decimal]
    reserve_amount: Decimal

    notes: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class ContractListResponse(BaseModel):
    """Paginated list of contracts."""

    items: List[ContractResponse]
    total: int
    page: int
    per_page: int
    pages: int
    # Commission over the whole filtered list, not just this page
    commission_total: Decimal = Decimal("0")
