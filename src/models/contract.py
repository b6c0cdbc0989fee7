"""
ContractEntry model for submitted insurance contracts ("production").
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.user import User


class ProductCategory(str, Enum):
    """Product line a contract belongs to."""
    LIFE = "life"
    HEALTH = "health"
    PROPERTY = "property"
    VEHICLE = "vehicle"
    LEGAL = "legal"
    OTHER = "other"


class SubCategory(str, Enum):
    """Tariff-level product classifier; drives rate lookup and formula."""
    LEBEN = "Leben"
    BU = "BU"
    KV_VOLL = "KV Voll"
    KV_ZUSATZ = "KV Zusatz"
    REISE_KV = "Reise-KV"
    PHV = "PHV"
    HR = "HR"
    UNF = "UNF"
    SACH = "Sach"
    KFZ = "KFZ"
    RECHTSSCHUTZ = "Rechtsschutz"
    SONSTIGE = "Sonstige"


class PaymentFrequency(str, Enum):
    """Cadence at which the entered premium is paid."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half_yearly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class ContractStatus(str, Enum):
    """Status of a contract after submission."""
    SUBMITTED = "submitted"    # Handed in to the insurer
    POLICED = "policed"        # Policy issued
    CANCELLED = "cancelled"    # Withdrawn or rejected, terminal


class ContractEntry(Base, TimestampMixin):
    """
    A contract submitted by an operator.

    The yearly premiums, valuation sum, applied rate, commission and
    reserve amounts are derived by the commission engine on every create
    and edit. They are never entered by hand.
    """

    __tablename__ = "contract_entries"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Credited operator and supervising operator
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    managed_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )

    # Customer / policy
    customer_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    customer_firstname: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    policy_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )

    # Product
    category: Mapped[ProductCategory] = mapped_column(
        SQLAlchemyEnum(
            ProductCategory,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    sub_category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    status: Mapped[ContractStatus] = mapped_column(
        SQLAlchemyEnum(
            ContractStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ContractStatus.SUBMITTED,
        nullable=False,
        index=True,
    )

    # Dates
    submission_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    policing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    commission_received_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Contract terms (as entered)
    payment_frequency: Mapped[PaymentFrequency] = mapped_column(
        SQLAlchemyEnum(
            PaymentFrequency,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PaymentFrequency.MONTHLY,
        nullable=False,
    )
    duration_years: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    net_premium: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    gross_premium: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    # Derived figures. Each column holds the exact result for inputs within
    # the calculator limits (2-place premiums, 4-place rates, 2-place
    # reserve percent), so nothing is rounded on storage.
    net_premium_yearly: Mapped[Decimal] = mapped_column(
        Numeric(16, 2),
        nullable=False,
    )
    gross_premium_yearly: Mapped[Decimal] = mapped_column(
        Numeric(16, 2),
        nullable=False,
    )
    valuation_sum: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        comment="Strategy-specific base amount the rate is applied to",
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
        comment="Rate applied at calculation time (per-mille, percent or multiplier)",
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(26, 9),
        nullable=False,
    )

    # Liability reserve
    reserve_active: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    reserve_percent: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
    )
    reserve_amount: Mapped[Decimal] = mapped_column(
        Numeric(30, 13),
        default=Decimal("0"),
        nullable=False,
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User",
        foreign_keys=[user_id],
        back_populates="contracts",
    )
    manager: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[managed_by],
    )

    def __repr__(self) -> str:
        return (
            f"<ContractEntry(id={self.id}, sub_category='{self.sub_category}', "
            f"status={self.status})>"
        )
