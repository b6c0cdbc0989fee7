"""
Per-operator commission rate overrides.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.user import User


class CommissionRate(Base, TimestampMixin):
    """
    An operator's own rate for one sub-category.

    Rows are replaced wholesale whenever the operator saves their rate
    settings. Missing rows fall back to the default rate table.
    """

    __tablename__ = "commission_rates"
    __table_args__ = (
        UniqueConstraint("user_id", "sub_category", name="uq_commission_rates_user_sub"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sub_category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    rate_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="commission_rates",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionRate(user_id={self.user_id}, "
            f"sub_category='{self.sub_category}', rate={self.rate_value})>"
        )
