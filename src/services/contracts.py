"""
Contract entry lifecycle: create, edit, status changes, delete.

Every create and edit goes through the same steps as the live preview:
resolve the credited operator's rate, pick the formula, calculate the
figures and the liability reserve. The entry is only touched after the
whole calculation succeeded, so a rejected edit leaves it unchanged.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Optional, Union

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import (
    ContractEntry,
    ContractStatus,
    PaymentFrequency,
    ProductCategory,
    User,
    UserRole,
)
from src.schemas.contract import (
    ContractCreate,
    ContractFigures,
    ContractPreviewRequest,
    ContractUpdate,
)
from src.services.commission import (
    CommissionInput,
    calculate,
    calculate_reserve,
    reserve_percent_for_toggle,
)
from src.services.errors import ContractValidationError
from src.services.formulas import RATE_UNITS, strategy_for
from src.services.products import ProductSelection
from src.services.rates import RateTable, load_rate_table, resolve_rate

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ContractStatus, FrozenSet[ContractStatus]] = {
    ContractStatus.SUBMITTED: frozenset({ContractStatus.POLICED, ContractStatus.CANCELLED}),
    ContractStatus.POLICED: frozenset({ContractStatus.CANCELLED}),
    ContractStatus.CANCELLED: frozenset(),
}

# Fields copied onto the entry as entered
_PLAIN_FIELDS = (
    "customer_name",
    "customer_firstname",
    "policy_number",
    "submission_date",
    "start_date",
    "policing_date",
    "commission_received_date",
    "notes",
)


def compute_figures(
    rate_table: RateTable,
    sub_category: str,
    payment_frequency: Union[str, PaymentFrequency],
    duration_years: int,
    net_premium: Decimal,
    gross_premium: Decimal,
    reserve_active: bool = False,
    reserve_percent: Optional[Decimal] = None,
) -> ContractFigures:
    """Calculate all derived figures of a contract.

    Pure: the same rate table and inputs always give the same figures.

    Raises:
        ContractValidationError: if any input is invalid
    """
    selection = ProductSelection.from_sub_category(sub_category)
    strategy = strategy_for(selection.sub_category)
    rate = resolve_rate(rate_table, selection.sub_category)

    result = calculate(
        CommissionInput(
            sub_category=selection.sub_category,
            payment_frequency=payment_frequency,
            duration_years=duration_years,
            net_premium=net_premium,
            gross_premium=gross_premium,
        ),
        rate,
    )

    percent = reserve_percent_for_toggle(reserve_active, reserve_percent)
    reserve_amount = calculate_reserve(result.commission_amount, reserve_active, percent)

    return ContractFigures(
        category=selection.category,
        sub_category=selection.sub_category.value,
        strategy=strategy.value,
        rate_unit=RATE_UNITS[strategy],
        net_premium_yearly=result.net_yearly,
        gross_premium_yearly=result.gross_yearly,
        valuation_sum=result.valuation_sum,
        commission_rate=result.commission_rate,
        commission_amount=result.commission_amount,
        reserve_active=reserve_active,
        reserve_percent=percent,
        reserve_amount=reserve_amount,
    )


def preview_contract(rate_table: RateTable, data: ContractPreviewRequest) -> ContractFigures:
    """Figures for a contract that is still being entered."""
    return compute_figures(
        rate_table,
        sub_category=data.sub_category,
        payment_frequency=data.payment_frequency,
        duration_years=data.duration_years,
        net_premium=data.net_premium,
        gross_premium=data.gross_premium,
        reserve_active=data.reserve_active,
        reserve_percent=data.reserve_percent,
    )


def check_transition(current: ContractStatus, new: ContractStatus) -> None:
    """Raise unless a contract may move from ``current`` to ``new``.

    Keeping the current status is not a transition and always passes.
    """
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise ContractValidationError(
            "status", f"cannot change status from '{current.value}' to '{new.value}'"
        )


def transition_status(entry: ContractEntry, new_status: ContractStatus) -> ContractEntry:
    """Move a contract to a new status."""
    check_transition(entry.status, new_status)
    entry.status = new_status
    return entry


def _apply_figures(entry: ContractEntry, figures: ContractFigures) -> None:
    entry.category = figures.category
    entry.sub_category = figures.sub_category
    entry.net_premium_yearly = figures.net_premium_yearly
    entry.gross_premium_yearly = figures.gross_premium_yearly
    entry.valuation_sum = figures.valuation_sum
    entry.commission_rate = figures.commission_rate
    entry.commission_amount = figures.commission_amount
    entry.reserve_active = figures.reserve_active
    entry.reserve_percent = figures.reserve_percent
    entry.reserve_amount = figures.reserve_amount


async def _require_operator(db: AsyncSession, user_id: int, field: str) -> User:
    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise ContractValidationError(field, f"unknown or inactive user {user_id}")
    return user


async def create_contract(
    db: AsyncSession,
    data: ContractCreate,
    current_user: User,
) -> ContractEntry:
    """Create a contract with all figures calculated.

    The submitting user is credited unless ``data.user_id`` names someone
    else. The supervising operator defaults to the credited one.
    """
    user_id = data.user_id or current_user.id
    managed_by = data.managed_by or user_id

    await _require_operator(db, user_id, "user_id")
    if managed_by != user_id:
        await _require_operator(db, managed_by, "managed_by")

    rate_table = await load_rate_table(db, user_id)
    figures = compute_figures(
        rate_table,
        sub_category=data.sub_category,
        payment_frequency=data.payment_frequency,
        duration_years=data.duration_years,
        net_premium=data.net_premium,
        gross_premium=data.gross_premium,
        reserve_active=data.reserve_active,
        reserve_percent=data.reserve_percent,
    )

    entry = ContractEntry(
        user_id=user_id,
        managed_by=managed_by,
        status=ContractStatus.SUBMITTED,
        payment_frequency=PaymentFrequency(data.payment_frequency),
        duration_years=data.duration_years,
        net_premium=data.net_premium,
        gross_premium=data.gross_premium,
        **{field: getattr(data, field) for field in _PLAIN_FIELDS},
    )
    _apply_figures(entry, figures)

    db.add(entry)
    await db.flush()
    await db.refresh(entry)

    logger.info(
        f"Contract {entry.id} created for user {user_id}: {figures.sub_category}, "
        f"commission {figures.commission_amount}"
    )
    return entry


async def update_contract(
    db: AsyncSession,
    entry: ContractEntry,
    data: ContractUpdate,
) -> ContractEntry:
    """Apply an edit and recalculate every derived figure.

    Rates are resolved for the credited operator after the edit, so
    re-crediting a contract applies the new operator's rates.
    """
    changes = data.model_dump(exclude_unset=True)

    def merged(field: str):
        value = changes.get(field)
        return getattr(entry, field) if value is None else value

    user_id = merged("user_id")
    if "managed_by" in changes:
        managed_by = changes["managed_by"] or user_id
    else:
        managed_by = entry.managed_by or user_id

    if user_id != entry.user_id:
        await _require_operator(db, user_id, "user_id")
    if managed_by != entry.managed_by and managed_by != user_id:
        await _require_operator(db, managed_by, "managed_by")

    new_status = merged("status")
    check_transition(entry.status, new_status)

    reserve_percent = (
        changes["reserve_percent"] if "reserve_percent" in changes else entry.reserve_percent
    )

    rate_table = await load_rate_table(db, user_id)
    figures = compute_figures(
        rate_table,
        sub_category=merged("sub_category"),
        payment_frequency=merged("payment_frequency"),
        duration_years=merged("duration_years"),
        net_premium=merged("net_premium"),
        gross_premium=merged("gross_premium"),
        reserve_active=merged("reserve_active"),
        reserve_percent=reserve_percent,
    )

    # Validation passed, write everything
    entry.user_id = user_id
    entry.managed_by = managed_by
    entry.status = new_status
    entry.payment_frequency = PaymentFrequency(merged("payment_frequency"))
    entry.duration_years = merged("duration_years")
    entry.net_premium = merged("net_premium")
    entry.gross_premium = merged("gross_premium")
    for field in _PLAIN_FIELDS:
        if field in changes:
            value = changes[field]
            if value is None and field in ("customer_name", "submission_date"):
                continue
            setattr(entry, field, value)
    _apply_figures(entry, figures)

    await db.flush()
    await db.refresh(entry)

    logger.info(
        f"Contract {entry.id} updated: {figures.sub_category}, "
        f"commission {figures.commission_amount}"
    )
    return entry


async def delete_contract(db: AsyncSession, entry: ContractEntry) -> None:
    """Delete a contract."""
    await db.delete(entry)
    await db.flush()
    logger.info(f"Contract {entry.id} deleted")


def can_access(entry: ContractEntry, user: User) -> bool:
    """Admins see everything; operators their own and supervised contracts."""
    if user.role == UserRole.ADMIN:
        return True
    return user.id in (entry.user_id, entry.managed_by)


def contract_query(
    viewer: User,
    user_id: Optional[int] = None,
    category: Optional[ProductCategory] = None,
    status: Optional[ContractStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> Select:
    """Select contracts visible to ``viewer`` matching the filters.

    Ordered by submission date, creation time and id, so aggregations
    that rank by first appearance are stable between reads.
    """
    query = select(ContractEntry)

    if viewer.role != UserRole.ADMIN:
        query = query.where(
            or_(
                ContractEntry.user_id == viewer.id,
                ContractEntry.managed_by == viewer.id,
            )
        )

    if user_id is not None:
        query = query.where(ContractEntry.user_id == user_id)
    if category is not None:
        query = query.where(ContractEntry.category == category)
    if status is not None:
        query = query.where(ContractEntry.status == status)
    if start_date is not None:
        query = query.where(ContractEntry.submission_date >= start_date)
    if end_date is not None:
        query = query.where(ContractEntry.submission_date <= end_date)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                ContractEntry.customer_name.ilike(pattern),
                ContractEntry.customer_firstname.ilike(pattern),
                ContractEntry.policy_number.ilike(pattern),
            )
        )

    return query.order_by(
        ContractEntry.submission_date,
        ContractEntry.created_at,
        ContractEntry.id,
    )
