"""
Commission rate resolution.

Rules:
- An operator's own rate for a sub-category wins
- Otherwise the default rate table applies
- Rate units depend on the formula: per-mille for life, a monthly-premium
  multiplier for health full/supplementary cover, percent for the rest

Rate tables are passed in explicitly as snapshots. Nothing here reads
ambient state, so resolving a rate for a preview and for persistence
always gives the same answer for the same snapshot.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.contract import SubCategory
from src.models.rate import CommissionRate
from src.services.commission import MAX_RATE, RATE_PLACES, check_amount
from src.services.errors import ContractValidationError, require_complete
from src.services.products import parse_sub_category

logger = logging.getLogger(__name__)

RateTable = Mapping[SubCategory, Decimal]

DEFAULT_RATES: Dict[SubCategory, Decimal] = {
    SubCategory.LEBEN: Decimal("8.0"),         # per-mille
    SubCategory.BU: Decimal("8.0"),            # per-mille
    SubCategory.KV_VOLL: Decimal("3.0"),       # monthly premiums
    SubCategory.KV_ZUSATZ: Decimal("3.0"),     # monthly premiums
    SubCategory.REISE_KV: Decimal("10.0"),
    SubCategory.PHV: Decimal("7.5"),
    SubCategory.HR: Decimal("7.5"),
    SubCategory.UNF: Decimal("7.5"),
    SubCategory.SACH: Decimal("7.5"),
    SubCategory.KFZ: Decimal("3.0"),
    SubCategory.RECHTSSCHUTZ: Decimal("5.0"),
    SubCategory.SONSTIGE: Decimal("5.0"),
}

require_complete(DEFAULT_RATES, SubCategory, "DEFAULT_RATES")


def resolve_rate(
    rate_table: RateTable,
    sub_category: Union[str, SubCategory],
) -> Decimal:
    """Get the effective rate for a sub-category.

    Args:
        rate_table: The operator's saved rates (may be empty)
        sub_category: Sub-category of the contract

    Returns:
        The operator's rate if one is saved, else the default rate
    """
    sub = parse_sub_category(sub_category)
    rate = rate_table.get(sub)
    if rate is None:
        return DEFAULT_RATES[sub]
    return rate


def effective_rates(rate_table: RateTable) -> Dict[SubCategory, Decimal]:
    """Full table of rates in effect for an operator, defaults filled in."""
    return {sub: resolve_rate(rate_table, sub) for sub in SubCategory}


def validate_rates(rates: Mapping[Union[str, SubCategory], Decimal]) -> Dict[SubCategory, Decimal]:
    """Check a submitted rate table before it replaces the saved one.

    Rates are stored to 4 decimal places; finer values are rejected rather
    than rounded, so saved contracts keep the rate they were shown.
    """
    validated: Dict[SubCategory, Decimal] = {}
    for key, value in rates.items():
        sub = parse_sub_category(key)
        try:
            rate = Decimal(str(value))
        except InvalidOperation:
            raise ContractValidationError(
                "rate_value", f"rate for '{sub.value}' must be a number"
            ) from None
        check_amount("rate_value", rate, RATE_PLACES, MAX_RATE, f"rate for '{sub.value}'")
        validated[sub] = rate
    return validated


async def load_rate_table(db: AsyncSession, user_id: int) -> Dict[SubCategory, Decimal]:
    """Load an operator's saved rates as a snapshot.

    Rows with a sub-category that is no longer offered are skipped.
    """
    result = await db.execute(
        select(CommissionRate).where(CommissionRate.user_id == user_id)
    )
    table: Dict[SubCategory, Decimal] = {}
    for row in result.scalars().all():
        try:
            sub = SubCategory(row.sub_category)
        except ValueError:
            logger.warning(
                f"Ignoring rate for unknown sub-category '{row.sub_category}' "
                f"(user_id={user_id})"
            )
            continue
        table[sub] = Decimal(row.rate_value)
    return table


async def replace_rates(
    db: AsyncSession,
    user_id: int,
    rates: Mapping[Union[str, SubCategory], Decimal],
) -> Dict[SubCategory, Decimal]:
    """Replace all of an operator's saved rates.

    Delete and insert are flushed in the caller's transaction, so the
    replacement commits or rolls back as a whole and the operator is never
    left with an empty table.

    Returns:
        The newly saved rate snapshot
    """
    validated = validate_rates(rates)

    await db.execute(
        delete(CommissionRate).where(CommissionRate.user_id == user_id)
    )
    db.add_all([
        CommissionRate(user_id=user_id, sub_category=sub.value, rate_value=rate)
        for sub, rate in validated.items()
    ])
    await db.flush()

    logger.info(f"Replaced commission rates for user {user_id} ({len(validated)} entries)")
    return validated
