"""
Commission calculation for submitted contracts.

Rules:
- The entered premium is annualized by payment frequency
  (monthly ×12, quarterly ×4, half-yearly ×2, yearly and one-time ×1)
- Life (Leben, BU): valuation sum = gross yearly × duration,
  commission = valuation sum × rate / 1000
- Health full/supplementary (KV Voll, KV Zusatz): valuation sum = monthly
  gross premium, commission = monthly gross premium × rate
- Travel health (Reise-KV): valuation sum = gross yearly,
  commission = gross yearly × rate / 100
- Everything else: valuation sum = net yearly,
  commission = net yearly × rate / 100

All amounts are exact Decimals. Nothing is rounded here; rounding to
cents happens only when figures are displayed or exported. Inputs are
limited to the scales the contract columns store (premiums in cents,
rates to 4 places, reserve percent to 2 places), so a stored contract
always holds exactly the figures its preview showed.
"""

from dataclasses import dataclass
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Callable, Dict, Optional, Tuple, Union

from src.models.contract import PaymentFrequency, SubCategory
from src.services.errors import ContractValidationError, require_complete
from src.services.formulas import Strategy, strategy_for

ANNUALIZATION_FACTORS: Dict[PaymentFrequency, int] = {
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.HALF_YEARLY: 2,
    PaymentFrequency.YEARLY: 1,
    PaymentFrequency.ONE_TIME: 1,
}

DEFAULT_RESERVE_PERCENT = Decimal("10")

PREMIUM_PLACES = 2
RATE_PLACES = 4
RESERVE_PERCENT_PLACES = 2

MAX_PREMIUM = Decimal("9999999999.99")
MAX_RATE = Decimal("999999.9999")
MAX_DURATION_YEARS = 100

# Wide enough for every product of bounded inputs; inexact results raise
_EXACT = Context(prec=60, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])

_PER_MILLE = Decimal("1000")
_PERCENT = Decimal("100")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class CommissionInput:
    """The calculation-relevant fields of a contract."""

    sub_category: Union[str, SubCategory]
    payment_frequency: Union[str, PaymentFrequency]
    duration_years: int
    net_premium: Decimal
    gross_premium: Decimal


@dataclass(frozen=True)
class CommissionResult:
    """Derived figures of a contract."""

    net_yearly: Decimal
    gross_yearly: Decimal
    valuation_sum: Decimal
    commission_rate: Decimal
    commission_amount: Decimal


def annualization_factor(payment_frequency: Union[str, PaymentFrequency]) -> int:
    """Number of payments per year for a payment frequency."""
    try:
        return ANNUALIZATION_FACTORS[PaymentFrequency(payment_frequency)]
    except ValueError:
        raise ContractValidationError(
            "payment_frequency", f"unknown payment frequency '{payment_frequency}'"
        ) from None


def _life(inputs: CommissionInput, net_yearly: Decimal, gross_yearly: Decimal,
          rate: Decimal) -> Tuple[Decimal, Decimal]:
    valuation_sum = gross_yearly * inputs.duration_years
    return valuation_sum, valuation_sum * rate / _PER_MILLE


def _health_monthly(inputs: CommissionInput, net_yearly: Decimal, gross_yearly: Decimal,
                    rate: Decimal) -> Tuple[Decimal, Decimal]:
    # Rate is a multiple of the monthly premium, not a percentage
    valuation_sum = inputs.gross_premium
    return valuation_sum, valuation_sum * rate


def _health_travel(inputs: CommissionInput, net_yearly: Decimal, gross_yearly: Decimal,
                   rate: Decimal) -> Tuple[Decimal, Decimal]:
    return gross_yearly, gross_yearly * rate / _PERCENT


def _annual_percent(inputs: CommissionInput, net_yearly: Decimal, gross_yearly: Decimal,
                    rate: Decimal) -> Tuple[Decimal, Decimal]:
    return net_yearly, net_yearly * rate / _PERCENT


_FORMULAS: Dict[Strategy, Callable[..., Tuple[Decimal, Decimal]]] = {
    Strategy.LIFE: _life,
    Strategy.HEALTH_MONTHLY: _health_monthly,
    Strategy.HEALTH_TRAVEL: _health_travel,
    Strategy.ANNUAL_PERCENT: _annual_percent,
}

require_complete(_FORMULAS, Strategy, "_FORMULAS")


def decimal_places(value: Decimal) -> int:
    """Digits after the decimal point, trailing zeros not counted."""
    _, digits, exponent = value.as_tuple()
    if exponent >= 0 or not any(digits):
        return 0
    places = -exponent
    for digit in reversed(digits):
        if places == 0 or digit != 0:
            break
        places -= 1
    return places


def check_amount(
    field: str,
    value: Decimal,
    places: int,
    maximum: Decimal,
    what: str,
) -> None:
    """Raise unless ``value`` is a finite, non-negative Decimal that the
    store can hold without rounding."""
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ContractValidationError(field, f"{what} must be a decimal number")
    if value < 0:
        raise ContractValidationError(field, f"{what} must not be negative")
    if value > maximum:
        raise ContractValidationError(field, f"{what} must not exceed {maximum}")
    if decimal_places(value) > places:
        raise ContractValidationError(
            field, f"{what} must have at most {places} decimal places"
        )


def _validate(inputs: CommissionInput, rate: Decimal) -> None:
    if isinstance(inputs.duration_years, bool) or not isinstance(inputs.duration_years, int):
        raise ContractValidationError("duration_years", "duration must be a whole number of years")
    if not 1 <= inputs.duration_years <= MAX_DURATION_YEARS:
        raise ContractValidationError(
            "duration_years", f"duration must be between 1 and {MAX_DURATION_YEARS} years"
        )
    for field in ("net_premium", "gross_premium"):
        check_amount(field, getattr(inputs, field), PREMIUM_PLACES, MAX_PREMIUM, "premium")
    check_amount("commission_rate", rate, RATE_PLACES, MAX_RATE, "rate")


def calculate(inputs: CommissionInput, rate: Decimal) -> CommissionResult:
    """Calculate yearly premiums, valuation sum and commission for a contract.

    Args:
        inputs: Calculation-relevant contract fields
        rate: Resolved commission rate for the contract's sub-category

    Returns:
        The derived figures; commission_rate echoes ``rate``

    Raises:
        ContractValidationError: on unknown sub-category or payment
            frequency, duration outside 1-100 years, negative amounts, or
            amounts with more decimal places than the store keeps
    """
    strategy = strategy_for(inputs.sub_category)
    factor = annualization_factor(inputs.payment_frequency)
    _validate(inputs, rate)

    with localcontext(_EXACT):
        net_yearly = inputs.net_premium * factor
        gross_yearly = inputs.gross_premium * factor
        valuation_sum, commission_amount = _FORMULAS[strategy](
            inputs, net_yearly, gross_yearly, rate
        )

    return CommissionResult(
        net_yearly=net_yearly,
        gross_yearly=gross_yearly,
        valuation_sum=valuation_sum,
        commission_rate=rate,
        commission_amount=commission_amount,
    )


def reserve_percent_for_toggle(
    reserve_active: bool,
    reserve_percent: Optional[Decimal],
) -> Optional[Decimal]:
    """Reserve percentage to keep after the reserve toggle is set.

    Activating the reserve without a previous percentage starts at 10%.
    """
    if reserve_active and reserve_percent is None:
        return DEFAULT_RESERVE_PERCENT
    return reserve_percent


def calculate_reserve(
    commission_amount: Decimal,
    reserve_active: bool,
    reserve_percent: Optional[Decimal],
) -> Decimal:
    """Liability reserve withheld from a commission.

    The percentage is checked even while the reserve is off, since it is
    kept on the contract for the next activation.

    Returns:
        0 when the reserve is inactive, else commission × percent / 100
    """
    percent = reserve_percent_for_toggle(reserve_active, reserve_percent)
    if percent is not None:
        check_amount(
            "reserve_percent", percent, RESERVE_PERCENT_PLACES, _PERCENT,
            "reserve percentage",
        )

    if not reserve_active:
        return _ZERO

    with localcontext(_EXACT):
        return commission_amount * percent / _PERCENT
