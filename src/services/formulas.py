"""
Formula selection: which commission formula applies to a sub-category.
"""

from enum import Enum
from typing import Dict, Union

from src.models.contract import SubCategory
from src.services.errors import require_complete
from src.services.products import parse_sub_category


class Strategy(str, Enum):
    """Commission formulas. The rate unit differs per formula."""
    LIFE = "life"                      # per-mille of gross yearly × duration
    HEALTH_MONTHLY = "health_monthly"  # multiple of the monthly gross premium
    HEALTH_TRAVEL = "health_travel"    # percent of gross yearly
    ANNUAL_PERCENT = "annual_percent"  # percent of net yearly


STRATEGY_BY_SUB_CATEGORY: Dict[SubCategory, Strategy] = {
    SubCategory.LEBEN: Strategy.LIFE,
    SubCategory.BU: Strategy.LIFE,
    SubCategory.KV_VOLL: Strategy.HEALTH_MONTHLY,
    SubCategory.KV_ZUSATZ: Strategy.HEALTH_MONTHLY,
    SubCategory.REISE_KV: Strategy.HEALTH_TRAVEL,
    SubCategory.PHV: Strategy.ANNUAL_PERCENT,
    SubCategory.HR: Strategy.ANNUAL_PERCENT,
    SubCategory.UNF: Strategy.ANNUAL_PERCENT,
    SubCategory.SACH: Strategy.ANNUAL_PERCENT,
    SubCategory.KFZ: Strategy.ANNUAL_PERCENT,
    SubCategory.RECHTSSCHUTZ: Strategy.ANNUAL_PERCENT,
    SubCategory.SONSTIGE: Strategy.ANNUAL_PERCENT,
}

require_complete(STRATEGY_BY_SUB_CATEGORY, SubCategory, "STRATEGY_BY_SUB_CATEGORY")

RATE_UNITS: Dict[Strategy, str] = {
    Strategy.LIFE: "‰",
    Strategy.HEALTH_MONTHLY: "MB",
    Strategy.HEALTH_TRAVEL: "%",
    Strategy.ANNUAL_PERCENT: "%",
}

require_complete(RATE_UNITS, Strategy, "RATE_UNITS")


def strategy_for(sub_category: Union[str, SubCategory]) -> Strategy:
    """Get the commission formula for a sub-category.

    Raises:
        ContractValidationError: if the sub-category is unknown
    """
    return STRATEGY_BY_SUB_CATEGORY[parse_sub_category(sub_category)]
