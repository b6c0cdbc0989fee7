"""
Product catalog: which sub-categories belong to which category.

A contract's category is never chosen on its own. It is always derived
from the sub-category through ProductSelection.
"""

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from src.models.contract import ProductCategory, SubCategory
from src.services.errors import ContractValidationError, require_complete

# Ordered as they are offered in the entry form
CATALOG: Dict[ProductCategory, Tuple[SubCategory, ...]] = {
    ProductCategory.LIFE: (SubCategory.LEBEN, SubCategory.BU),
    ProductCategory.HEALTH: (
        SubCategory.KV_VOLL,
        SubCategory.KV_ZUSATZ,
        SubCategory.REISE_KV,
    ),
    ProductCategory.PROPERTY: (
        SubCategory.PHV,
        SubCategory.HR,
        SubCategory.UNF,
        SubCategory.SACH,
    ),
    ProductCategory.VEHICLE: (SubCategory.KFZ,),
    ProductCategory.LEGAL: (SubCategory.RECHTSSCHUTZ,),
    ProductCategory.OTHER: (SubCategory.SONSTIGE,),
}

CATEGORY_BY_SUB_CATEGORY: Dict[SubCategory, ProductCategory] = {
    sub: category
    for category, subs in CATALOG.items()
    for sub in subs
}

require_complete(CATALOG, ProductCategory, "CATALOG")
require_complete(CATEGORY_BY_SUB_CATEGORY, SubCategory, "CATALOG")

_listed = [sub for subs in CATALOG.values() for sub in subs]
if len(_listed) != len(set(_listed)):
    raise RuntimeError("CATALOG lists a sub-category under more than one category")


def parse_sub_category(value: Union[str, SubCategory]) -> SubCategory:
    """Turn a raw sub-category string into the enum, or fail validation."""
    try:
        return SubCategory(value)
    except ValueError:
        raise ContractValidationError(
            "sub_category", f"unknown sub-category '{value}'"
        ) from None


@dataclass(frozen=True)
class ProductSelection:
    """Category and sub-category of a contract, always consistent.

    Build it with ``ProductSelection.from_sub_category``; constructing it
    with a mismatched pair raises.
    """

    category: ProductCategory
    sub_category: SubCategory

    def __post_init__(self):
        if CATEGORY_BY_SUB_CATEGORY.get(self.sub_category) is not self.category:
            raise ContractValidationError(
                "category",
                f"'{self.sub_category.value}' does not belong to '{self.category.value}'",
            )

    @classmethod
    def from_sub_category(cls, value: Union[str, SubCategory]) -> "ProductSelection":
        sub_category = parse_sub_category(value)
        return cls(CATEGORY_BY_SUB_CATEGORY[sub_category], sub_category)
