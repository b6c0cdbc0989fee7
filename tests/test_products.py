"""
Tests for the product catalog, formula selection and rate resolution.
"""

from decimal import Decimal

import pytest

from src.models.contract import ProductCategory, SubCategory
from src.services.errors import ContractValidationError, require_complete
from src.services.formulas import (
    RATE_UNITS,
    STRATEGY_BY_SUB_CATEGORY,
    Strategy,
    strategy_for,
)
from src.services.products import (
    CATALOG,
    CATEGORY_BY_SUB_CATEGORY,
    ProductSelection,
    parse_sub_category,
)
from src.services.rates import DEFAULT_RATES, effective_rates, resolve_rate, validate_rates


# ── ProductSelection ──────────────────────────────────────


class TestProductSelection:
    @pytest.mark.parametrize(
        "sub_category, category",
        [
            ("Leben", ProductCategory.LIFE),
            ("BU", ProductCategory.LIFE),
            ("KV Voll", ProductCategory.HEALTH),
            ("Reise-KV", ProductCategory.HEALTH),
            ("PHV", ProductCategory.PROPERTY),
            ("Sach", ProductCategory.PROPERTY),
            ("KFZ", ProductCategory.VEHICLE),
            ("Rechtsschutz", ProductCategory.LEGAL),
            ("Sonstige", ProductCategory.OTHER),
        ],
    )
    def test_category_derived_from_sub_category(self, sub_category, category):
        selection = ProductSelection.from_sub_category(sub_category)
        assert selection.category == category
        assert selection.sub_category == SubCategory(sub_category)

    def test_mismatched_pair_rejected(self):
        with pytest.raises(ContractValidationError) as exc:
            ProductSelection(ProductCategory.LIFE, SubCategory.KFZ)
        assert exc.value.field == "category"

    def test_unknown_sub_category(self):
        with pytest.raises(ContractValidationError) as exc:
            ProductSelection.from_sub_category("Foo")
        assert exc.value.field == "sub_category"

    def test_selection_is_immutable(self):
        selection = ProductSelection.from_sub_category("PHV")
        with pytest.raises(AttributeError):
            selection.category = ProductCategory.LIFE

    def test_catalog_lists_every_sub_category_once(self):
        listed = [sub for subs in CATALOG.values() for sub in subs]
        assert sorted(listed) == sorted(SubCategory)
        assert set(CATEGORY_BY_SUB_CATEGORY) == set(SubCategory)

    def test_parse_accepts_enum(self):
        assert parse_sub_category(SubCategory.HR) is SubCategory.HR


# ── Formula selection ─────────────────────────────────────


class TestStrategySelection:
    def test_every_sub_category_has_a_formula(self):
        assert set(STRATEGY_BY_SUB_CATEGORY) == set(SubCategory)

    @pytest.mark.parametrize(
        "sub_category, strategy",
        [
            ("Leben", Strategy.LIFE),
            ("BU", Strategy.LIFE),
            ("KV Voll", Strategy.HEALTH_MONTHLY),
            ("KV Zusatz", Strategy.HEALTH_MONTHLY),
            ("Reise-KV", Strategy.HEALTH_TRAVEL),
            ("PHV", Strategy.ANNUAL_PERCENT),
            ("KFZ", Strategy.ANNUAL_PERCENT),
            ("Sonstige", Strategy.ANNUAL_PERCENT),
        ],
    )
    def test_strategy_for(self, sub_category, strategy):
        assert strategy_for(sub_category) == strategy

    def test_unknown_sub_category(self):
        with pytest.raises(ContractValidationError):
            strategy_for("Foo")

    def test_rate_units(self):
        assert RATE_UNITS[Strategy.LIFE] == "‰"
        assert RATE_UNITS[Strategy.HEALTH_MONTHLY] == "MB"
        assert RATE_UNITS[Strategy.ANNUAL_PERCENT] == "%"


# ── Rate resolution ───────────────────────────────────────


class TestResolveRate:
    def test_default_when_no_custom_rate(self):
        assert resolve_rate({}, "Leben") == Decimal("8.0")
        assert resolve_rate({}, "PHV") == Decimal("7.5")

    def test_custom_rate_wins(self):
        table = {SubCategory.LEBEN: Decimal("12.5")}
        assert resolve_rate(table, "Leben") == Decimal("12.5")
        assert resolve_rate(table, "BU") == DEFAULT_RATES[SubCategory.BU]

    def test_zero_custom_rate_is_kept(self):
        table = {SubCategory.KFZ: Decimal("0")}
        assert resolve_rate(table, SubCategory.KFZ) == 0

    def test_unknown_sub_category(self):
        with pytest.raises(ContractValidationError):
            resolve_rate({}, "Foo")

    def test_effective_rates_complete(self):
        table = effective_rates({SubCategory.SACH: Decimal("9")})
        assert set(table) == set(SubCategory)
        assert table[SubCategory.SACH] == Decimal("9")
        assert table[SubCategory.HR] == DEFAULT_RATES[SubCategory.HR]


class TestValidateRates:
    def test_converts_keys_and_values(self):
        validated = validate_rates({"Leben": "9.5", "KFZ": 4})
        assert validated == {
            SubCategory.LEBEN: Decimal("9.5"),
            SubCategory.KFZ: Decimal("4"),
        }

    def test_negative_rate(self):
        with pytest.raises(ContractValidationError) as exc:
            validate_rates({"PHV": Decimal("-1")})
        assert exc.value.field == "rate_value"

    def test_more_than_four_places(self):
        with pytest.raises(ContractValidationError) as exc:
            validate_rates({"PHV": "7.12345"})
        assert exc.value.field == "rate_value"

    def test_four_places_kept_exactly(self):
        assert validate_rates({"PHV": 7.1235}) == {SubCategory.PHV: Decimal("7.1235")}

    def test_not_a_number(self):
        with pytest.raises(ContractValidationError) as exc:
            validate_rates({"PHV": "abc"})
        assert exc.value.field == "rate_value"

    def test_unknown_sub_category(self):
        with pytest.raises(ContractValidationError) as exc:
            validate_rates({"Foo": Decimal("1")})
        assert exc.value.field == "sub_category"


# ── table completeness ────────────────────────────────────


class TestRequireComplete:
    def test_complete_table_passes(self):
        require_complete({sub: 1 for sub in SubCategory}, SubCategory, "table")

    def test_missing_member_raises(self):
        table = {sub: 1 for sub in SubCategory if sub is not SubCategory.KFZ}
        with pytest.raises(RuntimeError, match="KFZ"):
            require_complete(table, SubCategory, "table")

    def test_extra_key_raises(self):
        table = {strategy: "%" for strategy in Strategy}
        table["flat"] = "%"
        with pytest.raises(RuntimeError, match="flat"):
            require_complete(table, Strategy, "table")
