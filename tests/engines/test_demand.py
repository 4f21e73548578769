"""
Tests for the Demand Normalizer.

Covers:
- Merging several usage records per product
- Usage context retention
- Zero-demand omission
- Catalog label resolution
- Unit mismatch rejection
"""

from decimal import Decimal

import pytest

from farm_engines.demand import UNKNOWN_PRODUCT_LABEL, normalize_demand, resolve_label
from farm_engines.sources import PlanUsageItem, UsageContext
from farm_kernel.exceptions import DemandUnitMismatchError


class TestMerging:
    """Records for the same product collapse into one line."""

    def test_sums_records_per_product(self, plan_usage, product_catalog):
        lines = normalize_demand(plan_usage, product_catalog)

        by_product = {line.product_id: line for line in lines}
        assert set(by_product) == {"p-ams", "p-humic"}
        assert by_product["p-ams"].required_qty == Decimal("1000")
        assert by_product["p-humic"].required_qty == Decimal("100")

    def test_first_usage_is_representative_context(self, plan_usage, product_catalog):
        ams = normalize_demand(plan_usage, product_catalog)[0]

        assert ams.context_crop == "Corn"
        assert ams.context_pass == "Pre-plant"
        assert ams.usages == (
            UsageContext("Corn", "Pre-plant"),
            UsageContext("Wheat", "Top-dress"),
        )

    def test_first_appearance_order(self, plan_usage, product_catalog):
        lines = normalize_demand(plan_usage, product_catalog)

        assert [line.product_id for line in lines] == ["p-ams", "p-humic"]

    def test_id_matches_product(self, plan_usage, product_catalog):
        for line in normalize_demand(plan_usage, product_catalog):
            assert line.id == line.product_id

    def test_string_quantities_coerced(self):
        lines = normalize_demand(
            [
                PlanUsageItem("p-1", "12.5", "gal"),
                PlanUsageItem("p-1", 7.5, "gal"),
            ]
        )

        assert lines[0].required_qty == Decimal("20.0")


class TestZeroDemand:
    """Products with nothing planned are absent."""

    def test_zero_total_omitted(self):
        lines = normalize_demand(
            [
                PlanUsageItem("p-zero", Decimal("0"), "gal"),
                PlanUsageItem("p-one", Decimal("1"), "gal"),
            ]
        )

        assert [line.product_id for line in lines] == ["p-one"]

    def test_records_without_product_skipped(self):
        lines = normalize_demand([PlanUsageItem("", Decimal("5"), "gal")])

        assert lines == ()

    def test_no_usages_leaves_context_empty(self):
        line = normalize_demand([PlanUsageItem("p-1", Decimal("5"), "lbs")])[0]

        assert line.context_crop is None
        assert line.context_pass is None
        assert line.usages == ()


class TestLabels:
    """Catalog lookups for display names."""

    def test_names_from_strings_and_records(self, plan_usage, product_catalog):
        labels = {line.product_id: line.label for line in normalize_demand(plan_usage, product_catalog)}

        assert labels == {"p-ams": "AMS 21-0-0-24", "p-humic": "Humic Acid 12%"}

    def test_missing_product_gets_unknown_label(self):
        line = normalize_demand([PlanUsageItem("p-x", Decimal("1"), "gal")], {})[0]

        assert line.label == UNKNOWN_PRODUCT_LABEL

    def test_object_with_name_attribute(self):
        class Product:
            name = "Boron 10%"

        assert resolve_label("p-b", {"p-b": Product()}) == "Boron 10%"


class TestUnitMismatch:
    """Mixed units for one product are rejected, not converted."""

    def test_mismatch_raises_typed_error(self):
        with pytest.raises(DemandUnitMismatchError) as exc_info:
            normalize_demand(
                [
                    PlanUsageItem("p-1", Decimal("5"), "gal"),
                    PlanUsageItem("p-1", Decimal("40"), "lbs"),
                ]
            )

        err = exc_info.value
        assert err.code == "DEMAND_UNIT_MISMATCH"
        assert err.product_id == "p-1"
        assert err.expected_unit == "gal"
        assert err.actual_unit == "lbs"

    def test_mismatch_logged(self, captured_logs):
        with pytest.raises(DemandUnitMismatchError):
            normalize_demand(
                [
                    PlanUsageItem("p-1", Decimal("5"), "gal"),
                    PlanUsageItem("p-1", Decimal("40"), "lbs"),
                ]
            )

        assert any(r["message"] == "demand_unit_mismatch" for r in captured_logs())
