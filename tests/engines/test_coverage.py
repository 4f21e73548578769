"""
Tests for the coverage roll-up.

Covers:
- Status counts and percentages
- Value-based coverage from unit prices and order values
- Empty and over-covered plans
"""

from decimal import Decimal

from farm_engines.coverage import on_order_values_by_product, summarize_coverage
from farm_engines.readiness import compute_readiness
from farm_engines.readiness_types import ReadinessResult
from farm_engines.sources import InventoryRow, OrderLine, PurchaseOrder, PurchaseOrderLine

CENT = Decimal("0.01")


def _three_product_result(make_demand_line):
    return compute_readiness(
        planned=[
            make_demand_line("p-a", "100"),
            make_demand_line("p-b", "50"),
            make_demand_line("p-c", "20"),
        ],
        inventory=[
            InventoryRow("p-a", Decimal("100")),
            InventoryRow("p-b", Decimal("10")),
        ],
        orders=[OrderLine("ord-1", "p-b", Decimal("40"))],
    )


class TestCounts:
    """Counts and percentages mirror the readiness partition."""

    def test_counts(self, make_demand_line):
        summary = summarize_coverage(_three_product_result(make_demand_line))

        assert summary.total_products == 3
        assert (summary.ready_count, summary.on_order_count, summary.blocking_count) == (1, 1, 1)
        assert summary.ready_pct.quantize(CENT) == Decimal("33.33")

    def test_quantity_totals(self, make_demand_line):
        summary = summarize_coverage(_three_product_result(make_demand_line))

        assert summary.planned_qty_total == Decimal("170")
        assert summary.on_hand_qty_total == Decimal("110")
        assert summary.on_order_qty_total == Decimal("40")

    def test_empty_result(self):
        summary = summarize_coverage(ReadinessResult())

        assert summary.total_products == 0
        assert summary.ready_pct == Decimal("0")
        assert summary.coverage_pct == Decimal("100")
        assert summary.short_value == Decimal("0")


class TestValues:
    """Value coverage priced from unit prices and actual order values."""

    def test_value_coverage(self, make_demand_line):
        summary = summarize_coverage(
            _three_product_result(make_demand_line),
            unit_prices={"p-a": "2", "p-b": "4", "p-c": "5"},
            on_order_values={"p-b": "150"},
        )

        assert summary.planned_value == Decimal("500")
        assert summary.on_hand_value == Decimal("240")
        assert summary.on_order_value == Decimal("150")
        assert summary.short_value == Decimal("110")
        assert summary.coverage_pct == Decimal("78")

    def test_coverage_capped_at_hundred(self, make_demand_line):
        result = compute_readiness(
            planned=[make_demand_line("p-a", "100")],
            inventory=[InventoryRow("p-a", Decimal("300"))],
        )

        summary = summarize_coverage(result, unit_prices={"p-a": "2"})

        assert summary.coverage_pct == Decimal("100")
        assert summary.short_value == Decimal("0")

    def test_unpriced_products_value_zero(self, make_demand_line):
        summary = summarize_coverage(_three_product_result(make_demand_line))

        assert summary.planned_value == Decimal("0")
        assert summary.coverage_pct == Decimal("100")

    def test_to_dict_stringifies_decimals(self, make_demand_line):
        payload = summarize_coverage(
            _three_product_result(make_demand_line),
            unit_prices={"p-a": "2"},
        ).to_dict()

        assert payload["total_products"] == 3
        assert payload["planned_value"] == "200"


class TestOrderValues:
    """Open order value per product uses what is still to arrive."""

    def test_remaining_times_price(self):
        order = PurchaseOrder(
            "ord-1",
            "partial",
            lines=(
                PurchaseOrderLine("l-1", "p-a", "10", "ton", unit_price="100", received_qty="4"),
                PurchaseOrderLine("l-2", "p-a", "2", "ton", unit_price="50"),
                PurchaseOrderLine("l-3", "p-b", "5", "ton", unit_price="10", received_qty="5"),
            ),
        )

        assert on_order_values_by_product([order]) == {"p-a": Decimal("700")}
