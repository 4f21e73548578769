"""
Module: farm_engines.coverage
Responsibility:
    Roll a readiness result up into dashboard figures: status counts and
    percentages, quantity totals, and value-based coverage (on hand, on
    order, planned, short) priced from the caller's unit prices and the
    actual order line values.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``farm_engines.readiness_types.ReadinessResult``.

Invariants enforced:
    - Percentages use max(total, 1) as denominator, so an empty result
      gives zeros rather than a division error.
    - short_value >= 0 and coverage_pct is capped at 100; a plan with no
      planned value reports 100% coverage.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from farm_engines.readiness_types import ReadinessResult
from farm_kernel.domain.values import HUNDRED, ZERO, to_decimal
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.coverage")


@dataclass(frozen=True)
class CoverageSummary:
    """Dashboard roll-up of one readiness snapshot."""

    total_products: int
    ready_count: int
    on_order_count: int
    blocking_count: int
    ready_pct: Decimal
    on_order_pct: Decimal
    blocking_pct: Decimal
    on_hand_value: Decimal
    on_order_value: Decimal
    planned_value: Decimal
    short_value: Decimal
    coverage_pct: Decimal
    on_hand_qty_total: Decimal
    on_order_qty_total: Decimal
    planned_qty_total: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            key: (str(value) if isinstance(value, Decimal) else value)
            for key, value in vars(self).items()
        }


def summarize_coverage(
    result: ReadinessResult,
    unit_prices: Mapping[str, Any] | None = None,
    on_order_values: Mapping[str, Any] | None = None,
) -> CoverageSummary:
    """
    Summarize a readiness result.

    Args:
        result: Readiness snapshot.
        unit_prices: product_id -> planning unit price, used to value
            on-hand and planned quantities. Missing products price at 0.
        on_order_values: product_id -> summed value of the committed order
            lines for that product (actual purchase prices).

    Returns:
        CoverageSummary.
    """
    unit_prices = unit_prices or {}
    on_order_values = on_order_values or {}

    total = result.total_count
    denominator = Decimal(max(total, 1))

    on_hand_value = ZERO
    on_order_value = ZERO
    planned_value = ZERO
    on_hand_qty_total = ZERO
    on_order_qty_total = ZERO
    planned_qty_total = ZERO

    for item in result.items:
        price = to_decimal(unit_prices.get(item.product_id), "unit_price")
        on_hand_value += item.on_hand_qty * price
        on_order_value += to_decimal(on_order_values.get(item.product_id), "on_order_value")
        planned_value += item.required_qty * price

        on_hand_qty_total += item.on_hand_qty
        on_order_qty_total += item.on_order_qty
        planned_qty_total += item.required_qty

    short_value = max(ZERO, planned_value - on_hand_value - on_order_value)
    if planned_value > ZERO:
        coverage_pct = min(HUNDRED, (on_hand_value + on_order_value) / planned_value * HUNDRED)
    else:
        coverage_pct = HUNDRED

    summary = CoverageSummary(
        total_products=total,
        ready_count=result.ready_count,
        on_order_count=result.on_order_count,
        blocking_count=result.blocking_count,
        ready_pct=Decimal(result.ready_count) / denominator * HUNDRED,
        on_order_pct=Decimal(result.on_order_count) / denominator * HUNDRED,
        blocking_pct=Decimal(result.blocking_count) / denominator * HUNDRED,
        on_hand_value=on_hand_value,
        on_order_value=on_order_value,
        planned_value=planned_value,
        short_value=short_value,
        coverage_pct=coverage_pct,
        on_hand_qty_total=on_hand_qty_total,
        on_order_qty_total=on_order_qty_total,
        planned_qty_total=planned_qty_total,
    )

    logger.info("coverage_summarized", extra={
        "total_products": total,
        "coverage_pct": str(coverage_pct),
        "short_value": str(short_value),
    })
    return summary


def on_order_values_by_product(orders: Any) -> dict[str, Decimal]:
    """Sum open line values (remaining x unit price) per product.

    ``orders`` is an iterable of ``PurchaseOrder``.
    """
    values: dict[str, Decimal] = {}
    for order in orders:
        for line in order.lines:
            if line.remaining_qty <= ZERO:
                continue
            values[line.product_id] = (
                values.get(line.product_id, ZERO) + line.remaining_qty * line.unit_price
            )
    return values
