"""
Module: farm_engines.readiness
Responsibility:
    Reconcile planned demand against on-hand inventory and open purchase
    orders.  For every demand line: sum all matching inventory rows, sum
    all matching open order lines, classify coverage (READY / ON_ORDER /
    BLOCKING), compute the shortfall and keep the matched records as an
    explain trace.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``farm_engines.demand.DemandLine`` plus raw inventory and
    order records read through ``farm_engines.accessors``.

Invariants enforced:
    - Every matching inventory row is counted, never just the first one
      found for a product.
    - Status precedence: READY if on_hand >= required, else ON_ORDER if
      on_hand + on_order >= required, else BLOCKING.
    - short_qty = max(0, required - on_hand - on_order), never negative.
    - Explain totals are re-derivable: on_hand equals the sum of the
      explain inventory rows, on_order the sum of the explain order lines.
    - Determinism: indexes keep input order and Decimal sums are taken in
      that order, so identical inputs give identical results.

Failure modes:
    - None for missing data: a product with no inventory and no orders is
      BLOCKING with short_qty == required. Missing quantities read as zero.
    - InvalidQuantityError propagates if a source record holds a value
      that is not a number at all.

Usage:
    from farm_engines.readiness import compute_readiness

    result = compute_readiness(
        planned=demand_lines,
        inventory=[InventoryRow("p-ams", "70"), InventoryRow("p-ams", "30")],
        orders=[OrderLine("ord-1", "p-ams", "80", vendor_name="Co-op")],
    )
    result.blocking_count
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from farm_engines.accessors import InventoryAccessors, OrderAccessors
from farm_engines.demand import DemandLine
from farm_engines.readiness_types import (
    ExplainInventoryRow,
    ExplainOrderLine,
    ReadinessExplain,
    ReadinessItem,
    ReadinessResult,
    ReadinessStatus,
)
from farm_engines.tracer import traced_engine
from farm_kernel.domain.values import ZERO, to_decimal, to_optional_decimal
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.readiness")


@dataclass(frozen=True)
class OnHandEntry:
    """All inventory rows for one product and their quantity sum."""

    qty_sum: Decimal
    rows: tuple[ExplainInventoryRow, ...]


@dataclass(frozen=True)
class OnOrderEntry:
    """All open order lines for one product and their remaining sum."""

    qty_sum: Decimal
    lines: tuple[ExplainOrderLine, ...]


_EMPTY_ON_HAND = OnHandEntry(qty_sum=ZERO, rows=())
_EMPTY_ON_ORDER = OnOrderEntry(qty_sum=ZERO, lines=())


def index_on_hand(
    inventory: Iterable[Any],
    accessors: InventoryAccessors,
) -> dict[str, OnHandEntry]:
    """
    Group inventory rows by product id in a single pass.

    A row's quantity comes from ``get_qty``; when that is missing the
    container count stands in; when both are missing the row counts as
    zero but is still listed.  Rows without a product id are skipped.
    """
    grouped: dict[str, list[ExplainInventoryRow]] = {}

    for row in inventory or ():
        product_id = accessors.get_product_id(row)
        if not product_id:
            continue

        container_count = (
            to_optional_decimal(accessors.get_container_count(row), "container_count")
            if accessors.get_container_count is not None
            else None
        )
        qty = to_optional_decimal(accessors.get_qty(row), "quantity")
        if qty is None:
            qty = container_count if container_count is not None else ZERO

        grouped.setdefault(product_id, []).append(
            ExplainInventoryRow(
                product_id=product_id,
                quantity=qty,
                container_count=container_count,
                unit=accessors.get_unit(row) if accessors.get_unit is not None else None,
                record=row,
            )
        )

    return {
        product_id: OnHandEntry(
            qty_sum=sum((r.quantity for r in rows), ZERO),
            rows=tuple(rows),
        )
        for product_id, rows in grouped.items()
    }


def index_on_order(
    orders: Iterable[Any],
    accessors: OrderAccessors,
) -> dict[str, OnOrderEntry]:
    """
    Group open order lines by product id in a single pass.

    Orders are taken as already committed; status is copied into the
    explain lines but not checked.  Lines with no product id or with
    nothing remaining are skipped.
    """
    grouped: dict[str, list[ExplainOrderLine]] = {}

    for order in orders or ():
        order_id = accessors.get_order_id(order)
        vendor_name = accessors.get_vendor_name(order) if accessors.get_vendor_name else None
        status = accessors.get_order_status(order) if accessors.get_order_status else None

        for line in accessors.get_lines(order) or ():
            product_id = accessors.get_line_product_id(line)
            if not product_id:
                continue

            remaining = to_decimal(accessors.get_line_remaining_qty(line), "remaining_qty")
            if remaining <= ZERO:
                continue

            grouped.setdefault(product_id, []).append(
                ExplainOrderLine(
                    order_id=order_id,
                    product_id=product_id,
                    remaining_qty=remaining,
                    vendor_name=vendor_name or None,
                    status=status or None,
                    unit=(accessors.get_line_unit(line) or None) if accessors.get_line_unit else None,
                )
            )

    return {
        product_id: OnOrderEntry(
            qty_sum=sum((line.remaining_qty for line in lines), ZERO),
            lines=tuple(lines),
        )
        for product_id, lines in grouped.items()
    }


def classify_readiness(
    required_qty: Decimal,
    on_hand_qty: Decimal,
    on_order_qty: Decimal,
) -> ReadinessStatus:
    """Classify coverage, checking the most covered state first."""
    if on_hand_qty >= required_qty:
        return ReadinessStatus.READY
    if on_hand_qty + on_order_qty >= required_qty:
        return ReadinessStatus.ON_ORDER
    return ReadinessStatus.BLOCKING


def shortfall(required_qty: Decimal, on_hand_qty: Decimal, on_order_qty: Decimal) -> Decimal:
    """Quantity still needed after on-hand and on-order, floored at zero."""
    return max(ZERO, required_qty - on_hand_qty - on_order_qty)


def reconcile_line(
    line: DemandLine,
    on_hand: OnHandEntry,
    on_order: OnOrderEntry,
) -> ReadinessItem:
    """Build the readiness item for one demand line from its index entries."""
    required = to_decimal(line.required_qty, "required_qty")
    short = shortfall(required, on_hand.qty_sum, on_order.qty_sum)

    explain = ReadinessExplain(
        product_id=line.product_id,
        planned_unit=line.unit,
        required_qty=required,
        on_hand_qty=on_hand.qty_sum,
        on_order_qty=on_order.qty_sum,
        short_qty=short,
        inventory_rows=on_hand.rows,
        order_lines=on_order.lines,
    )

    return ReadinessItem(
        id=line.id,
        product_id=line.product_id,
        label=line.label,
        required_qty=required,
        planned_unit=line.unit,
        on_hand_qty=on_hand.qty_sum,
        on_order_qty=on_order.qty_sum,
        short_qty=short,
        status=classify_readiness(required, on_hand.qty_sum, on_order.qty_sum),
        explain=explain,
        context_crop=line.context_crop,
        context_pass=line.context_pass,
    )


@traced_engine("readiness", "1.0", fingerprint_fields=("planned", "inventory", "orders"))
def compute_readiness(
    planned: Iterable[DemandLine],
    inventory: Iterable[Any],
    orders: Sequence[Any] = (),
    inventory_accessors: InventoryAccessors | None = None,
    order_accessors: OrderAccessors | None = None,
) -> ReadinessResult:
    """
    Reconcile demand lines against inventory and committed orders.

    Args:
        planned: Demand lines, normally from ``normalize_demand``.
        inventory: Inventory rows of any shape.
        orders: Committed orders (or flat order lines) of any shape.
        inventory_accessors: How to read ``inventory``. Defaults to
            ``InventoryAccessors.for_rows()``.
        order_accessors: How to read ``orders``. Defaults to accessors for
            ``PurchaseOrder`` or ``OrderLine`` depending on what was passed.

    Returns:
        ReadinessResult with one item per demand line, in input order.
    """
    inventory_accessors = inventory_accessors or InventoryAccessors.for_rows()
    orders = tuple(orders or ())
    order_accessors = order_accessors or OrderAccessors.for_records(orders)

    on_hand_index = index_on_hand(inventory, inventory_accessors)
    on_order_index = index_on_order(orders, order_accessors)

    items = tuple(
        reconcile_line(
            line,
            on_hand_index.get(line.product_id, _EMPTY_ON_HAND),
            on_order_index.get(line.product_id, _EMPTY_ON_ORDER),
        )
        for line in planned or ()
    )
    result = ReadinessResult(items=items)

    logger.info("readiness_completed", extra={
        "total_count": result.total_count,
        "ready_count": result.ready_count,
        "on_order_count": result.on_order_count,
        "blocking_count": result.blocking_count,
        "inventory_products": len(on_hand_index),
        "order_products": len(on_order_index),
    })
    if result.blocking_count:
        logger.warning("readiness_blocking_products", extra={
            "blocking_products": [i.product_id for i in result.by_status(ReadinessStatus.BLOCKING)],
        })

    return result
