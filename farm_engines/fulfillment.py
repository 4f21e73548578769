"""
Module: farm_engines.fulfillment
Responsibility:
    Apply received quantities (from an invoice or delivery) to a purchase
    order: advance each line's received quantity, derive what remains on
    order, and move the order status to ``partial`` or ``complete``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Produces the remaining quantities that ``farm_engines.readiness``
    counts as on order.

Invariants enforced:
    - remaining_qty = max(0, ordered - received) per line; over-receipt
      never makes remaining negative.
    - Order status: ``complete`` when it has lines and every line is
      complete, ``partial`` when any line has received something, otherwise
      unchanged.
    - The input order is never mutated; a new PurchaseOrder is returned.

Failure modes:
    - UnknownOrderLineError when a receipt names a line not on the order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal
from typing import Any

from farm_engines.sources import LineStatus, PurchaseOrder
from farm_engines.tracer import traced_engine
from farm_kernel.domain.values import ZERO, to_decimal
from farm_kernel.exceptions import UnknownOrderLineError
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.fulfillment")

ORDER_STATUS_PARTIAL = "partial"
ORDER_STATUS_COMPLETE = "complete"


@traced_engine("fulfillment", "1.0", fingerprint_fields=("order", "received"))
def apply_receipts(
    order: PurchaseOrder,
    received: Mapping[str, Any],
    receipt_id: str | None = None,
) -> PurchaseOrder:
    """
    Return ``order`` with ``received`` quantities applied.

    Args:
        order: The purchase order as it stands.
        received: order line id -> quantity received in this delivery.
        receipt_id: Invoice or delivery id to record on the order.

    Raises:
        UnknownOrderLineError: if ``received`` names an unknown line.
    """
    known = {line.line_id for line in order.lines}
    for line_id in received:
        if line_id not in known:
            logger.error("fulfillment_unknown_line", extra={
                "order_id": order.order_id,
                "line_id": line_id,
            })
            raise UnknownOrderLineError(order.order_id, line_id)

    deltas: dict[str, Decimal] = {
        line_id: to_decimal(qty, "received_qty") for line_id, qty in received.items()
    }
    lines = tuple(
        replace(line, received_qty=line.received_qty + deltas.get(line.line_id, ZERO))
        for line in order.lines
    )

    # An order with no lines has nothing to complete.
    all_complete = bool(lines) and all(line.status is LineStatus.COMPLETE for line in lines)
    any_received = any(line.received_qty > ZERO for line in lines)
    if all_complete:
        status = ORDER_STATUS_COMPLETE
    elif any_received:
        status = ORDER_STATUS_PARTIAL
    else:
        status = order.status

    receipt_ids = order.receipt_ids
    if receipt_id and receipt_id not in receipt_ids:
        receipt_ids = receipt_ids + (receipt_id,)

    updated = replace(order, lines=lines, status=status, receipt_ids=receipt_ids)

    logger.info("receipts_applied", extra={
        "order_id": order.order_id,
        "previous_status": order.status,
        "status": status,
        "lines_received": len(deltas),
        "remaining_lines": sum(1 for line in lines if line.remaining_qty > ZERO),
    })
    return updated
