"""
farm_engines.sources -- Canonical record shapes supplied by the data sources.

Responsibility:
    Frozen value objects for what the Plan Demand Source, the Inventory
    Source and the Order Source hand to the engines when the caller has no
    record shape of its own.  Callers with their own shapes plug them in
    through ``farm_engines.accessors`` instead.

Architecture position:
    Engines -- pure domain objects, zero I/O.

Invariants enforced:
    - Quantities are Decimal (coerced on construction).
    - ``PurchaseOrderLine.remaining_qty`` is derived from ordered and
      received quantities and is never negative.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from farm_kernel.domain.values import ZERO, to_decimal, to_optional_decimal


def _coerce(obj: Any, name: str) -> None:
    object.__setattr__(obj, name, to_decimal(getattr(obj, name), name))


# ---------------------------------------------------------------------------
# Plan demand
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsageContext:
    """Where a product is applied: one crop and one pass (timing)."""

    crop_name: str
    timing_name: str


@dataclass(frozen=True)
class PlanUsageItem:
    """
    Planned usage of one product as produced by the crop plan.

    Several items may exist for the same product (one per crop plan or
    planning scenario); the demand normalizer merges them.
    """

    product_id: str
    total_needed: Decimal
    unit: str
    usages: tuple[UsageContext, ...] = ()

    def __post_init__(self) -> None:
        _coerce(self, "total_needed")
        object.__setattr__(self, "usages", tuple(self.usages))


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryRow:
    """
    One physical lot of a product (bin, tote, partial delivery).

    ``quantity`` may be None when only the container count is known.
    """

    product_id: str
    quantity: Decimal | None
    container_count: Decimal | None = None
    unit: str | None = None
    row_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_optional_decimal(self.quantity, "quantity"))
        object.__setattr__(
            self,
            "container_count",
            to_optional_decimal(self.container_count, "container_count"),
        )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLine:
    """One committed-but-not-yet-received quantity of a product."""

    order_id: str
    product_id: str
    remaining_qty: Decimal
    unit: str | None = None
    vendor_name: str | None = None
    status: str | None = None
    line_id: str | None = None

    def __post_init__(self) -> None:
        _coerce(self, "remaining_qty")


class LineStatus(str, Enum):
    """Fulfillment state of one purchase order line."""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass(frozen=True)
class PurchaseOrderLine:
    """A purchase order line with its fulfillment tracking."""

    line_id: str
    product_id: str
    ordered_qty: Decimal
    unit: str
    unit_price: Decimal = ZERO
    received_qty: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce(self, "ordered_qty")
        _coerce(self, "unit_price")
        _coerce(self, "received_qty")

    @property
    def remaining_qty(self) -> Decimal:
        """Ordered minus received, floored at zero."""
        return max(ZERO, self.ordered_qty - self.received_qty)

    @property
    def total_price(self) -> Decimal:
        return self.ordered_qty * self.unit_price

    @property
    def status(self) -> LineStatus:
        if self.remaining_qty <= ZERO:
            return LineStatus.COMPLETE
        if self.received_qty > ZERO:
            return LineStatus.PARTIAL
        return LineStatus.PENDING


@dataclass(frozen=True)
class PurchaseOrder:
    """
    A purchase or bid commitment with its lines.

    ``status`` is the caller's order-level status string (``draft``,
    ``ordered``, ``partial``, ``complete``, ``cancelled``...).  Whether a
    status counts as committed is decided by configuration, not here.
    """

    order_id: str
    status: str
    lines: tuple[PurchaseOrderLine, ...] = ()
    vendor_name: str | None = None
    receipt_ids: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "receipt_ids", tuple(self.receipt_ids))

    @property
    def subtotal(self) -> Decimal:
        return sum((line.total_price for line in self.lines), ZERO)

    def open_lines(self) -> tuple[OrderLine, ...]:
        """Lines with quantity still to arrive, in reconciler form."""
        return tuple(
            OrderLine(
                order_id=self.order_id,
                product_id=line.product_id,
                remaining_qty=line.remaining_qty,
                unit=line.unit,
                vendor_name=self.vendor_name,
                status=self.status,
                line_id=line.line_id,
            )
            for line in self.lines
            if line.remaining_qty > ZERO
        )
