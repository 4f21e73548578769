"""
Readiness result types -- frozen value objects produced by the readiness
engine.

All types are frozen dataclasses holding tuples, so a result can be shared
across threads and render passes without copying.  Aggregate counts on
``ReadinessResult`` are properties over ``items`` and cannot be set.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from farm_kernel.domain.values import ZERO


class ReadinessStatus(str, Enum):
    """Coverage state of one planned product, most covered first."""

    READY = "READY"  # On hand covers the requirement
    ON_ORDER = "ON_ORDER"  # On hand plus open orders cover it
    BLOCKING = "BLOCKING"  # Still short after open orders land


@dataclass(frozen=True)
class ExplainInventoryRow:
    """One matched inventory row with the quantity it contributed."""

    product_id: str
    quantity: Decimal
    container_count: Decimal | None = None
    unit: str | None = None
    record: Any = None  # Source record as supplied, for drill-down

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "quantity": str(self.quantity),
            "containerCount": None if self.container_count is None else str(self.container_count),
            "unit": self.unit,
        }


@dataclass(frozen=True)
class ExplainOrderLine:
    """One matched open order line."""

    order_id: str
    product_id: str
    remaining_qty: Decimal
    vendor_name: str | None = None
    status: str | None = None
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "productId": self.product_id,
            "remainingQty": str(self.remaining_qty),
            "vendorName": self.vendor_name,
            "status": self.status,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class ReadinessExplain:
    """
    Evidence behind one readiness status.

    Contract:
        Carries the literal matched rows and lines, not a summary.
    Guarantees:
        - ``on_hand_qty == sum(row.quantity for row in inventory_rows)``.
        - ``on_order_qty == sum(line.remaining_qty for line in order_lines)``.
    """

    product_id: str
    planned_unit: str
    required_qty: Decimal
    on_hand_qty: Decimal
    on_order_qty: Decimal
    short_qty: Decimal
    inventory_rows: tuple[ExplainInventoryRow, ...] = ()
    order_lines: tuple[ExplainOrderLine, ...] = ()

    @property
    def rederived_on_hand(self) -> Decimal:
        return sum((row.quantity for row in self.inventory_rows), ZERO)

    @property
    def rederived_on_order(self) -> Decimal:
        return sum((line.remaining_qty for line in self.order_lines), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "plannedUnit": self.planned_unit,
            "requiredQty": str(self.required_qty),
            "onHandQty": str(self.on_hand_qty),
            "onOrderQty": str(self.on_order_qty),
            "shortQty": str(self.short_qty),
            "inventoryRows": [row.to_dict() for row in self.inventory_rows],
            "orderLines": [line.to_dict() for line in self.order_lines],
        }


@dataclass(frozen=True)
class ReadinessItem:
    """One row of a readiness result."""

    id: str
    product_id: str
    label: str
    required_qty: Decimal
    planned_unit: str
    on_hand_qty: Decimal
    on_order_qty: Decimal
    short_qty: Decimal
    status: ReadinessStatus
    explain: ReadinessExplain
    context_crop: str | None = None
    context_pass: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "label": self.label,
            "requiredQty": str(self.required_qty),
            "plannedUnit": self.planned_unit,
            "onHandQty": str(self.on_hand_qty),
            "onOrderQty": str(self.on_order_qty),
            "shortQty": str(self.short_qty),
            "status": self.status.value,
            "crop": self.context_crop,
            "passName": self.context_pass,
            "explain": self.explain.to_dict(),
        }


@dataclass(frozen=True)
class ReadinessResult:
    """
    Complete readiness snapshot.

    Guarantees:
        - Counts always equal the partition of ``items`` by status.
    """

    items: tuple[ReadinessItem, ...] = ()

    def _count(self, status: ReadinessStatus) -> int:
        return sum(1 for item in self.items if item.status is status)

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def ready_count(self) -> int:
        return self._count(ReadinessStatus.READY)

    @property
    def on_order_count(self) -> int:
        return self._count(ReadinessStatus.ON_ORDER)

    @property
    def blocking_count(self) -> int:
        return self._count(ReadinessStatus.BLOCKING)

    def by_status(self, status: ReadinessStatus) -> tuple[ReadinessItem, ...]:
        return tuple(item for item in self.items if item.status is status)

    def get(self, product_id: str) -> ReadinessItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "readyCount": self.ready_count,
            "onOrderCount": self.on_order_count,
            "blockingCount": self.blocking_count,
            "items": [item.to_dict() for item in self.items],
        }
