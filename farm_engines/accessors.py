"""
farm_engines.accessors -- Adapters over differently-shaped source records.

Responsibility:
    Bundle the getter functions the readiness engine needs so the same
    reconciliation code runs against canonical ``sources`` objects, plain
    dicts decoded from a data store, or any other record shape.  Also
    provides the caller-side committed-order filter.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Accessors are read-only: they never mutate the records they read.
    - ``select_committed_orders`` preserves input order.

Usage:
    from farm_engines.accessors import InventoryAccessors, OrderAccessors

    inv = InventoryAccessors.for_mappings()            # {"productId": ..., "quantity": ...}
    orders = OrderAccessors.for_orders()               # PurchaseOrder objects
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from operator import attrgetter
from typing import Any

from farm_engines.sources import OrderLine, PurchaseOrder
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.accessors")


def _key(name: str) -> Callable[[Any], Any]:
    return lambda record: record.get(name)


@dataclass(frozen=True)
class InventoryAccessors:
    """
    Getters for reading inventory rows.

    Contract:
        ``get_product_id`` and ``get_qty`` are required.  When ``get_qty``
        yields nothing usable, ``get_container_count`` (if given) supplies
        the quantity instead.
    """

    get_product_id: Callable[[Any], str | None]
    get_qty: Callable[[Any], Any]
    get_container_count: Callable[[Any], Any] | None = None
    get_unit: Callable[[Any], str | None] | None = None

    @classmethod
    def for_rows(cls) -> InventoryAccessors:
        """Accessors for ``farm_engines.sources.InventoryRow``."""
        return cls(
            get_product_id=attrgetter("product_id"),
            get_qty=attrgetter("quantity"),
            get_container_count=attrgetter("container_count"),
            get_unit=attrgetter("unit"),
        )

    @classmethod
    def for_mappings(
        cls,
        product_key: str = "productId",
        qty_key: str = "quantity",
        container_key: str | None = "containerCount",
        unit_key: str | None = "unit",
    ) -> InventoryAccessors:
        """Accessors for dict records, keyed by the given field names."""
        return cls(
            get_product_id=_key(product_key),
            get_qty=_key(qty_key),
            get_container_count=_key(container_key) if container_key else None,
            get_unit=_key(unit_key) if unit_key else None,
        )


@dataclass(frozen=True)
class OrderAccessors:
    """
    Getters for reading orders and their lines.

    Contract:
        Orders passed alongside these accessors are already restricted to
        committed statuses.  ``get_order_status`` is informational only and
        copied into the explain trace.
    """

    get_order_id: Callable[[Any], str]
    get_lines: Callable[[Any], Iterable[Any] | None]
    get_line_product_id: Callable[[Any], str | None]
    get_line_remaining_qty: Callable[[Any], Any]
    get_order_status: Callable[[Any], str | None] | None = None
    get_vendor_name: Callable[[Any], str | None] | None = None
    get_line_unit: Callable[[Any], str | None] | None = None

    @classmethod
    def for_lines(cls) -> OrderAccessors:
        """Accessors for flat ``OrderLine`` values, one line per "order"."""
        return cls(
            get_order_id=attrgetter("order_id"),
            get_lines=lambda line: (line,),
            get_line_product_id=attrgetter("product_id"),
            get_line_remaining_qty=attrgetter("remaining_qty"),
            get_order_status=attrgetter("status"),
            get_vendor_name=attrgetter("vendor_name"),
            get_line_unit=attrgetter("unit"),
        )

    @classmethod
    def for_orders(cls) -> OrderAccessors:
        """Accessors for ``PurchaseOrder`` values and their lines."""
        return cls(
            get_order_id=attrgetter("order_id"),
            get_lines=attrgetter("lines"),
            get_line_product_id=attrgetter("product_id"),
            get_line_remaining_qty=attrgetter("remaining_qty"),
            get_order_status=attrgetter("status"),
            get_vendor_name=attrgetter("vendor_name"),
            get_line_unit=attrgetter("unit"),
        )

    @classmethod
    def for_records(cls, orders: Sequence[Any]) -> OrderAccessors:
        """Pick accessors for a homogeneous sequence of canonical records."""
        if orders and isinstance(orders[0], PurchaseOrder):
            return cls.for_orders()
        return cls.for_lines()


def select_committed_orders(
    orders: Iterable[Any],
    get_status: Callable[[Any], str | None],
    committed_statuses: Iterable[str],
) -> tuple[Any, ...]:
    """Keep orders whose status counts as committed.

    Status comparison is case-insensitive; orders with no status are
    dropped.  The readiness engine does not re-check status, so this is
    where draft, cancelled and received orders are excluded.
    """
    committed = frozenset(s.strip().lower() for s in committed_statuses)
    selected: list[Any] = []
    dropped = 0
    for order in orders:
        status = (get_status(order) or "").strip().lower()
        if status in committed:
            selected.append(order)
        else:
            dropped += 1

    logger.debug("committed_orders_selected", extra={
        "selected_count": len(selected),
        "dropped_count": dropped,
        "committed_statuses": sorted(committed),
    })
    return tuple(selected)


def order_lines_for(orders: Iterable[PurchaseOrder]) -> tuple[OrderLine, ...]:
    """Flatten purchase orders into their open ``OrderLine`` values."""
    return tuple(line for order in orders for line in order.open_lines())
