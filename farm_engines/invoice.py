"""
Module: farm_engines.invoice
Responsibility:
    Assemble an invoice from received product lines and delivery charges:
    drop zero charges, total the product subtotal and charges, and spread
    the summed charges over the lines as landed cost.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Wraps ``farm_engines.freight.allocate_freight``. Writing landed costs to
    a price history store is the caller's job.

Invariants enforced:
    - total_amount == product_subtotal + charges_total.
    - Allocated freight over the lines sums to charges_total whenever any
      line has weight.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from farm_engines.freight import (
    DEFAULT_CHARGE_PLACES,
    FreightAllocatedLine,
    FreightAllocation,
    FreightLineInput,
    UnitWeightTable,
    allocate_freight,
)
from farm_engines.tracer import traced_engine
from farm_kernel.domain.values import ZERO, to_decimal
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.invoice")


class ChargeType(str, Enum):
    """Kinds of non-product charges that land on an invoice."""

    FREIGHT = "freight"
    FUEL_SURCHARGE = "fuel_surcharge"
    HANDLING = "handling"
    DELIVERY = "delivery"
    OTHER = "other"


@dataclass(frozen=True)
class InvoiceCharge:
    """A single charge line (typically one freight line per invoice)."""

    amount: Decimal
    charge_type: ChargeType = ChargeType.FREIGHT
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        if not isinstance(self.charge_type, ChargeType):
            try:
                charge_type = ChargeType(self.charge_type or ChargeType.FREIGHT.value)
            except ValueError:
                charge_type = ChargeType.OTHER
            object.__setattr__(self, "charge_type", charge_type)


@dataclass(frozen=True)
class InvoiceResult:
    """
    A built invoice.

    Guarantees:
        - ``charges`` holds only non-zero charges.
        - ``total_amount == product_subtotal + charges_total``.
    """

    allocation: FreightAllocation
    charges: tuple[InvoiceCharge, ...]
    product_subtotal: Decimal
    charges_total: Decimal

    @property
    def lines(self) -> tuple[FreightAllocatedLine, ...]:
        return self.allocation.lines

    @property
    def total_amount(self) -> Decimal:
        return self.product_subtotal + self.charges_total

    def charges_by_type(self) -> dict[ChargeType, Decimal]:
        totals: dict[ChargeType, Decimal] = {}
        for charge in self.charges:
            totals[charge.charge_type] = totals.get(charge.charge_type, ZERO) + charge.amount
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "productSubtotal": str(self.product_subtotal),
            "chargesTotal": str(self.charges_total),
            "totalAmount": str(self.total_amount),
            "charges": [
                {
                    "type": c.charge_type.value,
                    "description": c.description,
                    "amount": str(c.amount),
                }
                for c in self.charges
            ],
            "lineItems": [line.to_dict() for line in self.lines],
        }


@traced_engine("invoice", "1.0", fingerprint_fields=("line_items", "charges"))
def build_invoice(
    line_items: Sequence[FreightLineInput],
    charges: Sequence[InvoiceCharge] = (),
    weights: UnitWeightTable | None = None,
    charge_places: int | None = DEFAULT_CHARGE_PLACES,
) -> InvoiceResult:
    """
    Build an invoice and allocate its charges into landed cost.

    Args:
        line_items: Received product lines.
        charges: Freight and other charges; zero amounts are dropped.
        weights: Unit weight table for the allocation basis.
        charge_places: Rounding for each line's freight share.

    Returns:
        InvoiceResult with allocated lines and totals.
    """
    kept = tuple(c for c in charges if c.amount != ZERO)
    charges_total = sum((c.amount for c in kept), ZERO)

    allocation = allocate_freight(
        line_items,
        charges_total,
        weights=weights,
        charge_places=charge_places,
    )
    result = InvoiceResult(
        allocation=allocation,
        charges=kept,
        product_subtotal=allocation.product_subtotal,
        charges_total=charges_total,
    )

    logger.info("invoice_built", extra={
        "line_count": len(allocation.lines),
        "charge_count": len(kept),
        "dropped_zero_charges": len(charges) - len(kept),
        "product_subtotal": str(result.product_subtotal),
        "charges_total": str(charges_total),
        "total_amount": str(result.total_amount),
    })
    return result
