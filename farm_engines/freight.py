"""
Module: farm_engines.freight
Responsibility:
    Prorate a shared delivery charge (freight, fuel surcharge, handling)
    across the lines of one invoice or settlement by normalized weight,
    and derive each line's landed unit cost.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Independent of the readiness pipeline; operates on line data only.

Invariants enforced:
    - Conservation: sum(allocated_freight) == total_charges exactly when
      any line has weight. Shares are rounded down to ``charge_places`` and
      the leftover cents go to the lines with the largest remainders
      (largest-remainder method).
    - Non-negative shares: no line is charged below zero freight, so landed
      cost never drops under the unit price.
    - Zero total weight: every line gets allocated_freight == 0 and
      landed_unit_cost == unit_price.
    - Zero quantity: landed_unit_cost == 0, never a division error.
    - Purity: no state is kept between calls.

Failure modes:
    - InvalidQuantityError if a line value is not numeric.

The weight model is approximate: liquids use an average
agricultural liquid density. It only needs to be proportional.

Usage:
    from farm_engines.freight import FreightLineInput, allocate_freight

    allocation = allocate_freight(
        [
            FreightLineInput("p-ams", quantity="15", unit="ton", unit_price="415"),
            FreightLineInput("p-urea", quantity="12", unit="ton", unit_price="510"),
        ],
        total_charges="500",
    )
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal
from types import MappingProxyType
from typing import Any

from farm_engines.tracer import traced_engine
from farm_kernel.domain.values import ZERO, quantize, to_decimal, to_optional_decimal
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.freight")

# Pounds per unit. Liquids use ~10 lbs/gal as an average ag liquid.
DEFAULT_UNIT_WEIGHTS: Mapping[str, Decimal] = MappingProxyType({
    "ton": Decimal("2000"),
    "tons": Decimal("2000"),
    "lb": Decimal("1"),
    "lbs": Decimal("1"),
    "gal": Decimal("10"),
    "gallon": Decimal("10"),
    "gallons": Decimal("10"),
    "oz": Decimal("0.0625"),
    "pt": Decimal("1"),
    "qt": Decimal("2"),
})

DEFAULT_CHARGE_PLACES = 2
_FULL_PRECISION_TOLERANCE = Decimal("1e-9")


def _normalize_unit(unit: str | None) -> str:
    return (unit or "").strip().lower()


@dataclass(frozen=True)
class UnitWeightTable:
    """
    Unit to pounds multipliers used as the allocation basis.

    Contract:
        Unit lookup is case-insensitive. Units missing from the table use
        ``fallback_multiplier`` (zero by default, so unmapped lines carry
        no freight).
    """

    multipliers: Mapping[str, Decimal] = field(default_factory=lambda: DEFAULT_UNIT_WEIGHTS)
    fallback_multiplier: Decimal = ZERO

    def __post_init__(self) -> None:
        normalized = {
            _normalize_unit(unit): to_decimal(value, f"multiplier[{unit}]")
            for unit, value in self.multipliers.items()
        }
        object.__setattr__(self, "multipliers", MappingProxyType(normalized))
        object.__setattr__(
            self, "fallback_multiplier", to_decimal(self.fallback_multiplier, "fallback_multiplier")
        )

    @classmethod
    def default(cls) -> UnitWeightTable:
        return cls()

    def extend(
        self,
        overrides: Mapping[str, Any],
        fallback_multiplier: Any = None,
    ) -> UnitWeightTable:
        """New table with ``overrides`` added on top of these multipliers."""
        merged = dict(self.multipliers)
        merged.update({_normalize_unit(unit): value for unit, value in overrides.items()})
        fallback = self.fallback_multiplier if fallback_multiplier is None else fallback_multiplier
        return UnitWeightTable(multipliers=merged, fallback_multiplier=fallback)

    def is_mapped(self, unit: str | None) -> bool:
        return _normalize_unit(unit) in self.multipliers

    def multiplier(self, unit: str | None) -> Decimal:
        return self.multipliers.get(_normalize_unit(unit), self.fallback_multiplier)

    def weight(self, quantity: Decimal, unit: str | None) -> Decimal:
        return quantity * self.multiplier(unit)


@dataclass(frozen=True)
class FreightLineInput:
    """
    One received product line before freight allocation.

    ``subtotal`` defaults to quantity x unit_price; pass it explicitly when
    the invoice states an extended price of its own.
    """

    product_id: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    product_name: str | None = None
    line_id: str | None = None
    subtotal: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        explicit = to_optional_decimal(self.subtotal, "subtotal")
        object.__setattr__(
            self,
            "subtotal",
            explicit if explicit is not None else self.quantity * self.unit_price,
        )


@dataclass(frozen=True)
class FreightAllocatedLine:
    """
    One line after freight proration.

    Guarantees:
        - ``landed_total == subtotal + allocated_freight``.
        - ``landed_unit_cost == landed_total / quantity`` (0 when quantity
          is 0; unit_price when nothing in the batch had weight).
    """

    product_id: str
    product_name: str | None
    line_id: str | None
    quantity: Decimal
    unit: str
    unit_price: Decimal
    subtotal: Decimal
    weight: Decimal
    allocated_freight: Decimal
    landed_total: Decimal
    landed_unit_cost: Decimal

    @property
    def freight_per_unit(self) -> Decimal:
        if self.quantity == ZERO:
            return ZERO
        return self.allocated_freight / self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "lineId": self.line_id,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "unitPrice": str(self.unit_price),
            "subtotal": str(self.subtotal),
            "weight": str(self.weight),
            "allocatedFreight": str(self.allocated_freight),
            "landedTotal": str(self.landed_total),
            "landedUnitCost": str(self.landed_unit_cost),
        }


@dataclass(frozen=True)
class FreightAllocation:
    """
    Result of one allocation batch.

    Guarantees:
        - ``total_allocated == total_charges`` when ``is_weighted``; zero
          otherwise.
        - ``rounding_adjustment`` is the leftover handed out after every
          share was rounded down.
    """

    lines: tuple[FreightAllocatedLine, ...]
    total_charges: Decimal
    total_weight: Decimal
    rounding_adjustment: Decimal = ZERO

    @property
    def is_weighted(self) -> bool:
        return self.total_weight > ZERO

    @property
    def total_allocated(self) -> Decimal:
        return sum((line.allocated_freight for line in self.lines), ZERO)

    @property
    def unallocated(self) -> Decimal:
        return self.total_charges - self.total_allocated

    @property
    def product_subtotal(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCharges": str(self.total_charges),
            "totalWeight": str(self.total_weight),
            "totalAllocated": str(self.total_allocated),
            "roundingAdjustment": str(self.rounding_adjustment),
            "lines": [line.to_dict() for line in self.lines],
        }


def landed_unit_cost(subtotal: Decimal, allocated_freight: Decimal, quantity: Decimal) -> Decimal:
    """(subtotal + freight) / quantity, or 0 when quantity is 0."""
    if quantity == ZERO:
        return ZERO
    return (subtotal + allocated_freight) / quantity


def _unallocated_lines(lines: Sequence[FreightLineInput]) -> tuple[FreightAllocatedLine, ...]:
    return tuple(
        FreightAllocatedLine(
            product_id=line.product_id,
            product_name=line.product_name,
            line_id=line.line_id,
            quantity=line.quantity,
            unit=line.unit,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
            weight=ZERO,
            allocated_freight=ZERO,
            landed_total=line.subtotal,
            landed_unit_cost=line.unit_price,
        )
        for line in lines
    )


def _distribute_shares(
    charges: Decimal,
    weights: Sequence[Decimal],
    total_weight: Decimal,
    charge_places: int | None,
) -> tuple[list[Decimal], Decimal]:
    """
    Split ``charges`` by weight so the shares sum to it exactly.

    With ``charge_places`` set, every share is rounded down to that many
    places and the leftover is handed out one unit (a cent by default) at a
    time to the lines with the largest fractional remainders; ties go to the
    later line.  No share ever drops below zero or below its rounded-down
    value.  With ``charge_places=None`` shares keep full precision and the
    context-rounding residual lands on the heaviest line.

    Returns:
        (shares, adjustment) where adjustment is the amount added on top of
        the rounded-down (or raw) shares.
    """
    raw = [charges * weight / total_weight for weight in weights]

    if charge_places is None:
        shares = list(raw)
        residual = charges - sum(shares, ZERO)
        if residual:
            heaviest = max(range(len(weights)), key=lambda i: (weights[i], -i))
            shares[heaviest] += residual
        return shares, residual

    unit = Decimal(10) ** -charge_places
    shares = [quantize(share, charge_places, ROUND_DOWN) for share in raw]
    leftover = charges - sum(shares, ZERO)

    ranking = sorted(
        (i for i, weight in enumerate(weights) if weight > ZERO),
        key=lambda i: (raw[i] - shares[i], i),
        reverse=True,
    )
    whole_units = max(int(leftover / unit), 0)
    for i in ranking[:whole_units]:
        shares[i] += unit

    # Charges stated finer than charge_places leave a sub-unit residual.
    residual = leftover - unit * whole_units
    if residual and ranking:
        shares[ranking[0]] += residual

    return shares, leftover


@traced_engine("freight", "1.0", fingerprint_fields=("lines", "total_charges"))
def allocate_freight(
    lines: Sequence[FreightLineInput],
    total_charges: Decimal | int | str,
    weights: UnitWeightTable | None = None,
    charge_places: int | None = DEFAULT_CHARGE_PLACES,
) -> FreightAllocation:
    """
    Prorate ``total_charges`` across ``lines`` by normalized weight.

    Args:
        lines: Product lines of one invoice or settlement.
        total_charges: Total freight-like charge to spread (>= 0).
        weights: Unit weight table. Defaults to ``UnitWeightTable.default()``.
        charge_places: Decimal places each share is rounded to; None keeps
            full precision. Rounding leftovers go to the lines with the
            largest remainders either way.

    Returns:
        FreightAllocation whose lines keep the input order.
    """
    table = weights or UnitWeightTable.default()
    charges = to_decimal(total_charges, "total_charges")
    lines = tuple(lines)

    line_weights = [table.weight(line.quantity, line.unit) for line in lines]
    total_weight = sum(line_weights, ZERO)

    if total_weight == ZERO:
        logger.warning("freight_allocation_no_weight", extra={
            "line_count": len(lines),
            "total_charges": str(charges),
            "unmapped_units": sorted({line.unit for line in lines if not table.is_mapped(line.unit)}),
        })
        return FreightAllocation(
            lines=_unallocated_lines(lines),
            total_charges=charges,
            total_weight=ZERO,
        )

    shares, adjustment = _distribute_shares(charges, line_weights, total_weight, charge_places)

    result_lines = tuple(
        FreightAllocatedLine(
            product_id=line.product_id,
            product_name=line.product_name,
            line_id=line.line_id,
            quantity=line.quantity,
            unit=line.unit,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
            weight=weight,
            allocated_freight=allocated,
            landed_total=line.subtotal + allocated,
            landed_unit_cost=landed_unit_cost(line.subtotal, allocated, line.quantity),
        )
        for line, weight, allocated in zip(lines, line_weights, shares)
    )

    allocation = FreightAllocation(
        lines=result_lines,
        total_charges=charges,
        total_weight=total_weight,
        rounding_adjustment=adjustment,
    )

    # INVARIANT: allocated freight sums to the input charge (exactly when
    # shares are rounded to fixed places)
    tolerance = ZERO if charge_places is not None else _FULL_PRECISION_TOLERANCE
    assert abs(allocation.total_allocated - charges) <= tolerance, (
        f"Freight conservation violated: {allocation.total_allocated} != {charges}"
    )
    # INVARIANT: no line is charged negative freight
    assert charges < ZERO or all(line.allocated_freight >= ZERO for line in result_lines), (
        "Freight allocation produced a negative share"
    )

    logger.info("freight_allocation_completed", extra={
        "line_count": len(result_lines),
        "total_charges": str(charges),
        "total_weight": str(total_weight),
        "rounding_adjustment": str(adjustment),
    })
    return allocation
