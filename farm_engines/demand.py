"""
Module: farm_engines.demand
Responsibility:
    Turn raw plan-usage records into canonical demand lines: one line per
    product carrying the summed required quantity, its unit, a display
    label and the usage contexts (crop and pass) that produced it.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Leaf of the readiness
    pipeline; ``farm_engines.readiness`` consumes its output.

Invariants enforced:
    - One DemandLine per product: every record for a product is merged by
      summing ``total_needed``; no record is dropped or counted twice.
    - Zero-required products are absent from the output.
    - Output follows first appearance of each product in the input.

Failure modes:
    - DemandUnitMismatchError when records for one product disagree on
      unit. No conversion is attempted.

Usage:
    from farm_engines.demand import normalize_demand
    from farm_engines.sources import PlanUsageItem, UsageContext

    lines = normalize_demand(
        [PlanUsageItem("p-ams", "300", "lbs", (UsageContext("Corn", "Pre-plant"),))],
        {"p-ams": "AMS 21-0-0-24"},
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from farm_engines.sources import PlanUsageItem, UsageContext
from farm_engines.tracer import traced_engine
from farm_kernel.domain.values import ZERO
from farm_kernel.exceptions import DemandUnitMismatchError
from farm_kernel.logging_config import get_logger

logger = get_logger("engines.demand")

UNKNOWN_PRODUCT_LABEL = "Unknown product"


@dataclass(frozen=True)
class DemandLine:
    """
    One product's aggregate requirement for a planning horizon.

    Contract:
        Frozen dataclass; ``id`` equals ``product_id``.
    Guarantees:
        - ``required_qty`` is the sum of every usage record for the product.
        - ``context_crop`` / ``context_pass`` come from the first usage.
    """

    id: str
    product_id: str
    label: str
    required_qty: Decimal
    unit: str
    context_crop: str | None = None
    context_pass: str | None = None
    usages: tuple[UsageContext, ...] = ()


def resolve_label(product_id: str, product_catalog: Mapping[str, Any] | None) -> str:
    """Display name for a product from a catalog of names or named records."""
    if not product_catalog:
        return UNKNOWN_PRODUCT_LABEL
    entry = product_catalog.get(product_id)
    if entry is None:
        return UNKNOWN_PRODUCT_LABEL
    if isinstance(entry, str):
        return entry or UNKNOWN_PRODUCT_LABEL
    if isinstance(entry, Mapping):
        name = entry.get("name")
    else:
        name = getattr(entry, "name", None)
    return name or UNKNOWN_PRODUCT_LABEL


@traced_engine("demand", "1.0", fingerprint_fields=("raw_usage",))
def normalize_demand(
    raw_usage: Iterable[PlanUsageItem],
    product_catalog: Mapping[str, Any] | None = None,
) -> tuple[DemandLine, ...]:
    """
    Merge plan usage into one DemandLine per product.

    Args:
        raw_usage: Usage records, possibly several per product.
        product_catalog: product_id -> display name, or -> record with a
            ``name`` attribute / key. Missing products get
            ``"Unknown product"``.

    Returns:
        Demand lines in first-appearance order, zero-required products
        omitted.

    Raises:
        DemandUnitMismatchError: if one product is planned in two units.
    """
    totals: dict[str, Decimal] = {}
    units: dict[str, str] = {}
    usages: dict[str, list[UsageContext]] = {}
    record_count = 0

    for item in raw_usage:
        record_count += 1
        product_id = item.product_id
        if not product_id:
            continue

        if product_id not in totals:
            totals[product_id] = ZERO
            units[product_id] = item.unit
            usages[product_id] = []
        elif item.unit != units[product_id]:
            logger.error("demand_unit_mismatch", extra={
                "product_id": product_id,
                "expected_unit": units[product_id],
                "actual_unit": item.unit,
            })
            raise DemandUnitMismatchError(product_id, units[product_id], item.unit)

        totals[product_id] += item.total_needed
        usages[product_id].extend(item.usages)

    lines: list[DemandLine] = []
    for product_id, required in totals.items():
        if required <= ZERO:
            continue
        contexts = tuple(usages[product_id])
        first = contexts[0] if contexts else None
        lines.append(
            DemandLine(
                id=product_id,
                product_id=product_id,
                label=resolve_label(product_id, product_catalog),
                required_qty=required,
                unit=units[product_id],
                context_crop=first.crop_name if first else None,
                context_pass=first.timing_name if first else None,
                usages=contexts,
            )
        )

    logger.info("demand_normalized", extra={
        "record_count": record_count,
        "product_count": len(totals),
        "line_count": len(lines),
        "zero_demand_dropped": len(totals) - len(lines),
    })
    return tuple(lines)
