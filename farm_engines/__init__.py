"""
Module: farm_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    planning engines: demand normalization, readiness reconciliation,
    freight allocation / landed cost, invoice building, order fulfillment
    and coverage roll-up.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import farm_kernel (and sibling engine modules).
    MUST NOT import farm_config; configuration reaches engines through
    ``farm_config.bridges``.

Invariants enforced:
    - Purity: engines never read the clock, files or environment.
    - Decimal-only arithmetic for quantities and amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``farm_engines.tracer``), emitting FARM_ENGINE_TRACE log records with
    engine name, version, input fingerprint and duration.

Usage:
    from farm_engines import compute_readiness, normalize_demand, allocate_freight
"""

from farm_kernel.logging_config import get_logger

logger = get_logger("engines")

from farm_engines.accessors import (
    InventoryAccessors,
    OrderAccessors,
    order_lines_for,
    select_committed_orders,
)
from farm_engines.coverage import (
    CoverageSummary,
    on_order_values_by_product,
    summarize_coverage,
)
from farm_engines.demand import DemandLine, normalize_demand
from farm_engines.freight import (
    FreightAllocatedLine,
    FreightAllocation,
    FreightLineInput,
    UnitWeightTable,
    allocate_freight,
    landed_unit_cost,
)
from farm_engines.fulfillment import apply_receipts
from farm_engines.invoice import ChargeType, InvoiceCharge, InvoiceResult, build_invoice
from farm_engines.readiness import (
    classify_readiness,
    compute_readiness,
    index_on_hand,
    index_on_order,
)
from farm_engines.readiness_types import (
    ExplainInventoryRow,
    ExplainOrderLine,
    ReadinessExplain,
    ReadinessItem,
    ReadinessResult,
    ReadinessStatus,
)
from farm_engines.sources import (
    InventoryRow,
    LineStatus,
    OrderLine,
    PlanUsageItem,
    PurchaseOrder,
    PurchaseOrderLine,
    UsageContext,
)

__all__ = [
    # Sources
    "PlanUsageItem",
    "UsageContext",
    "InventoryRow",
    "OrderLine",
    "PurchaseOrder",
    "PurchaseOrderLine",
    "LineStatus",
    # Accessors
    "InventoryAccessors",
    "OrderAccessors",
    "select_committed_orders",
    "order_lines_for",
    # Demand
    "DemandLine",
    "normalize_demand",
    # Readiness
    "ReadinessStatus",
    "ReadinessExplain",
    "ExplainInventoryRow",
    "ExplainOrderLine",
    "ReadinessItem",
    "ReadinessResult",
    "classify_readiness",
    "compute_readiness",
    "index_on_hand",
    "index_on_order",
    # Freight
    "UnitWeightTable",
    "FreightLineInput",
    "FreightAllocatedLine",
    "FreightAllocation",
    "allocate_freight",
    "landed_unit_cost",
    # Invoice
    "ChargeType",
    "InvoiceCharge",
    "InvoiceResult",
    "build_invoice",
    # Fulfillment
    "apply_receipts",
    # Coverage
    "CoverageSummary",
    "summarize_coverage",
    "on_order_values_by_product",
]
