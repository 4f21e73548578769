"""
Pytest fixtures for the planning engine test suite.

Provides:
- Structured logging configured for every session
- Log capture as parsed JSON dicts
- Canonical sample data (catalog, usage, inventory, orders, invoice lines)
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from farm_engines.demand import DemandLine
from farm_engines.freight import FreightLineInput
from farm_engines.sources import (
    InventoryRow,
    OrderLine,
    PlanUsageItem,
    PurchaseOrder,
    PurchaseOrderLine,
    UsageContext,
)
from farm_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture
def captured_logs():
    """
    Capture farm_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_readiness(...)
            logs = captured_logs()
            assert any(r["message"] == "readiness_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("farm_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def product_catalog():
    return {
        "p-ams": "AMS 21-0-0-24",
        "p-urea": "Urea 46-0-0",
        "p-humic": {"name": "Humic Acid 12%"},
    }


@pytest.fixture
def plan_usage():
    """Two crops applying AMS, one applying humic acid."""
    return [
        PlanUsageItem(
            product_id="p-ams",
            total_needed=Decimal("600"),
            unit="lbs",
            usages=(UsageContext("Corn", "Pre-plant"),),
        ),
        PlanUsageItem(
            product_id="p-humic",
            total_needed=Decimal("100"),
            unit="gal",
            usages=(UsageContext("Soybeans", "In-furrow"),),
        ),
        PlanUsageItem(
            product_id="p-ams",
            total_needed=Decimal("400"),
            unit="lbs",
            usages=(UsageContext("Wheat", "Top-dress"),),
        ),
    ]


def demand_line(product_id: str, required: str, unit: str = "gal") -> DemandLine:
    """Build a DemandLine directly for reconciler tests."""
    return DemandLine(
        id=product_id,
        product_id=product_id,
        label=product_id.upper(),
        required_qty=Decimal(required),
        unit=unit,
    )


@pytest.fixture
def make_demand_line():
    return demand_line


@pytest.fixture
def inventory_rows():
    return [
        InventoryRow(product_id="p-humic", quantity=Decimal("70"), row_id="bin-1"),
        InventoryRow(product_id="p-humic", quantity=Decimal("30"), row_id="bin-2"),
        InventoryRow(product_id="p-ams", quantity=Decimal("250"), row_id="shed"),
    ]


@pytest.fixture
def open_order_lines():
    return [
        OrderLine(
            order_id="ord-1",
            product_id="p-ams",
            remaining_qty=Decimal("500"),
            unit="lbs",
            vendor_name="Prairie Co-op",
            status="ordered",
        ),
    ]


@pytest.fixture
def purchase_order():
    return PurchaseOrder(
        order_id="ORD-2026-001",
        status="ordered",
        vendor_name="Prairie Co-op",
        lines=(
            PurchaseOrderLine(
                line_id="l-1",
                product_id="p-ams",
                ordered_qty=Decimal("15"),
                unit="ton",
                unit_price=Decimal("415"),
            ),
            PurchaseOrderLine(
                line_id="l-2",
                product_id="p-urea",
                ordered_qty=Decimal("12"),
                unit="ton",
                unit_price=Decimal("510"),
            ),
        ),
    )


@pytest.fixture
def fertilizer_invoice_lines():
    """AMS 15 tons @ $6225 and Urea 12 tons @ $6120."""
    return [
        FreightLineInput(
            product_id="p-ams",
            product_name="AMS 21-0-0-24",
            quantity=Decimal("15"),
            unit="ton",
            unit_price=Decimal("415"),
        ),
        FreightLineInput(
            product_id="p-urea",
            product_name="Urea 46-0-0",
            quantity=Decimal("12"),
            unit="ton",
            unit_price=Decimal("510"),
        ),
    ]
