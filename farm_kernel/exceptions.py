"""
Typed exception hierarchy for the planning engines.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
carrying the data that caused it.

    FarmPlanningError (base)
    |
    +-- DemandError
    |   +-- DemandUnitMismatchError
    |
    +-- QuantityError
    |   +-- InvalidQuantityError
    |
    +-- OrderError
    |   +-- UnknownOrderLineError
    |
    +-- ConfigurationError

The reconciliation engines degrade missing data to zero quantities rather
than raising; these exceptions cover caller errors the engines can detect
but cannot repair.
"""

from __future__ import annotations

from typing import Any


class FarmPlanningError(Exception):
    """
    Base exception for all planning engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FARM_PLANNING_ERROR"


# Demand-related exceptions


class DemandError(FarmPlanningError):
    """Base exception for demand normalization errors."""

    code: str = "DEMAND_ERROR"


class DemandUnitMismatchError(DemandError):
    """Usage records for one product were stated in different units."""

    code: str = "DEMAND_UNIT_MISMATCH"

    def __init__(self, product_id: str, expected_unit: str, actual_unit: str):
        self.product_id = product_id
        self.expected_unit = expected_unit
        self.actual_unit = actual_unit
        super().__init__(
            f"Product {product_id} has usage in '{actual_unit}' "
            f"but was first planned in '{expected_unit}'"
        )


# Quantity-related exceptions


class QuantityError(FarmPlanningError):
    """Base exception for quantity and amount errors."""

    code: str = "QUANTITY_ERROR"


class InvalidQuantityError(QuantityError):
    """A value could not be read as a number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = repr(value)
        super().__init__(f"Invalid numeric value for {field}: {value!r}")


# Order-related exceptions


class OrderError(FarmPlanningError):
    """Base exception for purchase order errors."""

    code: str = "ORDER_ERROR"


class UnknownOrderLineError(OrderError):
    """A receipt referenced a line that is not on the order."""

    code: str = "UNKNOWN_ORDER_LINE"

    def __init__(self, order_id: str, line_id: str):
        self.order_id = order_id
        self.line_id = line_id
        super().__init__(f"Order {order_id} has no line {line_id}")


# Configuration exceptions


class ConfigurationError(FarmPlanningError):
    """Configuration file is structurally invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, errors: list[str] | tuple[str, ...]):
        self.errors = tuple(errors)
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in self.errors)
        )
