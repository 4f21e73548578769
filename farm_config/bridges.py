"""
Config -> Engine Bridges.

Functions that convert a PlanningConfig into engine inputs. These live in
farm_config (the producer) because the engines must never import
farm_config.

Usage:
    from farm_config import get_active_config
    from farm_config.bridges import build_unit_weight_table, committed_orders

    config = get_active_config()
    weights = build_unit_weight_table(config)
    open_orders = committed_orders(config, orders)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from operator import attrgetter
from typing import Any

from farm_config.schema import PlanningConfig
from farm_engines.accessors import select_committed_orders
from farm_engines.freight import UnitWeightTable


def build_unit_weight_table(config: PlanningConfig) -> UnitWeightTable:
    """Build the freight allocation basis from configuration.

    Configured units replace the built-in table entirely when present;
    an empty ``unit_weights`` section keeps the built-in defaults.
    """
    freight = config.freight
    if not freight.unit_weights:
        return UnitWeightTable(fallback_multiplier=freight.fallback_multiplier)
    return UnitWeightTable(
        multipliers=dict(freight.unit_weights),
        fallback_multiplier=freight.fallback_multiplier,
    )


def committed_orders(
    config: PlanningConfig,
    orders: Iterable[Any],
    get_status: Callable[[Any], str | None] = attrgetter("status"),
) -> tuple[Any, ...]:
    """Restrict ``orders`` to the configured committed statuses."""
    return select_committed_orders(orders, get_status, config.orders.committed_statuses)
