"""
Planning configuration schema.

Frozen dataclasses the YAML loader parses into. Values are plain data
(Decimals, strings, tuples); turning them into engine objects is the job
of ``farm_config.bridges``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class FreightConfig:
    """Allocation basis for freight proration."""

    unit_weights: Mapping[str, Decimal] = field(default_factory=dict)
    fallback_multiplier: Decimal = Decimal("0")
    charge_places: int | None = 2


@dataclass(frozen=True)
class OrderStatusConfig:
    """Which order statuses count as committed supply."""

    committed_statuses: tuple[str, ...] = ("ordered",)

    def is_committed(self, status: str | None) -> bool:
        return (status or "").strip().lower() in self.committed_statuses


@dataclass(frozen=True)
class PlanningConfig:
    """The complete, validated planning configuration."""

    config_id: str
    version: int
    freight: FreightConfig
    orders: OrderStatusConfig
    checksum: str = ""
