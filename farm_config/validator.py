"""
Configuration validator.

Structural checks on a parsed ``PlanningConfig`` that the loader's type
parsing cannot express on its own.
"""

from __future__ import annotations

from dataclasses import dataclass

from farm_config.schema import PlanningConfig


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a configuration."""

    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_configuration(config: PlanningConfig) -> ValidationResult:
    """Validate weights, rounding and order statuses."""
    errors: list[str] = []

    for unit, multiplier in config.freight.unit_weights.items():
        if not unit:
            errors.append("freight.unit_weights has an empty unit name")
        if multiplier < 0:
            errors.append(f"freight.unit_weights.{unit} must not be negative")
    if config.freight.fallback_multiplier < 0:
        errors.append("freight.fallback_multiplier must not be negative")
    if config.freight.charge_places is not None and config.freight.charge_places < 0:
        errors.append("freight.charge_places must not be negative")

    if not config.orders.committed_statuses:
        errors.append("orders.committed_statuses must list at least one status")
    if any(not status for status in config.orders.committed_statuses):
        errors.append("orders.committed_statuses has an empty status name")

    return ValidationResult(errors=tuple(errors))
