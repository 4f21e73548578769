"""
Configuration Loader (``farm_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``farm_config.schema`` dataclasses.  Runtime callers go through
``farm_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Numbers are parsed to ``Decimal`` through ``str`` (YAML floats such as
  ``0.0625`` keep their written value).
* Status names are lower-cased and stripped.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing sections or non-numeric values -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from farm_config.schema import FreightConfig, OrderStatusConfig, PlanningConfig
from farm_kernel.domain.values import to_optional_decimal
from farm_kernel.exceptions import ConfigurationError, InvalidQuantityError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a required number from YAML."""
    try:
        parsed = to_optional_decimal(value, field)
    except InvalidQuantityError as e:
        raise ConfigurationError([str(e)]) from e
    if parsed is None:
        raise ConfigurationError([f"{field} is required"])
    return parsed


def parse_statuses(values: Any, field: str) -> tuple[str, ...]:
    """Parse a list of status names."""
    if values is None:
        return ()
    if isinstance(values, str) or not isinstance(values, list):
        raise ConfigurationError([f"{field} must be a list of status names"])
    return tuple(str(v).strip().lower() for v in values)


def parse_freight(data: dict[str, Any]) -> FreightConfig:
    """Parse the ``freight`` section."""
    raw_weights = data.get("unit_weights") or {}
    if not isinstance(raw_weights, dict):
        raise ConfigurationError(["freight.unit_weights must be a mapping"])

    charge_places = data.get("charge_places", 2)
    if charge_places is not None and (isinstance(charge_places, bool) or not isinstance(charge_places, int)):
        raise ConfigurationError(["freight.charge_places must be an integer or null"])

    return FreightConfig(
        unit_weights={
            str(unit).strip().lower(): parse_decimal(value, f"freight.unit_weights.{unit}")
            for unit, value in raw_weights.items()
        },
        fallback_multiplier=parse_decimal(
            data.get("fallback_multiplier", 0), "freight.fallback_multiplier"
        ),
        charge_places=charge_places,
    )


def parse_orders(data: dict[str, Any]) -> OrderStatusConfig:
    """Parse the ``orders`` section."""
    return OrderStatusConfig(
        committed_statuses=parse_statuses(
            data.get("committed_statuses"), "orders.committed_statuses"
        ),
    )


def parse_config(data: dict[str, Any]) -> PlanningConfig:
    """
    Parse a full configuration document.

    Raises:
        ConfigurationError: on missing sections or malformed values.
    """
    missing = [key for key in ("config_id", "freight", "orders") if key not in data]
    if missing:
        raise ConfigurationError([f"missing required key: {key}" for key in missing])

    return PlanningConfig(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        freight=parse_freight(data["freight"] or {}),
        orders=parse_orders(data["orders"] or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
