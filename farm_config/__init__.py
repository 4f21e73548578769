"""
farm_config -- single public entrypoint for planning configuration.

Responsibility:
    Provides ``get_active_config()``, the one way to obtain configuration
    at runtime. It loads the packaged ``defaults.yaml`` (or a caller-given
    file), parses it into frozen dataclasses, validates it and emits a
    ``FARM_CONFIG_TRACE`` log entry.

Architecture position:
    Configuration -- sits above ``farm_kernel`` and ``farm_engines``.
    Engines MUST NEVER import from ``farm_config``; ``farm_config.bridges``
    translates configuration into engine inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- parsing or structural validation failed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from farm_config.loader import load_yaml_file, parse_config
from farm_config.schema import FreightConfig, OrderStatusConfig, PlanningConfig
from farm_config.validator import validate_configuration
from farm_kernel.exceptions import ConfigurationError

_logger = logging.getLogger("farm_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FreightConfig",
    "OrderStatusConfig",
    "PlanningConfig",
    "get_active_config",
]


def get_active_config(config_path: Path | str | None = None) -> PlanningConfig:
    """Load, validate and return the planning configuration.

    Args:
        config_path: YAML file to load. Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        A validated, frozen PlanningConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If parsing or validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    config = parse_config(load_yaml_file(path))

    validation = validate_configuration(config)
    if not validation.is_valid:
        _logger.error("config_validation_failed", extra={
            "config_path": str(path),
            "errors": list(validation.errors),
        })
        raise ConfigurationError(validation.errors)

    _logger.info(
        "FARM_CONFIG_TRACE",
        extra={
            "trace_type": "FARM_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "unit_count": len(config.freight.unit_weights),
            "committed_statuses": list(config.orders.committed_statuses),
        },
    )
    return config
