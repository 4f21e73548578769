"""
farm_engines.tracer -- Engine invocation tracer emitting FARM_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging.  The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected arguments), and duration_ms.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Does NOT introduce I/O into engines; emits a log record only.

Invariants enforced:
    - Determinism: fingerprint computation canonicalizes values (sorted
      dict keys and sets, Decimal normalized, dataclasses by field) so
      identical inputs always hash identically.  Nothing that varies
      between processes, such as an object address, enters the hash.
    - Engine purity: the decorator only reads arguments and emits a log
      record; it does not mutate inputs, consume iterators or alter the
      result.
    - Correlation: ``engine_name`` and ``input_fingerprint`` are bound to
      the log context while the engine runs, so the engine's own events
      carry the same fingerprint as its trace record.  Nested engine
      calls restore the outer context on return.

Failure modes:
    - Fingerprint fields naming parameters the caller did not pass are
      recorded as "null".
    - Iterators and generators hash by type only; their contents are
      left for the engine to read.
    - Objects with the default ``object`` repr hash by qualified type name.

Usage:
    from farm_engines.tracer import traced_engine

    @traced_engine("freight", "1.0", fingerprint_fields=("total_charges",))
    def allocate_freight(lines, total_charges, weights=None):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from farm_kernel.logging_config import bind_log_context, get_logger

_logger = get_logger("engines.tracer")


def _has_default_text(value: Any) -> bool:
    cls = type(value)
    return cls.__repr__ is object.__repr__ and cls.__str__ is object.__str__


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting.

    Postconditions:
        Returns a deterministic string for None, numbers, Decimal, str,
        Enum, dataclass instances (field order), mappings (sorted keys),
        sets (sorted) and sequences (order-preserved).  One-shot iterables
        and objects without their own repr reduce to a type marker.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if isinstance(value, (bool, int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = (
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return type(value).__name__ + "(" + ",".join(parts) + ")"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonicalize(v) for v in value)) + "}"
    if isinstance(value, Iterable) or _has_default_text(value):
        return f"<{type(value).__qualname__}>"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Compute a deterministic SHA-256 fingerprint of selected arguments.

    Only the fields listed in fingerprint_fields are included. Missing
    fields are recorded as "null". The result is a 16-character hex digest
    prefix.
    """
    parts: list[str] = []
    for field in fingerprint_fields:
        val = arguments.get(field)
        parts.append(f"{field}={_canonicalize(val)}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits FARM_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "readiness").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash. Positional and keyword arguments are both
            resolved against the wrapped function's signature.

    Returns:
        Decorator function.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                try:
                    bound = signature.bind_partial(*args, **kwargs)
                except TypeError:
                    # Let the real call report the bad arguments.
                    arguments: Mapping[str, Any] = kwargs
                else:
                    arguments = bound.arguments
                fp = compute_input_fingerprint(fingerprint_fields, arguments)

            t0 = time.monotonic()
            with bind_log_context(engine_name=engine_name, input_fingerprint=fp):
                result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "FARM_ENGINE_TRACE",
                extra={
                    "trace_type": "FARM_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
