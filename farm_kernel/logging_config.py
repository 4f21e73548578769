"""
farm_kernel.logging_config -- JSON-lines logging for the planning engines.

Responsibility:
    One JSON object per log line, carrying the event message, any
    structured ``extra`` fields and the engine context bound around the
    current call.

Architecture position:
    Kernel -- imported by every engine and by the configuration loader.

Engine context:
    ``farm_engines.tracer.traced_engine`` binds ``engine_name`` and
    ``input_fingerprint`` for the duration of an engine call, so every
    record the engine logs (``readiness_completed``, ``invoice_built``...)
    can be joined to its ``FARM_ENGINE_TRACE`` record.  Callers may bind
    their own fields (a season or plan id) with ``bind_log_context``;
    nested binds stack and unwind.

Usage:
    from farm_kernel.logging_config import bind_log_context, configure_logging

    configure_logging()
    with bind_log_context(season_id="2026"):
        compute_readiness(...)
"""

__all__ = [
    "StructuredFormatter",
    "bind_log_context",
    "configure_logging",
    "current_log_context",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

_LOGGER_PREFIX = "farm_kernel"
_HANDLER_NAME = "farm_kernel.structured"

_log_context: ContextVar[Mapping[str, Any]] = ContextVar(
    "farm_log_context", default=MappingProxyType({})
)


@contextmanager
def bind_log_context(**fields: Any) -> Iterator[None]:
    """Add ``fields`` to every record logged inside the block.

    None values are ignored; the previous context is restored on exit.
    """
    merged = dict(_log_context.get())
    merged.update({key: value for key, value in fields.items() if value is not None})
    token = _log_context.set(MappingProxyType(merged))
    try:
        yield
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    """Fields currently bound for this thread or task."""
    return dict(_log_context.get())


# Attributes every LogRecord has; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    # Decimal, UUID and anything else: exact text form
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """exc_type / exc_message, plus code and attributes of planning errors."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        base = frozenset(payload)
        for key, value in _log_context.get().items():
            payload.setdefault(key, value)
        # A record's own extras win over the bound context.
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in base
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger under the farm_kernel namespace (``get_logger("engines.freight")``)."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_lock = threading.Lock()


def _structured_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if h.get_name() == _HANDLER_NAME]


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach the structured handler to the farm_kernel logger.

    Idempotent: once a structured handler is attached, later calls do
    nothing. Handlers added by other code (test capture, for instance) are
    left alone.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if _structured_handlers(root):
            return
        h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        h.set_name(_HANDLER_NAME)
        h.setFormatter(StructuredFormatter())
        root.addHandler(h)
        root.setLevel(level)
        root.propagate = False


def reset_logging() -> None:
    """Detach the structured handler and restore defaults. FOR TESTING ONLY."""
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        for h in _structured_handlers(root):
            root.removeHandler(h)
        root.setLevel(logging.NOTSET)
        root.propagate = True
