"""
Structured logging for the POS core.

Services log with keyword context instead of formatted strings:

    logger.info("Movement recorded", business_id=1, ingredient_id=3, stock=Decimal("4.500"))

The context lands on ``record.extra_data``. In production it is emitted as
JSON; in development as a single readable line with the tenant up front.
Log records carry the request correlation ID when one is bound
(see shared.infrastructure.correlation).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    if request_id and request_id != "-":
        return request_id
    return None


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return dict(getattr(record, "extra_data", None) or {})


class StructuredFormatter(logging.Formatter):
    """JSON lines for log aggregation. Decimals serialize through str()."""

    def format(self, record: logging.LogRecord) -> str:
        context = _context(record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if "business_id" in context:
            payload["business_id"] = context.pop("business_id")
        request_id = _request_id(record)
        if request_id:
            payload["request_id"] = request_id
        if context:
            payload["data"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(payload, default=str)


class DevelopmentFormatter(logging.Formatter):
    """One line per record: time, level, tenant, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        context = _context(record)
        parts = [
            datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
            f"{record.levelname:8}",
        ]
        request_id = _request_id(record)
        if request_id:
            parts.append(f"[{request_id[:8]}]")
        if "business_id" in context:
            parts.append(f"biz={context.pop('business_id')}")
        parts.append(f"{record.name}: {record.getMessage()}")

        line = " ".join(parts)
        if context:
            line += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """Logger whose debug/info/warning/error accept keyword context."""

    _RESERVED = ("exc_info", "stack_info", "stacklevel", "extra")

    def _log(self, level, msg, args, **kwargs):  # type: ignore[override]
        passthrough = {k: kwargs.pop(k) for k in self._RESERVED if k in kwargs}
        extra = dict(passthrough.pop("extra", None) or {})
        extra["extra_data"] = kwargs or None
        passthrough.setdefault("stacklevel", 1)
        passthrough["stacklevel"] += 1
        super()._log(level, msg, args, extra=extra, **passthrough)


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Configure the root handler. Call once at application startup.
    """
    # Import here to avoid circular imports
    from shared.infrastructure.correlation import CorrelationIdFilter

    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger; ``get_logger(__name__)`` in most modules."""
    return logging.getLogger(name)  # type: ignore


# Domain loggers
pos_core_logger = get_logger("pos_core")
inventory_logger = get_logger("pos_core.inventory")
costing_logger = get_logger("pos_core.costing")
orders_logger = get_logger("pos_core.orders")
offers_logger = get_logger("pos_core.offers")
