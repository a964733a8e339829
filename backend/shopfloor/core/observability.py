"""
Observability Infrastructure

Structured logging with correlation tracking and Prometheus counters for
execution-state transitions and store operations.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog
from prometheus_client import Counter, Histogram

from .config import settings

# Context variables for correlation tracking
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Prometheus metrics
STATUS_TRANSITIONS = Counter(
    "shopfloor_status_transitions_total",
    "Status transitions applied to execution entities",
    ["entity", "from_status", "to_status"],
)

REJECTED_TRANSITIONS = Counter(
    "shopfloor_rejected_transitions_total",
    "Status transitions rejected by the transition tables",
    ["entity"],
)

STORE_OPERATIONS = Counter(
    "shopfloor_store_operations_total",
    "Entity store operations",
    ["operation", "table"],
)

REQUEST_COUNT = Counter(
    "shopfloor_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_DURATION = Histogram(
    "shopfloor_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "endpoint"],
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = get_correlation_id()
        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        return event_dict


def setup_structured_logging() -> None:
    """Configure structured logging with JSON output and correlation tracking."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if settings.LOG_SQL:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    """Get current correlation ID."""
    return correlation_id_var.get("")


def record_transition(entity: str, from_status: str, to_status: str) -> None:
    """Count an applied status transition."""
    if settings.ENABLE_METRICS:
        STATUS_TRANSITIONS.labels(
            entity=entity, from_status=from_status, to_status=to_status
        ).inc()


def record_rejected_transition(entity: str) -> None:
    """Count a transition refused by the edge table."""
    if settings.ENABLE_METRICS:
        REJECTED_TRANSITIONS.labels(entity=entity).inc()


def record_store_operation(operation: str, table: str) -> None:
    """Count a write or read issued against the entity store."""
    if settings.ENABLE_METRICS:
        STORE_OPERATIONS.labels(operation=operation, table=table).inc()
