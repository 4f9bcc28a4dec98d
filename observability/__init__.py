"""
Discern - Observability Package

Structured logging and tracing for the discernment service.

Usage:
    from observability import setup_observability, get_logger, create_span

    setup_observability(service_name="discern-api")
    logger = get_logger(__name__)
"""
from typing import Optional

from observability.logging import (
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from observability.tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)


def setup_observability(
    service_name: str = "discern",
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    sample_rate: Optional[float] = None,
) -> None:
    """Initialize logging and tracing in one call at application startup."""
    logging_config = LoggingConfig(service_name=service_name)
    if log_level is not None:
        logging_config.level = log_level.upper()
    if json_logs is not None:
        logging_config.json_format = json_logs
    setup_logging(logging_config)

    tracing_config = TracingConfig(service_name=service_name)
    if sample_rate is not None:
        tracing_config.sample_rate = sample_rate
    setup_tracing(tracing_config)


def shutdown_observability() -> None:
    shutdown_tracing()
    shutdown_logging()


__all__ = [
    "LogContext",
    "LoggingConfig",
    "TracingConfig",
    "bind_context",
    "clear_context",
    "create_span",
    "get_logger",
    "get_tracer",
    "setup_logging",
    "setup_observability",
    "setup_tracing",
    "shutdown_observability",
]
