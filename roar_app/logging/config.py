"""
Centralized logging configuration for the deployment plan engine.

This module provides standardized logging configuration using structlog
for all components. Resolution and execution code log key-value events
through loggers obtained here so a run can be rendered for a console or
collected as JSON.

Loggers are lazy: module-level loggers created at import time pick up the
configuration installed later by ``configure_logging``.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, FilteringBoundLogger, WrappedLogger

# Logger name prefix to the subsystem recorded on its events
SUBSYSTEMS = {
    "roar_app.plan": "resolution",
    "roar_app.actions": "resolution",
    "roar_app.execution": "execution",
}


def add_subsystem(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Record the subsystem of the emitting module unless a logger bound one."""
    name = event_dict.get("logger") or ""
    for prefix, subsystem in SUBSYSTEMS.items():
        if name == prefix or name.startswith(prefix + "."):
            event_dict.setdefault("subsystem", subsystem)
            break
    return event_dict


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog and the stdlib root logger for a plan run.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Render JSON lines instead of console output
        include_timestamp: Add an ISO timestamp to every event
        include_caller: Add the emitting file and line number
        extra_processors: Processors run after the standard chain, before rendering
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(stream=sys.stdout, format="%(message)s")
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(log_level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        add_subsystem,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> FilteringBoundLogger:
    """
    Get a lazy structlog logger.

    Args:
        name: Logger name (typically __name__)
        **initial_values: Context bound to every event of the logger

    Returns:
        Logger proxy that binds to the configuration current at first use
    """
    return structlog.get_logger(name, **initial_values)


def get_resolution_logger(name: str) -> FilteringBoundLogger:
    """Get a logger for plan evaluation and action resolution."""
    return get_logger(name, subsystem="resolution")


def get_execution_logger(name: str, chain: Optional[str] = None) -> FilteringBoundLogger:
    """
    Get a logger for transaction execution.

    Args:
        name: Logger name (typically __name__)
        chain: Chain key bound to every event, when the logger serves one worker
    """
    if chain is None:
        return get_logger(name, subsystem="execution")
    return get_logger(name, subsystem="execution", chain=chain)


def log_action_outcome(
    logger: FilteringBoundLogger,
    index: int,
    total: int,
    nonce: int,
    outcome: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of a single action attempt with standardized format.

    Args:
        logger: Structlog logger instance (normally chain-bound)
        index: Position of the action in the chain's action list
        total: Number of actions on the chain
        nonce: Nonce the action was built for
        outcome: Attempt outcome value (sent, skipped, retreated, retrying)
        context: Additional context data
    """
    bound_logger = logger.bind(
        action_index=index,
        action_total=total,
        nonce=nonce,
        outcome=outcome,
    )

    if context:
        bound_logger = bound_logger.bind(**context)

    if outcome == "sent":
        bound_logger.info("Action finished")
    elif outcome == "retrying":
        bound_logger.info("Action will be retried")
    else:
        bound_logger.warning("Action not sent")
