"""
Centralized logging configuration for the proposal engine.

This module provides standardized logging configuration using structlog
for all components. Every dropped candidate, failed detector and skipped
timeframe is reported through loggers obtained here so that one request can
be followed end to end by its symbol and interval.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
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
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_generation_logger(name: str) -> FilteringBoundLogger:
    """Logger bound to the orchestration subsystem."""
    return get_logger(name).bind(subsystem="generation")


def get_detector_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for detectors and proposal generators.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structlog logger bound to the detection subsystem
    """
    return get_logger(name).bind(subsystem="detection")


def get_timeframe_logger(name: str) -> FilteringBoundLogger:
    """Logger bound to higher timeframe analysis."""
    return get_logger(name).bind(subsystem="timeframes")


def log_candidate_dropped(
    logger: FilteringBoundLogger,
    detector: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a candidate that was discarded because of degenerate input.

    Args:
        logger: Structlog logger instance
        detector: Name of the detector that produced the candidate
        reason: Why the candidate was dropped
        context: Additional context data
    """
    bound_logger = logger.bind(
        detector=detector,
        reason=reason,
        outcome="candidate_dropped"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.debug("Candidate dropped")


def log_detector_failure(
    logger: FilteringBoundLogger,
    detector: str,
    error: BaseException,
    symbol: str,
    interval: str
) -> None:
    """
    Log a detector that raised; its candidates are omitted from the result.

    Args:
        logger: Structlog logger instance
        detector: Name of the failing detector
        error: The exception it raised
        symbol: Symbol under analysis
        interval: Interval under analysis
    """
    logger.error(
        "Detector failed, omitting its proposals",
        detector=detector,
        symbol=symbol,
        interval=interval,
        error=str(error),
        error_type=type(error).__name__,
    )
