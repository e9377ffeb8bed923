"""Logging configuration for the pledge consolidator."""

import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path

# Default log file name
DEFAULT_LOG_FILE = "pledge_consolidator.log"

# Household fields whose values never reach log output, compared lowercased
SENSITIVE_FIELDS = frozenset({"birthday", "birthdate", "primary's birthday", "zip", "zip code", "age"})

MASK = "***"


def mask_household_fields(
    context: Mapping[str, object],
    extra_fields: Iterable[str] = (),
) -> dict[str, object]:
    """Replace the values of sensitive household fields with a mask.

    Args:
        context: Field name to value, e.g. a data row keyed by header.
        extra_fields: Further field names to mask, such as configured
            birthday and zip headers.

    Returns:
        New dict with sensitive values masked.
    """
    sensitive = SENSITIVE_FIELDS | {f.strip().lower() for f in extra_fields}
    return {k: MASK if str(k).strip().lower() in sensitive else v for k, v in context.items()}


def format_context(context: Mapping[str, object], extra_fields: Iterable[str] = ()) -> str:
    """Render a context mapping as ``key=value`` pairs with household fields masked."""
    masked = mask_household_fields(context, extra_fields)
    return ", ".join(f"{k}={v}" for k, v in masked.items())


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file. If None, uses DEFAULT_LOG_FILE.
            An empty string disables file logging.
        console_output: Whether to also output to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("pledge_consolidator")
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    if log_file:
        file_handler = logging.FileHandler(Path(log_file), encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__).

    Returns:
        A logger nested under the ``pledge_consolidator`` namespace.
    """
    if name == "pledge_consolidator" or name.startswith("pledge_consolidator."):
        return logging.getLogger(name)
    return logging.getLogger(f"pledge_consolidator.{name}")


class LogContext:
    """Context manager that logs the start, end and failure of an operation."""

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        """Initialize log context.

        Args:
            logger: Logger instance to use.
            operation: Name of the operation being performed.
            **context: Additional context to include in log messages.
        """
        self.logger = logger
        self.operation = operation
        self.context = context

    def __enter__(self) -> "LogContext":
        self.logger.debug(f"Starting {self.operation}: {format_context(self.context)}")
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is not None:
            self.logger.error(
                f"Error in {self.operation}: {exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation}")
        return False
