"""
Structured logging for barscope.

This module provides structured logging with support for both console and file output,
JSON and pretty formatting, and contextual information tracking.

Example Usage:
    ```python
    from barscope.utils.logger import setup_logging, get_logger, add_context, LogConfig

    # Setup logging
    config = LogConfig(level="DEBUG", format="pretty", file_path="logs/barscope.log")
    setup_logging(config)

    # Get logger instance
    logger = get_logger(__name__)

    # Basic logging
    logger.info("levels_detected", support=3, resistance=3, factor=0.1)

    # Context-aware logging
    with add_context(symbol="BTCUSDT", interval=3600):
        logger.info("analysis_started")
        logger.info("phases_segmented", phases=4)
    ```
"""

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

# Handlers added to the root logger by the last setup_logging call
_installed_handlers: list[logging.Handler] = []


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format - "json" for production, "pretty" for development
        file_path: Optional path to log file. If None, only logs to console
        include_timestamp: Whether to include timestamps in logs
        include_caller_info: Whether to include caller file/line information
        console_output: Whether to output to console (default: True)
        max_string_length: Maximum length for string values before truncation
        max_summary_items: Longest list or array logged in full, longer ones are summarized
        environment: Environment name (dev, staging, prod)
        app_version: Application version string
    """

    level: str = "INFO"
    format: Literal["json", "pretty"] = "pretty"
    file_path: str | None = None
    include_timestamp: bool = True
    include_caller_info: bool = True
    console_output: bool = True
    max_string_length: int = 1000
    max_summary_items: int = 8
    environment: str = "dev"
    app_version: str = "0.1.0"


def add_app_info(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application-level information to log entries.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with app info
    """
    event_dict["app"] = "barscope"
    event_dict["environment"] = getattr(add_app_info, "environment", "unknown")
    event_dict["version"] = getattr(add_app_info, "version", "unknown")
    return event_dict


def summarize_arrays(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace sequence values longer than a few items by a short summary.

    Numpy arrays and scalars are converted to plain Python values first.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with long sequences summarized
    """
    max_items = getattr(summarize_arrays, "max_items", 8)

    for key, value in list(event_dict.items()):
        if hasattr(value, "tolist") and hasattr(value, "dtype"):
            value = value.tolist()
            event_dict[key] = value
        if isinstance(value, (list, tuple)) and len(value) > max_items:
            event_dict[key] = f"<{len(value)} items: {list(value[:3])}...{list(value[-1:])}>"
    return event_dict


def add_log_level_name(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add human-readable log level name.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with level name
    """
    if "level" in event_dict:
        event_dict["level_name"] = event_dict["level"]
    return event_dict


def truncate_strings(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Truncate long string values to prevent log bloat.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with truncated strings
    """
    max_length = getattr(truncate_strings, "max_length", 1000)

    def truncate_value(value: Any) -> Any:
        """Truncate a single value if it's a long string."""
        if isinstance(value, str) and len(value) > max_length:
            return f"{value[:max_length]}... [truncated]"
        if isinstance(value, dict):
            return {k: truncate_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(truncate_value(item) for item in value)
        return value

    return {key: truncate_value(value) for key, value in event_dict.items()}


def _base_processors(config: LogConfig) -> list[Processor]:
    """Processor chain shared by console and file output."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_log_level_name,
        add_app_info,
        summarize_arrays,
        truncate_strings,
    ]

    if config.include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if config.include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )

    processors.append(structlog.processors.StackInfoRenderer())
    processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(config: LogConfig) -> None:
    """Setup the logging system with the given configuration.

    Structlog events are handed to the standard library as event dictionaries
    and rendered per handler: the console uses the configured format, a log
    file is always JSON lines. Calling it again replaces the handlers installed
    by the previous call.

    Args:
        config: LogConfig instance with logging configuration

    Example:
        ```python
        config = LogConfig(level="INFO", format="json", file_path="logs/barscope.log")
        setup_logging(config)
        ```
    """
    # Store app info in processor functions
    add_app_info.environment = config.environment
    add_app_info.version = config.app_version
    truncate_strings.max_length = config.max_string_length
    summarize_arrays.max_items = config.max_summary_items

    structlog.configure(
        processors=_base_processors(config)
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    root_logger.setLevel(getattr(logging, config.level.upper()))

    if config.console_output:
        renderer: Processor = (
            structlog.processors.JSONRenderer()
            if config.format == "json"
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=renderer,
                foreign_pre_chain=_base_processors(config),
            )
        )
        _installed_handlers.append(console_handler)

    # Setup file handler if path provided
    if config.file_path:
        file_path = Path(config.file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # File output is always rendered as JSON
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=_base_processors(config),
            )
        )
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root_logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Lazy proxy resolving to the configured structlog stdlib BoundLogger
    """
    return structlog.get_logger(name)


@contextmanager
def add_context(**kwargs: Any):
    """Context manager to add contextual information to all log entries.

    Any key-value pairs provided will be automatically added to all log entries
    made within the context. The values live in context variables, so threads
    and tasks running concurrently keep separate contexts. Explicit event keys
    win over context keys of the same name.

    Args:
        **kwargs: Key-value pairs to add as context

    Yields:
        None

    Example:
        ```python
        with add_context(symbol="BTCUSDT", bars=500):
            logger.info("analysis_started")  # Will include symbol and bars

        logger.info("outside_context")  # Will not include symbol or bars
        ```
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


def set_log_level(level: str) -> None:
    """Change the logging level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.getLogger().setLevel(getattr(logging, level.upper()))


def clear_context() -> None:
    """Clear all contextual variables of the current context."""
    structlog.contextvars.clear_contextvars()
