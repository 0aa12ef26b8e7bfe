"""Structured logging setup for vcstream."""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog


if TYPE_CHECKING:
    from vcstream.config.logging import LoggingSettings


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | None = None,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog on top of the standard library logging module.

    Args:
        json_logs: Render events as JSON lines instead of the console format
        log_level_name: Root logging level name (DEBUG, INFO, ...)
        log_file: Optional path receiving a JSON copy of every event

    Returns:
        A logger bound to this module
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if json_logs:
        renderer: Any = structlog.processors.JSONRenderer()
        pre_render: list[Any] = [structlog.processors.format_exc_info]
    else:
        renderer = structlog.dev.ConsoleRenderer(
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False)
        )
        pre_render = []

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *pre_render,
                renderer,
            ],
        )
    )
    handlers: list[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared_processors,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # Transport internals are noisy at DEBUG
    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))

    return get_logger(__name__)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def setup_logging_from_settings(settings: "LoggingSettings") -> structlog.stdlib.BoundLogger:
    """Configure logging from the ``[logging]`` section of the settings."""
    return setup_logging(
        json_logs=settings.use_json(sys.stderr.isatty()),
        log_level_name=settings.level,
        log_file=settings.file,
    )
