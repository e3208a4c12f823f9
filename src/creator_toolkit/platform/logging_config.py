"""structlog setup for the API server and the CLI.

Every job log line is an event name plus key/value fields. Inside ``run_job``
the user, tool and batch are bound once through ``log_context`` and show up
on every record the poller and the relocator emit for that job::

    {"event": "job_status_changed", "job_id": "...", "status": "processing",
     "user_id": "...", "tool_id": "thumbnail-machine", "batch_id": "..."}

The renderer follows ``Settings.env``: console output for ``development``,
JSON lines otherwise. ``LOG_LEVEL`` (or the CLI ``--log-level`` option) sets
the root level. Per-request HTTP client and access logs are capped at WARNING.
"""

import logging
import os
from contextlib import AbstractContextManager

import structlog

from creator_toolkit.platform.config import get_settings

_NOISY_LOGGERS = ("uvicorn.access", "urllib3", "httpx", "httpcore", "hpack")


def configure_logging(level: str | None = None) -> None:
    """Route stdlib and structlog records through one formatter.

    ``api.py`` calls this at import; the CLI calls it from its callback.

    Args:
        level: Optional level name overriding ``LOG_LEVEL``.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if get_settings().env == "development":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def log_context(**fields) -> AbstractContextManager:
    """Bind ``fields`` to every record logged by the current task until exit.

    Tasks started inside the block inherit the fields, so the poller and the
    relocator log under the same user and batch as the job that started them.
    """
    return structlog.contextvars.bound_contextvars(**fields)
