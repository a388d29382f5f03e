import logging
import sys
from typing import Any, Dict

import structlog

from automation_engine.shared.config import settings


def _service_stamp(process: str):
    def stamp(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.APP_NAME)
        event_dict.setdefault("version", settings.APP_VERSION)
        event_dict.setdefault("process", process)
        return event_dict

    return stamp


def configure_logging(process: str = "api", level: str | None = None, fmt: str | None = None):
    """
    Configures structlog for one engine process ("api" or "scheduler").

    Every event carries the service name, version and process, plus whatever
    run/workflow ids were bound with bind_context. LOG_FORMAT=console swaps the
    JSON renderer for a human readable one during local development.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if (fmt or settings.LOG_FORMAT) == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _service_stamp(process),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    return structlog.get_logger(name)


def bind_context(context: Dict[str, Any]):
    """Binds run-scoped fields, e.g. {"run_id": ..., "workflow_id": ...}, to later log calls."""
    structlog.contextvars.bind_contextvars(**context)


def unbind_context(*keys: str):
    structlog.contextvars.unbind_contextvars(*keys)
