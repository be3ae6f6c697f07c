import logging
from pathlib import Path
from typing import Final

import structlog
from opentelemetry import trace
from rich.logging import RichHandler

from .config import settings

LOG_FORMAT: Final = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT: Final = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME: Final = "whitecollar.log"

# Library loggers and the level they are held at
QUIET_LOGGERS: Final = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "aiosqlite": logging.WARNING,
    # Requests are logged by our own middleware
    "uvicorn.access": logging.WARNING,
    "uvicorn": logging.INFO,
}


def _resolve_level(log_level: str | None) -> int:
    name = log_level or settings.log_level
    if name:
        return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)
    return logging.DEBUG if settings.debug else logging.INFO


def setup_logging(log_level: str | None = None) -> None:
    """Configure stdlib and structlog logging for the service.

    Args:
        log_level: Override the level from settings
    """
    level = _resolve_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = RichHandler(
        rich_tracebacks=True, show_path=settings.debug, show_time=False
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.is_production or settings.log_to_file:
        root_logger.addHandler(_file_handler(formatter))

    root_logger.setLevel(level)
    for name, library_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(library_level)

    _configure_structlog(level)

    get_logger(__name__).info(
        "Logging configured",
        level=logging.getLevelName(level),
        app=settings.app_name,
        version=settings.version,
    )


def _file_handler(formatter: logging.Formatter) -> logging.FileHandler:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def _add_trace_context(logger, method_name, event_dict):
    """Attach the current OpenTelemetry trace and span ids."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = f"0x{span_context.trace_id:032x}"
        event_dict["span_id"] = f"0x{span_context.span_id:016x}"
    return event_dict


def _configure_structlog(level: int) -> None:
    # structlog writes on its own so it does not go through the Rich handler
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if settings.is_development
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            _add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a structlog logger; ``name`` is usually ``__name__``."""
    return structlog.get_logger(name)
