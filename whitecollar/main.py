import socket
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any, Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import (
    get_async_engine,
    get_main_engine,
    init_async_db,
    init_db,
)
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router
from .presentation.error_handlers import (
    handle_database_error,
    handle_domain_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from .telemetry import setup_telemetry

DESCRIPTION: Final = """
Catalog of shops and the pictures they hold.

A shop admits a picture only while it holds fewer pictures than its capacity.
A full shop answers `400` with the code `insufficient_capacity`.

Pictures are numbered per shop: the first picture of a shop gets id `1` and
every new one gets one past the highest id in use.

Resources carry HAL `_links`, collections are returned under `_embedded` and
errors use RFC 7807 Problem Details (`application/problem+json`).
""".strip()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    logger = get_logger(__name__)

    try:
        await init_async_db(get_async_engine())
        logger.info("Database schema ready", engine="async")
    except Exception as e:
        # The async driver may be missing; the sync engine can still do it
        logger.warning("Async schema creation failed", error=str(e))
        init_db(get_main_engine())
        logger.info("Database schema ready", engine="sync")

    hostname = socket.gethostname()
    log_system_info(hostname, socket.gethostbyname(hostname), settings.debug)

    yield

    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
    description=DESCRIPTION,
    openapi_tags=[
        {"name": "shops", "description": "Shops and the pictures they hold"},
        {"name": "system", "description": "Service status"},
    ],
)

setup_telemetry(app)

app.middleware("http")(log_requests_middleware)


def _problem_handler(
    message: str,
    handler: Callable[[Any, Request], JSONResponse],
    *,
    error: bool = False,
):
    """Wrap a problem-details handler so every failure is logged first."""

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        logger = get_logger(__name__)
        context = {
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "path": request.url.path,
            "method": request.method,
        }
        if error:
            logger.error(message, exc_info=True, **context)
        else:
            logger.warning(message, **context)
        return handler(exc, request)

    return _handle


app.add_exception_handler(
    DomainError, _problem_handler("Domain error occurred", handle_domain_error)
)
app.add_exception_handler(
    RequestValidationError,
    _problem_handler(
        "Request validation error occurred", handle_request_validation_error
    ),
)
app.add_exception_handler(
    SQLAlchemyError,
    _problem_handler("Database error occurred", handle_database_error, error=True),
)
app.add_exception_handler(
    Exception,
    _problem_handler("Unexpected error occurred", handle_unexpected_error, error=True),
)

app.include_router(api_router)
