import time
from collections.abc import Awaitable, Callable
from typing import Final

from fastapi import Request, Response

from .logging_utils import log_api_request
from .metrics import record_http_request

PROCESS_TIME_HEADER: Final = "X-Process-Time"


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log, time and count every HTTP request.

    The elapsed time is also returned to the client in milliseconds.
    """
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    response.headers[PROCESS_TIME_HEADER] = f"{elapsed * 1000:.1f}"
    log_api_request(request, response.status_code, process_time_ms=elapsed * 1000)
    record_http_request(
        method=request.method,
        endpoint=request.url.path,
        status_code=response.status_code,
        duration=elapsed,
    )
    return response
