"""Helpers that emit the service's recurring log records.

These go through stdlib logging with the context in ``extra`` so the Rich
console handler and the log file see the same fields.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Final

from fastapi import Request

api_logger: Final = logging.getLogger("whitecollar.api")
database_logger: Final = logging.getLogger("whitecollar.database")
admission_logger: Final = logging.getLogger("whitecollar.admission")
system_logger: Final = logging.getLogger("whitecollar.system")

MAX_USER_AGENT_LENGTH: Final = 100


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def log_api_request(
    request: Request, response_status: int, process_time_ms: float | None = None
) -> None:
    """Log one handled request; 4xx as warnings and 5xx as errors."""
    extra: dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response_status,
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent", "")[:MAX_USER_AGENT_LENGTH],
    }
    message = f"{request.method} {request.url.path} - {response_status}"
    if process_time_ms is not None:
        extra["process_time_ms"] = round(process_time_ms, 2)
        message = f"{message} ({process_time_ms:.1f}ms)"

    api_logger.log(_level_for_status(response_status), message, extra=extra)


def log_database_operation(
    operation: str, table: str, success: bool = True, **context: Any
) -> None:
    """Log a write against a table.

    Args:
        operation: What was done, e.g. ``insert`` or ``batch_delete``
        table: Table written to
        success: Whether the write went through
        **context: Ids and counts worth keeping with the record
    """
    outcome = "succeeded" if success else "failed"
    database_logger.log(
        logging.INFO if success else logging.ERROR,
        f"Database {operation} on {table} {outcome}",
        extra={"operation": operation, "table": table, "success": success, **context},
    )


def log_admission_decision(
    shop_id: int, capacity: int, occupancy: int, admitted: bool, **context: Any
) -> None:
    """Log the outcome of a capacity check.

    ``occupancy`` is the number of pictures the shop held when the decision
    was made.
    """
    extra = {
        "shop_id": shop_id,
        "capacity": capacity,
        "occupancy": occupancy,
        "admitted": admitted,
        **context,
    }
    if admitted:
        admission_logger.info(f"Picture admitted to shop {shop_id}", extra=extra)
    else:
        admission_logger.warning(
            f"Picture rejected by shop {shop_id} ({occupancy}/{capacity})",
            extra=extra,
        )


def log_system_info(hostname: str, ip_address: str, debug_mode: bool) -> None:
    system_logger.info(
        "Application startup",
        extra={
            "hostname": hostname,
            "ip_address": ip_address,
            "debug_mode": debug_mode,
            "started_at": datetime.now(UTC).isoformat(),
        },
    )
