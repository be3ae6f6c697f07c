"""Business metrics for the catalog."""

from opentelemetry import metrics

from .logging_config import get_logger

logger = get_logger(__name__)

# Get meter for creating instruments
meter = metrics.get_meter(__name__)

# HTTP Request Metrics
http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total number of HTTP requests",
)

http_request_errors = meter.create_counter(
    name="http_request_errors_total",
    description="Total number of HTTP request errors",
)

# Business Metrics
shops_created_total = meter.create_counter(
    name="shops_created_total",
    description="Total number of shops created",
)

pictures_admitted_total = meter.create_counter(
    name="pictures_admitted_total",
    description="Total number of pictures admitted to a shop",
)

admissions_rejected_total = meter.create_counter(
    name="admissions_rejected_total",
    description="Total number of picture admissions rejected",
)

admission_conflicts_total = meter.create_counter(
    name="admission_conflicts_total",
    description="Total number of picture id collisions retried",
)

pictures_removed_total = meter.create_counter(
    name="pictures_removed_total",
    description="Total number of pictures removed from shops",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

    http_request_duration.record(duration, labels)
    http_requests_total.add(1, labels)

    if status_code >= 400:
        http_request_errors.add(1, labels)


def record_shop_created():
    """Record when a shop is created."""
    shops_created_total.add(1)


def record_picture_admitted():
    """Record when a picture is admitted."""
    pictures_admitted_total.add(1)


def record_admission_rejected(reason: str):
    """Record when an admission is rejected."""
    admissions_rejected_total.add(1, {"reason": reason})


def record_admission_conflict():
    """Record when a picture id was taken by a concurrent writer."""
    admission_conflicts_total.add(1)


def record_pictures_removed(count: int, mode: str = "bulk"):
    """Record removed pictures."""
    pictures_removed_total.add(count, {"mode": mode})


logger.info("Business metrics instruments created")
