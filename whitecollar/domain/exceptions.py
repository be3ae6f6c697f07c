"""Domain-specific exceptions."""

from .constants import (
    INSUFFICIENT_CAPACITY_CODE,
    INSUFFICIENT_CAPACITY_DETAIL,
    INSUFFICIENT_CAPACITY_TITLE,
)


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ShopNotFoundError(DomainError):
    """Raised when a shop lookup misses."""

    def __init__(self, shop_id: int):
        super().__init__(f"Could not find shop {shop_id}")
        self.shop_id = shop_id


class PictureNotFoundError(DomainError):
    """Raised when a picture lookup misses within an existing shop."""

    def __init__(self, shop_id: int, picture_id: int):
        super().__init__(f"Could not find picture {picture_id} in shop {shop_id}")
        self.shop_id = shop_id
        self.picture_id = picture_id


class InsufficientCapacityError(DomainError):
    """Raised when a shop is full and a picture admission is rejected."""

    code = INSUFFICIENT_CAPACITY_CODE
    title = INSUFFICIENT_CAPACITY_TITLE
    detail = INSUFFICIENT_CAPACITY_DETAIL

    def __init__(self, shop_id: int, capacity: int, occupancy: int):
        super().__init__(self.detail)
        self.shop_id = shop_id
        self.capacity = capacity
        self.occupancy = occupancy


class AdmissionConflictError(DomainError):
    """Raised when concurrent writers kept taking the next picture id."""

    def __init__(self, shop_id: int, attempts: int):
        super().__init__(
            f"Could not assign a picture id in shop {shop_id} "
            + f"after {attempts} attempts"
        )
        self.shop_id = shop_id
        self.attempts = attempts
