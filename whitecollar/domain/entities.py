"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from decimal import Decimal

from .constants import (
    ANONYMOUS_AUTHOR,
    FIRST_PICTURE_ID,
    MAX_AUTHOR_LENGTH,
    MAX_CAPACITY,
    MAX_NAME_LENGTH,
)
from .exceptions import ValidationError


def validate_entity_name(name: str, entity_type: str = "entity") -> None:
    """Validate entity name according to domain business rules.

    Pure domain validation without logging or external dependencies.

    Args:
        name: The name to validate
        entity_type: Type of entity being validated (for error messages)

    Raises:
        ValidationError: If name is empty, too long, or contains problematic characters
    """
    if not name or not name.strip():
        raise ValidationError(f"{entity_type.title()} name cannot be empty", "name")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{entity_type.title()} name cannot be longer than {MAX_NAME_LENGTH} "
            + "characters",
            "name",
        )

    # Check for problematic control characters
    for char in name:
        if ord(char) < 32 or ord(char) == 127:
            raise ValidationError(
                f"{entity_type.title()} name cannot contain newlines, tabs, "
                + "or other control characters",
                "name",
            )


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Read a naive datetime as UTC and convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def next_picture_id(highest_id: int | None) -> int:
    """Next id of a shop's picture sequence: one past the highest id in use.

    Freed ids below the maximum are never reused, but deleting the
    highest-numbered picture lets the sequence step back to it.
    """
    if highest_id is None:
        return FIRST_PICTURE_ID
    return highest_id + 1


@dataclass
class Shop:
    """Core business entity representing a shop holding pictures."""

    id: int | None
    name: str
    capacity: int

    def __post_init__(self):
        """Validate shop data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate shop business rules."""
        validate_entity_name(self.name, "shop")

        if self.capacity < 0:
            raise ValidationError("Shop capacity cannot be negative", "capacity")
        if self.capacity > MAX_CAPACITY:
            raise ValidationError(
                f"Shop capacity cannot be larger than {MAX_CAPACITY}", "capacity"
            )

    def has_room(self, occupancy: int) -> bool:
        """Check whether one more picture fits next to ``occupancy`` others."""
        return self.capacity > occupancy


@dataclass
class Picture:
    """Core business entity representing a picture owned by a shop."""

    id: int | None
    shop_id: int | None
    name: str
    price: Decimal
    author: str = ""
    entry_date: datetime | None = None

    def __post_init__(self):
        """Validate picture data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate picture business rules."""
        validate_entity_name(self.name, "picture")

        if len(self.author) > MAX_AUTHOR_LENGTH:
            raise ValidationError(
                f"Picture author cannot be longer than {MAX_AUTHOR_LENGTH} characters",
                "author",
            )

        if self.price < 0:
            raise ValidationError("Picture price cannot be negative", "price")

    def admitted_to(
        self,
        shop_id: int,
        picture_id: int,
        now: datetime,
        anonymous_author: str = ANONYMOUS_AUTHOR,
    ) -> "Picture":
        """Return a copy placed in a shop, with unset fields defaulted.

        The entry date is kept in UTC; a naive one is taken to be UTC.
        """
        return replace(
            self,
            id=picture_id,
            shop_id=shop_id,
            author=self.author if self.author.strip() else anonymous_author,
            entry_date=as_utc(self.entry_date or now),
        )
