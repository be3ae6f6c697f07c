from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from ...domain.constants import (
    MAX_AUTHOR_LENGTH,
    MAX_CAPACITY,
    MAX_NAME_LENGTH,
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
)
from ...domain.entities import Picture as DomainPicture
from ...domain.entities import as_utc
from ...domain.entities import Shop as DomainShop


class Shop(SQLModel, table=True):  # type: ignore[call-arg]
    """A shop with a fixed number of places for pictures."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, min_length=1, max_length=MAX_NAME_LENGTH)
    capacity: int = Field(ge=0, le=MAX_CAPACITY)

    pictures: list["Picture"] = Relationship(back_populates="shop")

    @classmethod
    def from_domain(cls, domain_shop: DomainShop) -> "Shop":
        """Convert domain entity to persistence model."""
        return cls(
            id=domain_shop.id,
            name=domain_shop.name,
            capacity=domain_shop.capacity,
        )

    def to_domain(self) -> DomainShop:
        """Convert persistence model to domain entity."""
        return DomainShop(id=self.id, name=self.name, capacity=self.capacity)


class Picture(SQLModel, table=True):  # type: ignore[call-arg]
    """A picture held by a shop. Numbered per shop, so the key is composite."""

    shop_id: int = Field(foreign_key="shop.id", primary_key=True)
    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    author: str = Field(max_length=MAX_AUTHOR_LENGTH)
    price: Decimal = Field(
        ge=0, max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES
    )
    # SQLite hands timezone-aware values back naive, see to_domain
    entry_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    shop: Shop | None = Relationship(back_populates="pictures")

    @classmethod
    def from_domain(cls, domain_picture: DomainPicture) -> "Picture":
        """Convert an admitted domain entity to persistence model."""
        if domain_picture.id is None or domain_picture.shop_id is None:
            raise ValueError("Only admitted pictures can be persisted")
        return cls(
            shop_id=domain_picture.shop_id,
            id=domain_picture.id,
            name=domain_picture.name,
            author=domain_picture.author,
            price=domain_picture.price,
            entry_date=domain_picture.entry_date,
        )

    def to_domain(self) -> DomainPicture:
        """Convert persistence model to domain entity."""
        return DomainPicture(
            id=self.id,
            shop_id=self.shop_id,
            name=self.name,
            author=self.author,
            price=self.price,
            entry_date=as_utc(self.entry_date),
        )
