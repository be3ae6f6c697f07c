"""Tests for reading and removing pictures."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import insert
from sqlmodel import Session

from whitecollar.application.admission_service import PictureAdmissionService
from whitecollar.application.locks import ShopLockRegistry
from whitecollar.application.picture_service import PictureService
from whitecollar.application.shop_service import ShopService
from whitecollar.domain.exceptions import PictureNotFoundError, ShopNotFoundError
from whitecollar.infrastructure.database.models import Picture
from whitecollar.infrastructure.database.repositories import (
    delete_pictures_statements,
)


def _fill(session: Session, shop_id: int, make_picture, names: list[str]) -> None:
    admission = PictureAdmissionService(session, locks=ShopLockRegistry())
    for name in names:
        admission.admit_picture(shop_id, make_picture(name))


def test_bulk_removal_only_touches_one_shop(session: Session, make_picture):
    """Covers:
    - Removing all pictures of a shop empties exactly that shop
    - Pictures of other shops and the shop itself survive
    """
    shops = ShopService(session)
    emptied = shops.create_shop("Emptied", capacity=5)
    sibling = shops.create_shop("Sibling", capacity=5)
    _fill(session, emptied.id, make_picture, ["A", "B", "C"])
    _fill(session, sibling.id, make_picture, ["X", "Y"])

    pictures = PictureService(session)
    removed = pictures.remove_all_pictures(emptied.id)

    assert removed == 3
    assert pictures.list_pictures_by_shop(emptied) == []
    assert [p.name for p in pictures.list_pictures_by_shop(sibling)] == ["X", "Y"]
    assert shops.find_shop_by_id(emptied.id) is not None
    assert shops.current_occupancy(emptied.id) == 0


def test_bulk_removal_of_empty_shop(session: Session):
    shop = ShopService(session).create_shop("Empty", capacity=1)

    assert PictureService(session).remove_all_pictures(shop.id) == 0


def test_bulk_removal_unknown_shop(session: Session):
    with pytest.raises(ShopNotFoundError):
        PictureService(session).remove_all_pictures(999)


def test_list_pictures_ordered_by_id(session: Session, make_picture):
    shop = ShopService(session).create_shop("Ordered", capacity=3)
    _fill(session, shop.id, make_picture, ["C", "A", "B"])

    pictures = PictureService(session).list_pictures_by_shop(shop)

    assert [p.id for p in pictures] == [1, 2, 3]
    assert [p.name for p in pictures] == ["C", "A", "B"]
    assert all(p.shop_id == shop.id for p in pictures)


def test_get_picture(session: Session, make_picture):
    shop = ShopService(session).create_shop("Lookup", capacity=2)
    _fill(session, shop.id, make_picture, ["Only"])

    picture = PictureService(session).get_picture(shop.id, 1)

    assert picture.name == "Only"
    assert picture.shop_id == shop.id


def test_get_picture_not_found(session: Session):
    shop = ShopService(session).create_shop("Lookup", capacity=2)

    with pytest.raises(PictureNotFoundError) as exc_info:
        PictureService(session).get_picture(shop.id, 7)

    assert exc_info.value.picture_id == 7


def test_picture_ids_are_scoped_to_their_shop(session: Session, make_picture):
    """The same picture id in another shop is a different picture."""
    shops = ShopService(session)
    first = shops.create_shop("First", capacity=2)
    second = shops.create_shop("Second", capacity=2)
    _fill(session, first.id, make_picture, ["In first"])

    with pytest.raises(PictureNotFoundError):
        PictureService(session).get_picture(second.id, 1)


def test_remove_single_picture(session: Session, make_picture):
    shop = ShopService(session).create_shop("Single", capacity=3)
    _fill(session, shop.id, make_picture, ["A", "B"])
    pictures = PictureService(session)

    pictures.remove_picture(shop.id, 1)

    assert [p.id for p in pictures.list_pictures_by_shop(shop)] == [2]
    with pytest.raises(PictureNotFoundError):
        pictures.remove_picture(shop.id, 1)


def test_delete_statements_bind_bounded_id_lists():
    statements = list(delete_pictures_statements(1, range(1, 1201), batch_size=500))

    assert len(statements) == 3


def test_bulk_removal_of_a_large_shop(session: Session):
    """More pictures than SQLite binds in one statement are removed together."""
    shop = ShopService(session).create_shop("Warehouse", capacity=40_000)
    now = datetime.now(UTC)
    session.execute(
        insert(Picture),
        [
            {
                "shop_id": shop.id,
                "id": picture_id,
                "name": f"Print {picture_id}",
                "author": "Studio",
                "price": Decimal("1.00"),
                "entry_date": now,
            }
            for picture_id in range(1, 33_001)
        ],
    )
    session.commit()

    removed = PictureService(session).remove_all_pictures(shop.id)

    assert removed == 33_000
    assert ShopService(session).current_occupancy(shop.id) == 0
