"""Capacity-bounded admission of pictures into shops.

A picture enters a shop only while the shop holds fewer pictures than its
capacity. The admitted picture is numbered ``1 + highest id in the shop``,
so every shop has its own sequence starting at 1.

Reading the occupancy, picking the id and inserting happen under a per-shop
lock. Writers outside this process are caught by the composite (shop, id)
primary key: a collision rolls back and the whole check runs again.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Final

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import FlushError
from sqlmodel import Session, select

from ..config import settings
from ..domain.constants import INSUFFICIENT_CAPACITY_CODE
from ..domain.entities import Picture as DomainPicture
from ..domain.entities import next_picture_id, utc_now
from ..domain.exceptions import (
    AdmissionConflictError,
    InsufficientCapacityError,
    ShopNotFoundError,
)
from ..infrastructure.database.models import Picture, Shop
from ..infrastructure.database.repositories import PictureRepository, ShopRepository
from ..logging_config import get_logger
from ..logging_utils import log_admission_decision, log_database_operation
from ..metrics import (
    record_admission_conflict,
    record_admission_rejected,
    record_picture_admitted,
)
from .locks import (
    AsyncShopLockRegistry,
    ShopLockRegistry,
    async_shop_locks,
    shop_locks,
)
from .picture_service import count_pictures_async

logger: Final = get_logger(__name__)


def _reject(shop_id: int, capacity: int, occupancy: int) -> InsufficientCapacityError:
    log_admission_decision(shop_id, capacity, occupancy, admitted=False)
    record_admission_rejected(INSUFFICIENT_CAPACITY_CODE)
    return InsufficientCapacityError(shop_id, capacity, occupancy)


def _record_admission(
    shop_id: int, admitted: DomainPicture, capacity: int, occupancy: int, attempt: int
) -> None:
    log_admission_decision(
        shop_id,
        capacity,
        occupancy,
        admitted=True,
        picture_id=admitted.id,
        attempt=attempt,
    )
    log_database_operation(
        operation="create",
        table="Picture",
        success=True,
        shop_id=shop_id,
        picture_id=admitted.id,
    )
    record_picture_admitted()


class PictureAdmissionService:
    """Admits pictures into shops without exceeding their capacity."""

    def __init__(
        self,
        session: Session,
        locks: ShopLockRegistry = shop_locks,
        max_attempts: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session = session
        self.shop_repo = ShopRepository(session)
        self.picture_repo = PictureRepository(session)
        self.locks = locks
        self.max_attempts = max_attempts or settings.admission_max_attempts
        self.clock = clock

    def admit_picture(self, shop_id: int, candidate: DomainPicture) -> DomainPicture:
        """Admit a picture into a shop if the shop has room.

        Args:
            shop_id: Shop receiving the picture
            candidate: Picture as submitted; its id and shop are overwritten

        Returns:
            The persisted picture with its per-shop id

        Raises:
            ShopNotFoundError: If there is no such shop
            InsufficientCapacityError: If the shop is full; nothing is written
            AdmissionConflictError: If every attempt lost its id to another writer
        """
        logger.debug(
            "Admitting picture", shop_id=shop_id, picture_name=candidate.name
        )

        with self.locks.hold(shop_id):
            for attempt in range(1, self.max_attempts + 1):
                shop = self.shop_repo.find_by_id(shop_id)
                if shop is None:
                    logger.warning(
                        "Admission failed - shop not found", shop_id=shop_id
                    )
                    raise ShopNotFoundError(shop_id)

                occupancy = self.shop_repo.current_occupancy(shop_id)
                if not shop.has_room(occupancy):
                    raise _reject(shop_id, shop.capacity, occupancy)

                highest_id = self.picture_repo.max_id_for_shop(shop_id)
                picture_id = next_picture_id(highest_id)
                admitted = candidate.admitted_to(
                    shop_id, picture_id, self.clock(), settings.anonymous_author
                )

                try:
                    saved = self.picture_repo.save(admitted)
                except (IntegrityError, FlushError):
                    self.session.rollback()
                    record_admission_conflict()
                    logger.warning(
                        "Picture id taken by a concurrent writer, retrying",
                        shop_id=shop_id,
                        picture_id=picture_id,
                        attempt=attempt,
                    )
                    continue

                _record_admission(shop_id, saved, shop.capacity, occupancy, attempt)
                return saved

        raise AdmissionConflictError(shop_id, self.max_attempts)


# Async version for concurrent database operations


async def admit_picture_async(
    session: AsyncSession,
    shop_id: int,
    candidate: DomainPicture,
    locks: AsyncShopLockRegistry = async_shop_locks,
    max_attempts: int | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> DomainPicture:
    """Admit a picture using async database operations.

    Same rules and failures as ``PictureAdmissionService.admit_picture``.
    """
    logger.debug(
        "Admitting picture async", shop_id=shop_id, picture_name=candidate.name
    )
    attempts = max_attempts or settings.admission_max_attempts

    async with locks.hold(shop_id):
        for attempt in range(1, attempts + 1):
            shop = await session.get(Shop, shop_id)
            if shop is None:
                logger.warning("Admission failed - shop not found", shop_id=shop_id)
                raise ShopNotFoundError(shop_id)
            domain_shop = shop.to_domain()

            occupancy = await count_pictures_async(session, shop_id)
            if not domain_shop.has_room(occupancy):
                raise _reject(shop_id, domain_shop.capacity, occupancy)

            result = await session.execute(
                select(func.max(Picture.id)).where(Picture.shop_id == shop_id)
            )
            picture_id = next_picture_id(result.scalar_one())
            admitted = candidate.admitted_to(
                shop_id, picture_id, clock(), settings.anonymous_author
            )

            picture = Picture.from_domain(admitted)
            session.add(picture)
            try:
                await session.commit()
            except (IntegrityError, FlushError):
                await session.rollback()
                record_admission_conflict()
                logger.warning(
                    "Picture id taken by a concurrent writer, retrying",
                    shop_id=shop_id,
                    picture_id=picture_id,
                    attempt=attempt,
                )
                continue

            await session.refresh(picture)
            saved = picture.to_domain()
            _record_admission(shop_id, saved, domain_shop.capacity, occupancy, attempt)
            return saved

    raise AdmissionConflictError(shop_id, attempts)
