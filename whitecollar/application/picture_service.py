from typing import Final

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import Session, col, select

from ..domain.entities import Picture as DomainPicture
from ..domain.entities import Shop as DomainShop
from ..domain.exceptions import PictureNotFoundError, ShopNotFoundError
from ..infrastructure.database.models import Picture, Shop
from ..infrastructure.database.repositories import (
    PictureRepository,
    ShopRepository,
    delete_pictures_statements,
)
from ..logging_config import get_logger
from ..logging_utils import log_database_operation
from ..metrics import record_pictures_removed

logger: Final = get_logger(__name__)


class PictureService:
    """Application service for reading and removing pictures."""

    def __init__(self, session: Session):
        self.shop_repo = ShopRepository(session)
        self.picture_repo = PictureRepository(session)

    def _require_shop(self, shop_id: int) -> DomainShop:
        shop = self.shop_repo.find_by_id(shop_id)
        if shop is None:
            logger.warning("Shop lookup failed - not found", shop_id=shop_id)
            raise ShopNotFoundError(shop_id)
        return shop

    def list_pictures_by_shop(self, shop: DomainShop) -> list[DomainPicture]:
        """Get all pictures owned by a shop; empty when it holds none."""
        if shop.id is None:
            return []
        return self.picture_repo.find_by_shop(shop.id)

    def get_picture(self, shop_id: int, picture_id: int) -> DomainPicture:
        """Get one picture of a shop.

        Raises:
            ShopNotFoundError: If there is no such shop
            PictureNotFoundError: If the shop holds no picture with that id
        """
        self._require_shop(shop_id)
        picture = self.picture_repo.find_by_id(shop_id, picture_id)
        if picture is None:
            raise PictureNotFoundError(shop_id, picture_id)
        return picture

    def remove_all_pictures(self, shop_id: int) -> int:
        """Remove every picture of a shop in one batch.

        Pictures of other shops and the shop itself are left alone.

        Returns:
            Number of pictures removed

        Raises:
            ShopNotFoundError: If there is no such shop
        """
        logger.debug("Removing all pictures", shop_id=shop_id)
        self._require_shop(shop_id)

        pictures = self.picture_repo.find_by_shop(shop_id)
        picture_ids = [p.id for p in pictures if p.id is not None]
        removed = self.picture_repo.delete_in_batch(shop_id, picture_ids)

        log_database_operation(
            operation="batch_delete",
            table="Picture",
            success=True,
            shop_id=shop_id,
            removed=removed,
        )
        record_pictures_removed(removed)
        logger.info("Pictures removed", shop_id=shop_id, removed=removed)
        return removed

    def remove_picture(self, shop_id: int, picture_id: int) -> None:
        """Remove a single picture.

        Raises:
            ShopNotFoundError: If there is no such shop
            PictureNotFoundError: If the shop holds no picture with that id
        """
        self._require_shop(shop_id)
        if not self.picture_repo.delete(shop_id, picture_id):
            logger.warning(
                "Picture deletion failed - not found",
                shop_id=shop_id,
                picture_id=picture_id,
            )
            raise PictureNotFoundError(shop_id, picture_id)

        log_database_operation(
            operation="delete",
            table="Picture",
            success=True,
            shop_id=shop_id,
            picture_id=picture_id,
        )
        record_pictures_removed(1, mode="single")


# Async versions for concurrent database operations


async def _require_shop_async(session: AsyncSession, shop_id: int) -> Shop:
    shop = await session.get(Shop, shop_id)
    if shop is None:
        logger.warning("Shop lookup failed - not found", shop_id=shop_id)
        raise ShopNotFoundError(shop_id)
    return shop


async def list_pictures_by_shop_async(
    session: AsyncSession, shop_id: int
) -> list[DomainPicture]:
    """Get all pictures of a shop using async database operations."""
    await _require_shop_async(session, shop_id)
    statement: Final = (
        select(Picture).where(Picture.shop_id == shop_id).order_by(col(Picture.id))
    )
    result = await session.execute(statement)
    return [picture.to_domain() for picture in result.scalars().all()]


async def remove_all_pictures_async(session: AsyncSession, shop_id: int) -> int:
    """Remove every picture of a shop in one batch using async operations."""
    logger.debug("Removing all pictures async", shop_id=shop_id)
    await _require_shop_async(session, shop_id)

    result = await session.execute(
        select(Picture.id).where(Picture.shop_id == shop_id)
    )
    picture_ids = list(result.scalars().all())
    removed = 0
    for statement in delete_pictures_statements(shop_id, picture_ids):
        deleted = await session.execute(statement)
        removed += int(deleted.rowcount)  # type: ignore[attr-defined]
    if picture_ids:
        await session.commit()

    log_database_operation(
        operation="batch_delete",
        table="Picture",
        success=True,
        shop_id=shop_id,
        removed=removed,
    )
    record_pictures_removed(removed)
    logger.info("Pictures removed async", shop_id=shop_id, removed=removed)
    return removed


async def count_pictures_async(session: AsyncSession, shop_id: int) -> int:
    """Number of pictures a shop holds, using async database operations."""
    result = await session.execute(
        select(func.count()).select_from(Picture).where(Picture.shop_id == shop_id)
    )
    return int(result.scalar_one())
