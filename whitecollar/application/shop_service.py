"""Application service for shops (the Shop Store seen by the rest of the app)."""

from typing import Final

from sqlmodel import Session

from ..domain.entities import Shop as DomainShop
from ..domain.exceptions import ShopNotFoundError
from ..infrastructure.database.repositories import ShopRepository
from ..logging_config import get_logger
from ..logging_utils import log_database_operation
from ..metrics import record_shop_created
from .validation import build_entity_with_logging

logger: Final = get_logger(__name__)


class ShopService:
    """Application service for Shop operations."""

    def __init__(self, session: Session):
        self.shop_repo = ShopRepository(session)

    def list_shops(self) -> list[DomainShop]:
        """Get all shops."""
        return self.shop_repo.find_all()

    def create_shop(self, name: str, capacity: int) -> DomainShop:
        """Create a new shop with business logic validation."""
        logger.debug("Creating shop", shop_name=name, capacity=capacity)
        domain_shop = build_entity_with_logging(
            DomainShop, "shop", id=None, name=name.strip(), capacity=capacity
        )
        shop = self.save_shop(domain_shop)

        record_shop_created()
        logger.info(
            "Shop created successfully",
            shop_id=shop.id,
            shop_name=shop.name,
            capacity=shop.capacity,
        )
        return shop

    def save_shop(self, shop: DomainShop) -> DomainShop:
        """Insert or update a shop; a new shop gets its id here."""
        saved = self.shop_repo.save(shop)
        log_database_operation(
            operation="create" if shop.id is None else "update",
            table="Shop",
            success=True,
            shop_id=saved.id,
        )
        return saved

    def find_shop_by_id(self, shop_id: int) -> DomainShop | None:
        """Find a shop, or None when there is no such shop."""
        return self.shop_repo.find_by_id(shop_id)

    def get_shop(self, shop_id: int) -> DomainShop:
        """Find a shop or fail.

        Raises:
            ShopNotFoundError: If there is no such shop
        """
        shop = self.shop_repo.find_by_id(shop_id)
        if shop is None:
            logger.warning("Shop lookup failed - not found", shop_id=shop_id)
            raise ShopNotFoundError(shop_id)
        return shop

    def current_occupancy(self, shop_id: int) -> int:
        """Number of pictures the shop holds right now."""
        return self.shop_repo.current_occupancy(shop_id)
