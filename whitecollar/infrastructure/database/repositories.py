"""Infrastructure layer - Repository implementations."""

from collections.abc import Iterator, Sequence
from itertools import batched

from sqlalchemy import Delete, delete, func
from sqlmodel import Session, col, select

from ...constants import DELETE_BATCH_SIZE
from ...domain.entities import Picture as DomainPicture
from ...domain.entities import Shop as DomainShop
from .models import Picture as PictureModel
from .models import Shop as ShopModel


def delete_pictures_statements(
    shop_id: int, picture_ids: Sequence[int], batch_size: int = DELETE_BATCH_SIZE
) -> Iterator[Delete]:
    """DELETE statements for pictures of one shop, ``batch_size`` ids each."""
    for batch in batched(picture_ids, batch_size):
        yield delete(PictureModel).where(
            col(PictureModel.shop_id) == shop_id, col(PictureModel.id).in_(batch)
        )


class ShopRepository:
    """Repository for Shop persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, domain_shop: DomainShop) -> DomainShop:
        """Insert a new shop or update an existing one."""
        shop_model = ShopModel.from_domain(domain_shop)

        if shop_model.id is not None:
            shop_model = self.session.merge(shop_model)
        else:
            self.session.add(shop_model)
        self.session.commit()
        self.session.refresh(shop_model)

        return shop_model.to_domain()

    def find_by_id(self, shop_id: int) -> DomainShop | None:
        """Find shop by ID."""
        shop_model = self.session.get(ShopModel, shop_id)
        return shop_model.to_domain() if shop_model else None

    def find_all(self) -> list[DomainShop]:
        """Get all shops ordered by ID."""
        shops = self.session.exec(select(ShopModel).order_by(col(ShopModel.id))).all()
        return [shop.to_domain() for shop in shops]

    def current_occupancy(self, shop_id: int) -> int:
        """Count the committed pictures of a shop."""
        statement = (
            select(func.count())
            .select_from(PictureModel)
            .where(PictureModel.shop_id == shop_id)
        )
        return int(self.session.exec(statement).one())


class PictureRepository:
    """Repository for Picture persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, domain_picture: DomainPicture) -> DomainPicture:
        """Insert an admitted picture.

        Raises:
            IntegrityError: If the (shop, id) key is already taken
        """
        picture_model = PictureModel.from_domain(domain_picture)

        self.session.add(picture_model)
        self.session.commit()
        self.session.refresh(picture_model)

        return picture_model.to_domain()

    def find_by_id(self, shop_id: int, picture_id: int) -> DomainPicture | None:
        """Find picture by its per-shop ID."""
        picture_model = self.session.get(PictureModel, (shop_id, picture_id))
        return picture_model.to_domain() if picture_model else None

    def find_by_shop(self, shop_id: int) -> list[DomainPicture]:
        """Get all pictures of a shop ordered by ID."""
        pictures = self.session.exec(
            select(PictureModel)
            .where(PictureModel.shop_id == shop_id)
            .order_by(col(PictureModel.id))
        ).all()
        return [picture.to_domain() for picture in pictures]

    def max_id_for_shop(self, shop_id: int) -> int | None:
        """Highest picture ID in use by a shop, or None when it has none."""
        statement = select(func.max(PictureModel.id)).where(
            PictureModel.shop_id == shop_id
        )
        return self.session.exec(statement).one()

    def delete_in_batch(self, shop_id: int, picture_ids: Sequence[int]) -> int:
        """Delete the given pictures of a shop in one transaction.

        Large id lists are split over several statements.
        """
        if not picture_ids:
            return 0

        removed = 0
        for statement in delete_pictures_statements(shop_id, picture_ids):
            result = self.session.execute(statement)
            removed += int(result.rowcount)  # type: ignore[attr-defined]
        self.session.commit()
        return removed

    def delete(self, shop_id: int, picture_id: int) -> bool:
        """Delete a single picture."""
        picture_model = self.session.get(PictureModel, (shop_id, picture_id))
        if picture_model:
            self.session.delete(picture_model)
            self.session.commit()
            return True
        return False
