"""Shared validation utilities for application layer.

Domain entities validate themselves on construction; these helpers add the
logging the application layer wants around a rejected entity.
"""

from typing import Any, TypeVar

from ..domain.exceptions import ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)

EntityT = TypeVar("EntityT")


def build_entity_with_logging(
    entity_cls: type[EntityT], entity_type: str, **fields: Any
) -> EntityT:
    """Construct a domain entity, logging why it was rejected if it was.

    Args:
        entity_cls: Domain entity class to instantiate
        entity_type: Type of entity being built (for log messages)
        **fields: Constructor arguments

    Raises:
        ValidationError: If the entity violates a business rule
    """
    try:
        return entity_cls(**fields)
    except ValidationError as e:
        rejected_value = fields.get(e.field) if e.field else None
        logger.warning(
            f"{entity_type.title()} creation failed - {e}",
            entity_type=entity_type,
            field=e.field,
            attempted_value=repr(rejected_value)[:100],
        )
        raise
