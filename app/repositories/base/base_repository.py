"""
Base repository with standardized lookups, pagination and error handling.

Repositories never commit: the calling service owns the unit of work and
decides when changes become durable.
"""

from typing import Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.models.base import BaseModel
from app.core.exceptions import DatabaseError, ResourceNotFoundError

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common operations for a single model.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    @property
    def resource_name(self) -> str:
        return self.model.__name__

    # ==================== Read Operations ====================

    def find_by_id(self, id: str, for_update: bool = False) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID
            for_update: Lock the row until the current transaction ends

        Returns:
            Entity or None
        """
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if for_update:
                query = query.with_for_update().populate_existing()
            return query.first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Find {self.resource_name} failed: {str(e)}") from e

    def get_by_id(self, id: str, for_update: bool = False) -> ModelType:
        """
        Get entity by ID or raise ResourceNotFoundError.
        """
        entity = self.find_by_id(id, for_update=for_update)
        if entity is None:
            raise ResourceNotFoundError(self.resource_name, id)
        return entity

    # ==================== Pagination ====================

    def paginate(self, query: Query, page: int, page_size: int) -> Tuple[List[ModelType], int]:
        """
        Apply offset/limit to a query.

        Returns:
            Tuple of (items for the page, total matching rows)
        """
        try:
            total = query.order_by(None).count()
            items = query.offset((page - 1) * page_size).limit(page_size).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"List {self.resource_name} failed: {str(e)}") from e
        return items, total
