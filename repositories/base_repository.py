"""
Base repository class providing common database operations.
"""
from abc import ABC
from typing import TypeVar, Generic, Optional, Any, Type
from sqlalchemy.orm import Session
from database import Base

# Generic type for model classes
ModelType = TypeVar('ModelType', bound=Base)


class BaseRepository(Generic[ModelType], ABC):
    """Abstract base class for repository pattern implementation."""

    def __init__(self, model_class: Type[ModelType]):
        """
        Initialize repository with model class.

        Args:
            model_class: SQLAlchemy model class
        """
        self.model_class = model_class

    def get_by_id(self, session: Session, id: Any) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            session: Database session
            id: Entity ID

        Returns:
            Entity instance or None if not found
        """
        return session.get(self.model_class, id)

    def create(self, session: Session, **kwargs) -> ModelType:
        """
        Create new entity.

        Args:
            session: Database session
            **kwargs: Entity attributes

        Returns:
            Created entity instance
        """
        entity = self.model_class(**kwargs)
        session.add(entity)
        session.flush()  # Get the ID without committing
        return entity

    def count(self, session: Session, **filters) -> int:
        """
        Count entities with optional filters.

        Args:
            session: Database session
            **filters: Filter conditions

        Returns:
            Count of matching entities
        """
        query = session.query(self.model_class)

        for key, value in filters.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        return query.count()

    def find_one_by(self, session: Session, **filters) -> Optional[ModelType]:
        """
        Find single entity by filters.

        Args:
            session: Database session
            **filters: Filter conditions

        Returns:
            Entity instance or None if not found
        """
        query = session.query(self.model_class)

        for key, value in filters.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        return query.first()
