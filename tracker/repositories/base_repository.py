"""Generic repository with the persistence operations every entity shares."""

from typing import Generic, TypeVar, Type, Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from tracker.core.exceptions import NotFound

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Common lookups and writes. Writes flush but never commit."""

    entity_name: str = "Entity"

    def __init__(self, model: Type[T], db: Session):
        """
        Args:
            model: SQLAlchemy model class
            db: Database session owned by the caller
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> Optional[T]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_or_raise(self, id: int) -> T:
        """
        Get an entity by ID.

        Raises:
            NotFound: when no row has that ID
        """
        obj = self.get_by_id(id)
        if obj is None:
            raise NotFound(self.entity_name, id)
        return obj

    def get_all(self, skip: int = 0, limit: int = 100) -> List[T]:
        return self.db.query(self.model).order_by(self.model.id).offset(skip).limit(limit).all()

    def create(self, obj: T) -> T:
        """Add, flush and refresh so server defaults and the ID are populated."""
        self.db.add(obj)
        self.db.flush()
        self.db.refresh(obj)
        return obj

    def update(self, obj: T) -> T:
        self.db.flush()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: T) -> None:
        self.db.delete(obj)
        self.db.flush()

    def count(self) -> int:
        return self.db.query(func.count(self.model.id)).scalar()

    def exists(self, **filters) -> bool:
        """
        Check whether a row matches all of the given column filters.

        Args:
            **filters: column name -> value

        Returns:
            True if at least one row matches
        """
        query = self.db.query(self.model)
        for key, value in filters.items():
            query = query.filter(getattr(self.model, key) == value)
        return query.first() is not None
