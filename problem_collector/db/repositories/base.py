"""Generic base repository for SQLAlchemy models."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Generic base repository providing standard CRUD operations.

    Repositories never commit; the caller owns transaction boundaries.
    """

    model: type[T]

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, id_: Any) -> T | None:
        """Get entity by primary key."""
        return self.db.get(self.model, id_)

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        return self.db.scalar(stmt) or 0

    def add(self, obj: T) -> T:
        self.db.add(obj)
        return obj

    def delete(self, obj: T) -> None:
        self.db.delete(obj)

    def partial_update(self, obj: T, skip_none: bool = True, **fields: Any) -> T:
        """Update entity fields."""
        for key, value in fields.items():
            if skip_none and value is None:
                continue
            setattr(obj, key, value)
        self.db.add(obj)
        return obj
