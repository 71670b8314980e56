"""Base repository with common row lookups."""

from typing import TypeVar, Generic, List, Optional, Type

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models.base import Base

T = TypeVar('T', bound=Base)


class BaseRepository(Generic[T]):
    """Base repository bound to a session owned by the caller.

    Repositories never commit. Transaction boundaries belong to
    ``Database.transaction()``.
    """

    model_class: Type[T]

    def __init__(self, session: Session):
        self.session = session

    def _get_row(self, id: int) -> Optional[T]:
        """Get row by primary key."""
        return self.session.get(self.model_class, id)

    def _get_all_rows(self) -> List[T]:
        """Get all rows in primary key order."""
        query = select(self.model_class).order_by(self.model_class.id)
        return list(self.session.execute(query).scalars().all())

    def count(self) -> int:
        """Count rows."""
        query = select(func.count()).select_from(self.model_class)
        return self.session.execute(query).scalar_one()
