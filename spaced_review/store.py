"""
Item Store: the repository the engine reads and writes through.

The engine only sees ``ItemStore``; ``SqlAlchemyItemStore`` is the default
implementation over the crud functions. Every method opens its own session,
so callers never share ORM state and results come back as detached
pydantic records.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from spaced_review import crud
from spaced_review.errors import ConcurrentUpdateError, NotFoundError, StoreError
from spaced_review.schemas import ReviewItemSchema, ReviewRecordSchema

logger = structlog.get_logger(__name__)


class ItemStore(ABC):
    """Persistence contract for review items and their review records"""

    @abstractmethod
    def insert_item(self, fields: dict) -> ReviewItemSchema:
        ...

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[ReviewItemSchema]:
        ...

    @abstractmethod
    def update_item(
        self, item_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> ReviewItemSchema:
        ...

    @abstractmethod
    def commit_review(
        self,
        item_id: int,
        expected_version: int,
        item_fields: dict,
        record_fields: dict,
    ) -> Tuple[ReviewItemSchema, ReviewRecordSchema]:
        """Append the record and advance the item in one transaction"""

    @abstractmethod
    def list_items(
        self,
        user_id: str,
        subject_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
    ) -> List[ReviewItemSchema]:
        ...

    @abstractmethod
    def list_due(
        self, user_id: str, due_before: datetime, subject_id: Optional[str] = None
    ) -> List[ReviewItemSchema]:
        ...

    @abstractmethod
    def list_scheduled(self, user_id: str, start: datetime, end: datetime) -> List[ReviewItemSchema]:
        ...

    @abstractmethod
    def list_records(self, item_id: int, limit: Optional[int] = None) -> List[ReviewRecordSchema]:
        ...


class SqlAlchemyItemStore(ItemStore):
    """ItemStore backed by a SQLAlchemy session factory"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, item_id: Optional[int] = None) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except StaleDataError as e:
            db.rollback()
            logger.warning("concurrent_update_rejected", item_id=item_id)
            raise ConcurrentUpdateError(item_id) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("store_failure", item_id=item_id, error=str(e))
            raise StoreError(f"Store operation failed: {e}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _to_item(item) -> ReviewItemSchema:
        return ReviewItemSchema.model_validate(item)

    def insert_item(self, fields: dict) -> ReviewItemSchema:
        with self._session() as db:
            item = crud.create_review_item(db, **fields)
            db.flush()
            return self._to_item(item)

    def get_item(self, item_id: int) -> Optional[ReviewItemSchema]:
        with self._session(item_id) as db:
            item = crud.get_review_item(db, item_id)
            return self._to_item(item) if item else None

    def update_item(
        self, item_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> ReviewItemSchema:
        with self._session(item_id) as db:
            item = crud.get_review_item(db, item_id)
            if item is None:
                raise NotFoundError(item_id)
            if expected_version is not None and item.version != expected_version:
                raise ConcurrentUpdateError(item_id)
            crud.update_review_item(db, item, fields)
            db.flush()
            return self._to_item(item)

    def commit_review(
        self,
        item_id: int,
        expected_version: int,
        item_fields: dict,
        record_fields: dict,
    ) -> Tuple[ReviewItemSchema, ReviewRecordSchema]:
        with self._session(item_id) as db:
            item = crud.get_review_item(db, item_id)
            if item is None:
                raise NotFoundError(item_id)
            if item.version != expected_version:
                raise ConcurrentUpdateError(item_id)
            record = crud.add_review_record(db, item_id=item_id, **record_fields)
            crud.update_review_item(db, item, item_fields)
            db.flush()
            return self._to_item(item), ReviewRecordSchema.model_validate(record)

    def list_items(
        self,
        user_id: str,
        subject_id: Optional[str] = None,
        statuses: Optional[List[str]] = None,
    ) -> List[ReviewItemSchema]:
        with self._session() as db:
            return [self._to_item(i) for i in crud.get_review_items(db, user_id, subject_id, statuses)]

    def list_due(
        self, user_id: str, due_before: datetime, subject_id: Optional[str] = None
    ) -> List[ReviewItemSchema]:
        with self._session() as db:
            return [self._to_item(i) for i in crud.get_due_items(db, user_id, due_before, subject_id)]

    def list_scheduled(self, user_id: str, start: datetime, end: datetime) -> List[ReviewItemSchema]:
        with self._session() as db:
            return [self._to_item(i) for i in crud.get_items_scheduled_between(db, user_id, start, end)]

    def list_records(self, item_id: int, limit: Optional[int] = None) -> List[ReviewRecordSchema]:
        with self._session(item_id) as db:
            return [ReviewRecordSchema.model_validate(r) for r in crud.get_review_records(db, item_id, limit)]
