"""Document store client.

The application talks to persistence only through ``DocumentStore``: typed
collections of flat documents with CRUD and change subscription. Documents are
plain dicts carrying ``id``, ``created_at`` and ``updated_at`` next to the
collection's fields.

``SqlDocumentStore`` backs the collections with SQLAlchemy models. Each call
runs in its own short transaction on the threadpool, so callers never hold a
database session across an ``await``.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from syllabuser.core.database import Base, SessionLocal
from syllabuser.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from syllabuser.core.realtime import ChangeCallback, ChangeEvent, ChangeFeed, ChangeType
from syllabuser.models import Admin, Category, Course, Exam, Profile, Question, Result, Routine

logger = logging.getLogger(__name__)


class Collections:
    """Collection identifiers."""

    USERS = "users"
    ADMINS = "admins"
    CATEGORIES = "categories"
    COURSES = "courses"
    EXAMS = "exams"
    QUESTIONS = "questions"
    RESULTS = "results"
    ROUTINES = "routines"


COLLECTION_MODELS: dict[str, type[Base]] = {
    Collections.USERS: Profile,
    Collections.ADMINS: Admin,
    Collections.CATEGORIES: Category,
    Collections.COURSES: Course,
    Collections.EXAMS: Exam,
    Collections.QUESTIONS: Question,
    Collections.RESULTS: Result,
    Collections.ROUTINES: Routine,
}

# Set by the store, never by callers
SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})

Document = dict[str, Any]


class DocumentStore(ABC):
    """CRUD and change-notification primitives over typed collections."""

    @abstractmethod
    async def get_document(self, collection: str, document_id: str) -> Document:
        """Return a document or raise ``NotFoundError``."""

    @abstractmethod
    async def find_document(self, collection: str, document_id: str) -> Document | None:
        """Return a document or ``None``."""

    @abstractmethod
    async def list_documents(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: Iterable[str] | str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """List documents matching equality filters.

        A list/tuple/set filter value means "field is one of". ``order_by``
        names fields; a leading ``-`` sorts descending.
        """

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> Document:
        """Create a document, optionally with a caller-chosen id."""

    @abstractmethod
    async def update_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> Document:
        """Patch a document's fields."""

    @abstractmethod
    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document; raises ``NotFoundError`` if absent."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        callback: ChangeCallback,
        document_id: str | None = None,
    ) -> Callable[[], None]:
        """Register for change events; returns an unsubscribe function."""


def _as_utc(value: Any) -> Any:
    # SQLite drops tzinfo on round trip; stored values are always UTC.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def model_to_document(instance: Base) -> Document:
    """Flatten a mapped instance into a document dict."""
    mapper = sa_inspect(instance).mapper
    return {column.key: _as_utc(getattr(instance, column.key)) for column in mapper.column_attrs}


class SqlDocumentStore(DocumentStore):
    """Document store backed by the SQLAlchemy models in ``COLLECTION_MODELS``."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | Callable[[], Session] = SessionLocal,
        feed: ChangeFeed | None = None,
    ):
        self._session_factory = session_factory
        self.feed = feed or ChangeFeed()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _model(self, collection: str) -> type[Base]:
        model = COLLECTION_MODELS.get(collection)
        if model is None:
            raise ValidationError(f"Unknown collection '{collection}'")
        return model

    def _columns(self, model: type[Base]) -> set[str]:
        return {column.key for column in sa_inspect(model).column_attrs}

    def _check_fields(self, collection: str, model: type[Base], fields: dict[str, Any]) -> None:
        unknown = set(fields) - self._columns(model)
        reserved = set(fields) & SYSTEM_FIELDS
        if unknown or reserved:
            raise ValidationError(
                f"Invalid fields for collection '{collection}'",
                details={"unknown": sorted(unknown), "reserved": sorted(reserved)},
            )

    def _order_clauses(self, model: type[Base], order_by: Iterable[str] | str | None) -> list:
        if order_by is None:
            order_by = ["created_at", "id"]
        elif isinstance(order_by, str):
            order_by = [order_by]

        columns = self._columns(model)
        clauses = []
        for name in order_by:
            descending = name.startswith("-")
            key = name.lstrip("-")
            if key not in columns:
                raise ValidationError(f"Cannot order by unknown field '{key}'")
            column = getattr(model, key)
            clauses.append(column.desc() if descending else column.asc())
        return clauses

    async def _publish(self, change_type: ChangeType, collection: str, document: Document) -> None:
        await self.feed.publish(
            ChangeEvent(
                collection=collection,
                document_id=document["id"],
                change_type=change_type,
                document=document,
            )
        )

    # ------------------------------------------------------------------
    # Sync implementations (threadpool)
    # ------------------------------------------------------------------

    def _get(self, collection: str, document_id: str) -> Document | None:
        model = self._model(collection)
        try:
            with self._session_factory() as session:
                instance = session.get(model, document_id)
                return model_to_document(instance) if instance else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {collection}/{document_id}: {e}")
            raise PersistenceError(f"Failed to read from '{collection}'")

    def _list(
        self,
        collection: str,
        filters: dict[str, Any] | None,
        order_by: Iterable[str] | str | None,
        limit: int | None,
    ) -> list[Document]:
        model = self._model(collection)
        columns = self._columns(model)
        query = select(model)

        for key, value in (filters or {}).items():
            if key not in columns:
                raise ValidationError(f"Cannot filter on unknown field '{key}'")
            column = getattr(model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.where(column.in_(list(value)))
            else:
                query = query.where(column == value)

        query = query.order_by(*self._order_clauses(model, order_by))
        if limit is not None:
            query = query.limit(limit)

        try:
            with self._session_factory() as session:
                result = session.execute(query)
                return [model_to_document(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {collection}: {e}")
            raise PersistenceError(f"Failed to read from '{collection}'")

    def _create(self, collection: str, fields: dict[str, Any], document_id: str | None) -> Document:
        model = self._model(collection)
        self._check_fields(collection, model, fields)
        instance = model(**fields)
        if document_id:
            instance.id = document_id

        with self._session_factory() as session:
            try:
                session.add(instance)
                session.commit()
                session.refresh(instance)
                return model_to_document(instance)
            except IntegrityError as e:
                session.rollback()
                logger.warning(f"Integrity violation creating {collection} document: {e.orig}")
                raise ConflictError(f"Document already exists or violates constraints in '{collection}'")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to create {collection} document: {e}")
                raise PersistenceError(f"Failed to write to '{collection}'")

    def _update(self, collection: str, document_id: str, fields: dict[str, Any]) -> Document:
        model = self._model(collection)
        self._check_fields(collection, model, fields)

        with self._session_factory() as session:
            try:
                instance = session.get(model, document_id)
                if instance is None:
                    raise NotFoundError(collection, document_id)
                for key, value in fields.items():
                    setattr(instance, key, value)
                session.commit()
                session.refresh(instance)
                return model_to_document(instance)
            except IntegrityError as e:
                session.rollback()
                logger.warning(f"Integrity violation updating {collection}/{document_id}: {e.orig}")
                raise ConflictError(f"Update violates constraints in '{collection}'")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to update {collection}/{document_id}: {e}")
                raise PersistenceError(f"Failed to write to '{collection}'")

    def _delete(self, collection: str, document_id: str) -> Document:
        model = self._model(collection)

        with self._session_factory() as session:
            try:
                instance = session.get(model, document_id)
                if instance is None:
                    raise NotFoundError(collection, document_id)
                document = model_to_document(instance)
                session.delete(instance)
                session.commit()
                return document
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to delete {collection}/{document_id}: {e}")
                raise PersistenceError(f"Failed to delete from '{collection}'")

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------

    async def get_document(self, collection: str, document_id: str) -> Document:
        document = await self.find_document(collection, document_id)
        if document is None:
            raise NotFoundError(collection, document_id)
        return document

    async def find_document(self, collection: str, document_id: str) -> Document | None:
        return await run_in_threadpool(self._get, collection, document_id)

    async def list_documents(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: Iterable[str] | str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        return await run_in_threadpool(self._list, collection, filters, order_by, limit)

    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> Document:
        document = await run_in_threadpool(self._create, collection, fields, document_id)
        await self._publish(ChangeType.CREATED, collection, document)
        return document

    async def update_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> Document:
        document = await run_in_threadpool(self._update, collection, document_id, fields)
        await self._publish(ChangeType.UPDATED, collection, document)
        return document

    async def delete_document(self, collection: str, document_id: str) -> None:
        document = await run_in_threadpool(self._delete, collection, document_id)
        await self._publish(ChangeType.DELETED, collection, document)

    def subscribe(
        self,
        collection: str,
        callback: ChangeCallback,
        document_id: str | None = None,
    ) -> Callable[[], None]:
        self._model(collection)
        return self.feed.subscribe(collection, callback, document_id=document_id)
