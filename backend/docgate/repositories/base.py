"""Base repository with shared read and error-classification logic.

Every store read goes through ``_read()``, which turns database failures into
the two store conditions the rest of the system understands:

    ResourceUnavailableError: the table is not provisioned. Known up front
        from the startup capability probe, or recognised from the database's
        "undefined table" error if the table disappears later.
    TransientStoreError     : anything else (timeouts, dropped connections,
        unclassified errors).

Nothing above this layer inspects driver error codes or messages.
"""

import logging
from typing import Callable, FrozenSet, Generic, Optional, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import DocGateException, ResourceUnavailableError, StoreError, TransientStoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
T = TypeVar("T")

# Optional grant-source tables. A deployment may run before their migrations
# are applied; the documents table is mandatory and is not listed here.
GRANT_SOURCE_TABLES: FrozenSet[str] = frozenset({
    "group_members",
    "group_documents",
    "document_acl",
    "shared_documents",
})

# PostgreSQL SQLSTATE codes.
_UNDEFINED_TABLE = "42P01"
_QUERY_CANCELED = "57014"


def probe_grant_sources(engine: Engine) -> FrozenSet[str]:
    """Return the grant-source tables that exist in the database.

    Run once at startup; the result is handed to every repository so
    unprovisioned sources are skipped without issuing a failing query.
    """
    inspector = inspect(engine)
    present = frozenset(t for t in GRANT_SOURCE_TABLES if inspector.has_table(t))
    missing = sorted(GRANT_SOURCE_TABLES - present)
    if missing:
        logger.warning(
            "Grant sources not provisioned: %s", ", ".join(missing),
            extra={"missing_grant_sources": missing},
        )
    return present


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate.
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_undefined_table(exc: DBAPIError) -> bool:
    if _sqlstate(exc) == _UNDEFINED_TABLE:
        return True
    # SQLite has no SQLSTATE; its message is the only signal.
    return "no such table" in str(exc.orig).lower()


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Document)
        id_column:       Name of the primary-key column (default "id")
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[DocGateException]

    def __init__(self, db: Session, provisioned: Optional[FrozenSet[str]] = None):
        """
        Args:
            db: Request-scoped session.
            provisioned: Grant-source tables known to exist (from
                ``probe_grant_sources``). ``None`` skips the up-front check
                and relies on error classification alone.
        """
        self.db = db
        self.provisioned = provisioned

    @property
    def table_name(self) -> str:
        return self.model_class.__tablename__

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def _read(self, fn: Callable[[], T]) -> T:
        """Run a read, translating failures into store conditions."""
        table = self.table_name
        if (
            self.provisioned is not None
            and table in GRANT_SOURCE_TABLES
            and table not in self.provisioned
        ):
            raise ResourceUnavailableError(table)

        try:
            return fn()
        except StoreError:
            raise
        except DBAPIError as exc:
            raise self._classify(exc) from exc
        except SQLAlchemyError as exc:
            logger.error("Store read failed on %s: %s", table, exc)
            raise TransientStoreError(table, exc) from exc

    def _classify(self, exc: DBAPIError) -> StoreError:
        table = self.table_name
        if is_undefined_table(exc):
            # PostgreSQL aborts the transaction on any error; clear it so
            # later reads in this request still work.
            self.db.rollback()
            return ResourceUnavailableError(table)

        if _sqlstate(exc) == _QUERY_CANCELED:
            logger.error("Store read timed out on %s", table, extra={"table": table})
        else:
            logger.error("Store read failed on %s: %s", table, exc.orig)
        return TransientStoreError(table, exc)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found."""
        col = getattr(self.model_class, self.id_column)
        return self._read(lambda: self._base_query().filter(col == entity_id).first())
