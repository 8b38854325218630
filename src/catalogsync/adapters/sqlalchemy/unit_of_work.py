"""SQLAlchemy-backed units of work for the catalog store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from catalogsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyBusinessRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyOwnerAccountRepository,
    SqlAlchemyPriceBookRepository,
    SqlAlchemyProductPartRepository,
    SqlAlchemyProductRepository,
    SqlAlchemySyncRunRepository,
    SqlAlchemyWarehouseRepository,
)
from catalogsync.config.storage import get_database_config
from catalogsync.domain.model import (
    ProductAttribute,
    ProductBatchExpire,
    ProductFormula,
    ProductImage,
    ProductInventory,
    ProductOrderTemplate,
    ProductPriceBook,
    ProductSerial,
    ProductShelf,
    ProductUnit,
    ProductVariant,
    ProductWarranty,
)
from catalogsync.domain.ports.unit_of_work import CatalogRepositories, RepositoryCollection

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call catalogsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is not None:
        resolved_engine = engine
    elif database_uri is not None:
        resolved_engine = create_engine(database_uri, future=True)
    else:
        database = get_database_config()
        resolved_engine = create_engine(database.uri, echo=database.echo, future=True)
    start_mappers()
    create_all_tables(resolved_engine)
    enable_sqlite_savepoints(resolved_engine)
    _STATE.engine = resolved_engine


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT always nests inside a transaction.

    pysqlite defers BEGIN until the first DML statement; a SAVEPOINT issued
    before that would open and, on release, commit a transaction of its own.
    """

    if engine.dialect.name != "sqlite" or event.contains(engine, "begin", _emit_begin):
        return
    event.listen(engine, "begin", _emit_begin)


def _emit_begin(connection: Connection) -> None:
    connection.connection.dbapi_connection.isolation_level = None  # pyright: ignore[reportAttributeAccessIssue, reportOptionalMemberAccess]
    connection.exec_driver_sql("BEGIN")


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[Session]:
        """Writes inside the block are flushed on exit and undone alone if it raises."""

        with self.session.begin_nested():
            yield self.session
            self.session.flush()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyCatalogUnitOfWork(BaseSqlAlchemyUnitOfWork[CatalogRepositories]):
    """Unit of work over every repository the reconciliation engine touches."""

    def _build_repositories(self, session: Session) -> CatalogRepositories:
        return CatalogRepositories(
            categories=SqlAlchemyCategoryRepository(session),
            owner_accounts=SqlAlchemyOwnerAccountRepository(session),
            businesses=SqlAlchemyBusinessRepository(session),
            warehouses=SqlAlchemyWarehouseRepository(session),
            products=SqlAlchemyProductRepository(session),
            images=SqlAlchemyProductPartRepository(session, ProductImage),
            inventories=SqlAlchemyProductPartRepository(session, ProductInventory),
            attributes=SqlAlchemyProductPartRepository(session, ProductAttribute),
            units=SqlAlchemyProductPartRepository(session, ProductUnit),
            price_books=SqlAlchemyPriceBookRepository(session),
            product_price_books=SqlAlchemyProductPartRepository(session, ProductPriceBook),
            formulas=SqlAlchemyProductPartRepository(session, ProductFormula),
            serials=SqlAlchemyProductPartRepository(session, ProductSerial),
            batch_expires=SqlAlchemyProductPartRepository(session, ProductBatchExpire),
            warranties=SqlAlchemyProductPartRepository(session, ProductWarranty),
            shelves=SqlAlchemyProductPartRepository(session, ProductShelf),
            variants=SqlAlchemyProductPartRepository(session, ProductVariant),
            order_templates=SqlAlchemyProductPartRepository(session, ProductOrderTemplate),
            sync_runs=SqlAlchemySyncRunRepository(session),
        )


if TYPE_CHECKING:
    from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = SqlAlchemyCatalogUnitOfWork()
