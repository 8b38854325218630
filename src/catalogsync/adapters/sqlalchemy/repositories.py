"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from catalogsync.adapters.sqlalchemy.mappings import (
    business_table,
    category_table,
    owner_account_table,
    price_book_table,
    product_table,
    sync_run_table,
    warehouse_table,
)
from catalogsync.domain.model import (
    Business,
    Category,
    OwnerAccount,
    PriceBook,
    Product,
    ProductPart,
    SyncRun,
    Warehouse,
)
from catalogsync.domain.ports.persistence import DuplicateEntityError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from catalogsync.domain.model import SyncDirection, SyncEntityType


def _add_checked(session: Session, entity: object) -> None:
    """Insert inside a savepoint so a uniqueness violation leaves the outer transaction usable."""

    try:
        with session.begin_nested():
            session.add(entity)
            session.flush()
    except IntegrityError as exc:
        raise DuplicateEntityError(str(exc.orig)) from exc


class SqlAlchemyRemoteBoundRepository[TEntity: (Category, Business, Warehouse)]:
    """Shared lookups for dependency entities carrying a remote id and a name."""

    def __init__(self, session: Session, entity_cls: type[TEntity], table: Table) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table = table

    def add(self, entity: TEntity) -> None:
        _add_checked(self.session, entity)

    def get_by_remote_id(self, remote_id: int) -> TEntity | None:
        stmt = select(self._entity_cls).where(self._table.c.remote_id == remote_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_name(self, name: str) -> TEntity | None:
        stmt = (
            select(self._entity_cls)
            .where(func.lower(self._table.c.name) == name.strip().lower())
            .order_by(self._table.c.created_at)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyCategoryRepository(SqlAlchemyRemoteBoundRepository[Category]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Category, category_table)


class SqlAlchemyWarehouseRepository(SqlAlchemyRemoteBoundRepository[Warehouse]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Warehouse, warehouse_table)


class SqlAlchemyBusinessRepository(SqlAlchemyRemoteBoundRepository[Business]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Business, business_table)

    def find_by_owner_and_name(self, owner_id: UUID, name: str) -> Business | None:
        stmt = (
            select(Business)
            .where(business_table.c.owner_id == owner_id)
            .where(func.lower(business_table.c.name) == name.strip().lower())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyOwnerAccountRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: OwnerAccount) -> None:
        _add_checked(self.session, entity)

    def get_by_email(self, email: str) -> OwnerAccount | None:
        stmt = select(OwnerAccount).where(
            func.lower(owner_account_table.c.email) == email.strip().lower()
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_full_name(self, full_name: str) -> OwnerAccount | None:
        stmt = (
            select(OwnerAccount)
            .where(func.lower(owner_account_table.c.full_name) == full_name.strip().lower())
            .order_by(owner_account_table.c.created_at)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyProductRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Product) -> None:
        self.session.add(entity)

    def get(self, product_id: UUID) -> Product | None:
        return self.session.get(Product, product_id)

    def get_by_remote_id(self, remote_id: int) -> Product | None:
        stmt = select(Product).where(product_table.c.remote_id == remote_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Product]:
        stmt = select(Product).order_by(product_table.c.created_at)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyProductPartRepository[TPart: ProductPart]:
    """Sub-resources addressed through their owning product."""

    def __init__(self, session: Session, entity_cls: type[TPart]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TPart) -> None:
        self.session.add(entity)

    def list_for_product(self, product_id: UUID) -> Sequence[TPart]:
        stmt = select(self._entity_cls).filter_by(product_id=product_id)
        return self.session.execute(stmt).scalars().all()

    def find_one(self, product_id: UUID, **criteria: object) -> TPart | None:
        stmt = select(self._entity_cls).filter_by(product_id=product_id, **criteria).limit(1)
        return self.session.execute(stmt).scalars().first()

    def remove(self, entity: TPart) -> None:
        self.session.delete(entity)


class SqlAlchemyPriceBookRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: PriceBook) -> None:
        _add_checked(self.session, entity)

    def get_by_remote_id(self, remote_id: int) -> PriceBook | None:
        stmt = select(PriceBook).where(price_book_table.c.remote_id == remote_id)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemySyncRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncRun) -> None:
        self.session.add(entity)

    def get(self, run_id: UUID) -> SyncRun | None:
        return self.session.get(SyncRun, run_id)

    def query(
        self,
        *,
        entity_type: SyncEntityType | None = None,
        direction: SyncDirection | None = None,
        limit: int = 50,
    ) -> Sequence[SyncRun]:
        stmt = select(SyncRun)
        if entity_type is not None:
            stmt = stmt.where(sync_run_table.c.entity_type == entity_type)
        if direction is not None:
            stmt = stmt.where(sync_run_table.c.direction == direction)
        stmt = stmt.order_by(
            sync_run_table.c.created_at.desc(),
            sync_run_table.c.started_at.desc(),
        ).limit(limit)
        return self.session.execute(stmt).scalars().all()
