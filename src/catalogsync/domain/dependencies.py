"""Entity dependency resolution.

Every category, business (with its owning account) and warehouse a canonical
product references is found or created inside one shared transaction before
any product is written. The result is a set of immutable remote-id to local-id
maps consumed by classification and upsert.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from catalogsync.config.sync import DEFAULT_DEPENDENCY_TIMEOUT_SECONDS
from catalogsync.domain.deadline import Deadline
from catalogsync.domain.model import Business, Category, EntityKind, OwnerAccount, Warehouse
from catalogsync.domain.ports.persistence import DuplicateEntityError
from catalogsync.domain.reconciliation.compare import is_blank
from catalogsync.domain.slugs import join_slug, slugify
from catalogsync.domain.stats import RunStats

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from uuid import UUID

    from catalogsync.domain.canonical import CanonicalProduct
    from catalogsync.domain.ports.persistence import RemoteBoundRepository
    from catalogsync.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork

log = getLogger(__name__)

SYNTHETIC_EMAIL_DOMAIN = "catalog-sync.local"


class MissingDependencyError(RuntimeError):
    """Fatal precondition: products reference a dependency kind that resolved to nothing."""


@dataclass(slots=True, frozen=True)
class EntityMap:
    """Remote id to local id for one dependency kind; immutable once built."""

    kind: EntityKind
    entries: Mapping[int, UUID] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, kind: EntityKind, entries: Mapping[int, UUID]) -> EntityMap:
        return cls(kind, MappingProxyType(dict(entries)))

    def get(self, remote_id: int | None) -> UUID | None:
        if remote_id is None:
            return None
        return self.entries.get(remote_id)

    def __contains__(self, remote_id: object) -> bool:
        return remote_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self.entries)


@dataclass(slots=True, frozen=True, kw_only=True)
class EntityMaps:
    categories: EntityMap = field(default_factory=lambda: EntityMap(EntityKind.CATEGORY))
    businesses: EntityMap = field(default_factory=lambda: EntityMap(EntityKind.BUSINESS))
    warehouses: EntityMap = field(default_factory=lambda: EntityMap(EntityKind.WAREHOUSE))


@dataclass(slots=True, frozen=True, kw_only=True)
class DependencyRef:
    remote_id: int
    name: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class DependencyResolution:
    maps: EntityMaps
    stats: RunStats


def _distinct_refs(pairs: Iterable[tuple[int | None, str | None]]) -> list[DependencyRef]:
    names: dict[int, str | None] = {}
    for remote_id, name in pairs:
        if remote_id is None:
            continue
        if names.get(remote_id) is None or is_blank(names[remote_id]):
            names[remote_id] = name
    return [DependencyRef(remote_id=key, name=names[key]) for key in sorted(names)]


def extract_category_refs(products: Iterable[CanonicalProduct]) -> list[DependencyRef]:
    return _distinct_refs((item.category_remote_id, item.category_name) for item in products)


def extract_business_refs(products: Iterable[CanonicalProduct]) -> list[DependencyRef]:
    return _distinct_refs((item.business_remote_id, item.business_name) for item in products)


def extract_warehouse_refs(products: Iterable[CanonicalProduct]) -> list[DependencyRef]:
    return _distinct_refs(
        (inventory.branch_id, inventory.branch_name)
        for item in products
        for inventory in item.inventories
    )


def synthetic_email(name: str, remote_id: int) -> str:
    local_part = slugify(name, separator=".") or "business"
    return f"{local_part}.{remote_id}@{SYNTHETIC_EMAIL_DOMAIN}"


def synthetic_phone(remote_id: int) -> str:
    return f"09{remote_id % 100_000_000:08d}"


@dataclass(slots=True)
class DependencyResolver:
    """Idempotent find-or-create of categories, businesses and warehouses."""

    unit_of_work_factory: Callable[[], CatalogUnitOfWork]
    timeout_seconds: float = DEFAULT_DEPENDENCY_TIMEOUT_SECONDS

    def resolve(self, products: Sequence[CanonicalProduct]) -> DependencyResolution:
        """Resolve every dependency ``products`` reference.

        Raises ``MissingDependencyError`` (after rolling back) when products
        reference categories or businesses and none could be resolved.
        """

        deadline = Deadline("dependency resolution", self.timeout_seconds)
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories

            category_refs = extract_category_refs(products)
            categories, category_stats = self._resolve_all(
                category_refs, lambda ref: self._resolve_category(ref, repositories), deadline
            )
            _guard(EntityKind.CATEGORY, category_refs, categories)

            business_refs = extract_business_refs(products)
            businesses, business_stats = self._resolve_all(
                business_refs, lambda ref: self._resolve_business(ref, repositories), deadline
            )
            _guard(EntityKind.BUSINESS, business_refs, businesses)

            warehouse_refs = extract_warehouse_refs(products)
            warehouses, warehouse_stats = self._resolve_all(
                warehouse_refs, lambda ref: self._resolve_warehouse(ref, repositories), deadline
            )

            deadline.check()
            uow.commit()

        maps = EntityMaps(
            categories=EntityMap.build(EntityKind.CATEGORY, categories),
            businesses=EntityMap.build(EntityKind.BUSINESS, businesses),
            warehouses=EntityMap.build(EntityKind.WAREHOUSE, warehouses),
        )
        stats = category_stats + business_stats + warehouse_stats
        log.info(
            "Resolved dependencies: categories=%s, businesses=%s, warehouses=%s",
            len(maps.categories),
            len(maps.businesses),
            len(maps.warehouses),
        )
        return DependencyResolution(maps=maps, stats=stats)

    def _resolve_all(
        self,
        refs: Sequence[DependencyRef],
        resolve_one: Callable[[DependencyRef], tuple[UUID | None, RunStats]],
        deadline: Deadline,
    ) -> tuple[dict[int, UUID], RunStats]:
        mapping: dict[int, UUID] = {}
        stats = RunStats.empty()
        for ref in refs:
            deadline.check()
            local_id, delta = resolve_one(ref)
            stats = stats + delta
            if local_id is not None:
                mapping[ref.remote_id] = local_id
        return mapping, stats

    def _resolve_category(
        self, ref: DependencyRef, repositories: CatalogRepositories
    ) -> tuple[UUID | None, RunStats]:
        kind = EntityKind.CATEGORY
        existing = repositories.categories.get_by_remote_id(ref.remote_id)
        if existing is not None:
            return existing.id, RunStats.of(kind, skips=1)
        if ref.name is None or is_blank(ref.name):
            log.warning("Category %s has no name and cannot be created", ref.remote_id)
            return None, RunStats.of(kind, errors=1)

        name = ref.name.strip()
        category = Category(
            remote_id=ref.remote_id,
            name=name,
            slug=join_slug(name, str(ref.remote_id)),
            description=f"Synchronised from remote catalog: {name}",
        )
        return _create_or_rebind(kind, category, ref, repositories.categories)

    def _resolve_business(
        self, ref: DependencyRef, repositories: CatalogRepositories
    ) -> tuple[UUID | None, RunStats]:
        kind = EntityKind.BUSINESS
        existing = repositories.businesses.get_by_remote_id(ref.remote_id)
        if existing is not None:
            return existing.id, RunStats.of(kind, skips=1)
        if ref.name is None or is_blank(ref.name):
            log.warning("Business %s has no name and cannot be created", ref.remote_id)
            return None, RunStats.of(kind, errors=1)

        name = ref.name.strip()
        owner, owner_stats = self._resolve_owner(ref.remote_id, name, repositories)
        if owner is None:
            return None, owner_stats + RunStats.of(kind, errors=1)

        legacy = repositories.businesses.find_by_owner_and_name(owner.id, name)
        if legacy is not None and legacy.remote_id is None:
            log.info("Binding existing business %s to remote id %s", legacy.code, ref.remote_id)
            legacy.remote_id = ref.remote_id
            return legacy.id, owner_stats + RunStats.of(kind, updates=1)

        business = Business(
            remote_id=ref.remote_id,
            name=name,
            code=f"TM-{ref.remote_id}",
            slug=join_slug(name, str(ref.remote_id)),
            owner_id=owner.id,
        )
        local_id, stats = _create_or_rebind(kind, business, ref, repositories.businesses)
        return local_id, owner_stats + stats

    def _resolve_owner(
        self, remote_id: int, name: str, repositories: CatalogRepositories
    ) -> tuple[OwnerAccount | None, RunStats]:
        kind = EntityKind.OWNER_ACCOUNT
        accounts = repositories.owner_accounts
        email = synthetic_email(name, remote_id)
        existing = accounts.get_by_email(email) or accounts.find_by_full_name(name)
        if existing is not None:
            return existing, RunStats.of(kind, skips=1)

        account = OwnerAccount(
            code=f"TM{remote_id}",
            full_name=name,
            email=email,
            phone=synthetic_phone(remote_id),
            is_synthetic=True,
        )
        try:
            accounts.add(account)
        except DuplicateEntityError:
            found = accounts.get_by_email(email) or accounts.find_by_full_name(name)
            if found is None:
                log.exception("Owner account for business %s could not be created", remote_id)
                return None, RunStats.of(kind, errors=1)
            return found, RunStats.of(kind, skips=1)
        log.debug("Created owner account %s for business %s", account.code, remote_id)
        return account, RunStats.of(kind, adds=1)

    def _resolve_warehouse(
        self, ref: DependencyRef, repositories: CatalogRepositories
    ) -> tuple[UUID | None, RunStats]:
        kind = EntityKind.WAREHOUSE
        existing = repositories.warehouses.get_by_remote_id(ref.remote_id)
        if existing is not None:
            return existing.id, RunStats.of(kind, skips=1)

        name = (ref.name or "").strip() or f"Remote branch {ref.remote_id}"
        warehouse = Warehouse(remote_id=ref.remote_id, name=name, code=f"WH-{ref.remote_id}")
        named = DependencyRef(remote_id=ref.remote_id, name=name)
        return _create_or_rebind(kind, warehouse, named, repositories.warehouses)


def _create_or_rebind[TEntity: (Category, Business, Warehouse)](
    kind: EntityKind,
    entity: TEntity,
    ref: DependencyRef,
    repository: RemoteBoundRepository[TEntity],
) -> tuple[UUID | None, RunStats]:
    try:
        repository.add(entity)
    except DuplicateEntityError:
        found = repository.get_by_remote_id(ref.remote_id)
        if found is None and ref.name:
            found = repository.find_by_name(ref.name)
        if found is None:
            log.exception("%s %s could not be created or found", kind, ref.remote_id)
            return None, RunStats.of(kind, errors=1)
        log.info("%s %s already existed; bound to %s", kind, ref.remote_id, found.id)
        if found.remote_id is None:
            found.remote_id = ref.remote_id
        return found.id, RunStats.of(kind, skips=1)
    log.debug("Created %s %s (%s)", kind, ref.remote_id, entity.id)
    return entity.id, RunStats.of(kind, adds=1)


def _guard(kind: EntityKind, refs: Sequence[DependencyRef], resolved: Mapping[int, UUID]) -> None:
    if refs and not resolved:
        raise MissingDependencyError(
            f"{len(refs)} {kind} reference(s) found but none could be resolved; "
            "aborting before any product is written"
        )


__all__ = [
    "DependencyRef",
    "DependencyResolution",
    "DependencyResolver",
    "EntityMap",
    "EntityMaps",
    "MissingDependencyError",
    "extract_business_refs",
    "extract_category_refs",
    "extract_warehouse_refs",
    "synthetic_email",
    "synthetic_phone",
]
