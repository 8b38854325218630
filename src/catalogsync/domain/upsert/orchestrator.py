"""Per-product transactional writes.

Every add, update or delete runs in its own unit of work: a failure on one
product rolls back only that product. Within a product, each sub-resource
collection is written inside a savepoint so a failing collection is recorded
as an error for its own entity kind while the product row still commits.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.config.sync import DEFAULT_PRODUCT_TIMEOUT_SECONDS
from catalogsync.domain.deadline import Deadline, TransactionTimeoutError
from catalogsync.domain.model import EntityKind, Product, ProductOrigin, utcnow
from catalogsync.domain.reconciliation import Classification
from catalogsync.domain.stats import RunStats

from .outcome import SubResourceOutcome, UpsertOutcome
from .writers import DEFAULT_STEPS, SubResourceStep, WriteContext

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.canonical import CanonicalProduct
    from catalogsync.domain.dependencies import EntityMaps
    from catalogsync.domain.ports.persistence import ProductRepository
    from catalogsync.domain.ports.unit_of_work import CatalogUnitOfWork
    from catalogsync.domain.reconciliation import ClassifiedRecord

log = getLogger(__name__)


class MissingMappingError(LookupError):
    """A product references a dependency that has no entry in the resolved maps."""


class ProductNotFoundError(LookupError):
    """The product matched during classification is gone from the store."""


@dataclass(slots=True)
class ProductUpsertOrchestrator:
    unit_of_work_factory: Callable[[], CatalogUnitOfWork]
    steps: tuple[SubResourceStep, ...] = DEFAULT_STEPS
    timeout_seconds: float = DEFAULT_PRODUCT_TIMEOUT_SECONDS
    clock: Callable[[], datetime] = utcnow

    def apply(self, record: ClassifiedRecord, maps: EntityMaps) -> UpsertOutcome:
        """Carry out one classified record and report what it changed."""

        classification = record.classification
        if classification is Classification.SKIP:
            return UpsertOutcome(
                record=record,
                stats=RunStats.of(EntityKind.PRODUCT, skips=1),
                product_id=record.target.id if record.target else None,
            )
        if classification is Classification.CONFLICT:
            log.warning("Conflict on %s: %s", record.label, "; ".join(record.reasons))
            return UpsertOutcome(
                record=record,
                stats=RunStats.of(EntityKind.PRODUCT, conflicts=1),
                product_id=record.target.id if record.target else None,
            )
        if classification is Classification.DELETE:
            return self._delete(record)
        return self._write(record, maps)

    def _write(self, record: ClassifiedRecord, maps: EntityMaps) -> UpsertOutcome:
        canonical = record.canonical
        if canonical is None:
            raise ValueError(f"{record.classification} needs a canonical product")
        deadline = Deadline(f"upsert of {canonical.label}", self.timeout_seconds)
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                category_id = _required(
                    maps.categories.get, canonical.category_remote_id, "category"
                )
                business_id = _required(
                    maps.businesses.get, canonical.business_remote_id, "business"
                )

                if record.classification is Classification.ADD:
                    product = _new_product(canonical)
                    product.created_at = self.clock()
                    counters = RunStats.of(EntityKind.PRODUCT, adds=1)
                else:
                    product = _reload(repositories.products, record)
                    if _bound_elsewhere(product, canonical):
                        return _rebind_conflict(record, product)
                    counters = RunStats.of(EntityKind.PRODUCT, updates=1)

                _apply_scalars(product, canonical)
                if product.remote_id is None:
                    product.remote_id = canonical.remote_id
                product.category_id = category_id
                product.business_id = business_id
                product.deleted_at = None
                product.sync_note = None
                product.updated_at = self.clock()
                # the product row is flushed before the fan-out; its failure aborts the product
                with uow.savepoint():
                    if record.classification is Classification.ADD:
                        repositories.products.add(product)

                context = WriteContext(
                    product=product,
                    canonical=canonical,
                    maps=maps,
                    repositories=repositories,
                )
                outcomes = tuple(
                    self._run_step(uow, step, context, deadline) for step in self.steps
                )
                deadline.check()
                uow.commit()
        except Exception as exc:
            log.exception("Failed to %s %s", record.classification, canonical.label)
            return UpsertOutcome(
                record=record,
                stats=RunStats.of(EntityKind.PRODUCT, errors=1),
                error=f"{canonical.label}: {exc}",
            )

        for outcome in outcomes:
            counters = counters + outcome.as_run_stats()
        log.debug("%s %s", record.classification, canonical.label)
        return UpsertOutcome(
            record=record,
            stats=counters,
            product_id=product.id,
            sub_resources=outcomes,
        )

    def _run_step(
        self,
        uow: CatalogUnitOfWork,
        step: SubResourceStep,
        context: WriteContext,
        deadline: Deadline,
    ) -> SubResourceOutcome:
        deadline.check()
        try:
            with uow.savepoint():
                stats = step.write(context)
        except TransactionTimeoutError:
            raise
        except Exception as exc:
            log.exception("Writing %s for %s failed", step.name, context.canonical.label)
            return SubResourceOutcome.failure(
                step.kind, f"{context.canonical.label}: {step.name}: {exc}"
            )
        return SubResourceOutcome.success(step.kind, stats)

    def _delete(self, record: ClassifiedRecord) -> UpsertOutcome:
        target = record.target
        if target is None:
            raise ValueError("A delete needs a local product")
        label = record.label
        try:
            with self.unit_of_work_factory() as uow:
                product = uow.repositories.products.get(target.id)
                if product is None:
                    raise ProductNotFoundError(f"Product {target.id} no longer exists")
                product.soft_delete(
                    note=f"Removed from remote catalog (remote id {product.remote_id})",
                    now=self.clock(),
                )
                uow.commit()
        except Exception as exc:
            log.exception("Failed to delete %s", label)
            return UpsertOutcome(
                record=record,
                stats=RunStats.of(EntityKind.PRODUCT, errors=1),
                product_id=target.id,
                error=f"{label}: {exc}",
            )
        log.info("Soft-deleted %s", label)
        return UpsertOutcome(
            record=record,
            stats=RunStats.of(EntityKind.PRODUCT, deletes=1),
            product_id=target.id,
        )


def _required(
    lookup: Callable[[int | None], UUID | None], remote_id: int | None, kind: str
) -> UUID:
    if remote_id is None:
        raise MissingMappingError(f"product has no {kind}")
    local_id = lookup(remote_id)
    if local_id is None:
        raise MissingMappingError(f"{kind} {remote_id} was not resolved")
    return local_id


def _new_product(canonical: CanonicalProduct) -> Product:
    return Product(
        remote_id=canonical.remote_id,
        name=canonical.name,
        code=canonical.code,
        slug=canonical.slug,
        origin=ProductOrigin.REMOTE,
    )


def _apply_scalars(product: Product, canonical: CanonicalProduct) -> None:
    product.name = canonical.name
    product.code = canonical.code
    product.full_name = canonical.full_name
    product.description = canonical.description
    product.bar_code = canonical.bar_code
    product.thumbnail = canonical.thumbnail
    product.product_type = canonical.product_type
    product.price = canonical.price
    product.base_price = canonical.base_price
    product.min_quantity = canonical.min_quantity
    product.max_quantity = canonical.max_quantity
    product.weight = canonical.weight
    product.unit = canonical.unit
    product.conversion_value = canonical.conversion_value
    product.tax_type = canonical.tax_type
    product.tax_name = canonical.tax_name
    product.tax_rate = canonical.tax_rate
    product.tax_rate_direct = canonical.tax_rate_direct
    product.is_active = canonical.is_active
    product.allows_sale = canonical.allows_sale
    product.has_variants = canonical.has_variants
    product.is_lot_serial_control = canonical.is_lot_serial_control
    product.is_batch_expire_control = canonical.is_batch_expire_control
    product.is_reward_point = canonical.is_reward_point
    product.specifications = dict(canonical.specifications)
    product.remote_modified_at = canonical.modified_at


def _reload(products: ProductRepository, record: ClassifiedRecord) -> Product:
    if record.target is None:
        raise ValueError(f"{record.classification} needs a local product")
    product = products.get(record.target.id)
    if product is None:
        raise ProductNotFoundError(f"Product {record.target.id} no longer exists")
    return product


def _bound_elsewhere(product: Product, canonical: CanonicalProduct) -> bool:
    # an earlier write in the same run may have bound a product matched by code
    return product.remote_id is not None and product.remote_id != canonical.remote_id


def _rebind_conflict(record: ClassifiedRecord, product: Product) -> UpsertOutcome:
    message = (
        f"{record.label}: code {product.code!r} belongs to a product bound to "
        f"remote id {product.remote_id}"
    )
    log.warning("Conflict on %s", message)
    return UpsertOutcome(
        record=record,
        stats=RunStats.of(EntityKind.PRODUCT, conflicts=1),
        product_id=product.id,
        error=message,
    )
