"""Diff classifier: decide add/update/skip/conflict per canonical product and sweep deletions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.model.enums import EntityKind
from catalogsync.domain.stats import RunStats, SyncStats

from .compare import PRODUCT_FIELDS, FieldSpec, field_changed, is_blank
from .contracts import Classification, ClassifiedRecord, FieldChange, LocalIndex, MatchKind

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from uuid import UUID

    from catalogsync.domain.canonical import CanonicalProduct
    from catalogsync.domain.dependencies import EntityMaps
    from catalogsync.domain.model import Product

log = getLogger(__name__)


def classify(
    canonical: CanonicalProduct,
    index: LocalIndex,
    *,
    entity_maps: EntityMaps | None = None,
    fields: tuple[FieldSpec, ...] = PRODUCT_FIELDS,
) -> ClassifiedRecord:
    """Classify ``canonical`` against the local store.

    A missing critical field on a matched record is a conflict before any other
    field is looked at.
    """

    matched = index.match(remote_id=canonical.remote_id, code=canonical.code)
    if matched is None:
        log.debug("%s will be ADDED", canonical.label)
        return ClassifiedRecord(classification=Classification.ADD, canonical=canonical)

    target, match_kind = matched
    reasons = tuple(
        f"missing critical field: {spec.name}"
        for spec in fields
        if spec.critical and is_blank(getattr(canonical, spec.name))
    )
    if not reasons and match_kind is MatchKind.CODE and _bound_elsewhere(target, canonical):
        reasons = (
            f"code {canonical.code!r} belongs to a product bound to remote id {target.remote_id}",
        )
    if reasons:
        log.debug("%s has CONFLICTS: %s", canonical.label, ", ".join(reasons))
        return ClassifiedRecord(
            classification=Classification.CONFLICT,
            canonical=canonical,
            target=target,
            match_kind=match_kind,
            reasons=reasons,
        )

    changes = _field_changes(canonical, target, fields)
    changes.extend(_relationship_changes(canonical, target, entity_maps))
    if target.remote_id is None:
        changes.append(FieldChange(field="remote_id", before=None, after=canonical.remote_id))
    if target.deleted_at is not None:
        changes.append(FieldChange(field="deleted_at", before=target.deleted_at, after=None))

    if changes:
        log.debug(
            "%s will be UPDATED (%s): %s",
            canonical.label,
            match_kind,
            ", ".join(str(change) for change in changes),
        )
        return ClassifiedRecord(
            classification=Classification.UPDATE,
            canonical=canonical,
            target=target,
            match_kind=match_kind,
            changes=tuple(changes),
        )

    log.debug("%s will be SKIPPED (no changes)", canonical.label)
    return ClassifiedRecord(
        classification=Classification.SKIP,
        canonical=canonical,
        target=target,
        match_kind=match_kind,
    )


def classify_deletions(
    index: LocalIndex,
    tombstones: Collection[int],
    canonical_remote_ids: Collection[int],
) -> list[ClassifiedRecord]:
    """Products that came from the remote catalog and were removed there.

    Locally authored products are never candidates, whatever the tombstones say.
    """

    records: list[ClassifiedRecord] = []
    for product in index.products:
        if not product.is_remote or product.is_deleted:
            continue
        if product.remote_id not in tombstones or product.remote_id in canonical_remote_ids:
            continue
        log.debug("%s (%s) will be DELETED", product.name, product.code)
        records.append(
            ClassifiedRecord(
                classification=Classification.DELETE,
                target=product,
                match_kind=MatchKind.REMOTE_ID,
                reasons=(f"remote id {product.remote_id} was removed from the remote catalog",),
            )
        )
    return records


def preview_stats(records: Iterable[ClassifiedRecord]) -> RunStats:
    """Product counters a run would produce if every write succeeded."""

    counts = {"adds": 0, "updates": 0, "skips": 0, "conflicts": 0, "deletes": 0}
    keys = {
        Classification.ADD: "adds",
        Classification.UPDATE: "updates",
        Classification.SKIP: "skips",
        Classification.CONFLICT: "conflicts",
        Classification.DELETE: "deletes",
    }
    for record in records:
        counts[keys[record.classification]] += 1
    return RunStats.from_stats(EntityKind.PRODUCT, SyncStats(**counts))


def _bound_elsewhere(target: Product, canonical: CanonicalProduct) -> bool:
    return target.remote_id is not None and target.remote_id != canonical.remote_id


def _field_changes(
    canonical: CanonicalProduct,
    target: Product,
    fields: tuple[FieldSpec, ...],
) -> list[FieldChange]:
    changes: list[FieldChange] = []
    for spec in fields:
        after = getattr(canonical, spec.name)
        before = getattr(target, spec.name)
        if field_changed(spec, after, before):
            changes.append(FieldChange(field=spec.name, before=before, after=after))
    return changes


def _relationship_changes(
    canonical: CanonicalProduct,
    target: Product,
    entity_maps: EntityMaps | None,
) -> list[FieldChange]:
    if entity_maps is None:
        return []
    changes: list[FieldChange] = []
    pairs: tuple[tuple[str, UUID | None, UUID | None], ...] = (
        (
            "category_id",
            entity_maps.categories.get(canonical.category_remote_id),
            target.category_id,
        ),
        (
            "business_id",
            entity_maps.businesses.get(canonical.business_remote_id),
            target.business_id,
        ),
    )
    for name, expected, current in pairs:
        if expected is not None and expected != current:
            changes.append(FieldChange(field=name, before=current, after=expected))
    return changes
