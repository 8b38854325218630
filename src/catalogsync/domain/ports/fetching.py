"""Ports for reading the remote catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.canonical import CanonicalProduct


@runtime_checkable
class RemoteCatalogSource[TItem](Protocol):
    """Paginated remote catalog; a failed page aborts the whole fetch."""

    def fetch_all(self) -> Sequence[TItem]: ...

    def fetch_tombstones(self) -> set[int]: ...


@runtime_checkable
class RemoteItemMapper[TItem](Protocol):
    """Pure transformation of one raw remote item into a canonical product."""

    def __call__(self, item: TItem) -> CanonicalProduct: ...


__all__ = ["RemoteCatalogSource", "RemoteItemMapper"]
