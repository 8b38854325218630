"""Identity building block shared by persisted catalog records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar
from uuid import UUID, uuid4

from catalogsync.domain.model.enums import EntityKind


def new_id() -> UUID:
    return uuid4()


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)

    # class-level discriminator; subclasses must override
    ENTITY_KIND: ClassVar[EntityKind]

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND


@dataclass(eq=False, kw_only=True)
class RemoteBoundEntity(Entity):
    """Entity that may carry a binding to a remote numeric id."""

    remote_id: int | None = None

    @property
    def is_bound(self) -> bool:
        return self.remote_id is not None
