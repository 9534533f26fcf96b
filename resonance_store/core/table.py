"""
Entity tables.

An `EntityTable` is the canonical id -> entity mapping for one entity kind
(notes or events). It assigns identifiers on insert, applies Updaters on
update, and hands out snapshots on listing.

Design decisions:
- A plain dict keyed by identifier; iteration order is insertion order and
  an updated entity keeps its slot.
- Identifiers are never reissued: removed ids are remembered for the lifetime
  of the table and a freshly generated id is rejected if it was ever used.
- Not thread-safe. The host serializes access.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Generic, Protocol, TypeVar

from resonance_store.core import InvalidIdError, NotFoundError
from resonance_store.core.ids import Identifier, generate_id, parse_id

logger = logging.getLogger(__name__)


class TimedEntity(Protocol):
    @property
    def id(self) -> Identifier: ...

    @property
    def ticks(self) -> int: ...

    @property
    def duration(self) -> int: ...

    @property
    def end_ticks(self) -> int: ...


E = TypeVar("E", bound=TimedEntity)
E_co = TypeVar("E_co", bound=TimedEntity, covariant=True)


class EntityInput(Protocol[E_co]):
    def build(self, entity_id: Identifier) -> E_co: ...


class EntityUpdater(Protocol[E]):
    def apply_to(self, entity: E) -> E: ...

    def changed_fields(self) -> tuple[str, ...]: ...


class EntityTable(Generic[E]):
    """
    Id -> entity mapping for a single entity kind.

    Args:
        name: Entity kind name used in logs and errors ("note", "event").
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._entries: dict[Identifier, E] = {}
        self._retired: set[Identifier] = set()

    @property
    def name(self) -> str:
        return self._name

    def _new_id(self) -> Identifier:
        entity_id = generate_id()
        while entity_id in self._entries or entity_id in self._retired:
            logger.warning("Generated %s id %s collides, regenerating", self._name, entity_id)
            entity_id = generate_id()
        return entity_id

    def _key(self, entity_id: str) -> Identifier:
        """Normalize an id and make sure it is present."""
        key = parse_id(entity_id, table=self._name)
        if key not in self._entries:
            logger.debug("%s %s not found", self._name, key)
            raise NotFoundError(self._name, key)
        return key

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def insert(self, data: EntityInput[E]) -> E:
        """
        Store a new entity built from `data` under a fresh identifier.

        Returns:
            The stored entity.
        """
        entity = data.build(self._new_id())
        self._entries[entity.id] = entity
        logger.debug(
            "%s.insert: id=%s, ticks=%s, len=%d", self._name, entity.id, entity.ticks, len(self)
        )
        return entity

    def insert_many(self, items: Iterable[EntityInput[E]]) -> Sequence[E]:
        """Insert each input in order and return the stored entities."""
        return [self.insert(data) for data in items]

    def get(self, entity_id: str) -> E:
        """
        Look up an entity.

        Raises:
            NotFoundError: If no entity has this id.
        """
        return self._entries[self._key(entity_id)]

    def update(self, entity_id: str, patch: EntityUpdater[E]) -> E:
        """
        Merge `patch` onto the stored entity and replace it.

        Fields the patch leaves UNSET keep their stored value; the id never
        changes. Nothing is touched if the id is unknown.

        Returns:
            The new stored entity.

        Raises:
            NotFoundError: If no entity has this id.
        """
        key = self._key(entity_id)
        updated = patch.apply_to(self._entries[key])
        self._entries[key] = updated
        logger.debug(
            "%s.update: id=%s, fields=%s",
            self._name,
            key,
            ",".join(patch.changed_fields()) or "-",
        )
        return updated

    def remove(self, entity_id: str) -> E:
        """
        Delete an entity.

        Returns:
            The value that was removed.

        Raises:
            NotFoundError: If no entity has this id.
        """
        key = self._key(entity_id)
        entity = self._entries.pop(key)
        self._retired.add(key)
        logger.debug("%s.remove: id=%s, len=%d", self._name, key, len(self))
        return entity

    def list(self) -> Sequence[E]:
        """Snapshot of all entities in insertion order."""
        return list(self._entries.values())

    # -------------------------------------------------------------------------
    # Timeline queries
    # -------------------------------------------------------------------------

    def list_by_ticks(self) -> Sequence[E]:
        """Snapshot of all entities ordered by start position (stable)."""
        return sorted(self._entries.values(), key=lambda e: e.ticks)

    def list_in_ticks_range(
        self, start_ticks: int, end_ticks: int, *, within_duration: bool = False
    ) -> Sequence[E]:
        """
        Entities starting in `[start_ticks, end_ticks)`, ordered by ticks.

        Args:
            start_ticks: Inclusive range start.
            end_ticks: Exclusive range end.
            within_duration: Also return entities that started before
                `start_ticks` and are still sounding at it
                (`entity.ticks < start_ticks < entity.end_ticks`).
        """
        if end_ticks <= start_ticks:
            return []

        matches = [
            e
            for e in self._entries.values()
            if start_ticks <= e.ticks < end_ticks
            or (within_duration and e.ticks < start_ticks < e.end_ticks)
        ]
        return sorted(matches, key=lambda e: e.ticks)

    # -------------------------------------------------------------------------
    # Container protocol
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        """Return the number of stored entities."""
        return len(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        """Check if an entity with this id is stored (False for malformed ids)."""
        try:
            key = parse_id(entity_id, table=self._name)  # type: ignore[arg-type]
        except InvalidIdError:
            return False
        return key in self._entries

    def __iter__(self) -> Iterator[Identifier]:
        """Iterate over stored ids in insertion order."""
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        """A table is always truthy, even when empty."""
        return True

    def __repr__(self) -> str:
        return f"EntityTable(name={self._name!r}, len={len(self)})"
