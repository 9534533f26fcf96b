"""
Store facade.

`Store` is the single object the host application talks to. It owns one
notes table and one events table and routes every call straight to the
matching table; the two tables never affect each other.

Usage:
    store = await create_store()

    note = store.add_note(NoteInput(ticks=0, duration=480, note_number=60))
    store.update_note(note.id, NoteUpdater(duration=960))
    store.remove_note(note.id)

All store operations are synchronous. `create_store()` is the only coroutine:
it loads configuration off the event loop, then builds the store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from resonance_store.config import StoreConfig, get_store_config, load_store_config
from resonance_store.core.models import (
    Event,
    EventInput,
    EventUpdater,
    Note,
    NoteInput,
    NoteUpdater,
)
from resonance_store.core.table import EntityTable

logger = logging.getLogger(__name__)

NoteInputLike = NoteInput | Mapping[str, Any]
NoteUpdaterLike = NoteUpdater | Mapping[str, Any]
EventInputLike = EventInput | Mapping[str, Any]
EventUpdaterLike = EventUpdater | Mapping[str, Any]


def _note_input(data: NoteInputLike) -> NoteInput:
    return data if isinstance(data, NoteInput) else NoteInput.from_dict(data)


def _note_updater(note_id: str, patch: NoteUpdaterLike) -> NoteUpdater:
    if isinstance(patch, NoteUpdater):
        return patch
    return NoteUpdater.from_dict(patch, note_id=note_id)


def _event_input(data: EventInputLike) -> EventInput:
    return data if isinstance(data, EventInput) else EventInput.from_dict(data)


def _event_updater(event_id: str, patch: EventUpdaterLike) -> EventUpdater:
    if isinstance(patch, EventUpdater):
        return patch
    return EventUpdater.from_dict(patch, event_id=event_id)


class Store:
    """
    In-memory store of notes and events.

    Inputs and updaters may be given as dataclasses or as host records
    (camelCase dicts, see `resonance_store.core.models`).

    `get_*`, `update_*` and `remove_*` raise `NotFoundError` for unknown ids;
    a failed call leaves the store unchanged.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        """
        Args:
            config: Song settings. Defaults to the global config from
                `get_store_config()`, the same one `create_store()` uses.
        """
        self._config = config or get_store_config()
        self._notes: EntityTable[Note] = EntityTable("note")
        self._events: EntityTable[Event] = EntityTable("event")
        logger.info("Store created: title=%r, ppq=%d", self._config.title, self._config.ppq)

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def title(self) -> str:
        return self._config.title

    @property
    def ppq(self) -> int:
        """Timing resolution in ticks per quarter note."""
        return self._config.ppq

    @property
    def note_count(self) -> int:
        return len(self._notes)

    @property
    def event_count(self) -> int:
        return len(self._events)

    # =========================================================================
    # Notes
    # =========================================================================

    def add_note(self, data: NoteInputLike) -> Note:
        """Create a note and return it with its assigned id."""
        return self._notes.insert(_note_input(data))

    def add_notes(self, items: Iterable[NoteInputLike]) -> Sequence[Note]:
        """Create several notes in order. Each item is a separate insert."""
        return self._notes.insert_many(_note_input(data) for data in items)

    def get_note(self, note_id: str) -> Note:
        return self._notes.get(note_id)

    def update_note(self, note_id: str, patch: NoteUpdaterLike) -> Note:
        """Apply a partial patch to a note and return the new value."""
        # Convert first so a bad record never reaches the table
        return self._notes.update(note_id, _note_updater(note_id, patch))

    def remove_note(self, note_id: str) -> Note:
        """Delete a note and return its last value."""
        return self._notes.remove(note_id)

    def list_notes(self, *, by_ticks: bool = False) -> Sequence[Note]:
        """
        Snapshot of all notes.

        Args:
            by_ticks: Order by start position instead of insertion order.
        """
        return self._notes.list_by_ticks() if by_ticks else self._notes.list()

    def list_notes_in_ticks_range(
        self, start_ticks: int, end_ticks: int, *, within_duration: bool = False
    ) -> Sequence[Note]:
        """Notes starting in `[start_ticks, end_ticks)`; see `EntityTable.list_in_ticks_range`."""
        return self._notes.list_in_ticks_range(
            start_ticks, end_ticks, within_duration=within_duration
        )

    # =========================================================================
    # Events
    # =========================================================================

    def add_event(self, data: EventInputLike) -> Event:
        """Create an event and return it with its assigned id."""
        return self._events.insert(_event_input(data))

    def add_events(self, items: Iterable[EventInputLike]) -> Sequence[Event]:
        """Create several events in order. Each item is a separate insert."""
        return self._events.insert_many(_event_input(data) for data in items)

    def get_event(self, event_id: str) -> Event:
        return self._events.get(event_id)

    def update_event(self, event_id: str, patch: EventUpdaterLike) -> Event:
        """Apply a partial patch to an event and return the new value."""
        return self._events.update(event_id, _event_updater(event_id, patch))

    def remove_event(self, event_id: str) -> Event:
        """Delete an event and return its last value."""
        return self._events.remove(event_id)

    def list_events(self, *, by_ticks: bool = False) -> Sequence[Event]:
        """
        Snapshot of all events.

        Args:
            by_ticks: Order by start position instead of insertion order.
        """
        return self._events.list_by_ticks() if by_ticks else self._events.list()

    def list_events_in_ticks_range(
        self, start_ticks: int, end_ticks: int, *, within_duration: bool = False
    ) -> Sequence[Event]:
        """Events starting in `[start_ticks, end_ticks)`."""
        return self._events.list_in_ticks_range(
            start_ticks, end_ticks, within_duration=within_duration
        )

    def __repr__(self) -> str:
        return (
            f"Store(title={self.title!r}, ppq={self.ppq}, "
            f"notes={self.note_count}, events={self.event_count})"
        )


async def create_store(
    config: StoreConfig | None = None, *, config_path: Path | None = None
) -> Store:
    """
    Bootstrap a store.

    Args:
        config: Configuration to use as-is.
        config_path: TOML file to load when `config` is None. Without it the
            global config from `get_store_config()` is used.

    Returns:
        A new, empty Store.

    Raises:
        ConfigError: If the configuration file cannot be loaded.
    """
    if config is None:
        if config_path is None:
            config = await asyncio.to_thread(get_store_config)
        else:
            config = await asyncio.to_thread(load_store_config, config_path)
    return Store(config)
