"""
resonance-store - An in-memory store of musical timeline entities.

The store keeps Notes and Events, assigns their identifiers, applies partial
updates, and hands out immutable snapshots. It has no persistence and no
musical interpretation of the values it holds.
"""

__version__ = "0.1.0"
__author__ = "Resonance Contributors"
__license__ = "MIT"

from resonance_store.core import NotFoundError
from resonance_store.core.models import (
    Event,
    EventInput,
    EventUpdater,
    Note,
    NoteInput,
    NoteUpdater,
)
from resonance_store.core.updater import UNSET
from resonance_store.store import Store, create_store

__all__ = [
    "Event",
    "EventInput",
    "EventUpdater",
    "Note",
    "NoteInput",
    "NoteUpdater",
    "NotFoundError",
    "Store",
    "UNSET",
    "__version__",
    "create_store",
]
