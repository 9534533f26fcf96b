"""
Entity records for the store.

Two entity kinds are stored, each with an Input (creation payload, no id) and
an Updater (partial patch):

- Note:  a timed musical note (position, length, pitch number, velocity)
- Event: a timed non-note element (controller change, automation point, ...)

The store treats every payload field as opaque data: nothing here checks
ranges or relations between fields. Records are frozen, so handing them out
never exposes the stored value to mutation.

Host records use the camelCase dict shape the host application works with,
e.g. `{"id": ..., "kind": "Note", "ticks": 0, "noteNumber": 60, ...}`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, NewType

from resonance_store.core import InvalidIdError, PayloadError
from resonance_store.core.ids import Identifier, parse_id
from resonance_store.core.updater import UNSET, Unset, pick
from resonance_store.core.updater import changed_fields as _changed_fields

# Use NewType for type safety, but they are just ints at runtime
Ticks = NewType("Ticks", int)
Velocity = NewType("Velocity", int)
NoteNumber = NewType("NoteNumber", int)

NOTE_KIND = "Note"


# =============================================================================
# Host record parsing
# =============================================================================


def _as_int(key: str, value: Any) -> int:
    # bool is an int subclass but never a valid timing/number value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"{key} must be a number, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise PayloadError(f"{key} must be a whole number, got {value!r}")
        value = int(value)
    return value


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise PayloadError(f"{key} must be a string, got {value!r}")
    return value


def _as_optional_str(key: str, value: Any) -> str | None:
    if value is None:
        return None
    return _as_str(key, value)


# record key -> (attribute name, converter)
FieldMap = dict[str, tuple[str, Callable[[str, Any], Any]]]

_NOTE_FIELDS: FieldMap = {
    "ticks": ("ticks", _as_int),
    "duration": ("duration", _as_int),
    "noteNumber": ("note_number", _as_int),
    "velocity": ("velocity", _as_int),
    "trackId": ("track_id", _as_optional_str),
}

_EVENT_FIELDS: FieldMap = {
    "ticks": ("ticks", _as_int),
    "kind": ("kind", _as_str),
    "value": ("value", _as_int),
    "duration": ("duration", _as_int),
    "trackId": ("track_id", _as_optional_str),
}


def _parse_record(
    data: Mapping[str, Any],
    field_map: FieldMap,
    *,
    what: str,
    ignored: frozenset[str] = frozenset(),
    required: tuple[str, ...] = (),
) -> dict[str, Any]:
    """
    Convert a host record into keyword arguments for an Input/Updater.

    Keys absent from the record are absent from the result.

    Raises:
        PayloadError: On unknown keys, missing required keys or bad values.
    """
    if not isinstance(data, Mapping):
        raise PayloadError(f"{what} must be a mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - set(field_map) - ignored)
    if unknown:
        raise PayloadError(f"Unknown {what} field(s): {', '.join(unknown)}")

    missing = [key for key in required if key not in data]
    if missing:
        raise PayloadError(f"Missing {what} field(s): {', '.join(missing)}")

    kwargs: dict[str, Any] = {}
    for key, (attr, convert) in field_map.items():
        if key in data:
            kwargs[attr] = convert(key, data[key])
    return kwargs


def _check_note_kind(data: Mapping[str, Any]) -> None:
    kind = data.get("kind", NOTE_KIND)
    if kind != NOTE_KIND:
        raise PayloadError(f"Expected kind {NOTE_KIND!r}, got {kind!r}")


def _check_record_id(data: Mapping[str, Any], entity_id: str | None, *, what: str) -> None:
    """
    Reject a record whose "id" names a different entity than `entity_id`.

    Nothing is checked when either side is absent. A malformed `entity_id` is
    left for the table to report as `InvalidIdError`.
    """
    if entity_id is None or "id" not in data:
        return
    try:
        record_id = parse_id(data["id"], table=what)
    except InvalidIdError as e:
        raise PayloadError(str(e)) from None
    try:
        target_id = parse_id(entity_id, table=what)
    except InvalidIdError:
        return
    if record_id != target_id:
        raise PayloadError(f"{what} record id {record_id} does not match {target_id}")


# =============================================================================
# Notes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Note:
    """A stored note."""

    id: Identifier
    ticks: Ticks
    duration: Ticks
    note_number: NoteNumber
    velocity: Velocity
    track_id: str | None = None

    @property
    def end_ticks(self) -> int:
        return self.ticks + self.duration

    def to_dict(self) -> dict[str, Any]:
        """Convert to a host record."""
        return {
            "id": self.id,
            "kind": NOTE_KIND,
            "ticks": self.ticks,
            "duration": self.duration,
            "velocity": self.velocity,
            "noteNumber": self.note_number,
            "trackId": self.track_id,
        }


@dataclass(frozen=True, slots=True)
class NoteInput:
    """Payload for creating a note. The store assigns the id."""

    ticks: Ticks
    duration: Ticks
    note_number: NoteNumber = NoteNumber(60)
    velocity: Velocity = Velocity(100)
    track_id: str | None = None

    def build(self, note_id: Identifier) -> Note:
        return Note(
            id=note_id,
            ticks=self.ticks,
            duration=self.duration,
            note_number=self.note_number,
            velocity=self.velocity,
            track_id=self.track_id,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NoteInput:
        """Create a NoteInput from a host record (any "id" key is ignored)."""
        kwargs = _parse_record(
            data,
            _NOTE_FIELDS,
            what="note",
            ignored=frozenset({"id", "kind"}),
            required=("ticks", "duration"),
        )
        _check_note_kind(data)
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class NoteUpdater:
    """Partial patch for a note. Fields left UNSET are unchanged."""

    ticks: Ticks | Unset = UNSET
    duration: Ticks | Unset = UNSET
    note_number: NoteNumber | Unset = UNSET
    velocity: Velocity | Unset = UNSET
    track_id: str | None | Unset = UNSET

    def apply_to(self, note: Note) -> Note:
        """Return `note` with every set field replaced."""
        return Note(
            id=note.id,
            ticks=pick(self.ticks, note.ticks),
            duration=pick(self.duration, note.duration),
            note_number=pick(self.note_number, note.note_number),
            velocity=pick(self.velocity, note.velocity),
            track_id=pick(self.track_id, note.track_id),
        )

    def changed_fields(self) -> tuple[str, ...]:
        return _changed_fields(self)

    def is_empty(self) -> bool:
        return not self.changed_fields()

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, note_id: str | None = None
    ) -> NoteUpdater:
        """
        Create a NoteUpdater from a host record.

        Keys absent from the record stay UNSET; `"trackId": None` clears the
        track. A "kind" key must be "Note". An "id" key is accepted, but when
        `note_id` is given it must name the same note.

        Raises:
            PayloadError: On a bad record or an "id" other than `note_id`.
        """
        kwargs = _parse_record(
            data, _NOTE_FIELDS, what="note", ignored=frozenset({"id", "kind"})
        )
        _check_note_kind(data)
        _check_record_id(data, note_id, what="note")
        return cls(**kwargs)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class Event:
    """
    A stored non-note timeline element.

    `kind` is an opaque label chosen by the host (e.g. "control_change",
    "pitch_bend", "marker"); `value` is its payload. `duration` is 0 for
    instantaneous events.
    """

    id: Identifier
    ticks: Ticks
    kind: str
    value: int = 0
    duration: Ticks = Ticks(0)
    track_id: str | None = None

    @property
    def end_ticks(self) -> int:
        return self.ticks + self.duration

    def to_dict(self) -> dict[str, Any]:
        """Convert to a host record."""
        return {
            "id": self.id,
            "kind": self.kind,
            "ticks": self.ticks,
            "duration": self.duration,
            "value": self.value,
            "trackId": self.track_id,
        }


@dataclass(frozen=True, slots=True)
class EventInput:
    """Payload for creating an event. The store assigns the id."""

    ticks: Ticks
    kind: str
    value: int = 0
    duration: Ticks = Ticks(0)
    track_id: str | None = None

    def build(self, event_id: Identifier) -> Event:
        return Event(
            id=event_id,
            ticks=self.ticks,
            kind=self.kind,
            value=self.value,
            duration=self.duration,
            track_id=self.track_id,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EventInput:
        """Create an EventInput from a host record (any "id" key is ignored)."""
        kwargs = _parse_record(
            data,
            _EVENT_FIELDS,
            what="event",
            ignored=frozenset({"id"}),
            required=("ticks", "kind"),
        )
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class EventUpdater:
    """Partial patch for an event. Fields left UNSET are unchanged."""

    ticks: Ticks | Unset = UNSET
    kind: str | Unset = UNSET
    value: int | Unset = UNSET
    duration: Ticks | Unset = UNSET
    track_id: str | None | Unset = UNSET

    def apply_to(self, event: Event) -> Event:
        """Return `event` with every set field replaced."""
        return Event(
            id=event.id,
            ticks=pick(self.ticks, event.ticks),
            kind=pick(self.kind, event.kind),
            value=pick(self.value, event.value),
            duration=pick(self.duration, event.duration),
            track_id=pick(self.track_id, event.track_id),
        )

    def changed_fields(self) -> tuple[str, ...]:
        return _changed_fields(self)

    def is_empty(self) -> bool:
        return not self.changed_fields()

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, event_id: str | None = None
    ) -> EventUpdater:
        """
        Create an EventUpdater from a host record; absent keys stay UNSET.

        An "id" key must match `event_id` when that is given.
        """
        kwargs = _parse_record(data, _EVENT_FIELDS, what="event", ignored=frozenset({"id"}))
        _check_record_id(data, event_id, what="event")
        return cls(**kwargs)
