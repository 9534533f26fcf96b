"""
Tests for entity records and the partial-update protocol.

Tests cover:
- UNSET marker and pick()
- NoteUpdater / EventUpdater merge semantics
- Host record conversion (to_dict / from_dict)
"""

from __future__ import annotations

import dataclasses

import pytest

from resonance_store.core import PayloadError
from resonance_store.core.ids import generate_id
from resonance_store.core.models import (
    Event,
    EventInput,
    EventUpdater,
    Note,
    NoteInput,
    NoteUpdater,
)
from resonance_store.core.updater import UNSET, changed_fields, pick


def make_note(**overrides: object) -> Note:
    values: dict[str, object] = {
        "ticks": 0,
        "duration": 480,
        "note_number": 60,
        "velocity": 100,
        "track_id": None,
    }
    values.update(overrides)
    return NoteInput(**values).build(generate_id())  # type: ignore[arg-type]


def make_event(**overrides: object) -> Event:
    values: dict[str, object] = {"ticks": 0, "kind": "control_change", "value": 64}
    values.update(overrides)
    return EventInput(**values).build(generate_id())  # type: ignore[arg-type]


class TestUnset:
    """Tests for the UNSET marker."""

    def test_repr(self) -> None:
        """Should repr as a bare UNSET."""
        assert repr(UNSET) == "UNSET"

    def test_falsy(self) -> None:
        """Should be falsy."""
        assert not UNSET

    def test_pick(self) -> None:
        """Should keep the current value only for UNSET."""
        assert pick(UNSET, 5) == 5
        assert pick(7, 5) == 7
        assert pick(None, "track") is None
        assert pick(0, 5) == 0

    def test_changed_fields(self) -> None:
        """Should list set fields in declaration order."""
        assert changed_fields(NoteUpdater()) == ()
        assert changed_fields(NoteUpdater(velocity=10, ticks=5)) == ("ticks", "velocity")


class TestNote:
    """Tests for Note and NoteInput."""

    def test_build_assigns_id(self) -> None:
        """Should build a note with the given id and input defaults."""
        note_id = generate_id()
        note = NoteInput(ticks=0, duration=4).build(note_id)
        assert note.id == note_id
        assert note.ticks == 0
        assert note.duration == 4
        assert note.note_number == 60
        assert note.velocity == 100
        assert note.track_id is None

    def test_frozen_immutable(self) -> None:
        """Should reject attribute assignment."""
        note = make_note()
        with pytest.raises(dataclasses.FrozenInstanceError):
            note.ticks = 10  # type: ignore[misc]

    def test_end_ticks(self) -> None:
        """Should end at ticks + duration."""
        assert make_note(ticks=240, duration=480).end_ticks == 720

    def test_to_dict(self) -> None:
        """Should produce the camelCase host record."""
        note = make_note(ticks=960, duration=240, note_number=64, velocity=90, track_id="t1")
        assert note.to_dict() == {
            "id": note.id,
            "kind": "Note",
            "ticks": 960,
            "duration": 240,
            "velocity": 90,
            "noteNumber": 64,
            "trackId": "t1",
        }


class TestNoteUpdater:
    """Tests for NoteUpdater merge semantics."""

    def test_empty_is_noop(self) -> None:
        """Should return an equal note for an empty updater."""
        note = make_note()
        assert NoteUpdater().is_empty()
        assert NoteUpdater().apply_to(note) == note

    def test_partial_update(self) -> None:
        """Should change only the set fields."""
        note = make_note(ticks=0, duration=4, velocity=80, track_id="a")
        updated = NoteUpdater(duration=8).apply_to(note)

        assert updated.id == note.id
        assert updated.duration == 8
        assert updated.ticks == 0
        assert updated.velocity == 80
        assert updated.track_id == "a"

    def test_none_clears_track(self) -> None:
        """Should treat None as a replacement value, not 'no change'."""
        note = make_note(track_id="a")
        assert NoteUpdater(track_id=None).apply_to(note).track_id is None

    def test_all_fields(self) -> None:
        """Should replace every field when all are set."""
        note = make_note()
        patch = NoteUpdater(ticks=1, duration=2, note_number=3, velocity=4, track_id="x")
        updated = patch.apply_to(note)
        assert updated == Note(
            id=note.id, ticks=1, duration=2, note_number=3, velocity=4, track_id="x"
        )
        assert not patch.is_empty()

    def test_no_cross_field_validation(self) -> None:
        """Should store negative durations as given."""
        note = make_note(duration=480)
        assert NoteUpdater(duration=-10).apply_to(note).duration == -10


class TestNoteFromDict:
    """Tests for NoteInput.from_dict / NoteUpdater.from_dict."""

    def test_input_minimal(self) -> None:
        """Should accept a record with only ticks and duration."""
        data = NoteInput.from_dict({"ticks": 0, "duration": 4})
        assert data == NoteInput(ticks=0, duration=4)

    def test_input_full_record(self) -> None:
        """Should accept a full host record and ignore its id."""
        data = NoteInput.from_dict(
            {
                "id": "ignored",
                "kind": "Note",
                "ticks": 480.0,
                "duration": 240,
                "velocity": 90,
                "noteNumber": 62,
                "trackId": "t1",
            }
        )
        assert data == NoteInput(
            ticks=480, duration=240, note_number=62, velocity=90, track_id="t1"
        )

    def test_input_round_trip_from_note(self) -> None:
        """Should rebuild a note from its own host record."""
        note = make_note(ticks=10, duration=20, track_id="t")
        rebuilt = NoteInput.from_dict(note.to_dict()).build(note.id)
        assert rebuilt == note

    def test_input_missing_required(self) -> None:
        """Should name the missing required key."""
        with pytest.raises(PayloadError, match="duration"):
            NoteInput.from_dict({"ticks": 0})

    def test_input_unknown_key(self) -> None:
        """Should name the unknown key."""
        with pytest.raises(PayloadError, match="pitch"):
            NoteInput.from_dict({"ticks": 0, "duration": 1, "pitch": 60})

    def test_input_wrong_kind(self) -> None:
        """Should reject a record of another kind."""
        with pytest.raises(PayloadError, match="kind"):
            NoteInput.from_dict({"kind": "ControlChange", "ticks": 0, "duration": 1})

    @pytest.mark.parametrize("value", ["0", 1.5, True, None])
    def test_input_bad_number(self, value: object) -> None:
        """Should reject values that are not whole numbers."""
        with pytest.raises(PayloadError):
            NoteInput.from_dict({"ticks": value, "duration": 1})

    def test_not_a_mapping(self) -> None:
        """Should reject records that are not mappings."""
        with pytest.raises(PayloadError):
            NoteInput.from_dict([("ticks", 0)])  # type: ignore[arg-type]

    def test_payload_error_is_value_error(self) -> None:
        """Should raise an error catchable as ValueError."""
        with pytest.raises(ValueError):
            NoteInput.from_dict({})

    def test_updater_absent_keys_unset(self) -> None:
        """Should leave absent keys UNSET."""
        patch = NoteUpdater.from_dict({"duration": 8})
        assert patch == NoteUpdater(duration=8)
        assert patch.changed_fields() == ("duration",)

    def test_updater_null_track(self) -> None:
        """Should turn a null trackId into a None replacement."""
        patch = NoteUpdater.from_dict({"trackId": None})
        assert patch.track_id is None
        assert patch.changed_fields() == ("track_id",)

    def test_updater_empty_record(self) -> None:
        """Should build an empty updater from an empty record."""
        assert NoteUpdater.from_dict({}).is_empty()

    def test_updater_id_without_target(self) -> None:
        """Should accept any id when no target note is given."""
        patch = NoteUpdater.from_dict({"id": "whatever", "kind": "Note", "velocity": 1})
        assert patch == NoteUpdater(velocity=1)

    def test_updater_matching_id(self) -> None:
        """Should accept an id naming the target note, in any spelling."""
        note_id = generate_id()
        patch = NoteUpdater.from_dict(
            {"id": note_id.upper(), "velocity": 1}, note_id=note_id
        )
        assert patch == NoteUpdater(velocity=1)

    def test_updater_mismatched_id(self) -> None:
        """Should reject an id naming another note."""
        with pytest.raises(PayloadError, match="does not match"):
            NoteUpdater.from_dict(
                {"id": generate_id(), "velocity": 1}, note_id=generate_id()
            )

    def test_updater_malformed_id(self) -> None:
        """Should reject a malformed id when a target note is given."""
        with pytest.raises(PayloadError):
            NoteUpdater.from_dict({"id": "nope", "velocity": 1}, note_id=generate_id())


class TestEvent:
    """Tests for Event, EventInput and EventUpdater."""

    def test_build_defaults(self) -> None:
        """Should default to an instantaneous event with value 0."""
        event = EventInput(ticks=96, kind="pitch_bend").build(generate_id())
        assert event.ticks == 96
        assert event.kind == "pitch_bend"
        assert event.value == 0
        assert event.duration == 0
        assert event.track_id is None
        assert event.end_ticks == 96

    def test_to_dict(self) -> None:
        """Should produce the camelCase host record."""
        event = make_event(ticks=10, value=127, track_id="t2")
        assert event.to_dict() == {
            "id": event.id,
            "kind": "control_change",
            "ticks": 10,
            "duration": 0,
            "value": 127,
            "trackId": "t2",
        }

    def test_updater_partial(self) -> None:
        """Should change only the set fields."""
        event = make_event(value=64)
        updated = EventUpdater(value=0).apply_to(event)
        assert updated.value == 0
        assert updated.kind == event.kind
        assert updated.ticks == event.ticks
        assert updated.id == event.id

    def test_updater_can_change_kind(self) -> None:
        """Should allow relabelling an event."""
        event = make_event()
        assert EventUpdater(kind="marker").apply_to(event).kind == "marker"

    def test_updater_empty(self) -> None:
        """Should return an equal event for an empty updater."""
        event = make_event()
        assert EventUpdater().is_empty()
        assert EventUpdater().apply_to(event) == event

    def test_input_from_dict(self) -> None:
        """Should build an EventInput from a host record."""
        data = EventInput.from_dict({"ticks": 0, "kind": "marker", "value": 3})
        assert data == EventInput(ticks=0, kind="marker", value=3)

    def test_input_from_dict_requires_kind(self) -> None:
        """Should require a kind."""
        with pytest.raises(PayloadError, match="kind"):
            EventInput.from_dict({"ticks": 0})

    def test_input_from_dict_bad_kind_type(self) -> None:
        """Should reject a non-string kind."""
        with pytest.raises(PayloadError):
            EventInput.from_dict({"ticks": 0, "kind": 5})

    def test_updater_from_dict(self) -> None:
        """Should build an EventUpdater from a host record."""
        patch = EventUpdater.from_dict({"id": "x", "value": 5, "trackId": None})
        assert patch == EventUpdater(value=5, track_id=None)

    def test_updater_from_dict_mismatched_id(self) -> None:
        """Should reject an id naming another event."""
        with pytest.raises(PayloadError):
            EventUpdater.from_dict({"id": generate_id(), "value": 5}, event_id=generate_id())
