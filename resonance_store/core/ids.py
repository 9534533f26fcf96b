"""
Entity identifiers.

Identifiers are random UUID-v4 strings in canonical (lowercase, hyphenated)
form. They are generated by the store on insert and never supplied by the
caller on creation.
"""

from __future__ import annotations

import uuid
from typing import NewType

from resonance_store.core import InvalidIdError

Identifier = NewType("Identifier", str)


def generate_id() -> Identifier:
    """Return a fresh random identifier."""
    return Identifier(str(uuid.uuid4()))


def parse_id(value: str | uuid.UUID, *, table: str = "entity") -> Identifier:
    """
    Normalize a caller-supplied identifier.

    Accepts any textual form `uuid.UUID` understands (upper case, braces,
    URN prefix) and returns the canonical string used as table key.

    Args:
        value: Identifier string or UUID instance.
        table: Table name used in the error message.

    Raises:
        InvalidIdError: If the value is not a UUID.
    """
    if isinstance(value, uuid.UUID):
        return Identifier(str(value))
    if not isinstance(value, str):
        raise InvalidIdError(table, value)
    try:
        return Identifier(str(uuid.UUID(value)))
    except ValueError:
        raise InvalidIdError(table, value) from None


def is_valid_id(value: object) -> bool:
    """Check whether a value would be accepted by `parse_id`."""
    try:
        parse_id(value)  # type: ignore[arg-type]
    except InvalidIdError:
        return False
    return True
