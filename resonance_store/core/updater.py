"""
Partial-update protocol.

An Updater carries, per field, either `UNSET` ("leave unchanged") or a
replacement value. Merging is field-by-field with no cross-field rules:

    result.field = current.field if patch.field is UNSET else patch.field

`None` is an ordinary replacement value (e.g. clearing a note's track), which
is why "no change" needs its own marker.
"""

from __future__ import annotations

from dataclasses import fields
from enum import Enum
from typing import Any, Final, Literal, TypeVar

T = TypeVar("T")


class _Unset(Enum):
    """Type of the `UNSET` marker."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset.UNSET

# For annotations: `Ticks | Unset`
Unset = Literal[_Unset.UNSET]


def pick(patch_value: T | Unset, current: T) -> T:
    """Return the patch value unless it is UNSET."""
    if patch_value is UNSET:
        return current
    return patch_value


def changed_fields(updater: Any) -> tuple[str, ...]:
    """Names of the fields an updater dataclass sets, in declaration order."""
    return tuple(f.name for f in fields(updater) if getattr(updater, f.name) is not UNSET)
