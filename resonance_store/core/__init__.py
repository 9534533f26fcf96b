"""
Core domain package.

This package contains the entity store itself: identifiers, the Note/Event
records, the partial-update protocol and the per-kind tables. It has no
knowledge of how the host application loads or drives the store.

Consumers should usually import from the specific module they need
(e.g. `resonance_store.core.models`); only the error types live here.
"""

from __future__ import annotations

from typing import Any

__all__: list[str] = [
    "ConfigError",
    "CoreError",
    "InvalidIdError",
    "NotFoundError",
    "PayloadError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class NotFoundError(CoreError, KeyError):
    """Raised when an entity (note/event) cannot be found in its table."""

    def __init__(self, table: str, entity_id: object, message: str | None = None) -> None:
        self.table = table
        self.entity_id = entity_id
        self.message = message or f"{table} {entity_id!s} does not exist"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def __reduce__(self) -> tuple[Any, ...]:
        # args only holds the message; rebuild from the constructor arguments
        return (type(self), (self.table, self.entity_id, self.message))


class InvalidIdError(NotFoundError):
    """Raised when a supplied identifier is not a valid UUID."""

    def __init__(self, table: str, entity_id: object) -> None:
        super().__init__(table, entity_id, f"{table} id {entity_id!r} is not valid")

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.table, self.entity_id))


class PayloadError(CoreError, ValueError):
    """Raised when a host record cannot be turned into an Input or Updater."""


class ConfigError(CoreError):
    """Raised when the store configuration cannot be loaded."""
