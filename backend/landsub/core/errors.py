"""Exceptions raised by the editing session.

The geometry kernel never raises; these cover commands that name things
that do not exist and broken session invariants.
"""

from __future__ import annotations


class LandSubError(Exception):
    """Base class for editor errors."""


class UnknownEntityError(LandSubError, KeyError):
    """Raised when a command references a road or lot id that is not in the scene."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"No {kind} with id '{entity_id}'")

    def __str__(self) -> str:
        return self.args[0]


class InvalidCommandError(LandSubError, ValueError):
    """Raised when a command cannot be applied to the current scene."""


class SceneInvariantError(LandSubError, RuntimeError):
    """Raised when in-flight editing state points at geometry that no longer exists."""
