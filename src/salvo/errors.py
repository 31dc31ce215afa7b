"""Exceptions raised by the targeting engine when its invariants break."""

from __future__ import annotations


class TargetingError(RuntimeError):
    """Base class for targeting engine consistency failures."""


class InvalidEngineStateError(TargetingError):
    """The engine state value is outside the known enumeration."""


class AlreadyShotError(TargetingError):
    """The grid reported that the engine fired at a cell it had already attacked."""

    def __init__(self, row: int, column: int) -> None:
        super().__init__(f"Engine selected already attacked cell ({row}, {column}).")
        self.row = row
        self.column = column


class TargetQueueEmptyError(TargetingError):
    """A probe was popped from an empty target queue."""


class NoLegalShotError(TargetingError):
    """Every cell of the enemy grid has already been attacked."""
