"""Grid coordinates and orthogonal directions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Location:
    """Immutable board coordinate."""

    row: int
    column: int

    def step(self, direction: Direction) -> Location:
        """Return the neighbouring location one cell away in ``direction``."""
        delta_row, delta_column = direction.value
        return Location(self.row + delta_row, self.column + delta_column)

    def in_bounds(self, height: int, width: int) -> bool:
        return 0 <= self.row < height and 0 <= self.column < width


class Direction(Enum):
    """Orthogonal directions as (row, column) deltas."""

    UP = (-1, 0)
    LEFT = (0, -1)
    DOWN = (1, 0)
    RIGHT = (0, 1)

    @property
    def opposite(self) -> Direction:
        delta_row, delta_column = self.value
        return Direction((-delta_row, -delta_column))


# Enqueue order for neighbour probes: north, west, south, east.
PROBE_ORDER: tuple[Direction, ...] = (
    Direction.UP,
    Direction.LEFT,
    Direction.DOWN,
    Direction.RIGHT,
)
