"""Ship domain model for the Battleship engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .location import Location


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class ShipType(Enum):
    """The standard fleet and each ship's length."""

    CARRIER = 5
    BATTLESHIP = 4
    CRUISER = 3
    SUBMARINE = 3
    DESTROYER = 2

    @property
    def length(self) -> int:
        return self.value

    @property
    def display_name(self) -> str:
        return self.name.title()


@dataclass
class Ship:
    """A single deployed ship and the segments that have been hit."""

    ship_type: ShipType
    start: Location
    orientation: Orientation
    hits: set[Location] = field(init=False)
    _cells: tuple[Location, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.hits = set()
        cells: list[Location] = []
        for offset in range(self.ship_type.length):
            if self.orientation is Orientation.HORIZONTAL:
                cells.append(Location(self.start.row, self.start.column + offset))
            else:
                cells.append(Location(self.start.row + offset, self.start.column))
        self._cells = tuple(cells)

    def cells(self) -> list[Location]:
        """Return the ordered cells occupied by this ship."""
        return list(self._cells)

    def occupies(self, location: Location) -> bool:
        return location in self._cells

    def hit(self, location: Location) -> bool:
        """Record a hit if the location is an undamaged segment of this ship."""
        if location not in self._cells or location in self.hits:
            return False
        self.hits.add(location)
        return True

    def is_destroyed(self) -> bool:
        return len(self.hits) == len(self._cells)

    def overlaps(self, other: Ship) -> bool:
        return bool(set(self._cells) & set(other._cells))
