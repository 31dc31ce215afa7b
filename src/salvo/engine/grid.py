"""Sea grids: the owner's board and the attacker's read-only view of it."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from salvo.telemetry import get_meter, get_tracer

from .location import Location
from .ship import Orientation, Ship, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.grid")
meter = get_meter("salvo.engine.grid")

MAX_PLACEMENT_ATTEMPTS = 10_000

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

SHOT_COUNTER = meter.create_counter(
    "salvo_engine_shots_received",
    unit="1",
    description="Shots received by a sea grid",
)


class TileView(Enum):
    """What a player can see in a single cell."""

    SEA = "sea"
    HIT = "hit"
    MISS = "miss"
    SHIP = "ship"


class AttackOutcome(Enum):
    """Result classification of firing at a cell."""

    MISS = "miss"
    HIT = "hit"
    DESTROYED = "destroyed"
    GAME_OVER = "game_over"
    ALREADY_SHOT = "already_shot"

    @property
    def is_hit(self) -> bool:
        return self in (AttackOutcome.HIT, AttackOutcome.DESTROYED, AttackOutcome.GAME_OVER)


@dataclass(frozen=True)
class AttackResult:
    """Outcome of one shot, with the ship it struck when there was one."""

    outcome: AttackOutcome
    row: int
    column: int
    ship: Ship | None = None

    @property
    def location(self) -> Location:
        return Location(self.row, self.column)

    @property
    def sunk_cells(self) -> list[Location]:
        """Cells of the ship this shot sank, empty unless it sank one."""
        if self.ship is None or self.outcome not in (AttackOutcome.DESTROYED, AttackOutcome.GAME_OVER):
            return []
        return self.ship.cells()

    def __str__(self) -> str:
        if self.outcome is AttackOutcome.HIT:
            return "hit something!"
        if self.outcome is AttackOutcome.MISS:
            return "missed"
        if self.outcome is AttackOutcome.ALREADY_SHOT:
            return f"already shot at ({self.row}, {self.column})"
        name = self.ship.ship_type.display_name if self.ship else "ship"
        if self.outcome is AttackOutcome.GAME_OVER:
            return f"destroyed the final ship, the {name}!"
        return f"destroyed the {name}!"


class GridView(Protocol):
    """Read-only surface the targeting engine queries."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def __getitem__(self, key: tuple[int, int]) -> TileView: ...


@dataclass
class SeaGrid:
    """A player's board holding the deployed fleet and every shot taken at it."""

    width: int = 10
    height: int = 10
    owner: str = "unknown"
    ships: list[Ship] = field(default_factory=list)
    shots: dict[Location, TileView] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError("Grid dimensions must be positive.")

    def __getitem__(self, key: tuple[int, int]) -> TileView:
        row, column = key
        location = Location(row, column)
        if not location.in_bounds(self.height, self.width):
            raise IndexError(f"Cell ({row}, {column}) is outside the grid.")
        shot = self.shots.get(location)
        if shot is not None:
            return shot
        if any(ship.occupies(location) for ship in self.ships):
            return TileView.SHIP
        return TileView.SEA

    @property
    def ships_remaining(self) -> int:
        return sum(1 for ship in self.ships if not ship.is_destroyed())

    def is_destroyed(self) -> bool:
        return bool(self.ships) and self.ships_remaining == 0

    def can_place_ship(self, ship: Ship) -> bool:
        if not all(cell.in_bounds(self.height, self.width) for cell in ship.cells()):
            return False
        return not any(ship.overlaps(existing) for existing in self.ships)

    def place_ship(self, ship: Ship) -> None:
        """Deploy a ship, rejecting out-of-bounds or overlapping placements."""
        extra = {
            "owner": self.owner,
            "ship_type": ship.ship_type.name,
            "orientation": ship.orientation.name,
            "row": ship.start.row,
            "column": ship.start.column,
        }
        if not self.can_place_ship(ship):
            PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
            logger.debug("ship_placement_rejected", extra=extra)
            raise ValueError(f"{ship.ship_type.display_name} cannot be placed there.")
        self.ships.append(ship)
        PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
        logger.debug("ship_placed", extra=extra)

    def random_placement(self, rng: random.Random) -> None:
        """Clear the grid and deploy one ship of each type at random."""
        with tracer.start_as_current_span("grid.random_placement") as span:
            span.set_attribute("grid.owner", self.owner)
            self.ships.clear()
            self.shots.clear()
            for ship_type in ShipType:
                if ship_type.length > max(self.width, self.height):
                    raise ValueError(
                        f"A {self.height}x{self.width} grid cannot hold a {ship_type.display_name}."
                    )
                attempts = 0
                while True:
                    attempts += 1
                    if attempts > MAX_PLACEMENT_ATTEMPTS:
                        raise RuntimeError(f"Could not find room for the {ship_type.display_name}.")
                    candidate = Ship(
                        ship_type,
                        Location(rng.randrange(self.height), rng.randrange(self.width)),
                        rng.choice(list(Orientation)),
                    )
                    if self.can_place_ship(candidate):
                        self.place_ship(candidate)
                        break
                logger.debug(
                    "random_ship_placed",
                    extra={"ship_type": ship_type.name, "attempts": attempts, "owner": self.owner},
                )

    def attack(self, row: int, column: int) -> AttackResult:
        """Fire at a cell and report what happened."""
        location = Location(row, column)
        with tracer.start_as_current_span("grid.attack") as span:
            span.set_attribute("shot.row", row)
            span.set_attribute("shot.column", column)
            span.set_attribute("grid.owner", self.owner)
            if not location.in_bounds(self.height, self.width):
                logger.error(
                    "shot_out_of_bounds",
                    extra={"row": row, "column": column, "owner": self.owner},
                )
                raise ValueError("Shot out of bounds.")

            result = self._resolve(location)
            span.set_attribute("shot.outcome", result.outcome.value)
            SHOT_COUNTER.add(1, attributes={"outcome": result.outcome.value, "owner": self.owner})
            logger.info(
                "shot_resolved",
                extra={
                    "row": row,
                    "column": column,
                    "outcome": result.outcome.value,
                    "owner": self.owner,
                },
            )
            return result

    def _resolve(self, location: Location) -> AttackResult:
        if location in self.shots:
            return AttackResult(AttackOutcome.ALREADY_SHOT, location.row, location.column)

        for ship in self.ships:
            if ship.hit(location):
                self.shots[location] = TileView.HIT
                if not ship.is_destroyed():
                    outcome = AttackOutcome.HIT
                elif self.ships_remaining == 0:
                    outcome = AttackOutcome.GAME_OVER
                else:
                    outcome = AttackOutcome.DESTROYED
                return AttackResult(outcome, location.row, location.column, ship)

        self.shots[location] = TileView.MISS
        return AttackResult(AttackOutcome.MISS, location.row, location.column)


class EnemyView:
    """Attacker's projection of a grid: undamaged ship segments read as sea."""

    def __init__(self, grid: SeaGrid) -> None:
        self._grid = grid

    @property
    def width(self) -> int:
        return self._grid.width

    @property
    def height(self) -> int:
        return self._grid.height

    def __getitem__(self, key: tuple[int, int]) -> TileView:
        tile = self._grid[key]
        return TileView.SEA if tile is TileView.SHIP else tile

    def attack(self, row: int, column: int) -> AttackResult:
        return self._grid.attack(row, column)
