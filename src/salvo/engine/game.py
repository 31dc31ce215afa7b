"""Two-player Battleship match between a human and the computer."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from salvo.ai.targeting import TargetingEngine
from salvo.config import GameConfig
from salvo.telemetry import get_meter, get_tracer

from .grid import AttackOutcome, AttackResult, EnemyView, SeaGrid, TileView
from .location import Location

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.game")
meter = get_meter("salvo.engine.game")

MOVE_COUNTER = meter.create_counter(
    "salvo_engine_moves",
    unit="1",
    description="Number of shots fired in BattleshipGame",
)

AttackListener = Callable[["Player", AttackResult], None]


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    DEPLOYING = "deploying"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Player(Enum):
    """The two sides of a match."""

    HUMAN = "human"
    COMPUTER = "computer"

    def opponent(self) -> Player:
        return Player.COMPUTER if self is Player.HUMAN else Player.HUMAN


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current match."""

    phase: GamePhase
    current_player: Player
    winner: Player | None
    ships_left: dict[Player, int]
    shots: dict[Player, dict[Location, TileView]]


class BattleshipGame:
    """Owns both grids and the computer's targeting engine and enforces turn order.

    A player keeps shooting while their shots land; a miss passes the turn.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        on_attack: AttackListener | None = None,
        engine_factory: Callable[..., TargetingEngine] = TargetingEngine,
    ) -> None:
        self.config = config or GameConfig()
        self._rng = random.Random(self.config.seed)
        self.grids: dict[Player, SeaGrid] = {
            player: SeaGrid(self.config.width, self.config.height, owner=player.value)
            for player in Player
        }
        self.engine = engine_factory(
            EnemyView(self.grids[Player.HUMAN]),
            self.config.difficulty,
            rng=random.Random(self._rng.random()),
            search_attempts=self.config.search_attempts,
        )
        self.phase = GamePhase.DEPLOYING
        self.current_player = Player.HUMAN
        self.winner: Player | None = None
        self.history: list[tuple[Player, AttackResult]] = []
        self._on_attack = on_attack

    def setup_random(self) -> None:
        """Randomly deploy both fleets and start the match."""
        with tracer.start_as_current_span("game.setup_random"):
            for grid in self.grids.values():
                grid.random_placement(self._rng)
            self.start()

    def start(self) -> None:
        """Leave deployment once both fleets are placed."""
        if any(not grid.ships for grid in self.grids.values()):
            logger.error("start_rejected_empty_fleet")
            raise RuntimeError("Both players must deploy ships before the game starts.")
        self.phase = GamePhase.IN_PROGRESS
        self.current_player = Player.HUMAN
        self.winner = None
        logger.info(
            "game_started",
            extra={"difficulty": self.config.difficulty.value, "phase": self.phase.value},
        )

    def ships_left(self, player: Player) -> int:
        return self.grids[player].ships_remaining

    def shoot(self, row: int, column: int, keep_turn: bool = False) -> AttackResult:
        """Fire at the opponent of the current player.

        With ``keep_turn`` a miss does not pass the turn; the caller hands it
        over once the turn is really finished.
        """
        with tracer.start_as_current_span("game.shoot") as span:
            player = self.current_player
            span.set_attribute("player", player.value)
            span.set_attribute("row", row)
            span.set_attribute("column", column)
            if self.phase is not GamePhase.IN_PROGRESS:
                logger.error(
                    "shot_rejected_game_not_in_progress",
                    extra={"player": player.value, "phase": self.phase.value},
                )
                raise RuntimeError("Game is not in progress.")

            result = self.grids[player.opponent()].attack(row, column)
            self.history.append((player, result))

            if result.outcome is AttackOutcome.GAME_OVER:
                self.winner = player
                self.phase = GamePhase.FINISHED
                span.set_attribute("game.winner", player.value)
                logger.info("game_finished", extra={"winner": player.value})
            elif result.outcome is AttackOutcome.MISS and not keep_turn:
                self.current_player = player.opponent()

            MOVE_COUNTER.add(1, attributes={"result": result.outcome.value, "player": player.value})
            if self._on_attack is not None:
                self._on_attack(player, result)
            return result

    def play_computer_turn(self) -> list[AttackResult]:
        """Let the computer fire until the game ends or its turn is spent."""
        if self.current_player is not Player.COMPUTER:
            logger.error("computer_turn_out_of_order", extra={"current": self.current_player.value})
            raise RuntimeError("It is not the computer's turn.")

        results: list[AttackResult] = []
        self.engine.begin_turn()
        while self.phase is GamePhase.IN_PROGRESS:
            location = self.engine.choose_shot()
            result = self.shoot(location.row, location.column, keep_turn=True)
            self.engine.on_shot_resolved(result.row, result.column, result.outcome, result.sunk_cells)
            results.append(result)
            if result.outcome is AttackOutcome.MISS and self.engine.turn_over:
                break

        if self.phase is GamePhase.IN_PROGRESS:
            self.current_player = Player.HUMAN
        return results

    def get_state(self) -> GameState:
        """Return an immutable view of the current match."""
        return GameState(
            phase=self.phase,
            current_player=self.current_player,
            winner=self.winner,
            ships_left={player: grid.ships_remaining for player, grid in self.grids.items()},
            shots={player: dict(grid.shots) for player, grid in self.grids.items()},
        )

    def valid_moves(self, player: Player) -> list[Location]:
        """Return every cell the player has not yet fired at."""
        if self.phase is not GamePhase.IN_PROGRESS:
            return []
        target = self.grids[player.opponent()]
        return [
            Location(row, column)
            for row in range(target.height)
            for column in range(target.width)
            if Location(row, column) not in target.shots
        ]
