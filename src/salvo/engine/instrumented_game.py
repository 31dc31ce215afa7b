"""Instrumented Battleship game with telemetry hooks."""

from __future__ import annotations

import time
from typing import Any

from salvo.engine.game import BattleshipGame, GamePhase, Player
from salvo.engine.grid import AttackResult
from salvo.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedBattleshipGame(BattleshipGame):
    """Wraps BattleshipGame with tracing, metrics, and logging."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.engine")
        self._tracer = get_tracer("salvo.engine")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0

    def setup_random(self) -> None:
        self._start_game_span()
        with self._tracer.start_as_current_span("salvo.engine.setup_random") as span:
            self._logger.info("Random setup started")
            super().setup_random()
            span.set_attribute("difficulty", self.config.difficulty.value)
            span.set_attribute("human_ships", len(self.grids[Player.HUMAN].ships))
            span.set_attribute("computer_ships", len(self.grids[Player.COMPUTER].ships))
            record_game_metric(
                "salvo_game_setup_total",
                1,
                {"difficulty": self.config.difficulty.value},
            )
            self._logger.info("Random setup finished")

    def shoot(self, row: int, column: int, keep_turn: bool = False) -> AttackResult:
        player = self.current_player
        with self._tracer.start_as_current_span("salvo.engine.shoot") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("player", player.name)
            span.set_attribute("coord.row", row)
            span.set_attribute("coord.column", column)

            try:
                result = super().shoot(row, column, keep_turn=keep_turn)
            except (ValueError, RuntimeError) as exc:
                record_game_metric(
                    "salvo_game_invalid_shots_total",
                    1,
                    {"player": player.name, "reason": type(exc).__name__},
                )
                span.record_exception(exc)
                span.set_attribute("error", True)
                self._logger.error("Invalid shot from %s at (%d,%d): %s", player.name, row, column, exc)
                raise

            span.set_attribute("shot_outcome", result.outcome.name)
            record_game_metric("salvo_shots_total", 1, {"player": player.name})
            record_game_metric(
                "salvo_shots_by_result_total",
                1,
                {"player": player.name, "result": result.outcome.value},
            )
            self._logger.info(
                "shoot player=%s coord=(%d,%d) outcome=%s",
                player.name,
                row,
                column,
                result.outcome.name,
            )

            if self.phase is GamePhase.FINISHED and self.winner:
                span.set_attribute("winner", self.winner.name)
                self._finish_game()
            return result

    def play_computer_turn(self) -> list[AttackResult]:
        with self._tracer.start_as_current_span("salvo.engine.computer_turn") as span:
            span.set_attribute("game.id", self._game_id_counter)
            results = super().play_computer_turn()
            span.set_attribute("shots", len(results))
            record_game_metric("salvo_computer_turns_total", 1, {"difficulty": self.config.difficulty.value})
            return results

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("salvo.engine.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        total_shots = len(self.history)
        winner = self.winner.name if self.winner else "unknown"

        record_game_metric("salvo_game_completed_total", 1, {"winner": winner})
        record_game_metric("salvo_game_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("salvo.engine.game_complete") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("winner", winner)
            span.set_attribute("shots", total_shots)
            span.set_attribute("duration_ms", duration * 1000)

        if self._game_span is not None:
            self._game_span.set_attribute("winner", winner)
            self._game_span.set_attribute("shots", total_shots)

        self._logger.info("Game finished. Winner=%s shots=%d duration_s=%.3f", winner, total_shots, duration)
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
