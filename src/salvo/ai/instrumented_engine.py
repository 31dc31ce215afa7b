"""Targeting engine emitting OpenTelemetry spans, metrics and logs."""

from __future__ import annotations

import time
from typing import Iterable

from salvo.ai.targeting import TargetingEngine
from salvo.engine.grid import AttackOutcome
from salvo.engine.location import Location
from salvo.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedTargetingEngine(TargetingEngine):
    """TargetingEngine subclass that wraps shot selection and feedback with telemetry."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.ai")
        self._tracer = get_tracer("salvo.ai")

    def choose_shot(self) -> Location:
        start = time.perf_counter()
        with self._tracer.start_as_current_span("salvo.ai.choose_shot") as span:
            state_before = self.state
            span.set_attribute("policy", self.policy.name)
            span.set_attribute("state", state_before.value)
            span.set_attribute("queue_size", len(self.queue))
            location = super().choose_shot()

            duration_ms = (time.perf_counter() - start) * 1000
            mode = state_before.value
            record_game_metric("salvo_ai_choices_total", 1, {"policy": self.policy.name, "mode": mode})
            record_game_metric("salvo_ai_choice_latency_ms", duration_ms, {"mode": mode})
            span.set_attribute("row", location.row)
            span.set_attribute("column", location.column)
            self._logger.info(
                "choose_shot policy=%s state=%s coord=(%d,%d)",
                self.policy.name,
                mode,
                location.row,
                location.column,
            )
            return location

    def on_shot_resolved(
        self,
        row: int,
        column: int,
        outcome: AttackOutcome,
        sunk: Iterable[Location] = (),
    ) -> None:
        with self._tracer.start_as_current_span("salvo.ai.on_shot_resolved") as span:
            span.set_attribute("row", row)
            span.set_attribute("column", column)
            span.set_attribute("outcome", outcome.value)
            queued_before = len(self.queue)
            try:
                super().on_shot_resolved(row, column, outcome, sunk)
            except Exception as exc:
                span.record_exception(exc)
                span.set_attribute("error", True)
                record_game_metric("salvo_ai_consistency_errors_total", 1, {"outcome": outcome.value})
                raise

            span.set_attribute("state", self.state.value)
            span.set_attribute("queue_delta", len(self.queue) - queued_before)
            record_game_metric(
                "salvo_ai_outcomes_total",
                1,
                {"policy": self.policy.name, "outcome": outcome.value},
            )
            self._logger.info(
                "on_shot_resolved coord=(%d,%d) outcome=%s state=%s queued=%d",
                row,
                column,
                outcome.value,
                self.state.value,
                len(self.queue),
            )
