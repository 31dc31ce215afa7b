"""Opponent targeting engine: picks the computer player's next shot."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Iterable

from salvo.engine.grid import AttackOutcome, GridView, TileView
from salvo.engine.location import Location
from salvo.errors import AlreadyShotError, InvalidEngineStateError, NoLegalShotError
from salvo.telemetry import get_meter

from .difficulty import AIOption, policy_for
from .policies import TargetingPolicy
from .target_queue import Probe, TargetQueue

logger = logging.getLogger(__name__)
meter = get_meter("salvo.ai.targeting")

DEFAULT_SEARCH_ATTEMPTS = 1000

SHOTS_CHOSEN = meter.create_counter(
    "salvo_ai_shots_chosen",
    unit="1",
    description="Shots selected by the targeting engine",
)

CANDIDATES_REJECTED = meter.create_counter(
    "salvo_ai_candidates_rejected",
    unit="1",
    description="Generated candidates rejected as out of bounds or already attacked",
)


class EngineState(Enum):
    """Whether the engine is looking for a ship or finishing one off."""

    SEARCHING = "searching"
    TARGETING = "targeting"


class TargetingEngine:
    """Per-opponent state machine choosing where to fire.

    The engine only reads the enemy grid. The turn loop applies each chosen
    shot and reports the outcome back through :meth:`on_shot_resolved`.
    """

    def __init__(
        self,
        view: GridView,
        policy: TargetingPolicy | AIOption | str = AIOption.MEDIUM,
        rng: random.Random | None = None,
        search_attempts: int = DEFAULT_SEARCH_ATTEMPTS,
    ) -> None:
        if search_attempts < 1:
            raise ValueError("search_attempts must be at least 1.")
        self.view = view
        self.policy = policy if isinstance(policy, TargetingPolicy) else policy_for(policy)
        self.queue = TargetQueue()
        self.state = EngineState.SEARCHING
        self.misses_this_turn = 0
        self._rng = rng or random.Random()
        self._search_attempts = search_attempts
        self._search_draws = 0
        self._pending: Probe | None = None

    @property
    def turn_over(self) -> bool:
        """True once this turn's misses exceed the policy's tolerance."""
        return self.misses_this_turn > self.policy.miss_tolerance

    def begin_turn(self) -> None:
        self.misses_this_turn = 0

    def choose_shot(self) -> Location:
        """Return an in-bounds cell the enemy view still reports as sea."""
        if not self._sea_cells():
            logger.error("no_legal_shot", extra={"policy": self.policy.name})
            raise NoLegalShotError("Every cell of the enemy grid has been attacked.")

        self._search_draws = 0
        rejected = 0
        while True:
            location, probe = self._generate()
            if self._is_legal(location):
                break
            rejected += 1

        self._pending = probe
        if rejected:
            CANDIDATES_REJECTED.add(rejected, attributes={"policy": self.policy.name})
        SHOTS_CHOSEN.add(
            1,
            attributes={
                "policy": self.policy.name,
                "mode": "search" if probe is None else "target",
            },
        )
        logger.debug(
            "shot_chosen",
            extra={
                "row": location.row,
                "column": location.column,
                "state": self.state.value,
                "rejected": rejected,
                "queued": len(self.queue),
            },
        )
        return location

    def on_shot_resolved(
        self,
        row: int,
        column: int,
        outcome: AttackOutcome,
        sunk: Iterable[Location] = (),
    ) -> None:
        """Update the hunting state with the result of the last shot.

        Only a plain ``HIT`` queues neighbours. When a ship goes down, ``sunk``
        names its cells so a forgetting policy can drop the probes raised
        from them; without it only the destroying cell counts as sunk.
        """
        location = Location(row, column)
        probe = self._pending if self._pending and self._pending.target == location else None
        self._pending = None

        if outcome is AttackOutcome.ALREADY_SHOT:
            logger.error(
                "engine_fired_at_attacked_cell",
                extra={"row": row, "column": column, "policy": self.policy.name},
            )
            raise AlreadyShotError(row, column)

        if outcome is AttackOutcome.HIT:
            self.policy.on_hit(self.view, self.queue, location)
        elif outcome.is_hit:
            if self.policy.forget_on_destroyed:
                self._forget(set(sunk) | {location})
        elif outcome is AttackOutcome.MISS:
            self.misses_this_turn += 1
            if probe is not None:
                dropped = self.policy.on_miss(self.queue, probe)
                if dropped:
                    logger.debug(
                        "probes_pruned",
                        extra={"count": len(dropped), "direction": probe.direction.name},
                    )

        self.state = EngineState.TARGETING if self.queue else EngineState.SEARCHING

    def _forget(self, sunk: set[Location]) -> None:
        dropped = self.queue.remove_where(lambda probe: probe.source in sunk)
        if dropped:
            logger.debug("probes_forgotten", extra={"count": len(dropped), "ship_cells": len(sunk)})

    def _generate(self) -> tuple[Location, Probe | None]:
        if self.state is EngineState.SEARCHING:
            return self._search(), None
        if self.state is EngineState.TARGETING:
            return self._target()
        logger.error("engine_invalid_state", extra={"state": repr(self.state)})
        raise InvalidEngineStateError(f"AI has gone into an invalid state: {self.state!r}")

    def _search(self) -> Location:
        self._search_draws += 1
        if self._search_draws > self._search_attempts:
            # Uniform over the remaining sea cells.
            return self._rng.choice(self._sea_cells())
        return self.policy.search(self.view, self._rng)

    def _target(self) -> tuple[Location, Probe]:
        probe = self.queue.pop()
        if not self.queue:
            self.state = EngineState.SEARCHING
        return probe.target, probe

    def _is_legal(self, location: Location) -> bool:
        if not location.in_bounds(self.view.height, self.view.width):
            return False
        return self.view[location.row, location.column] is TileView.SEA

    def _sea_cells(self) -> list[Location]:
        return [
            Location(row, column)
            for row in range(self.view.height)
            for column in range(self.view.width)
            if self.view[row, column] is TileView.SEA
        ]
