"""Small policy functions the targeting engine is composed from.

Each difficulty is a :class:`TargetingPolicy` bundling one search policy,
one hit policy and one miss policy plus two tuning knobs. The functions are
deliberately free of engine state so they can be exercised on their own:

* a search policy proposes a cell while no ship is being hunted,
* a hit policy pushes follow-up probes after a shot lands,
* a miss policy prunes the queue after a probe comes up empty.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable

from salvo.engine.grid import GridView, TileView
from salvo.engine.location import PROBE_ORDER, Location

from .target_queue import Probe, TargetQueue

SearchPolicy = Callable[[GridView, random.Random], Location]
HitPolicy = Callable[[GridView, TargetQueue, Location], list[Probe]]
MissPolicy = Callable[[TargetQueue, Probe], list[Probe]]


def random_search(view: GridView, rng: random.Random) -> Location:
    """Draw a cell uniformly from the whole grid, attacked or not."""
    return Location(rng.randrange(view.height), rng.randrange(view.width))


def ignore_hit(view: GridView, queue: TargetQueue, hit: Location) -> list[Probe]:
    return []


def enqueue_neighbours(view: GridView, queue: TargetQueue, hit: Location) -> list[Probe]:
    """Push the in-bounds, unattacked orthogonal neighbours of ``hit``.

    Neighbours are pushed up, left, down, right, so the right-hand cell is
    popped first.
    """
    pushed: list[Probe] = []
    for direction in PROBE_ORDER:
        probe = Probe.from_hit(hit, direction)
        target = probe.target
        if not target.in_bounds(view.height, view.width):
            continue
        if view[target.row, target.column] is not TileView.SEA:
            continue
        queue.push(probe)
        pushed.append(probe)
    return pushed


def ignore_miss(queue: TargetQueue, missed: Probe) -> list[Probe]:
    return []


def prune_opposite_probe(queue: TargetQueue, missed: Probe) -> list[Probe]:
    """Retire the axis of a missed probe around its source hit.

    A miss beside a hit drops the pending probe on the other side of the same
    hit, so each axis around a hit is probed once. Probes derived from other
    hits are left alone; a later hit on the line re-queues its own neighbours.
    """
    opposite = missed.direction.opposite
    return queue.remove_where(
        lambda probe: probe.source == missed.source and probe.direction is opposite
    )


@dataclass(frozen=True)
class TargetingPolicy:
    """The behaviour of one difficulty level."""

    name: str
    search: SearchPolicy = random_search
    on_hit: HitPolicy = ignore_hit
    on_miss: MissPolicy = ignore_miss
    # Misses allowed in one turn before the turn passes to the opponent.
    miss_tolerance: int = 0
    forget_on_destroyed: bool = False

    def __post_init__(self) -> None:
        if self.miss_tolerance < 0:
            raise ValueError("miss_tolerance cannot be negative.")
