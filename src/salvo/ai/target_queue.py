"""LIFO store of cells adjacent to confirmed hits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator

from salvo.engine.location import Direction, Location
from salvo.errors import TargetQueueEmptyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Probe:
    """A candidate shot derived from a hit.

    ``target`` is ``source`` stepped once in ``direction``.
    """

    target: Location
    source: Location
    direction: Direction

    @classmethod
    def from_hit(cls, source: Location, direction: Direction) -> Probe:
        return cls(source.step(direction), source, direction)


class TargetQueue:
    """Stack of probes; the most recently discovered neighbour is tried first."""

    def __init__(self) -> None:
        self._probes: list[Probe] = []

    def __len__(self) -> int:
        return len(self._probes)

    def __bool__(self) -> bool:
        return bool(self._probes)

    def __iter__(self) -> Iterator[Probe]:
        """Iterate from the top of the stack (next to pop) downwards."""
        return reversed(self._probes)

    def __contains__(self, target: object) -> bool:
        return any(probe.target == target for probe in self._probes)

    def push(self, probe: Probe) -> None:
        self._probes.append(probe)

    def pop(self) -> Probe:
        if not self._probes:
            logger.error("target_queue_pop_empty")
            raise TargetQueueEmptyError("Cannot pop from an empty target queue.")
        return self._probes.pop()

    def peek(self) -> Probe | None:
        return self._probes[-1] if self._probes else None

    def remove_where(self, predicate: Callable[[Probe], bool]) -> list[Probe]:
        """Drop every probe matching ``predicate`` and return the dropped ones."""
        dropped = [probe for probe in self._probes if predicate(probe)]
        if dropped:
            self._probes = [probe for probe in self._probes if not predicate(probe)]
        return dropped

    def clear(self) -> None:
        self._probes.clear()

    def targets(self) -> list[Location]:
        return [probe.target for probe in self]
