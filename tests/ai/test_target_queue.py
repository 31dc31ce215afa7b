"""Tests for the LIFO target queue."""

import pytest
from salvo.ai.target_queue import Probe, TargetQueue
from salvo.engine.location import Direction, Location
from salvo.errors import TargetQueueEmptyError

HIT = Location(4, 4)


def test_probe_from_hit_steps_towards_direction() -> None:
    probe = Probe.from_hit(HIT, Direction.LEFT)
    assert probe.target == Location(4, 3)
    assert probe.source == HIT
    assert probe.direction is Direction.LEFT


def test_queue_pops_most_recent_first() -> None:
    queue = TargetQueue()
    up = Probe.from_hit(HIT, Direction.UP)
    right = Probe.from_hit(HIT, Direction.RIGHT)
    queue.push(up)
    queue.push(right)

    assert len(queue) == 2
    assert queue.peek() == right
    assert queue.targets() == [Location(4, 5), Location(3, 4)]
    assert queue.pop() == right
    assert queue.pop() == up
    assert not queue


def test_pop_on_empty_queue_raises() -> None:
    with pytest.raises(TargetQueueEmptyError):
        TargetQueue().pop()


def test_remove_where_returns_dropped_probes() -> None:
    queue = TargetQueue()
    for direction in Direction:
        queue.push(Probe.from_hit(HIT, direction))

    dropped = queue.remove_where(lambda probe: probe.direction is Direction.DOWN)
    assert [probe.direction for probe in dropped] == [Direction.DOWN]
    assert len(queue) == 3
    assert Location(5, 4) not in queue
    assert Location(3, 4) in queue


def test_clear_empties_queue() -> None:
    queue = TargetQueue()
    queue.push(Probe.from_hit(HIT, Direction.UP))
    queue.clear()
    assert len(queue) == 0
    assert queue.peek() is None
