"""Difficulty levels and the policies they select."""

from __future__ import annotations

from enum import Enum

from .policies import (
    TargetingPolicy,
    enqueue_neighbours,
    ignore_hit,
    ignore_miss,
    prune_opposite_probe,
    random_search,
)


class AIOption(Enum):
    """The computer opponent's difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    INSANE = "insane"

    @classmethod
    def parse(cls, value: str | AIOption) -> AIOption:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(option.value for option in cls)
            raise ValueError(f"Unknown difficulty {value!r}; expected one of {choices}.") from exc


POLICIES: dict[AIOption, TargetingPolicy] = {
    # Pure random shooting.
    AIOption.EASY: TargetingPolicy(
        name="easy",
        search=random_search,
        on_hit=ignore_hit,
        on_miss=ignore_miss,
    ),
    # Marks the squares around hits.
    AIOption.MEDIUM: TargetingPolicy(
        name="medium",
        search=random_search,
        on_hit=enqueue_neighbours,
        on_miss=ignore_miss,
    ),
    # As medium, but removes pending shots once it misses.
    AIOption.HARD: TargetingPolicy(
        name="hard",
        search=random_search,
        on_hit=enqueue_neighbours,
        on_miss=prune_opposite_probe,
        forget_on_destroyed=True,
    ),
    # As hard, but needs to miss twice before the turn changes.
    AIOption.INSANE: TargetingPolicy(
        name="insane",
        search=random_search,
        on_hit=enqueue_neighbours,
        on_miss=prune_opposite_probe,
        miss_tolerance=1,
        forget_on_destroyed=True,
    ),
}


def policy_for(option: AIOption | str) -> TargetingPolicy:
    return POLICIES[AIOption.parse(option)]
