"""Pure scoring rules: group payout, level tiers and the time bonus."""
from __future__ import annotations

from typing import Iterable, Sized

from match3.constants import LEVEL_THRESHOLDS, TIME_BONUS_BY_LEVEL


def score_for_groups(groups: Iterable[Sized]) -> int:
    """Return ``group_count * sum(2 ** len(group))`` for one destroyed batch.

    The multiplication by the group count compounds simultaneous matches and is
    intentional game behaviour; two groups of 3 and 4 pay 2 * (8 + 16) = 48.
    """
    sizes = [len(group) for group in groups]
    if not sizes:
        return 0
    return len(sizes) * sum(2 ** size for size in sizes)


def level_for_score(score: int) -> int:
    for level, threshold in enumerate(LEVEL_THRESHOLDS, start=1):
        if score < threshold:
            return level
    return len(LEVEL_THRESHOLDS) + 1


def time_bonus_for_level(level: int) -> float:
    return TIME_BONUS_BY_LEVEL.get(level, 0.0)
