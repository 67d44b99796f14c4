"""Level Engine - Pure logic for experience and level progression.

Experience is a pure function of cumulative words learned:
    experience = words * EXPERIENCE_PER_WORD + sum(bonus for reached milestones)

Milestone bonuses are thresholds on the cumulative count, so recomputing
from the same snapshot always yields the same experience and a bonus can
never be applied twice.

Levels walk a growing threshold sequence (100, 150, 225, 337, ...), each
threshold being floor(previous * 1.5).

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import calculate_percentage

if TYPE_CHECKING:
    from ..type_defs import LevelState, MilestoneInfo


class LevelEngine:
    """Pure logic engine for level calculations.

    All methods are static - no instance state.
    """

    @staticmethod
    def experience_for_words(words_learned: int) -> int:
        """Return total experience for a cumulative word count.

        Examples:
            experience_for_words(0) → 0
            experience_for_words(9) → 90
            experience_for_words(10) → 150   # 100 + 50 bonus
            experience_for_words(100) → 1850  # 1000 + 50 + 100 + 200 + 500
        """
        words = max(int(words_learned or 0), 0)
        bonus = sum(
            bonus_xp
            for threshold, bonus_xp, _name in const.WORD_MILESTONES
            if words >= threshold
        )
        return words * const.EXPERIENCE_PER_WORD + bonus

    @staticmethod
    def level_of(experience: int) -> LevelState:
        """Compute level and next threshold for an experience total.

        A threshold is consumed while experience >= consumed + current.
        level = consumed thresholds + 1 and next_level_threshold is the
        cumulative experience needed to leave the current level.

        Examples:
            level_of(0) → level 1, next 100
            level_of(99) → level 1, next 100
            level_of(100) → level 2, next 250
            level_of(250) → level 3, next 475
        """
        exp = max(int(experience or 0), 0)
        consumed = 0
        current = const.LEVEL_BASE_THRESHOLD
        level = 1

        while exp >= consumed + current:
            consumed += current
            current = math.floor(current * const.LEVEL_THRESHOLD_GROWTH)
            level += 1

        return {
            "experience": exp,
            "level": level,
            "next_level_threshold": consumed + current,
            "current_level_floor": consumed,
            "progress_percent": calculate_percentage(exp - consumed, current),
        }

    @staticmethod
    def level_for_words(words_learned: int) -> LevelState:
        """Shortcut: level state for a cumulative word count."""
        return LevelEngine.level_of(LevelEngine.experience_for_words(words_learned))

    @staticmethod
    def get_milestones(words_learned: int) -> list[MilestoneInfo]:
        """Return the fixed word milestones with their reached flag."""
        words = max(int(words_learned or 0), 0)
        return [
            {
                "words": threshold,
                "bonus_experience": bonus_xp,
                "name": name,
                "is_reached": words >= threshold,
            }
            for threshold, bonus_xp, name in const.WORD_MILESTONES
        ]

    @staticmethod
    def next_milestone(words_learned: int) -> MilestoneInfo | None:
        """Return the first milestone not yet reached, or None."""
        for milestone in LevelEngine.get_milestones(words_learned):
            if not milestone["is_reached"]:
                return milestone
        return None
