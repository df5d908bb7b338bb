"""Fixed interview script, time limits and scoring weights."""
from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel

from agents.types import Difficulty


class DifficultyWeights(BaseModel):
    base: float
    keywords_bonus: float
    length_bonus: float


DIFFICULTY_ORDER: List[Difficulty] = [
    Difficulty.EASY,
    Difficulty.EASY,
    Difficulty.MEDIUM,
    Difficulty.MEDIUM,
    Difficulty.HARD,
    Difficulty.HARD,
]

TOTAL_QUESTIONS = len(DIFFICULTY_ORDER)

TIME_LIMITS: Dict[Difficulty, int] = {
    Difficulty.EASY: 20,
    Difficulty.MEDIUM: 60,
    Difficulty.HARD: 120,
}
DEFAULT_TIME_LIMIT = 60

DIFFICULTY_WEIGHTS: Dict[Difficulty, DifficultyWeights] = {
    Difficulty.EASY: DifficultyWeights(base=6, keywords_bonus=3, length_bonus=1),
    Difficulty.MEDIUM: DifficultyWeights(base=5, keywords_bonus=4, length_bonus=1),
    Difficulty.HARD: DifficultyWeights(base=4, keywords_bonus=5, length_bonus=1),
}

ScoreDenominator = Literal["all_questions", "answered"]

# Unanswered slots contribute 0 to the numerator under both policies; the
# policy only picks the divisor.
SCORE_DENOMINATOR: ScoreDenominator = "all_questions"


def time_limit_for(difficulty: Difficulty | str) -> int:
    """Return the answer time limit in seconds for ``difficulty``."""

    try:
        return TIME_LIMITS[Difficulty(difficulty)]
    except ValueError:
        return DEFAULT_TIME_LIMIT


def slots_for(difficulty: Difficulty | str) -> int:
    """Number of script slots that ask a question of ``difficulty``."""

    return sum(1 for level in DIFFICULTY_ORDER if level == difficulty)


__all__ = [
    "DIFFICULTY_ORDER",
    "DIFFICULTY_WEIGHTS",
    "DEFAULT_TIME_LIMIT",
    "DifficultyWeights",
    "SCORE_DENOMINATOR",
    "ScoreDenominator",
    "TIME_LIMITS",
    "TOTAL_QUESTIONS",
    "slots_for",
    "time_limit_for",
]
