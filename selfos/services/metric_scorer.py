"""
Daily productivity score.

Score = 0.4 × TasksRatio + 0.25 × Streak + 0.2 × Focus + 0.15 × Journal

Computed in Decimal and rounded half-up to 3 places so identical inputs
always produce the identical float.
"""
from decimal import Decimal, ROUND_HALF_UP

from selfos.constants import (
    SCORE_WEIGHT_TASKS,
    SCORE_WEIGHT_STREAK,
    SCORE_WEIGHT_FOCUS,
    SCORE_WEIGHT_JOURNAL,
    FOCUS_MINUTES_CAP,
    SCORE_PRECISION,
)
from selfos.schemas import MetricSnapshot

ZERO = Decimal(0)
ONE = Decimal(1)


def _tasks_ratio(tasks_planned: int, tasks_completed: int) -> Decimal:
    """
    Completed / planned.

    With nothing planned, any completion counts as a full day.
    """
    if tasks_planned > 0:
        return Decimal(tasks_completed) / Decimal(tasks_planned)
    return ONE if tasks_completed > 0 else ZERO


def _focus_component(focus_minutes: int) -> Decimal:
    """Linear credit up to the daily cap"""
    return min(Decimal(focus_minutes) / Decimal(FOCUS_MINUTES_CAP), ONE)


def calculate_score(snapshot: MetricSnapshot) -> float:
    """
    Calculate the bounded [0, 1] score for one day's signals.

    Args:
        snapshot: Raw signals for the day

    Returns:
        Score rounded to 3 decimal places
    """
    tasks_ratio = _tasks_ratio(snapshot.tasks_planned, snapshot.tasks_completed)
    streak_component = ONE if snapshot.streak_active else ZERO
    # Journaling gives a fixed unit once any entry exists
    journal_component = min(Decimal(snapshot.journal_entries), ONE)
    focus_component = _focus_component(snapshot.focus_minutes)

    score = (
        Decimal(SCORE_WEIGHT_TASKS) * tasks_ratio
        + Decimal(SCORE_WEIGHT_STREAK) * streak_component
        + Decimal(SCORE_WEIGHT_FOCUS) * focus_component
        + Decimal(SCORE_WEIGHT_JOURNAL) * journal_component
    )
    score = max(ZERO, min(score, ONE))

    return float(score.quantize(Decimal(SCORE_PRECISION), rounding=ROUND_HALF_UP))
