"""
Trend Analysis for Pokal

Ordered-sequence analytics over one participant's chronological ranks:
- Streaks over consecutive calendar years (win, podium, any rank condition)
- Least-squares trend of rank against sequence index, with R²
- Improvement: first-half average minus second-half average

Metrics that need more data than is available are None, never 0, so rules
can tell "no data" apart from a real value.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from pokal.config import (
    MIN_POINTS_FOR_IMPROVEMENT,
    MIN_POINTS_FOR_TREND,
    RECENT_FORM_LENGTH,
    TREND_SLOPE_THRESHOLD,
)
from pokal.utils import mean


@dataclass(frozen=True)
class Trend:
    slope: float | None = None
    intercept: float | None = None
    r_squared: float | None = None
    direction: str | None = None
    max_win_streak: int = 0
    max_podium_streak: int = 0
    current_win_streak: int = 0
    current_podium_streak: int = 0
    improvement: float | None = None
    recent_form: tuple[int, ...] = ()
    expected_next_rank: int | None = None


def max_streak(years: Iterable[int]) -> int:
    """Longest run of consecutive calendar years in a collection of years."""
    ordered = sorted(set(years))
    if not ordered:
        return 0

    best = current = 1
    for prev, year in zip(ordered, ordered[1:]):
        if year == prev + 1:
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


def current_streak(years: Iterable[int], last_year: int | None) -> int:
    """Length of the run of consecutive years that ends at last_year."""
    if last_year is None:
        return 0
    qualifying = set(years)
    streak = 0
    year = last_year
    while year in qualifying:
        streak += 1
        year -= 1
    return streak


def longest_run(year_ranks: Mapping[int, int], condition: Callable[[int], bool]) -> int:
    """Longest run of consecutive calendar years whose rank satisfies condition."""
    return max_streak(year for year, rank in year_ranks.items() if condition(rank))


def linear_trend(ranks: Sequence[float]) -> tuple[float, float, float]:
    """
    Ordinary least-squares fit of rank against index 0..N-1.

    Returns:
        (slope, intercept, r_squared). R² is 0 when every rank is equal.
    """
    y = np.asarray(ranks, dtype=float)
    x = np.arange(y.size, dtype=float)
    n = y.size

    sum_x, sum_y = x.sum(), y.sum()
    sum_xy, sum_xx = (x * y).sum(), (x * x).sum()
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    ss_tot = ((y - y.mean()) ** 2).sum()
    ss_res = ((y - (slope * x + intercept)) ** 2).sum()
    r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else 0.0
    return float(slope), float(intercept), float(r_squared)


def trend_direction(slope: float) -> str:
    if slope < -TREND_SLOPE_THRESHOLD:
        return "improving"
    if slope > TREND_SLOPE_THRESHOLD:
        return "declining"
    return "stable"


def improvement_score(ranks: Sequence[int]) -> float | None:
    """
    Mean of the first half minus mean of the second half.

    Positive means ranks got numerically lower (better) over time. The first
    half is the first floor(N/2) ranks. None below MIN_POINTS_FOR_IMPROVEMENT.
    """
    if len(ranks) < MIN_POINTS_FOR_IMPROVEMENT:
        return None
    midpoint = len(ranks) // 2
    return mean(ranks[:midpoint]) - mean(ranks[midpoint:])


def compute_trend(ranks: Sequence[int], years: Sequence[int]) -> Trend:
    """
    Compute streaks, regression and improvement for one participant.

    Args:
        ranks: Chronological rank sequence
        years: Year of each rank (same length as ranks)

    Returns:
        Trend with None for metrics the sequence is too short for
    """
    if len(ranks) != len(years):
        raise ValueError(f"ranks and years differ in length: {len(ranks)} != {len(years)}")

    win_years = [y for y, r in zip(years, ranks) if r == 1]
    podium_years = [y for y, r in zip(years, ranks) if r <= 3]
    last_year = years[-1] if years else None

    slope = intercept = r_squared = direction = expected = None
    if len(ranks) >= MIN_POINTS_FOR_TREND:
        slope, intercept, r_squared = linear_trend(ranks)
        direction = trend_direction(slope)
        expected = max(1, round(slope * len(ranks) + intercept))

    return Trend(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        direction=direction,
        max_win_streak=max_streak(win_years),
        max_podium_streak=max_streak(podium_years),
        current_win_streak=current_streak(win_years, last_year),
        current_podium_streak=current_streak(podium_years, last_year),
        improvement=improvement_score(ranks),
        recent_form=tuple(ranks[-RECENT_FORM_LENGTH:]),
        expected_next_rank=expected,
    )
