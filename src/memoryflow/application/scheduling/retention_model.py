"""
Retention model: stability/difficulty transitions for a single review.

This is a pure computation module with no I/O.

Key concepts:
- Stability (S): days for recall probability to decay to the requested retention
- Difficulty (D): resistance to stability growth, 1-10
- Retrievability (R): recall probability at review time
"""

import math

from memoryflow.domain.constants import (
    DAY_MS,
    DECAY,
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    FACTOR,
    FSRS_WEIGHTS,
    MAX_INTERVAL_DAYS,
    MIN_INTERVAL_DAYS,
    STATE_PRECISION,
)
from memoryflow.domain.scheduling.models import Rating, SchedulingState, TransitionResult

w = FSRS_WEIGHTS


def _clamp_difficulty(d: float) -> float:
    return min(DIFFICULTY_MAX, max(DIFFICULTY_MIN, d))


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def calculate_interval(stability: float) -> int:
    """
    Days until the next review for a given stability.

    Formula: interval = S * 9 * (1/FACTOR - 1), clamped to [1, 36500].
    A stability of 0 (never reviewed) yields 0.
    """
    if stability == 0:
        return 0
    days = _round_half_up(stability * 9 * (1 / FACTOR - 1))
    return min(MAX_INTERVAL_DAYS, max(MIN_INTERVAL_DAYS, days))


def retrievability(stability: float, elapsed_days: float) -> float:
    """
    Recall probability after `elapsed_days`.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Returns 0 for an item that has never been reviewed (S == 0).
    """
    if stability == 0:
        return 0.0
    return math.pow(1 + FACTOR * max(0.0, elapsed_days) / stability, DECAY)


def initial_stability(rating: Rating) -> float:
    """S0 = w[rating - 1]"""
    return w[rating - 1]


def initial_difficulty(rating: Rating) -> float:
    """D0 = w4 - (rating - 3) * w5, clamped to [1, 10]"""
    return _clamp_difficulty(w[4] - (rating - 3) * w[5])


def next_difficulty(d: float, rating: Rating) -> float:
    """D' = D - w6 * (rating - 3), clamped to [1, 10]"""
    return _clamp_difficulty(d - w[6] * (rating - 3))


def next_forget_stability(s: float, d: float, r: float) -> float:
    """
    Stability after a lapse (Again).

    S' = w11 * D^-w12 * (S + 1)^w13 * e^(w14 * (1 - R))
    """
    return w[11] * math.pow(d, -w[12]) * math.pow(s + 1, w[13]) * math.exp(w[14] * (1 - r))


def next_recall_stability(s: float, d: float, r: float, rating: Rating) -> float:
    """
    Stability after a successful review (Hard, Good, Easy).

    S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * hard * easy)
    """
    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0
    growth = (
        math.exp(w[8])
        * (11 - d)
        * math.pow(s, -w[9])
        * (math.exp(w[10] * (1 - r)) - 1)
        * hard_penalty
        * easy_bonus
    )
    return s * (1 + growth)


def transition(
    current_s: float,
    current_d: float,
    last_review: int,
    rating: Rating | int,
    review_timestamp: int,
) -> TransitionResult:
    """
    Apply one review to a memory state.

    Args:
        current_s: Current stability (0 for a first review)
        current_d: Current difficulty (0 only when current_s is 0)
        last_review: Epoch ms of the previous review
        rating: Grade, 1-4
        review_timestamp: Epoch ms of this review; earlier than last_review clamps to 0 elapsed

    Returns:
        TransitionResult with S and D rounded to a fixed precision

    Raises:
        InvalidRatingError: if rating is not 1-4
    """
    rating = Rating.parse(rating)

    if current_s == 0:
        new_s = initial_stability(rating)
        new_d = initial_difficulty(rating)
    else:
        elapsed_days = max(0.0, (review_timestamp - last_review) / DAY_MS)
        r = retrievability(current_s, elapsed_days)
        new_d = next_difficulty(current_d, rating)
        if rating == Rating.AGAIN:
            new_s = next_forget_stability(current_s, current_d, r)
        else:
            new_s = next_recall_stability(current_s, new_d, r, rating)

    new_s = round(new_s, STATE_PRECISION)
    new_d = round(new_d, STATE_PRECISION)
    return TransitionResult(
        stability=new_s,
        difficulty=new_d,
        interval_days=calculate_interval(new_s),
    )


def preview(state: SchedulingState, now: int) -> dict[Rating, TransitionResult]:
    """
    Outcome of each possible rating if the item were reviewed at `now`.

    Nothing is recorded; used to label the rating choices with their next interval.
    """
    return {
        rating: transition(state.stability, state.difficulty, state.last_review, rating, now)
        for rating in Rating
    }


def format_interval(days: float) -> str:
    """Human-readable interval: '<1d', '12d', '3mo', '1.2y'."""
    if days < 1:
        return "<1d"
    if days < 30:
        return f"{_round_half_up(days)}d"
    if days < 365:
        return f"{_round_half_up(days / 30)}mo"
    return f"{days / 365:.1f}y"
