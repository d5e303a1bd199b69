"""
Continuity Calculator.

Derives streaks and a continuity score from activity ledger rows. Pure
computation over already-fetched rows; a missing row means an inactive day.
"""

import datetime
import math
from typing import Dict, Iterable, Optional

from taskledger.domain.models import ActivityEntry, ContinuityResult
from taskledger.services.calendar_service import date_range, day_key, parse_day_key, to_day

# Fixed normalization baseline: the lookback never exceeds this many days
CONTINUITY_BASELINE_DAYS = 60


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_continuity(entries: Iterable[ActivityEntry], window_days: int,
                       now: Optional[datetime.datetime] = None) -> ContinuityResult:
    """
    Compute current/longest streak, active days and continuity percentage.

    Streaks and activity_by_date cover the whole 60-day lookback ending
    today. active_days and the percentage only count the last
    min(window_days, 60) days, so the percentage stays within 0..100.

    Args:
        entries: Ledger rows of one owner, any order
        window_days: Requested window in days
        now: Reference time for "today"

    Returns:
        ContinuityResult, all zeros when there is no activity
    """
    total_days = min(window_days, CONTINUITY_BASELINE_DAYS)
    if total_days < 1:
        return ContinuityResult()

    lookback_start, end_day = date_range(CONTINUITY_BASELINE_DAYS, now)
    window_start, _ = date_range(total_days, now)

    activity_by_date: Dict[str, bool] = {}
    for entry in entries:
        day = to_day(entry.day)
        if lookback_start <= day <= end_day:
            key = day_key(day)
            activity_by_date[key] = activity_by_date.get(key, False) or entry.is_active

    active_days = sum(
        1 for key, active in activity_by_date.items()
        if active and window_start <= parse_day_key(key)
    )

    # Walk back from today; an inactive today ends the streak immediately
    current_streak = 0
    day = end_day
    while day >= lookback_start and activity_by_date.get(day_key(day), False):
        current_streak += 1
        day -= datetime.timedelta(days=1)

    longest_streak = 0
    running = 0
    previous = None
    for key in sorted(activity_by_date):
        if not activity_by_date[key]:
            running = 0
            previous = None
            continue
        day = parse_day_key(key)
        if previous is not None and (day - previous).days == 1:
            running += 1
        else:
            running = 1
        previous = day
        longest_streak = max(longest_streak, running)

    return ContinuityResult(
        current_streak=current_streak,
        longest_streak=longest_streak,
        active_days=active_days,
        total_days=total_days,
        continuity_percentage=min(100, _round_half_up(active_days / total_days * 100)),
        activity_by_date=activity_by_date,
    )
