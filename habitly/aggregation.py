"""Aggregation engine — graph series, streaks and monthly awards.

Single source of truth for every consumer (graph/awards endpoints and the
chat context builder). All functions are pure over the habit/entry
snapshots they receive; nothing here touches the database.

Entries are normalised before any counting:
- entries for habits not in `habits` are ignored (deleted habits),
- duplicate (habit_id, date) entries collapse to one, last one wins,
- entries without a usable date are ignored.
"""

import logging
from collections import Counter
from datetime import date
from typing import Iterable, Sequence

from habitly.dates import DAY_NAMES, DateRange, days_between, parse_iso_date, today
from habitly.models import AwardItem, Awards, DailyCount, Habit, HabitEntry

log = logging.getLogger(__name__)


def _entry_date(entry: HabitEntry) -> date | None:
    if isinstance(entry.date, date):
        return entry.date
    return parse_iso_date(entry.date)


def _completion_map(habits: Sequence[Habit],
                    entries: Iterable[HabitEntry]) -> dict[tuple[int, date], bool]:
    """Collapse entries to one completion value per (habit_id, date)."""
    known = {h.id for h in habits}
    result: dict[tuple[int, date], bool] = {}
    skipped = 0
    total = 0
    for e in entries:
        total += 1
        if e.habit_id not in known:
            skipped += 1
            continue
        d = _entry_date(e)
        if d is None:
            skipped += 1
            continue
        result[(e.habit_id, d)] = bool(e.completed)
    if skipped or total - skipped != len(result):
        log.debug("Normalised %d entries to %d (skipped %d)", total, len(result), skipped)
    return result


def _completed_dates(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                     window: DateRange) -> list[tuple[int, date]]:
    return [
        key for key, completed in _completion_map(habits, entries).items()
        if completed and window.contains(key[1])
    ]


def completed_days_by_habit(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                            window: DateRange) -> dict[int, list[date]]:
    """Ascending, distinct completed dates per habit id inside window.

    Every habit in `habits` gets a key, even with no completions.
    """
    days: dict[int, list[date]] = {h.id: [] for h in habits}
    for habit_id, d in _completed_dates(habits, entries, window):
        days[habit_id].append(d)
    for dates in days.values():
        dates.sort()
    return days


def habit_completion_counts(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                            window: DateRange) -> list[tuple[Habit, int]]:
    """(habit, completed day count) in the order of `habits`."""
    days = completed_days_by_habit(habits, entries, window)
    return [(h, len(days[h.id])) for h in habits]


def _series(habits: Sequence[Habit], entries: Iterable[HabitEntry],
            window: DateRange, labels: Sequence[str]) -> list[DailyCount]:
    per_day = Counter(d for _, d in _completed_dates(habits, entries, window))
    total = max(len(habits), 1)
    return [
        DailyCount(label=label, completed=per_day.get(d, 0), total=total)
        for label, d in zip(labels, window.days())
    ]


def weekly_series(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                  reference_date: date | None = None) -> list[DailyCount]:
    """Seven DailyCounts, Sunday..Saturday of the week containing reference_date."""
    window = DateRange.week_of(reference_date or today())
    return _series(habits, entries, window, DAY_NAMES)


def monthly_series(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                   reference_date: date | None = None) -> list[DailyCount]:
    """One DailyCount per day of the month containing reference_date, labelled "1".."31"."""
    window = DateRange.month_of(reference_date or today())
    labels = [str(d.day) for d in window.days()]
    return _series(habits, entries, window, labels)


def longest_streak(sorted_dates: Sequence[date]) -> int:
    """Longest run of consecutive days in an ascending, distinct date list."""
    if not sorted_dates:
        return 0
    best = 1
    current = 1
    for prev, cur in zip(sorted_dates, sorted_dates[1:]):
        if days_between(prev, cur) == 1:
            current += 1
        else:
            current = 1
        best = max(best, current)
    return best


def monthly_awards(habits: Sequence[Habit], entries: Iterable[HabitEntry],
                   reference_month_start: date | None = None) -> Awards:
    """Top performer, needs-attention and longest-streak habits for one month.

    Ties go to the habit that comes first in `habits`. `lowest` is left out
    when it is the same habit as `top`; `best_streak` is left out when no
    habit completed anything that month.
    """
    if not habits:
        return Awards()

    window = DateRange.month_of(reference_month_start or today())
    days = completed_days_by_habit(habits, entries, window)

    counts = [(h, len(days[h.id])) for h in habits]
    # max()/min() return the first extreme element, which gives input-order tie-breaking
    top_habit, top_count = max(counts, key=lambda c: c[1])
    low_habit, low_count = min(counts, key=lambda c: c[1])

    streaks = [(h, longest_streak(days[h.id])) for h in habits]
    streak_habit, streak_len = max(streaks, key=lambda s: s[1])

    return Awards(
        top=AwardItem(top_habit.name, top_count),
        lowest=AwardItem(low_habit.name, low_count) if low_habit.id != top_habit.id else None,
        best_streak=AwardItem(streak_habit.name, streak_len) if streak_len > 0 else None,
    )
