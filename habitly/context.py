"""Habit-data context — renders aggregation results as plain text.

The text is pasted ahead of the user's question in the chat proxy, so it
must read on its own without any surrounding explanation.
"""

from datetime import date
from typing import Sequence

from habitly.aggregation import habit_completion_counts, monthly_awards
from habitly.dates import DateRange, today
from habitly.models import Habit, HabitEntry

NO_HABITS_TEXT = "The user has no habits yet. They haven't added any habits to track."


def describe_habit_data(habits: Sequence[Habit], entries: Sequence[HabitEntry],
                        reference_date: date | None = None) -> str:
    """Summarise habits, this week's and this month's completions, and awards."""
    if not habits:
        return NO_HABITS_TEXT

    ref = reference_date or today()
    week = DateRange.week_of(ref)
    month = DateRange.month_of(ref)

    lines = ["The user's habit-tracking data:", ""]

    lines.append(f"Habits ({len(habits)}):")
    lines.extend(f"  - {h.name} (id={h.id})" for h in habits)
    lines.append("")

    lines.append(f"This week ({week}):")
    for h, completed in habit_completion_counts(habits, entries, week):
        lines.append(f"  - {h.name}: {completed}/7 days completed")
    lines.append("")

    lines.append(f"This month ({month}):")
    for h, completed in habit_completion_counts(habits, entries, month):
        lines.append(f"  - {h.name}: {completed}/{len(month)} days completed")
    lines.append("")

    awards = monthly_awards(habits, entries, ref)
    lines.append("Awards of the month:")
    if awards.top:
        lines.append(f"  - Top performer: {awards.top.name} ({awards.top.count} completions)")
    if awards.lowest:
        lines.append(f"  - Needs attention: {awards.lowest.name} ({awards.lowest.count} completions)")
    if awards.best_streak:
        lines.append(
            f"  - Longest streak: {awards.best_streak.name} "
            f"({awards.best_streak.count} consecutive days)"
        )

    return "\n".join(lines) + "\n"
