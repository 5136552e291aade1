"""Tests for the aggregation engine — series, streaks, awards."""

from datetime import date, timedelta

import pytest
from habitly.aggregation import (
    completed_days_by_habit,
    habit_completion_counts,
    longest_streak,
    monthly_awards,
    monthly_series,
    weekly_series,
)
from habitly.dates import DateRange
from habitly.models import AwardItem, Awards, Habit, HabitEntry


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

_next_id = iter(range(1, 100_000))


def _entry(habit_id: int, day: str, completed: bool = True) -> HabitEntry:
    return HabitEntry(id=next(_next_id), habit_id=habit_id,
                      date=date.fromisoformat(day), completed=completed)


READ = Habit(1, "Read")
RUN = Habit(2, "Run")
WATER = Habit(3, "Water")


# ═══════════════════════════════════════════════════════════════════════════
# longest_streak
# ═══════════════════════════════════════════════════════════════════════════

class TestLongestStreak:
    def test_empty(self):
        assert longest_streak([]) == 0

    def test_single_day(self):
        assert longest_streak([date(2024, 1, 1)]) == 1

    def test_three_consecutive(self):
        days = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert longest_streak(days) == 3

    def test_gap_breaks_run(self):
        assert longest_streak([date(2024, 1, 1), date(2024, 1, 3)]) == 1

    def test_longest_run_not_the_last(self):
        days = [date(2024, 1, d) for d in (1, 2, 3, 4, 10, 11)]
        assert longest_streak(days) == 4

    def test_run_across_month_end(self):
        days = [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
        assert longest_streak(days) == 3


# ═══════════════════════════════════════════════════════════════════════════
# Series
# ═══════════════════════════════════════════════════════════════════════════

class TestWeeklySeries:
    def test_always_seven_days_sun_to_sat(self):
        series = weekly_series([], [], date(2024, 3, 6))
        assert [p.label for p in series] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        assert all(p.completed == 0 for p in series)

    def test_total_clamped_to_one_without_habits(self):
        series = weekly_series([], [], date(2024, 3, 6))
        assert all(p.total == 1 for p in series)

    def test_counts_completed_across_habits(self):
        entries = [
            _entry(1, "2024-03-03"),               # Sunday
            _entry(2, "2024-03-03"),
            _entry(1, "2024-03-05"),               # Tuesday
            _entry(2, "2024-03-05", completed=False),
            _entry(1, "2024-03-10"),               # next week
        ]
        series = weekly_series([READ, RUN], entries, date(2024, 3, 6))
        assert [p.completed for p in series] == [2, 0, 1, 0, 0, 0, 0]
        assert all(p.total == 2 for p in series)

    def test_reference_on_saturday_uses_same_week(self):
        entries = [_entry(1, "2024-03-03")]
        series = weekly_series([READ], entries, date(2024, 3, 9))
        assert series[0].completed == 1

    def test_sum_bounded_by_seven_times_habits(self):
        # Duplicates and orphans must not push the sum over 7 * |H|
        entries = []
        for offset in range(7):
            day = (date(2024, 3, 3) + timedelta(days=offset)).isoformat()
            entries += [_entry(1, day), _entry(1, day), _entry(2, day), _entry(99, day)]
        series = weekly_series([READ, RUN], entries, date(2024, 3, 3))
        assert sum(p.completed for p in series) <= 7 * 2
        assert sum(p.completed for p in series) == 14


class TestMonthlySeries:
    def test_one_point_per_day(self):
        series = monthly_series([READ], [], date(2024, 2, 10))
        assert len(series) == 29
        assert series[0].label == "1"
        assert series[-1].label == "29"

    def test_counts(self):
        entries = [_entry(1, "2024-03-01"), _entry(2, "2024-03-01"), _entry(1, "2024-03-31")]
        series = monthly_series([READ, RUN], entries, date(2024, 3, 15))
        assert len(series) == 31
        assert series[0].completed == 2
        assert series[30].completed == 1
        assert series[14].completed == 0

    def test_idempotent(self):
        entries = [_entry(1, "2024-03-01"), _entry(1, "2024-03-02", completed=False)]
        first = monthly_series([READ], entries, date(2024, 3, 1))
        second = monthly_series([READ], entries, date(2024, 3, 1))
        assert first == second

    def test_to_dict_wire_names(self):
        point = monthly_series([READ], [_entry(1, "2024-03-01")], date(2024, 3, 1))[0]
        assert point.to_dict() == {"day": "1", "completedCount": 1, "totalHabits": 1}


# ═══════════════════════════════════════════════════════════════════════════
# Defensive normalisation
# ═══════════════════════════════════════════════════════════════════════════

class TestNormalisation:
    def test_duplicate_entries_count_once(self):
        entries = [_entry(1, "2024-03-01"), _entry(1, "2024-03-01")]
        assert monthly_series([READ], entries, date(2024, 3, 1))[0].completed == 1
        assert weekly_series([READ], entries, date(2024, 3, 1))[5].completed == 1
        month = DateRange.month_of(date(2024, 3, 1))
        assert habit_completion_counts([READ], entries, month) == [(READ, 1)]
        awards = monthly_awards([READ], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Read", 1)
        assert awards.best_streak == AwardItem("Read", 1)

    def test_last_duplicate_wins(self):
        entries = [_entry(1, "2024-03-01", True), _entry(1, "2024-03-01", False)]
        assert monthly_series([READ], entries, date(2024, 3, 1))[0].completed == 0

    def test_entries_for_deleted_habits_ignored(self):
        entries = [_entry(42, "2024-03-01"), _entry(1, "2024-03-02")]
        series = monthly_series([READ], entries, date(2024, 3, 1))
        assert series[0].completed == 0
        assert series[1].completed == 1

    def test_string_dates_tolerated(self):
        entries = [
            HabitEntry(id=1, habit_id=1, date="2024-03-01", completed=True),
            HabitEntry(id=2, habit_id=1, date="not-a-date", completed=True),
        ]
        series = monthly_series([READ], entries, date(2024, 3, 1))
        assert sum(p.completed for p in series) == 1

    def test_completed_days_sorted_and_every_habit_present(self):
        entries = [_entry(1, "2024-03-04"), _entry(1, "2024-03-01"), _entry(1, "2024-03-02")]
        days = completed_days_by_habit([READ, RUN], entries, DateRange.month_of(date(2024, 3, 1)))
        assert days[1] == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 4)]
        assert days[2] == []


# ═══════════════════════════════════════════════════════════════════════════
# Awards
# ═══════════════════════════════════════════════════════════════════════════

class TestMonthlyAwards:
    def test_no_habits(self):
        assert monthly_awards([], [_entry(1, "2024-03-01")], date(2024, 3, 1)) == Awards()
        assert Awards().to_dict() == {
            "topActivity": None, "lowestActivity": None, "highestStreakActivity": None,
        }

    def test_read_scenario(self):
        entries = [_entry(1, "2024-03-01"), _entry(1, "2024-03-02"), _entry(1, "2024-03-04")]
        awards = monthly_awards([READ], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Read", 3)
        assert awards.best_streak == AwardItem("Read", 2)
        # Single habit: lowest would be the same as top
        assert awards.lowest is None

    def test_full_month_vs_nothing(self):
        # September 2024 has 30 days
        entries = [_entry(1, f"2024-09-{d:02d}") for d in range(1, 31)]
        a, b = Habit(1, "A"), Habit(2, "B")
        awards = monthly_awards([a, b], entries, date(2024, 9, 1))
        assert awards.top == AwardItem("A", 30)
        assert awards.lowest == AwardItem("B", 0)
        assert awards.best_streak == AwardItem("A", 30)

    def test_only_one_habit_full_month(self):
        entries = [_entry(1, f"2024-09-{d:02d}") for d in range(1, 31)]
        awards = monthly_awards([Habit(1, "A")], entries, date(2024, 9, 1))
        assert awards.top == AwardItem("A", 30)
        assert awards.lowest is None

    def test_ties_go_to_first_habit(self):
        entries = [_entry(1, "2024-03-01"), _entry(2, "2024-03-05"), _entry(3, "2024-03-09")]
        awards = monthly_awards([READ, RUN, WATER], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Read", 1)
        # All tied: lowest resolves to the same habit as top, so it's dropped
        assert awards.lowest is None
        assert awards.best_streak == AwardItem("Read", 1)

    def test_lowest_kept_when_tied_lowest_differs_from_top(self):
        entries = [_entry(2, "2024-03-01"), _entry(2, "2024-03-02")]
        awards = monthly_awards([READ, RUN, WATER], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Run", 2)
        # Read and Water both have 0; Read comes first
        assert awards.lowest == AwardItem("Read", 0)

    def test_no_streak_when_nothing_completed(self):
        entries = [_entry(1, "2024-03-01", completed=False)]
        awards = monthly_awards([READ, RUN], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Read", 0)
        assert awards.lowest is None
        assert awards.best_streak is None

    def test_streak_habit_can_differ_from_top(self):
        entries = (
            [_entry(1, f"2024-03-{d:02d}") for d in (1, 3, 5, 7, 9)]
            + [_entry(2, f"2024-03-{d:02d}") for d in (10, 11, 12)]
        )
        awards = monthly_awards([READ, RUN], entries, date(2024, 3, 1))
        assert awards.top == AwardItem("Read", 5)
        assert awards.lowest == AwardItem("Run", 3)
        assert awards.best_streak == AwardItem("Run", 3)

    def test_only_entries_in_month_count(self):
        entries = [_entry(1, "2024-02-29"), _entry(1, "2024-03-01"), _entry(1, "2024-04-01")]
        awards = monthly_awards([READ], entries, date(2024, 3, 20))
        assert awards.top == AwardItem("Read", 1)
        assert awards.best_streak == AwardItem("Read", 1)

    def test_reference_mid_month_uses_whole_month(self):
        entries = [_entry(1, "2024-03-01"), _entry(1, "2024-03-31")]
        assert monthly_awards([READ], entries, date(2024, 3, 15)).top.count == 2

    def test_to_dict(self):
        entries = [_entry(2, "2024-03-01")]
        payload = monthly_awards([READ, RUN], entries, date(2024, 3, 1)).to_dict()
        assert payload == {
            "topActivity": {"name": "Run", "count": 1},
            "lowestActivity": {"name": "Read", "count": 0},
            "highestStreakActivity": {"name": "Run", "count": 1},
        }

    @pytest.mark.parametrize("ref", [date(2024, 3, 1), date(2024, 3, 31)])
    def test_same_result_from_any_day_of_month(self, ref):
        entries = [_entry(1, "2024-03-10"), _entry(1, "2024-03-11")]
        assert monthly_awards([READ], entries, ref).best_streak == AwardItem("Read", 2)
