"""Domain records shared by the store, the aggregation engine and the API.

to_dict() produces the camelCase field names the browser client expects.
"""

from dataclasses import dataclass
from datetime import date

from habitly.dates import format_date


@dataclass
class Habit:
    id: int
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class HabitEntry:
    """One day's completion value for one habit."""
    id: int
    habit_id: int
    date: date
    completed: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "habitId": self.habit_id,
            "date": format_date(self.date),
            "completed": self.completed,
        }


@dataclass(frozen=True)
class DailyCount:
    """One bar of a weekly/monthly graph."""
    label: str
    completed: int
    total: int

    def to_dict(self) -> dict:
        return {"day": self.label, "completedCount": self.completed, "totalHabits": self.total}


@dataclass(frozen=True)
class AwardItem:
    name: str
    count: int

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}


@dataclass(frozen=True)
class Awards:
    """Monthly rankings. Any field may be None."""
    top: AwardItem | None = None
    lowest: AwardItem | None = None
    best_streak: AwardItem | None = None

    def to_dict(self) -> dict:
        return {
            "topActivity": self.top.to_dict() if self.top else None,
            "lowestActivity": self.lowest.to_dict() if self.lowest else None,
            "highestStreakActivity": self.best_streak.to_dict() if self.best_streak else None,
        }


@dataclass
class MotivationalQuote:
    id: int
    quote: str
    author: str
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quote": self.quote,
            "author": self.author,
            "createdAt": self.created_at,
        }
