"""SQLite database layer — habits, daily entries and motivational quotes.

Lightweight schema. Tables are created automatically on first run.
One (habit_id, date) pair has at most one entry: logging again updates it.
"""

import sqlite3
import logging
from datetime import date, datetime, timezone

from habitly.config import DB_PATH
from habitly.dates import DateRange, format_date, parse_iso_date
from habitly.models import Habit, HabitEntry, MotivationalQuote

logger = logging.getLogger(__name__)


def _connect() -> sqlite3.Connection:
    """Return a connection with row_factory set."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db() -> None:
    """Create tables if they don't exist."""
    conn = _connect()
    conn.executescript("""
        -- Habits (defined by user)
        CREATE TABLE IF NOT EXISTS habits (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            name       TEXT    NOT NULL,
            created_at TEXT    NOT NULL
        );

        -- One row per habit per day: did it (1) or didn't (0)
        CREATE TABLE IF NOT EXISTS habit_entries (
            id        INTEGER PRIMARY KEY AUTOINCREMENT,
            habit_id  INTEGER NOT NULL REFERENCES habits(id),
            date      TEXT    NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0
        );
        CREATE UNIQUE INDEX IF NOT EXISTS idx_habit_entries_habit_date
            ON habit_entries(habit_id, date);
        CREATE INDEX IF NOT EXISTS idx_habit_entries_date
            ON habit_entries(date);

        -- Motivational quotes shown on the dashboard
        CREATE TABLE IF NOT EXISTS motivational_quotes (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            quote      TEXT    NOT NULL,
            author     TEXT    NOT NULL,
            created_at TEXT    NOT NULL
        );
    """)
    conn.close()
    logger.info("Database initialized at %s", DB_PATH)


# ═══════════════════════════════════════════════════════════════════════════
# Habits
# ═══════════════════════════════════════════════════════════════════════════

def create_habit(name: str) -> Habit:
    """Create a new habit. Ids are assigned by SQLite and never reused."""
    conn = _connect()
    cur = conn.execute(
        "INSERT INTO habits (name, created_at) VALUES (?, ?)",
        (name, _now()),
    )
    conn.commit()
    hid = cur.lastrowid
    conn.close()
    logger.debug("Created habit #%d", hid)
    return Habit(id=hid, name=name)


def list_habits() -> list[Habit]:
    conn = _connect()
    rows = conn.execute("SELECT id, name FROM habits ORDER BY id").fetchall()
    conn.close()
    return [Habit(id=r["id"], name=r["name"]) for r in rows]


def get_habit(habit_id: int) -> Habit | None:
    conn = _connect()
    row = conn.execute("SELECT id, name FROM habits WHERE id = ?", (habit_id,)).fetchone()
    conn.close()
    return Habit(id=row["id"], name=row["name"]) if row else None


def rename_habit(habit_id: int, name: str) -> Habit | None:
    """Rename a habit. Returns None if it doesn't exist."""
    conn = _connect()
    cur = conn.execute("UPDATE habits SET name = ? WHERE id = ?", (name, habit_id))
    conn.commit()
    updated = cur.rowcount
    conn.close()
    return Habit(id=habit_id, name=name) if updated else None


def delete_habit(habit_id: int) -> bool:
    """Delete a habit together with all of its entries."""
    conn = _connect()
    conn.execute("DELETE FROM habit_entries WHERE habit_id = ?", (habit_id,))
    cur = conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
    conn.commit()
    deleted = cur.rowcount
    conn.close()
    if deleted:
        logger.debug("Deleted habit #%d", habit_id)
    return bool(deleted)


# ═══════════════════════════════════════════════════════════════════════════
# Entries
# ═══════════════════════════════════════════════════════════════════════════

def _row_to_entry(row: sqlite3.Row) -> HabitEntry | None:
    d = parse_iso_date(row["date"])
    if d is None:
        logger.warning("Skipping entry #%d with bad date %r", row["id"], row["date"])
        return None
    return HabitEntry(id=row["id"], habit_id=row["habit_id"], date=d,
                      completed=bool(row["completed"]))


def log_entry(habit_id: int, day: date, completed: bool) -> HabitEntry:
    """Insert or update the entry for (habit_id, day)."""
    day_str = format_date(day)
    conn = _connect()
    conn.execute(
        """INSERT INTO habit_entries (habit_id, date, completed) VALUES (?, ?, ?)
           ON CONFLICT(habit_id, date) DO UPDATE SET completed = excluded.completed""",
        (habit_id, day_str, int(completed)),
    )
    conn.commit()
    row = conn.execute(
        "SELECT id, habit_id, date, completed FROM habit_entries WHERE habit_id = ? AND date = ?",
        (habit_id, day_str),
    ).fetchone()
    conn.close()
    logger.debug("Logged habit #%d %s completed=%s", habit_id, day_str, completed)
    return HabitEntry(id=row["id"], habit_id=row["habit_id"], date=day,
                      completed=bool(row["completed"]))


def list_entries(habit_id: int | None = None, window: DateRange | None = None) -> list[HabitEntry]:
    """Entries ordered by date, optionally for one habit and/or inside window."""
    sql = "SELECT id, habit_id, date, completed FROM habit_entries WHERE 1 = 1"
    params: list = []
    if habit_id is not None:
        sql += " AND habit_id = ?"
        params.append(habit_id)
    if window is not None:
        # ISO yyyy-MM-dd text sorts the same way as the dates themselves
        sql += " AND date >= ? AND date <= ?"
        params.extend([format_date(window.start), format_date(window.end)])
    sql += " ORDER BY date, id"

    conn = _connect()
    rows = conn.execute(sql, params).fetchall()
    conn.close()
    entries = [_row_to_entry(r) for r in rows]
    return [e for e in entries if e is not None]


# ═══════════════════════════════════════════════════════════════════════════
# Motivational Quotes
# ═══════════════════════════════════════════════════════════════════════════

_STARTER_QUOTES = [
    ("We are what we repeatedly do. Excellence, then, is not an act, but a habit.", "Aristotle"),
    ("The secret of getting ahead is getting started.", "Mark Twain"),
    ("Small daily improvements over time lead to stunning results.", "Robin Sharma"),
    ("You don't have to be great to start, but you have to start to be great.", "Zig Ziglar"),
    ("The best time to plant a tree was 20 years ago. The second best time is now.", "Chinese Proverb"),
]


def _row_to_quote(row: sqlite3.Row) -> MotivationalQuote:
    return MotivationalQuote(id=row["id"], quote=row["quote"], author=row["author"],
                             created_at=row["created_at"])


def seed_quotes() -> int:
    """Insert the starter quotes if the table is empty. Returns rows inserted."""
    conn = _connect()
    row = conn.execute("SELECT COUNT(*) as cnt FROM motivational_quotes").fetchone()
    if row["cnt"]:
        conn.close()
        return 0
    now = _now()
    conn.executemany(
        "INSERT INTO motivational_quotes (quote, author, created_at) VALUES (?, ?, ?)",
        [(q, a, now) for q, a in _STARTER_QUOTES],
    )
    conn.commit()
    conn.close()
    logger.info("Seeded %d motivational quotes", len(_STARTER_QUOTES))
    return len(_STARTER_QUOTES)


def list_quotes() -> list[MotivationalQuote]:
    conn = _connect()
    rows = conn.execute(
        "SELECT id, quote, author, created_at FROM motivational_quotes ORDER BY id"
    ).fetchall()
    conn.close()
    return [_row_to_quote(r) for r in rows]


def get_quote(quote_id: int) -> MotivationalQuote | None:
    conn = _connect()
    row = conn.execute(
        "SELECT id, quote, author, created_at FROM motivational_quotes WHERE id = ?",
        (quote_id,),
    ).fetchone()
    conn.close()
    return _row_to_quote(row) if row else None


def create_quote(quote: str, author: str) -> MotivationalQuote:
    now = _now()
    conn = _connect()
    cur = conn.execute(
        "INSERT INTO motivational_quotes (quote, author, created_at) VALUES (?, ?, ?)",
        (quote, author, now),
    )
    conn.commit()
    qid = cur.lastrowid
    conn.close()
    return MotivationalQuote(id=qid, quote=quote, author=author, created_at=now)


def update_quote(quote_id: int, quote: str, author: str) -> MotivationalQuote | None:
    conn = _connect()
    cur = conn.execute(
        "UPDATE motivational_quotes SET quote = ?, author = ? WHERE id = ?",
        (quote, author, quote_id),
    )
    conn.commit()
    updated = cur.rowcount
    conn.close()
    return get_quote(quote_id) if updated else None


def delete_quote(quote_id: int) -> bool:
    conn = _connect()
    cur = conn.execute("DELETE FROM motivational_quotes WHERE id = ?", (quote_id,))
    conn.commit()
    deleted = cur.rowcount
    conn.close()
    return bool(deleted)
