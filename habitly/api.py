"""HTTP API — FastAPI application over the store, engine and chat proxy.

Routes:
    /api/habits                 habits, entries, graph, awards, summary
    /api/chat                   habit-aware assistant
    /api/motivationalquotes     quote CRUD
    /health                     liveness

Query dates are yyyy-MM-dd. A malformed or missing date never reaches the
engine: graph/awards/summary fall back to today.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field

from habitly import db
from habitly.ai_client import RATE_LIMIT_REPLY, IncomingMessage, chat
from habitly.aggregation import monthly_awards, monthly_series, weekly_series
from habitly.config import RATE_LIMIT_API_PER_MINUTE, RATE_LIMIT_CHAT_PER_MINUTE, SEED_QUOTES
from habitly.context import describe_habit_data
from habitly.dates import DateRange, parse_iso_date, today
from habitly.rate_limit import RateLimiter

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Request bodies
# ═══════════════════════════════════════════════════════════════════════════

class HabitRequest(BaseModel):
    name: str = ""


class LogEntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    habit_id: int = Field(0, alias="habitId")  # 0 never matches a stored habit
    date: str = ""  # yyyy-MM-dd
    completed: bool = False


class ChatTurn(BaseModel):
    role: str | None = None
    content: str | None = None


class ChatRequest(BaseModel):
    message: str | None = ""
    history: list[ChatTurn] | None = None


class QuoteRequest(BaseModel):
    quote: str = ""
    author: str = ""


def _reference_date(value: str | None) -> date:
    ref = parse_iso_date(value)
    if ref is None:
        return today()
    try:
        DateRange.week_of(ref)
    except OverflowError:
        # Sunday..Saturday week of 0001-01-01 or 9999-12-31 leaves the calendar
        log.debug("Reference date %s has no full week, using today", ref)
        return today()
    return ref


# ═══════════════════════════════════════════════════════════════════════════
# Habits
# ═══════════════════════════════════════════════════════════════════════════

habits_router = APIRouter(prefix="/api/habits", tags=["habits"])


@habits_router.get("")
def get_habits():
    return [h.to_dict() for h in db.list_habits()]


@habits_router.post("", status_code=status.HTTP_201_CREATED)
def create_habit(body: HabitRequest):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Habit name is required.")
    habit = db.create_habit(name)
    log.info("Habit #%d created", habit.id)
    return habit.to_dict()


@habits_router.post("/entries")
def log_entry(body: LogEntryRequest):
    """Record whether a habit was done on a date. Re-logging a date overwrites it."""
    if not body.date.strip():
        raise HTTPException(status_code=400, detail="Date is required.")
    day = parse_iso_date(body.date.strip())
    if day is None:
        raise HTTPException(status_code=400, detail="Date must be yyyy-MM-dd.")
    if db.get_habit(body.habit_id) is None:
        raise HTTPException(status_code=404, detail="Habit not found.")
    return db.log_entry(body.habit_id, day, body.completed).to_dict()


@habits_router.get("/graph")
def get_graph(
    mode: str = Query("weekly"),
    week_start: str | None = Query(None, alias="weekStart"),
    month_start: str | None = Query(None, alias="monthStart"),
):
    """mode=monthly gives one point per day of the month; anything else a Sun..Sat week."""
    if mode == "monthly":
        ref = _reference_date(month_start)
        window = DateRange.month_of(ref)
        series = monthly_series(db.list_habits(), db.list_entries(window=window), ref)
    else:
        ref = _reference_date(week_start)
        window = DateRange.week_of(ref)
        series = weekly_series(db.list_habits(), db.list_entries(window=window), ref)
    return [point.to_dict() for point in series]


@habits_router.get("/awards")
def get_awards(month_start: str | None = Query(None, alias="monthStart")):
    ref = _reference_date(month_start)
    entries = db.list_entries(window=DateRange.month_of(ref))
    return monthly_awards(db.list_habits(), entries, ref).to_dict()


@habits_router.get("/summary")
def get_summary(day: str | None = Query(None, alias="date")):
    """The same text the assistant receives as context."""
    return {"summary": describe_habit_data(db.list_habits(), db.list_entries(), _reference_date(day))}


@habits_router.put("/{habit_id}")
def rename_habit(habit_id: int, body: HabitRequest):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Habit name is required.")
    habit = db.rename_habit(habit_id, name)
    if habit is None:
        raise HTTPException(status_code=404, detail="Habit not found.")
    return habit.to_dict()


@habits_router.delete("/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_habit(habit_id: int):
    if not db.delete_habit(habit_id):
        raise HTTPException(status_code=404, detail="Habit not found.")
    log.info("Habit #%d deleted", habit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@habits_router.get("/{habit_id}/entries")
def get_entries(
    habit_id: int,
    from_date: str | None = Query(None, alias="fromDate"),
    to_date: str | None = Query(None, alias="toDate"),
):
    """Entries for one habit; each bound is inclusive and ignored if malformed."""
    start = parse_iso_date(from_date) or date.min
    end = parse_iso_date(to_date) or date.max
    return [e.to_dict() for e in db.list_entries(habit_id=habit_id, window=DateRange(start, end))]


# ═══════════════════════════════════════════════════════════════════════════
# Chat
# ═══════════════════════════════════════════════════════════════════════════

chat_router = APIRouter(prefix="/api/chat", tags=["chat"])


@chat_router.post("")
def post_chat(body: ChatRequest, request: Request, response: Response):
    """Rate-limited separately from the rest of the API; every outcome is {"reply": ...}."""
    if not request.app.state.rate_limiters["chat"].try_acquire(_client_key(request)):
        response.status_code = status.HTTP_429_TOO_MANY_REQUESTS
        return {"reply": RATE_LIMIT_REPLY}
    history = [turn.model_dump() for turn in body.history or []]
    result = chat(IncomingMessage(text=body.message or "", history=history))
    response.status_code = result.status_code
    return {"reply": result.reply}


# ═══════════════════════════════════════════════════════════════════════════
# Motivational quotes
# ═══════════════════════════════════════════════════════════════════════════

quotes_router = APIRouter(prefix="/api/motivationalquotes", tags=["quotes"])


def _validated_quote(body: QuoteRequest) -> tuple[str, str]:
    quote, author = body.quote.strip(), body.author.strip()
    if not quote or not author:
        raise HTTPException(status_code=400, detail="Quote and Author are required.")
    return quote, author


@quotes_router.get("")
def get_quotes():
    return [q.to_dict() for q in db.list_quotes()]


@quotes_router.get("/{quote_id}")
def get_quote(quote_id: int):
    quote = db.get_quote(quote_id)
    if quote is None:
        raise HTTPException(status_code=404, detail="Quote not found.")
    return quote.to_dict()


@quotes_router.post("", status_code=status.HTTP_201_CREATED)
def create_quote(body: QuoteRequest):
    quote, author = _validated_quote(body)
    return db.create_quote(quote, author).to_dict()


@quotes_router.put("/{quote_id}")
def update_quote(quote_id: int, body: QuoteRequest):
    if db.get_quote(quote_id) is None:
        raise HTTPException(status_code=404, detail="Quote not found.")
    quote, author = _validated_quote(body)
    return db.update_quote(quote_id, quote, author).to_dict()


@quotes_router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quote(quote_id: int):
    if not db.delete_quote(quote_id):
        raise HTTPException(status_code=404, detail="Quote not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════════════════

def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _rate_limited(limiter: RateLimiter):
    """Router dependency that rejects a client once its window is full."""
    def dependency(request: Request) -> None:
        if not limiter.try_acquire(_client_key(request)):
            raise HTTPException(status_code=429, detail=RATE_LIMIT_REPLY)
    return dependency


def create_app(api_limit: int = RATE_LIMIT_API_PER_MINUTE,
               chat_limit: int = RATE_LIMIT_CHAT_PER_MINUTE,
               seed_quotes: bool = SEED_QUOTES) -> FastAPI:
    """Build the application. Tables are created (and quotes seeded) on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.init_db()
        if seed_quotes:
            db.seed_quotes()
        log.info("Habitly API ready")
        yield
        log.info("Habitly API shutting down")

    app = FastAPI(
        title="Habitly API",
        description="Track habits through the week and graph your progress",
        lifespan=lifespan,
    )

    api_limiter = RateLimiter("api", api_limit)
    chat_limiter = RateLimiter("chat", chat_limit)
    app.state.rate_limiters = {"api": api_limiter, "chat": chat_limiter}

    app.include_router(habits_router, dependencies=[Depends(_rate_limited(api_limiter))])
    app.include_router(quotes_router, dependencies=[Depends(_rate_limited(api_limiter))])
    app.include_router(chat_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
