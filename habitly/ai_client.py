"""AI client — answers questions about the user's habits through an LLM.

Ties together:
- Record store (habits + entries snapshot)
- Context formatter (habit data as text, pasted ahead of the question)
- LLM provider (chat completions)

Provider failures never raise out of chat(); they become one of three
user-facing replies with a matching HTTP status.
"""

import logging
from dataclasses import dataclass, field

from habitly.config import CHAT_API_KEY, CHAT_HISTORY_LIMIT, CHAT_MAX_TOKENS
from habitly.context import describe_habit_data
from habitly.db import list_entries, list_habits
from habitly.llm import LLMAuthError, LLMError, LLMRateLimitError, get_client

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful habit-tracking assistant. The user's habit data is prepended "
    "to their message. Use it to answer. Never ask them to share data—you already "
    "have it. Give specific answers with their habit names and numbers."
)

UNAVAILABLE_REPLY = "The assistant is temporarily unavailable. Please try again later."
AUTH_REPLY = "The assistant could not authenticate. Please try again later."
RATE_LIMIT_REPLY = "Too many requests. Please wait a moment and try again."
EMPTY_REPLY = "No response."

# Roles the browser may replay; anything else is treated as the user speaking
_HISTORY_ROLES = ("user", "assistant")


@dataclass
class IncomingMessage:
    """A question from the browser plus the conversation so far."""
    text: str
    history: list[dict] = field(default_factory=list)  # [{"role": ..., "content": ...}]


@dataclass
class ChatReply:
    reply: str
    status_code: int = 200


def build_user_message(text: str, habit_context: str) -> str:
    return f"[Your habit data - use this to answer:]\n{habit_context}\n\n[User question:] {text}"


def build_messages(message: IncomingMessage, habit_context: str) -> list[dict]:
    """System prompt, the last CHAT_HISTORY_LIMIT history turns, then the question."""
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    history = message.history[-CHAT_HISTORY_LIMIT:] if CHAT_HISTORY_LIMIT > 0 else []
    for m in history:
        messages.append({
            "role": m.get("role") if m.get("role") in _HISTORY_ROLES else "user",
            "content": m.get("content") or "",
        })
    messages.append({"role": "user", "content": build_user_message(message.text, habit_context)})
    return messages


def chat(message: IncomingMessage) -> ChatReply:
    """Answer one question using the current habit data.

    Flow:
    1. Refuse early when no API key is configured
    2. Snapshot habits + entries and render them as text
    3. Call the LLM
    4. Map failures to auth / rate-limit / unavailable replies
    """
    if not CHAT_API_KEY:
        log.error("Chat requested but no CHAT_API_KEY / OPENAI_API_KEY is configured")
        return ChatReply(UNAVAILABLE_REPLY, 500)

    habit_context = describe_habit_data(list_habits(), list_entries())
    messages = build_messages(message, habit_context)
    # Sizes only, message text may contain personal data
    log.debug("Chat request: %d history turns, %d context chars",
              len(messages) - 2, len(habit_context))

    try:
        client = get_client()
        response = client.chat(messages=messages, max_tokens=CHAT_MAX_TOKENS)
    except LLMAuthError as e:
        log.warning("LLM authentication failed: %s", e)
        return ChatReply(AUTH_REPLY, e.status_code)
    except LLMRateLimitError as e:
        log.warning("LLM rate limited: %s", e)
        return ChatReply(RATE_LIMIT_REPLY, e.status_code)
    except LLMError as e:
        log.error("LLM request failed (%d): %s", e.status_code, e)
        return ChatReply(UNAVAILABLE_REPLY, e.status_code)
    except ValueError as e:
        log.error("LLM client misconfigured: %s", e)
        return ChatReply(UNAVAILABLE_REPLY, 500)

    log.info("Chat reply: model=%s tokens=%d", response.model, response.total_tokens)
    reply = response.content.strip()
    return ChatReply(reply or EMPTY_REPLY)
