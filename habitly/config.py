"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# LLM — Chat assistant
# ═══════════════════════════════════════════════════════════════════════════
# CHAT_PROVIDER tells the proxy which SDK to use:
#   "openai"       — OpenAI SDK (also works with DeepSeek, Ollama, Groq, etc.)
#   "azure_openai" — Azure OpenAI SDK
#   "anthropic"    — Anthropic SDK

CHAT_PROVIDER = _env("CHAT_PROVIDER", "openai")
CHAT_API_KEY = _env("CHAT_API_KEY") or _env("OPENAI_API_KEY")
CHAT_MODEL = _env("CHAT_MODEL") or "gpt-4o-mini"
CHAT_BASE_URL = _env("CHAT_BASE_URL")    # optional custom endpoint
CHAT_MAX_TOKENS = _env_int("CHAT_MAX_TOKENS", 1024)

# How many prior turns from the browser are forwarded with each question
CHAT_HISTORY_LIMIT = _env_int("CHAT_HISTORY_LIMIT", 10)

AZURE_API_VERSION = _env("AZURE_API_VERSION", "2024-12-01-preview")

# ═══════════════════════════════════════════════════════════════════════════
# HTTP server
# ═══════════════════════════════════════════════════════════════════════════

HOST = _env("HOST", "0.0.0.0")
PORT = _env_int("PORT", 8000)
LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()

# Requests per client per minute (fixed window)
RATE_LIMIT_API_PER_MINUTE = _env_int("RATE_LIMIT_API_PER_MINUTE", 120)
RATE_LIMIT_CHAT_PER_MINUTE = _env_int("RATE_LIMIT_CHAT_PER_MINUTE", 10)

# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════

DB_PATH = Path(_env("HABITLY_DB_PATH") or _PROJECT_ROOT / "data" / "habitly.db")

# Insert the starter motivational quotes when the table is empty
SEED_QUOTES = _env_bool("SEED_QUOTES", True)
