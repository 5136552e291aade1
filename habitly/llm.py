"""LLM provider abstraction — provider-agnostic.

Supports any OpenAI-compatible API, Azure OpenAI, and Anthropic.
SDK exceptions never leave this module: they are translated into the
LLMError hierarchy so callers only deal with auth / rate-limit / unavailable.

Usage:
    from habitly.llm import get_client
    client = get_client()
    response = client.chat(messages)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from habitly.config import (
    CHAT_PROVIDER, CHAT_API_KEY, CHAT_MODEL, CHAT_BASE_URL, AZURE_API_VERSION,
)

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════

class LLMError(Exception):
    """Base class for provider failures. status_code mirrors the upstream status."""

    def __init__(self, message: str = "", status_code: int = 503):
        super().__init__(message)
        self.status_code = status_code


class LLMAuthError(LLMError):
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=401)


class LLMRateLimitError(LLMError):
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=429)


class LLMUnavailableError(LLMError):
    pass


def translate_error(exc: Exception) -> LLMError:
    """Map an SDK exception to an LLMError using its HTTP status, if any.

    Both the openai and anthropic SDKs expose `status_code` on their
    APIStatusError subclasses; connection errors and timeouts have none.
    """
    status = getattr(exc, "status_code", None)
    if status == 401:
        return LLMAuthError(str(exc))
    if status == 429:
        return LLMRateLimitError(str(exc))
    if isinstance(status, int) and status >= 400:
        return LLMUnavailableError(str(exc), status_code=status)
    return LLMUnavailableError(str(exc))


# ═══════════════════════════════════════════════════════════════════════════
# Providers
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""
    content: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    finish_reason: str = ""


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        """Send a chat completion request. Raises LLMError on failure."""
        ...

    @abstractmethod
    def provider_name(self) -> str:
        ...


def _is_o_series(model: str) -> bool:
    """Detect o-series / reasoning models that don't support temperature
    and require max_completion_tokens instead of max_tokens.
    """
    import re
    return bool(re.search(r'(^o\d|[/-]o\d|5\.1|o-series)', model, re.IGNORECASE))


def _build_completion_kwargs(
    model: str, messages: list[dict], temperature: float, max_tokens: int
) -> dict:
    """Build kwargs for chat.completions.create, adapting to model capabilities."""
    kwargs: dict = {"model": model, "messages": messages}
    if _is_o_series(model):
        kwargs["max_completion_tokens"] = max_tokens
    else:
        kwargs["temperature"] = temperature
        kwargs["max_tokens"] = max_tokens
    return kwargs


def _openai_response(resp, model: str) -> LLMResponse:
    choice = resp.choices[0]
    return LLMResponse(
        content=choice.message.content or "",
        prompt_tokens=resp.usage.prompt_tokens if resp.usage else 0,
        completion_tokens=resp.usage.completion_tokens if resp.usage else 0,
        total_tokens=resp.usage.total_tokens if resp.usage else 0,
        model=model,
        finish_reason=choice.finish_reason or "",
    )


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible API provider (works with OpenAI, DeepSeek, Ollama, Groq, etc.)."""

    def __init__(self, api_key: str, model: str, base_url: str = ""):
        from openai import OpenAI
        self._model = model
        kwargs: dict = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self._client = OpenAI(**kwargs)

    def provider_name(self) -> str:
        return "openai"

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        import openai
        kwargs = _build_completion_kwargs(self._model, messages, temperature, max_tokens)
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise translate_error(e) from e
        return _openai_response(resp, self._model)


class AzureOpenAIProvider(LLMProvider):
    """Azure OpenAI API provider."""

    def __init__(self, api_key: str, model: str, base_url: str = "",
                 api_version: str = ""):
        from openai import AzureOpenAI
        self._deployment = model
        self._client = AzureOpenAI(
            azure_endpoint=base_url,
            api_key=api_key,
            api_version=api_version or AZURE_API_VERSION,
        )

    def provider_name(self) -> str:
        return "azure_openai"

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        import openai
        kwargs = _build_completion_kwargs(self._deployment, messages, temperature, max_tokens)
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise translate_error(e) from e
        return _openai_response(resp, self._deployment)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str, model: str):
        import anthropic
        self._model = model
        self._client = anthropic.Anthropic(api_key=api_key)

    def provider_name(self) -> str:
        return "anthropic"

    @staticmethod
    def _split_system(messages: list[dict]) -> tuple[str, list[dict]]:
        """Anthropic takes the system prompt separately from the conversation."""
        system_msg = ""
        conversation = []
        for m in messages:
            if m["role"] == "system":
                system_msg += m["content"] + "\n"
            else:
                conversation.append({"role": m["role"], "content": m["content"]})
        return system_msg.strip(), conversation

    def chat(self, messages: list[dict], temperature: float = 0.7,
             max_tokens: int = 1024) -> LLMResponse:
        import anthropic
        system_msg, conversation = self._split_system(messages)

        kwargs = dict(
            model=self._model,
            messages=conversation,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if system_msg:
            kwargs["system"] = system_msg

        try:
            resp = self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise translate_error(e) from e

        content = "".join(block.text for block in resp.content if block.type == "text")
        return LLMResponse(
            content=content,
            prompt_tokens=resp.usage.input_tokens if resp.usage else 0,
            completion_tokens=resp.usage.output_tokens if resp.usage else 0,
            total_tokens=(resp.usage.input_tokens + resp.usage.output_tokens) if resp.usage else 0,
            model=self._model,
            finish_reason=resp.stop_reason or "",
        )


# ═══════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════

_cached_client: LLMProvider | None = None


def _make_client(provider: str, api_key: str, model: str, base_url: str) -> LLMProvider:
    """Instantiate a fresh LLM provider."""
    if not model:
        raise ValueError("CHAT_MODEL is required but not set. Please set it in your .env file.")
    if provider == "openai":
        return OpenAIProvider(api_key=api_key, model=model, base_url=base_url)
    elif provider == "azure_openai":
        return AzureOpenAIProvider(api_key=api_key, model=model, base_url=base_url)
    elif provider == "anthropic":
        return AnthropicProvider(api_key=api_key, model=model)
    else:
        raise ValueError(
            f"Unknown provider: {provider!r}. "
            "Supported: openai (+ any compatible API), azure_openai, anthropic"
        )


def get_client() -> LLMProvider:
    """Get (or create) the chat LLM client."""
    global _cached_client
    if _cached_client is None:
        _cached_client = _make_client(CHAT_PROVIDER, CHAT_API_KEY, CHAT_MODEL, CHAT_BASE_URL)
        log.info("LLM: provider=%s model=%s", CHAT_PROVIDER, CHAT_MODEL)
    return _cached_client
