"""Generate operations for the supported LLM backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import anthropic
import requests
from openai import OpenAI, OpenAIError, RateLimitError

from config import PipelineConfig

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
REQUEST_TIMEOUT_SECONDS = 60
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048

LOGGER = logging.getLogger(__name__)


class LLMProviderError(RuntimeError):
    """A provider call failed or returned something unusable."""


class QuotaExceededError(LLMProviderError):
    """The provider rejected the call for quota or rate-limit reasons."""


def generate_openai(
    prompt: str,
    config: PipelineConfig,
    *,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> str:
    """Run one chat completion on OpenAI and return the reply text."""
    client = OpenAI(api_key=config.llm_api_key)
    LOGGER.debug("Calling OpenAI model=%s max_tokens=%s", config.openai_model, max_tokens)
    try:
        response = client.chat.completions.create(
            model=config.openai_model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
    except RateLimitError as exc:
        raise QuotaExceededError(f"OpenAI quota exceeded: {exc}") from exc
    except OpenAIError as exc:
        raise LLMProviderError(f"OpenAI request failed: {exc}") from exc

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise LLMProviderError("OpenAI returned an unexpected response shape") from exc
    if not content:
        raise LLMProviderError("OpenAI returned an empty response")
    return content


def generate_gemini(
    prompt: str,
    config: PipelineConfig,
    *,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> str:
    """Call the Gemini generateContent REST endpoint and return the text."""
    url = f"{GEMINI_API_BASE_URL}/{config.gemini_model}:generateContent"
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
    }
    LOGGER.debug("Calling Gemini model=%s max_tokens=%s", config.gemini_model, max_tokens)
    try:
        response = requests.post(
            url,
            params={"key": config.llm_api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        body = response.json()
    except requests.RequestException as exc:
        raise LLMProviderError(f"Gemini request failed: {exc}") from exc
    except ValueError as exc:
        raise LLMProviderError(f"Gemini returned non-JSON body (status={response.status_code})") from exc

    error = body.get("error") if isinstance(body, dict) else None
    if error:
        message = _gemini_error_message(error)
        if response.status_code == 429 or (isinstance(error, dict) and error.get("status") == "RESOURCE_EXHAUSTED"):
            raise QuotaExceededError(f"Gemini quota exceeded: {message}")
        raise LLMProviderError(f"Gemini API error: {message}")

    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMProviderError(f"Unexpected Gemini response shape: {str(body)[:200]}") from exc
    if not isinstance(text, str) or not text.strip():
        raise LLMProviderError("Gemini returned an empty response")
    return text


def generate_claude(
    prompt: str,
    config: PipelineConfig,
    *,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> str:
    """Call the Anthropic Messages API and return the assistant reply."""
    client = anthropic.Anthropic(api_key=config.llm_api_key)
    LOGGER.debug("Calling Claude model=%s max_tokens=%s", config.claude_model, max_tokens)
    try:
        response = client.messages.create(
            model=config.claude_model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.RateLimitError as exc:
        raise QuotaExceededError(f"Claude rate limit hit: {exc}") from exc
    except anthropic.AnthropicError as exc:
        raise LLMProviderError(f"Claude request failed: {exc}") from exc

    try:
        text = response.content[0].text
    except (AttributeError, IndexError, TypeError) as exc:
        raise LLMProviderError("Claude returned an unexpected response shape") from exc
    if not text:
        raise LLMProviderError("Claude returned an empty response")
    return text


def _gemini_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """A backend's generate function plus its prompt truncation bounds."""

    name: str
    generate: Callable[..., str]
    original_chars: int
    reference_chars: int


PROVIDERS: dict[str, ProviderSpec] = {
    "openai": ProviderSpec("openai", generate_openai, original_chars=4000, reference_chars=2000),
    "gemini": ProviderSpec("gemini", generate_gemini, original_chars=3000, reference_chars=1500),
    "anthropic": ProviderSpec("anthropic", generate_claude, original_chars=3000, reference_chars=1500),
}


def get_provider(name: str) -> ProviderSpec:
    try:
        return PROVIDERS[name]
    except KeyError as exc:
        raise LLMProviderError(f"Unsupported LLM provider: {name!r}") from exc
