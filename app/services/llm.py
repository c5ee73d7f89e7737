# =============================================================================
# Multi-Provider LLM Abstraction — Inference Service
# =============================================================================
#
# The evidence engine needs exactly one capability from its reasoning
# backend: "given a prompt, return a text completion". This module provides
# that capability behind a Protocol, with concrete implementations for
# OpenAI-compatible APIs (DeepSeek by default) and Anthropic (Claude).
#
# It also owns the two helpers every engine component uses around a call:
#   - complete_text()  — per-call timeout + bounded transport retry
#   - parse_json()     — JSON parsing that tolerates markdown code fences
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — DeepSeek, Qwen, OpenAI, ...
#   │   └── complete()           — system prompt as message role
#   ├── AnthropicProvider        — Claude via native Anthropic SDK
#   │   └── complete()           — system prompt as top-level kwarg
#   └── get_llm_provider()       — Singleton factory, reads from config
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from app.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response and Provider Interface
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """One completion, normalised across providers."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(Protocol):
    """
    Anything with an async `complete()` returning an LLMResponse.

    Engine prompts are single-turn: one user message plus an optional
    system prompt. Test doubles implement only this method.
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        ...


def _require_key(*candidates: str | None, hint: str) -> str:
    for key in candidates:
        if key:
            return key
    raise ValueError(f"No API key configured for the LLM provider. Set {hint} in .env")


# ---------------------------------------------------------------------------
# DeepSeek (and any other OpenAI-compatible endpoint)
# ---------------------------------------------------------------------------
# Default backend: LLM_PROVIDER=openai_compatible with LLM_BASE_URL at
# api.deepseek.com and deepseek-chat. The system prompt travels as the
# first message.
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        key = _require_key(
            api_key, settings.llm_api_key, settings.openai_api_key,
            hint="LLM_API_KEY",
        )
        self._base_url = base_url or settings.llm_base_url
        self._client = AsyncOpenAI(api_key=key, base_url=self._base_url or None)
        self._model = model or settings.llm_model
        self._max_tokens = settings.llm_max_tokens

        logger.info(
            "LLM provider: %s via %s",
            self._model, self._base_url or "api.openai.com",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        chat = [{"role": "system", "content": system}] if system else []
        chat.extend(messages)

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=chat,
            max_tokens=max_tokens or self._max_tokens,
            temperature=settings.llm_temperature if temperature is None else temperature,
        )

        text = response.choices[0].message.content if response.choices else None
        usage = response.usage
        return LLMResponse(
            content=text or "",
            model=response.model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


# ---------------------------------------------------------------------------
# Anthropic (Claude)
# ---------------------------------------------------------------------------
# The Messages API takes the system prompt as a top-level `system=` field
# and returns a list of content blocks; the first text block is the answer.
# ---------------------------------------------------------------------------


class AnthropicProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        from anthropic import AsyncAnthropic

        key = _require_key(
            api_key, settings.llm_api_key, settings.anthropic_api_key,
            hint="LLM_API_KEY or ANTHROPIC_API_KEY",
        )
        self._client = AsyncAnthropic(api_key=key)
        self._model = model or settings.llm_model
        self._max_tokens = settings.llm_max_tokens

        logger.info("LLM provider: %s via Anthropic", self._model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        request: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": settings.llm_temperature if temperature is None else temperature,
        }
        if system:
            request["system"] = system

        response = await self._client.messages.create(**request)

        text = next(
            (block.text for block in response.content if block.type == "text"),
            "",
        )
        return LLMResponse(
            content=text,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# One provider (and one HTTP connection pool) per process
_provider: OpenAICompatibleProvider | AnthropicProvider | None = None


def get_llm_provider() -> OpenAICompatibleProvider | AnthropicProvider:
    """
    Return the provider selected by settings.llm_provider.

    Raises:
        ValueError: If the selected provider has no API key.
    """
    global _provider
    if _provider is None:
        if settings.llm_provider == "anthropic":
            _provider = AnthropicProvider()
        else:
            _provider = OpenAICompatibleProvider()
    return _provider

# ---------------------------------------------------------------------------
# Call Helpers — Timeout, Retry, JSON Parsing
# ---------------------------------------------------------------------------


async def complete_text(
    llm: LLMProvider,
    prompt: str,
    system: str | None = None,
    max_tokens: int | None = None,
    timeout: float | None = None,
    retries: int | None = None,
) -> str | None:
    """
    Send a single user prompt and return the completion text.

    Returns None when the call times out: a timeout is an empty answer
    for this prompt, not an error. Any other failure is treated as a
    transport failure and retried up to `retries` times; the last error
    is re-raised for the caller to degrade locally.
    """
    timeout = timeout if timeout is not None else settings.llm_timeout_seconds
    retries = retries if retries is not None else settings.llm_max_retries

    for attempt in range(retries + 1):
        try:
            response = await asyncio.wait_for(
                llm.complete(
                    messages=[{"role": "user", "content": prompt}],
                    system=system,
                    temperature=settings.llm_temperature,
                    max_tokens=max_tokens,
                ),
                timeout=timeout,
            )
            logger.debug(
                "LLM call: %s, %d input / %d output tokens",
                response.model, response.input_tokens, response.output_tokens,
            )
            return response.content or None
        except asyncio.TimeoutError:
            logger.warning("LLM call timed out after %.1fs", timeout)
            return None
        except Exception as e:
            if attempt >= retries:
                raise
            logger.warning(
                "LLM call failed (attempt %d/%d): %s. Retrying.",
                attempt + 1, retries + 1, e,
            )
    return None


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json(content: str) -> Any:
    """
    Parse a JSON payload from an LLM response.

    Models often wrap JSON in ```json ... ``` fences despite being told
    not to; the fences are stripped before parsing.

    Raises:
        json.JSONDecodeError: If the remaining text is not valid JSON.
    """
    return json.loads(_FENCE_RE.sub("", content.strip()).strip())
