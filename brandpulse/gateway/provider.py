"""Chat completion client for OpenAI-compatible endpoints.

Any provider accepting ``{model, messages, temperature, max_tokens}`` and
answering ``{choices: [{message: {content}}]}`` is pluggable. The client
does not retry: RetryExecutor is layered on top by the question analyzer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

import httpx

from brandpulse.core.exceptions import (
    ProviderError,
    ProviderQuotaExceeded,
    ProviderRateLimited,
    ProviderTimeout,
)
from brandpulse.core.metrics import PROVIDER_CALL_DURATION, PROVIDER_CALLS, PROVIDER_TOKENS

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"


class TextCompletionProvider(Protocol):
    """What the analyzer needs from a provider."""

    label: str

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str: ...


class ChatCompletionClient:
    """OpenAI Chat Completions client with typed transport errors."""

    label = "ChatGPT/OpenAI"

    def __init__(self, api_key: str, api_url: str = OPENAI_API_URL):
        if not api_key:
            raise ValueError("Provider API key is not configured")
        self.api_key = api_key
        self.api_url = api_url

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        timeout: float = 60.0,
    ) -> str:
        start = time.monotonic()
        try:
            # Hard deadline on top of httpx's per-phase timeouts
            text = await asyncio.wait_for(
                self._post(model, system_prompt, user_prompt, temperature, max_tokens, timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            PROVIDER_CALLS.labels(model=model, outcome="timeout").inc()
            logger.warning("Provider call to %s timed out after %.1fs", model, timeout)
            raise ProviderTimeout(timeout) from None
        except ProviderQuotaExceeded:
            PROVIDER_CALLS.labels(model=model, outcome="quota").inc()
            raise
        except ProviderRateLimited:
            PROVIDER_CALLS.labels(model=model, outcome="rate_limited").inc()
            raise
        except ProviderError:
            PROVIDER_CALLS.labels(model=model, outcome="error").inc()
            raise

        elapsed = time.monotonic() - start
        PROVIDER_CALLS.labels(model=model, outcome="ok").inc()
        PROVIDER_CALL_DURATION.labels(model=model).observe(elapsed)
        logger.debug("Provider call to %s returned %d chars in %.2fs", model, len(text), elapsed)
        return text

    async def _post(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        payload = {
            "model": model,
            "messages": [],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system_prompt:
            payload["messages"].append({"role": "system", "content": system_prompt})
        payload["messages"].append({"role": "user", "content": user_prompt})

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(
                    self.api_url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as e:
            raise ProviderError(f"Transport error: {e}") from e

        if resp.status_code == 429:
            body = resp.text or ""
            if "insufficient_quota" in body:
                raise ProviderQuotaExceeded("Provider quota exhausted", status_code=429)
            raise ProviderRateLimited("Rate limited by provider", status_code=429)

        if resp.status_code >= 400:
            raise ProviderError(
                f"Provider returned HTTP {resp.status_code}: {(resp.text or '')[:200]}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Malformed completion response: {e}", status_code=resp.status_code) from e

        usage = data.get("usage") or {}
        PROVIDER_TOKENS.labels(model=model, direction="input").inc(usage.get("prompt_tokens", 0))
        PROVIDER_TOKENS.labels(model=model, direction="output").inc(usage.get("completion_tokens", 0))

        return content or ""
