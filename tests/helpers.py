"""Test doubles and sample payloads shared by the test modules."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable

GENERATION_MODEL = "gen-model"
ANALYSIS_MODEL = "analysis-model"

GENERATED_TEXT = (
    "For home insurance in Spain, Occident offers broad coverage and good claims handling. "
    "Mapfre is the market leader with a large agent network, while AXA focuses on digital tools."
)


def analysis_payload(
    mentions: list[dict] | None = None,
    sentiment: str = "positive",
    confidence: float | None = 0.9,
    summary: str = "Occident and Mapfre are both recommended for home insurance.",
) -> dict:
    if mentions is None:
        mentions = [
            {
                "brand": "Occident",
                "mentioned": True,
                "frequency": 1,
                "context": "positive",
                "evidence": ["Occident offers broad coverage and good claims handling."],
            },
            {
                "brand": "Mapfre",
                "mentioned": True,
                "frequency": 1,
                "context": "neutral",
                "evidence": ["Mapfre is the market leader with a large agent network."],
            },
        ]
    payload = {"summary": summary, "brandMentions": mentions, "sentiment": sentiment}
    if confidence is not None:
        payload["confidenceScore"] = confidence
    return payload


ANALYSIS_JSON = json.dumps(analysis_payload(), ensure_ascii=False)


class ScriptedProvider:
    """In-process TextCompletionProvider.

    ``generate`` and ``analyze`` are either a string or a callable taking the
    call dict and returning a string (sync or async). Callables may raise.
    """

    label = "FakeLLM"

    def __init__(
        self,
        generate: str | Callable = GENERATED_TEXT,
        analyze: str | Callable = ANALYSIS_JSON,
    ):
        self.generate = generate
        self.analyze = analyze
        self.calls: list[dict] = []

    async def complete(self, *, model, system_prompt, user_prompt, temperature, max_tokens, timeout):
        call = {
            "model": model,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": timeout,
        }
        self.calls.append(call)
        handler = self.analyze if model == ANALYSIS_MODEL else self.generate
        if not callable(handler):
            await asyncio.sleep(0)
            return handler
        result = handler(call)
        if inspect.isawaitable(result):
            result = await result
        return result

    def calls_for(self, model: str) -> list[dict]:
        return [c for c in self.calls if c["model"] == model]


def sequence(*outcomes):
    """Handler returning (or raising) the given outcomes in order, repeating the last one."""
    remaining = list(outcomes)

    def handler(call):
        outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    return handler
