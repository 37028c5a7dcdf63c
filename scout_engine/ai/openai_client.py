"""OpenAI chat-completions assistant built on the official async SDK."""

from __future__ import annotations

import logging
import os
from time import perf_counter
from typing import Any, List, Mapping, Optional, Sequence

import httpx
from openai import APIError, AsyncOpenAI

from scout_engine.config_loader import section
from scout_engine.core.errors import RemoteAnalysisFailed

from . import prompts
from .conversation import ConversationContext
from .models import CommandInterpretation, DiscoveredAction, RankedElement, RankingCandidate, UsageStats
from .parsing import parse_actions, parse_interpretation, parse_ranked

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIAssistant:
    """Sends one JSON-only chat completion per operation and parses the reply."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        max_completion_tokens: int = 2000,
        max_retries: int = 2,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self.model = model
        self.max_completion_tokens = max_completion_tokens
        self.usage = UsageStats()
        self._owns_client = http_client is None
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None) -> Optional["OpenAIAssistant"]:
        options = section(settings, "ai")
        api_key = os.getenv(str(options.get("api_key_env") or "OPENAI_API_KEY"), "")
        if not api_key:
            LOGGER.info("No API key configured; remote analysis disabled")
            return None
        return cls(
            api_key,
            model=str(options.get("model") or DEFAULT_MODEL),
            base_url=str(options.get("base_url") or DEFAULT_BASE_URL),
            timeout=float(options.get("timeout_seconds", 20.0)),
            max_completion_tokens=int(options.get("max_completion_tokens", 2000)),
            max_retries=int(options.get("max_retries", 2)),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def interpret_command(
        self,
        text: str,
        known_actions: Sequence[str],
        context: Optional[ConversationContext] = None,
    ) -> CommandInterpretation:
        content = await self._complete(prompts.interpretation_prompt(text, known_actions, context))
        return parse_interpretation(content)

    async def rank_navigation_elements(
        self,
        text: str,
        candidates: Sequence[RankingCandidate],
    ) -> List[RankedElement]:
        if not candidates:
            return []
        content = await self._complete(prompts.ranking_prompt(text, candidates))
        return parse_ranked(content)

    async def analyze_initial_markup(self, html: str) -> List[DiscoveredAction]:
        content = await self._complete(prompts.initial_analysis_prompt(html))
        return parse_actions(content)

    async def analyze_incremental_markup(
        self,
        delta: str,
        known: Sequence[DiscoveredAction],
    ) -> List[DiscoveredAction]:
        content = await self._complete(prompts.incremental_analysis_prompt(delta, known))
        return parse_actions(content)

    async def _complete(self, prompt: str) -> str:
        started = perf_counter()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompts.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_completion_tokens=self.max_completion_tokens,
            )
        except APIError as exc:
            self.usage.failures += 1
            LOGGER.warning("Chat completion failed: %s", exc)
            raise RemoteAnalysisFailed(f"Chat completion failed: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            self.usage.failures += 1
            raise RemoteAnalysisFailed(f"Malformed completion body: {exc}") from exc
        self.usage.record(response.usage.model_dump() if response.usage is not None else None)
        LOGGER.debug(
            "Chat completion finished",
            extra={"model": self.model, "duration_ms": round((perf_counter() - started) * 1000, 2)},
        )
        if not isinstance(content, str) or not content.strip():
            self.usage.failures += 1
            raise RemoteAnalysisFailed("Empty completion")
        return content


__all__ = ["OpenAIAssistant"]
