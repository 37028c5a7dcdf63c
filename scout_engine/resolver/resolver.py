"""Instruction → ranked suggestions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from scout_engine.ai.base import AIAssistant
from scout_engine.ai.conversation import ConversationContext
from scout_engine.ai.models import CommandInterpretation, RankedElement, RankingCandidate
from scout_engine.catalog.catalog import ElementCatalog, as_catalog
from scout_engine.catalog.types import KIND_PRIORITY, ElementKind, NavigableElement
from scout_engine.config_loader import section

from .commands import default_commands, looks_like_url, match_builtin_commands, normalize_url, parse_typed_input
from .scoring import PREFIX_SCORE, match_score, normalize, words
from .types import BuiltinCommand, ClickStrategy, CommandVerb, Suggestion, SuggestionSource

logger = logging.getLogger(__name__)

FRAMEWORK_TERMS = ("react", "vue")


class Resolver:
    """Ranks catalog elements and built-in commands for a free-text instruction.

    Local scoring always runs. When an assistant is configured its ranking replaces the
    local score for the elements it is confident about; any failure or timeout of that
    call leaves the local ranking in place.
    """

    def __init__(self, assistant: AIAssistant | None = None, settings: Mapping[str, Any] | None = None) -> None:
        options = section(settings, "resolver")
        self.assistant = assistant
        self.builtin_min_confidence = float(options.get("builtin_min_confidence", 0.7))
        self.empty_instruction_confidence = float(options.get("empty_instruction_confidence", 0.8))
        self.remote_min_confidence = float(options.get("remote_min_confidence", 0.3))
        self.remote_timeout = float(options.get("remote_timeout_seconds", 5.0))
        self.max_remote_candidates = int(options.get("max_remote_candidates", 50))
        self.direct_navigation_confidence = float(options.get("direct_navigation_confidence", 0.5))
        self.confident_match = float(options.get("confident_match", 0.7))
        self.context_boost = float(options.get("context_boost", 0.15))
        self.boosted_cap = float(options.get("boosted_cap", 0.95))
        self.interpretation_min_confidence = float(options.get("interpretation_min_confidence", 0.7))

    async def resolve(
        self,
        instruction: str,
        catalog: ElementCatalog | Sequence[NavigableElement],
        context: Optional[ConversationContext] = None,
    ) -> List[Suggestion]:
        catalog = as_catalog(catalog)
        text = " ".join((instruction or "").split())
        if not text:
            return self._default_ordering(catalog)

        builtins = [
            Suggestion(confidence=round(score, 4), command=command, source=SuggestionSource.BUILTIN)
            for command, score in match_builtin_commands(text, self.builtin_min_confidence)
        ]

        typed = parse_typed_input(text)
        query = typed.target if typed else text
        candidates = self._candidates(catalog, typed is not None)

        local = self._score_locally(query, candidates, context)
        ranked, interpretation = await self._consult_assistant(query, candidates, context)
        merged = self._merge_remote(candidates, local, ranked)
        merged.sort(key=lambda suggestion: suggestion.confidence, reverse=True)

        extra = self._interpreted_command(interpretation, builtins)
        if extra is not None:
            builtins.append(extra)

        if looks_like_url(text) and not any(item.confidence >= self.confident_match for item in merged):
            url = normalize_url(text)
            merged.append(
                Suggestion(
                    confidence=self.direct_navigation_confidence,
                    command=BuiltinCommand(CommandVerb.OPEN_URL, f"open {url}", target=url),
                    source=SuggestionSource.DIRECT,
                    reasoning="instruction looks like a URL",
                )
            )
            merged.sort(key=lambda suggestion: suggestion.confidence, reverse=True)

        logger.debug(
            "Resolved instruction",
            extra={"instruction": text, "builtins": len(builtins), "suggestions": len(merged), "remote": bool(ranked)},
        )
        return builtins + merged

    def _default_ordering(self, catalog: ElementCatalog) -> List[Suggestion]:
        confidence = self.empty_instruction_confidence
        suggestions = [
            Suggestion(confidence=confidence, command=command, source=SuggestionSource.BUILTIN)
            for command in default_commands()
        ]
        ordered = sorted(catalog.elements, key=lambda element: (KIND_PRIORITY[element.kind], element.position))
        suggestions.extend(
            Suggestion(confidence=confidence, element=element, strategy=local_strategy(element))
            for element in ordered
        )
        return suggestions

    @staticmethod
    def _candidates(catalog: ElementCatalog, typed: bool) -> List[NavigableElement]:
        if typed:
            fields = catalog.of_kind(ElementKind.FORM_FIELD)
            if fields:
                return fields
        return list(catalog.elements)

    def _score_locally(
        self,
        query: str,
        candidates: Sequence[NavigableElement],
        context: Optional[ConversationContext],
    ) -> Dict[int, float]:
        context_words = set(words(context.user_text())) if context is not None else set()
        scores: Dict[int, float] = {}
        for index, element in enumerate(candidates):
            score = match_score(query, element.label)
            if score <= 0:
                continue
            if context_words and score < PREFIX_SCORE and context_words.intersection(words(element.label)):
                score = min(self.boosted_cap, score + self.context_boost)
            scores[index] = round(score, 4)
        return scores

    async def _consult_assistant(
        self,
        query: str,
        candidates: Sequence[NavigableElement],
        context: Optional[ConversationContext],
    ) -> Tuple[List[RankedElement], Optional[CommandInterpretation]]:
        if self.assistant is None:
            return [], None
        payload = [
            RankingCandidate(text=element.label, selector=element.selector or element.target_url or "", kind=element.kind.value)
            for element in candidates[: self.max_remote_candidates]
        ]
        labels = [element.label for element in candidates[:20]]
        ranking = asyncio.ensure_future(self._rank(query, payload))
        interpreting = asyncio.ensure_future(self.assistant.interpret_command(query, labels, context))
        try:
            await asyncio.wait({ranking, interpreting}, timeout=self.remote_timeout)
        finally:
            pending = [task for task in (ranking, interpreting) if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        ranked = self._settled(ranking, "Remote ranking")
        interpretation = self._settled(interpreting, "Command interpretation")
        return list(ranked or []), interpretation

    def _settled(self, task: "asyncio.Future[Any]", label: str) -> Any:
        """Result of a finished remote call, or None when it failed or missed the deadline."""

        if task.cancelled():
            logger.warning("%s timed out after %.1fs; using local scores", label, self.remote_timeout)
            return None
        error = task.exception()
        if error is not None:
            logger.warning("%s failed: %s", label, error)
            return None
        return task.result()

    async def _rank(self, query: str, payload: List[RankingCandidate]) -> List[RankedElement]:
        if not payload or self.assistant is None:
            return []
        return await self.assistant.rank_navigation_elements(query, payload)

    def _merge_remote(
        self,
        candidates: Sequence[NavigableElement],
        local: Dict[int, float],
        ranked: Sequence[RankedElement],
    ) -> List[Suggestion]:
        remote: Dict[int, RankedElement] = {}
        for entry in ranked:
            if entry.confidence <= self.remote_min_confidence:
                continue
            index = _match_candidate(candidates, entry, claimed=remote.keys())
            if index is not None:
                remote[index] = entry
        merged: List[Suggestion] = []
        for index, element in enumerate(candidates):
            if index in remote:
                entry = remote[index]
                merged.append(
                    Suggestion(
                        confidence=round(entry.confidence, 4),
                        element=element,
                        strategy=ClickStrategy.parse(entry.strategy),
                        source=SuggestionSource.REMOTE,
                        reasoning=entry.reasoning,
                    )
                )
            elif index in local:
                merged.append(Suggestion(confidence=local[index], element=element, strategy=local_strategy(element)))
        return merged

    def _interpreted_command(
        self,
        interpretation: Optional[CommandInterpretation],
        builtins: Sequence[Suggestion],
    ) -> Optional[Suggestion]:
        if interpretation is None or interpretation.command_type != "navigation":
            return None
        if interpretation.confidence < self.interpretation_min_confidence:
            return None
        page = interpretation.parameters.get("page", "").strip()
        if not page:
            return None
        if any(item.command and item.command.verb in {CommandVerb.NAVIGATE_TO, CommandVerb.OPEN_URL} for item in builtins):
            return None
        if looks_like_url(page):
            command = BuiltinCommand(CommandVerb.OPEN_URL, f"open {page}", target=normalize_url(page))
        else:
            command = BuiltinCommand(CommandVerb.NAVIGATE_TO, f"go to {page}", target=page)
        return Suggestion(
            confidence=round(min(1.0, interpretation.confidence), 4),
            command=command,
            source=SuggestionSource.REMOTE,
            reasoning="interpreted as navigation",
        )


def local_strategy(element: NavigableElement) -> ClickStrategy:
    label = element.label.lower()
    if any(term in label for term in FRAMEWORK_TERMS):
        return ClickStrategy.SCRIPT_CLICK
    if element.kind is ElementKind.BUTTON and "submit" in label:
        return ClickStrategy.DISPATCH_EVENT
    return ClickStrategy.STANDARD


def _match_candidate(
    candidates: Sequence[NavigableElement],
    entry: RankedElement,
    claimed: Any,
) -> Optional[int]:
    selector = entry.selector.strip()
    label = normalize(entry.text)
    if selector:
        for index, element in enumerate(candidates):
            if index not in claimed and selector in {element.selector, element.target_url}:
                return index
    if label:
        for index, element in enumerate(candidates):
            if index not in claimed and normalize(element.label) == label:
                return index
    return None


__all__ = ["Resolver", "local_strategy"]
