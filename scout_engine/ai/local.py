"""Deterministic, network-free assistant built from keyword heuristics."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from scout_engine.browser.markup import extract_interactive_elements
from scout_engine.discovery.extraction import actions_from_elements
from scout_engine.resolver.scoring import normalize, similarity

from .conversation import ConversationContext
from .models import PRIORITY_ORDER, CommandInterpretation, DiscoveredAction, RankedElement, RankingCandidate, UsageStats

COMMAND_PATTERNS: List[Tuple[str, Tuple[str, ...], float]] = [
    ("navigation", ("go to", "navigate", "open", "visit", "go back", "back", "home"), 0.9),
    ("authentication", ("log in", "login", "sign in", "signin", "sign up", "signup", "log out", "logout", "sign out"), 0.9),
    ("form_input", ("type", "fill", "enter", "input", "write"), 0.8),
    ("interaction", ("click", "press", "tap", "select", "choose", "submit"), 0.8),
]
UNKNOWN_CONFIDENCE = 0.3
CONTEXT_BONUS = 0.1
CONTEXT_WINDOW = 5
AUTH_TERMS = ("login", "log in", "sign in", "signin", "sign up", "register")
HOME_TERMS = ("home", "main", "start")
FRAMEWORK_TERMS = ("react", "vue")
MIN_RANK_CONFIDENCE = 0.1
INITIAL_ACTION_LIMIT = 20
INCREMENTAL_ACTION_LIMIT = 5

_NAVIGATION_TARGET_RE = re.compile(r"^(?:please\s+)?(?:go to|navigate to|open|visit)\s+(?:the\s+)?(?P<page>.+?)(?:\s+page)?$")


class LocalAssistant:
    """Mirrors the remote contract without leaving the process."""

    def __init__(self) -> None:
        self.usage = UsageStats()

    async def aclose(self) -> None:
        return None

    async def interpret_command(
        self,
        text: str,
        known_actions: Sequence[str],
        context: Optional[ConversationContext] = None,
    ) -> CommandInterpretation:
        self.usage.record(None)
        command = normalize(text)
        command_type, confidence = "unknown", UNKNOWN_CONFIDENCE
        for name, keywords, score in COMMAND_PATTERNS:
            if any(_contains_phrase(command, keyword) for keyword in keywords):
                command_type, confidence = name, score
                break
        parameters: Dict[str, str] = {}
        match = _NAVIGATION_TARGET_RE.match(command)
        if command_type == "navigation" and match:
            parameters["page"] = match.group("page").strip()
        elif command_type != "unknown":
            parameters["target"] = command
        if context is not None and context.recent(CONTEXT_WINDOW):
            confidence = min(1.0, confidence + CONTEXT_BONUS)
        ranked = sorted(
            ((similarity(command, action), index, action) for index, action in enumerate(known_actions)),
            key=lambda item: (-item[0], item[1]),
        )
        suggestions = [action for score, _, action in ranked[:3] if score > 0.5]
        return CommandInterpretation(
            command_type=command_type,
            parameters=parameters,
            confidence=round(confidence, 3),
            suggestions=suggestions,
        )

    async def rank_navigation_elements(
        self,
        text: str,
        candidates: Sequence[RankingCandidate],
    ) -> List[RankedElement]:
        self.usage.record(None)
        query = normalize(text)
        ranked: List[RankedElement] = []
        for candidate in candidates:
            confidence = self._rank_confidence(query, normalize(candidate.text))
            if confidence <= MIN_RANK_CONFIDENCE:
                continue
            ranked.append(
                RankedElement(
                    text=candidate.text,
                    selector=candidate.selector,
                    confidence=round(confidence, 3),
                    strategy=self._strategy_for(candidate),
                )
            )
        ranked.sort(key=lambda item: item.confidence, reverse=True)
        return ranked

    async def analyze_initial_markup(self, html: str) -> List[DiscoveredAction]:
        self.usage.record(None)
        actions = actions_from_elements(extract_interactive_elements(html))
        return _by_priority(actions)[:INITIAL_ACTION_LIMIT]

    async def analyze_incremental_markup(
        self,
        delta: str,
        known: Sequence[DiscoveredAction],
    ) -> List[DiscoveredAction]:
        self.usage.record(None)
        known_ids = {action.identity for action in known}
        fresh = [action for action in actions_from_elements(extract_interactive_elements(delta)) if action.identity not in known_ids]
        return _by_priority(fresh)[:INCREMENTAL_ACTION_LIMIT]

    @staticmethod
    def _rank_confidence(query: str, label: str) -> float:
        if not query or not label:
            return 0.0
        if query == label:
            return 0.95
        if query in label:
            return 0.85
        if label in query:
            return 0.75
        if any(term in query for term in AUTH_TERMS) and any(term in label for term in AUTH_TERMS):
            return 0.6
        if any(term in query for term in HOME_TERMS) and any(term in label for term in HOME_TERMS):
            return 0.7
        return similarity(query, label) * 0.5

    @staticmethod
    def _strategy_for(candidate: RankingCandidate) -> str:
        label = candidate.text.lower()
        if any(term in label for term in FRAMEWORK_TERMS):
            return "javascript"
        if "submit" in label and candidate.kind in {"button", "form_submit"}:
            return "event"
        return "standard"


def _contains_phrase(command: str, phrase: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(phrase)}(?![a-z0-9])", command) is not None


def _by_priority(actions: Sequence[DiscoveredAction]) -> List[DiscoveredAction]:
    return sorted(actions, key=lambda action: PRIORITY_ORDER[action.priority])


__all__ = ["LocalAssistant"]
