from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from scout_engine.catalog.types import NavigableElement


class ClickStrategy(str, Enum):
    """How the executor should perform the primary interaction."""

    STANDARD = "standard"
    SCRIPT_CLICK = "script_click"
    DISPATCH_EVENT = "dispatch_event"
    FOCUS_ENTER = "focus_enter"
    TEXT_SEARCH = "text_search"

    @classmethod
    def parse(cls, value: Any) -> "ClickStrategy":
        """Accept enum values and the short names remote rankers use."""

        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("-", "_")
        return _STRATEGY_ALIASES.get(text, cls.STANDARD)


_STRATEGY_ALIASES: Dict[str, ClickStrategy] = {
    "standard": ClickStrategy.STANDARD,
    "javascript": ClickStrategy.SCRIPT_CLICK,
    "js": ClickStrategy.SCRIPT_CLICK,
    "script": ClickStrategy.SCRIPT_CLICK,
    "script_click": ClickStrategy.SCRIPT_CLICK,
    "event": ClickStrategy.DISPATCH_EVENT,
    "dispatch": ClickStrategy.DISPATCH_EVENT,
    "dispatch_event": ClickStrategy.DISPATCH_EVENT,
    "focus": ClickStrategy.FOCUS_ENTER,
    "focus_enter": ClickStrategy.FOCUS_ENTER,
    "text": ClickStrategy.TEXT_SEARCH,
    "text_search": ClickStrategy.TEXT_SEARCH,
}


class SuggestionSource(str, Enum):
    BUILTIN = "builtin"
    LOCAL = "local"
    REMOTE = "remote"
    DIRECT = "direct"


class CommandVerb(str, Enum):
    GO_BACK = "go_back"
    GO_HOME = "go_home"
    REFRESH = "refresh"
    NAVIGATE_TO = "navigate_to"
    CLICK_TARGET = "click_target"
    OPEN_URL = "open_url"


@dataclass(frozen=True)
class BuiltinCommand:
    verb: CommandVerb
    label: str
    target: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return {"verb": self.verb.value, "label": self.label, "target": self.target}


@dataclass(frozen=True)
class Suggestion:
    """A scored candidate; exactly one of ``element`` and ``command`` is set."""

    confidence: float
    strategy: ClickStrategy = ClickStrategy.STANDARD
    element: Optional[NavigableElement] = None
    command: Optional[BuiltinCommand] = None
    source: SuggestionSource = SuggestionSource.LOCAL
    reasoning: str = ""

    def __post_init__(self) -> None:
        if (self.element is None) == (self.command is None):
            raise ValueError("Suggestion needs exactly one of element or command")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence {self.confidence} outside [0, 1]")

    @property
    def label(self) -> str:
        if self.element is not None:
            return self.element.label
        return self.command.label if self.command else ""

    def as_payload(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "confidence": round(float(self.confidence), 3),
            "strategy": self.strategy.value,
            "source": self.source.value,
            "element": self.element.as_payload() if self.element else None,
            "command": self.command.as_payload() if self.command else None,
            "reasoning": self.reasoning,
        }


__all__ = ["BuiltinCommand", "ClickStrategy", "CommandVerb", "Suggestion", "SuggestionSource"]
