"""Payloads exchanged with the AI collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["high", "medium", "low"]
PRIORITY_ORDER: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}

VERB_ALIASES: Dict[str, str] = {
    "press": "click",
    "tap": "click",
    "fill": "type",
    "enter": "type",
    "input": "type",
    "type_text": "type",
    "open": "navigate",
    "visit": "navigate",
    "goto": "navigate",
    "choose": "select",
}


class DiscoveredAction(BaseModel):
    """An action suggested by page analysis.

    Two actions with the same ``(selector, interaction_verb)`` are the same action, whatever
    their descriptions say.
    """

    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    selector: str
    interaction_verb: str = Field(default="click", alias="verb")
    priority: Priority = "medium"
    is_already_tested: bool = False
    generated_script: Optional[str] = None
    originating_instruction: Optional[str] = None

    @field_validator("selector")
    @classmethod
    def _require_selector(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("selector must not be blank")
        return cleaned

    @field_validator("interaction_verb", mode="before")
    @classmethod
    def _normalise_verb(cls, value: Any) -> str:
        verb = str(value or "click").strip().lower()
        return VERB_ALIASES.get(verb, verb) or "click"

    @field_validator("priority", mode="before")
    @classmethod
    def _normalise_priority(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in PRIORITY_ORDER else "medium"

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, value: Any) -> str:
        return " ".join(str(value or "").split())

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.selector, self.interaction_verb)


class RankingCandidate(BaseModel):
    text: str
    selector: str
    kind: str = ""


class RankedElement(BaseModel):
    text: str = ""
    selector: str = ""
    confidence: float = 0.0
    strategy: str = "standard"
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return min(1.0, max(0.0, number))


class CommandInterpretation(BaseModel):
    command_type: str = "unknown"
    parameters: Dict[str, str] = Field(default_factory=dict)
    confidence: float = 0.0
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("parameters", mode="before")
    @classmethod
    def _stringify_parameters(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(key): str(item) for key, item in value.items() if item is not None}


@dataclass
class UsageStats:
    """Running token usage for one assistant instance."""

    calls: int = 0
    failures: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def record(self, usage: Dict[str, Any] | None) -> None:
        self.calls += 1
        if not usage:
            return
        self.prompt_tokens += int(usage.get("prompt_tokens") or 0)
        self.completion_tokens += int(usage.get("completion_tokens") or 0)

    def as_payload(self) -> Dict[str, int]:
        return {
            "calls": self.calls,
            "failures": self.failures,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


__all__ = [
    "CommandInterpretation",
    "DiscoveredAction",
    "PRIORITY_ORDER",
    "Priority",
    "RankedElement",
    "RankingCandidate",
    "UsageStats",
]
