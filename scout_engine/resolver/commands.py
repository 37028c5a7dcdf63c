"""Built-in navigation verbs and instruction parsing helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .scoring import match_score, normalize
from .types import BuiltinCommand, CommandVerb

STATIC_COMMANDS: List[Tuple[BuiltinCommand, Tuple[str, ...]]] = [
    (BuiltinCommand(CommandVerb.GO_BACK, "go back"), ("go back", "back", "navigate back", "previous page")),
    (BuiltinCommand(CommandVerb.GO_HOME, "go to home"), ("go to home", "go home", "home", "homepage", "go to homepage")),
    (BuiltinCommand(CommandVerb.REFRESH, "refresh"), ("refresh", "reload", "refresh page", "reload page")),
]
PARAMETRIC_CONFIDENCE = {CommandVerb.NAVIGATE_TO: 0.85, CommandVerb.OPEN_URL: 0.85, CommandVerb.CLICK_TARGET: 0.8}
MIN_COMMAND_QUERY = 3
STRONG_STATIC_MATCH = 0.9

_NAVIGATE_RE = re.compile(r"^(?:go to|goto|navigate to|open|visit)\s+(?:the\s+)?(?P<target>.+?)(?:\s+page)?$", re.IGNORECASE)
_CLICK_RE = re.compile(r"^(?:click|press|tap)\s+(?:on\s+)?(?:the\s+)?(?P<target>.+?)(?:\s+(?:button|link))?$", re.IGNORECASE)
_QUOTED_TYPE_RE = re.compile(
    r"^(?:type|enter|input|write)\s+(?P<q>[\"'])(?P<value>.+?)(?P=q)\s+(?:in|into|on)\s+(?:the\s+)?(?P<target>.+)$",
    re.IGNORECASE,
)
_BARE_TYPE_RE = re.compile(
    r"^(?:type|enter|input|write)\s+(?P<value>\S+)\s+(?:in|into)\s+(?:the\s+)?(?P<target>.+)$",
    re.IGNORECASE,
)
_FILL_RE = re.compile(
    r"^(?:fill in|fill|set)\s+(?:the\s+)?(?P<target>.+?)\s+(?:with|to)\s+(?P<q>[\"']?)(?P<value>.+?)(?P=q)$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class TypedInput:
    target: str
    value: str


def looks_like_url(text: str) -> bool:
    candidate = (text or "").strip()
    if not candidate or any(char.isspace() for char in candidate):
        return False
    lowered = candidate.lower()
    return lowered.startswith("http") or "." in candidate.strip(".")


def normalize_url(text: str) -> str:
    candidate = text.strip()
    if re.match(r"^[a-z][a-z0-9+.-]*://", candidate, re.IGNORECASE):
        return candidate
    return f"https://{candidate}"


def match_builtin_commands(instruction: str, min_confidence: float = 0.7) -> List[Tuple[BuiltinCommand, float]]:
    """Return built-in commands whose confidence clears ``min_confidence``, best first."""

    query = normalize(instruction)
    if len(query) < MIN_COMMAND_QUERY:
        return []
    matches: List[Tuple[BuiltinCommand, float]] = []
    for command, phrases in STATIC_COMMANDS:
        score = max(match_score(query, phrase) for phrase in phrases)
        if score >= min_confidence:
            matches.append((command, score))
    if not any(score >= STRONG_STATIC_MATCH for _, score in matches):
        parametric = parse_parametric_command(" ".join(instruction.split()))
        if parametric is not None:
            confidence = PARAMETRIC_CONFIDENCE[parametric.verb]
            if confidence >= min_confidence:
                matches.append((parametric, confidence))
    matches.sort(key=lambda item: item[1], reverse=True)
    return matches


def parse_parametric_command(query: str) -> Optional[BuiltinCommand]:
    navigate = _NAVIGATE_RE.match(query)
    if navigate:
        target = navigate.group("target").strip()
        if looks_like_url(target):
            return BuiltinCommand(CommandVerb.OPEN_URL, f"open {target}", target=normalize_url(target))
        return BuiltinCommand(CommandVerb.NAVIGATE_TO, f"go to {target}", target=target)
    click = _CLICK_RE.match(query)
    if click:
        target = click.group("target").strip()
        return BuiltinCommand(CommandVerb.CLICK_TARGET, f"click {target}", target=target)
    return None


def default_commands() -> List[BuiltinCommand]:
    return [command for command, _ in STATIC_COMMANDS]


def parse_typed_input(instruction: str) -> Optional[TypedInput]:
    """Split ``type "x" into email`` or ``fill email with x`` into field and value."""

    text = (instruction or "").strip()
    for pattern in (_QUOTED_TYPE_RE, _BARE_TYPE_RE, _FILL_RE):
        match = pattern.match(text)
        if match:
            return TypedInput(target=match.group("target").strip(), value=match.group("value"))
    return None


__all__ = [
    "STATIC_COMMANDS",
    "TypedInput",
    "default_commands",
    "looks_like_url",
    "match_builtin_commands",
    "normalize_url",
    "parse_parametric_command",
    "parse_typed_input",
]
