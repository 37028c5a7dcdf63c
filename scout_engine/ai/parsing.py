from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from scout_engine.core.errors import RemoteAnalysisFailed

from .models import PRIORITY_ORDER, CommandInterpretation, DiscoveredAction, RankedElement

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_NUMBERING_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")


def extract_json(content: str) -> Any:
    """Decode the first JSON document in a model reply, tolerating code fences and chatter."""

    text = _FENCE_RE.sub("", (content or "").strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    starts = [index for index in (text.find("["), text.find("{")) if index >= 0]
    if not starts:
        raise RemoteAnalysisFailed("Response did not contain JSON")
    start = min(starts)
    closer = "]" if text[start] == "[" else "}"
    end = text.rfind(closer)
    if end <= start:
        raise RemoteAnalysisFailed("Response JSON was truncated")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise RemoteAnalysisFailed(f"Invalid JSON in response: {exc}") from exc


def _unwrap_list(payload: Any, *keys: str) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise RemoteAnalysisFailed("Expected a JSON array")


def parse_ranked(content: str) -> List[RankedElement]:
    items = _unwrap_list(extract_json(content), "elements", "rankings", "results")
    ranked: List[RankedElement] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            ranked.append(RankedElement.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping ranked element: %s", exc)
    return ranked


def parse_interpretation(content: str) -> CommandInterpretation:
    payload = extract_json(content)
    if not isinstance(payload, dict):
        raise RemoteAnalysisFailed("Expected a JSON object for command interpretation")
    try:
        return CommandInterpretation.model_validate(payload)
    except ValidationError as exc:
        raise RemoteAnalysisFailed(f"Invalid interpretation payload: {exc}") from exc


def parse_actions(content: str, *, originating_instruction: Optional[str] = None) -> List[DiscoveredAction]:
    """Parse discovered actions from JSON, or from ``description | selector | verb | priority`` lines."""

    try:
        items = _unwrap_list(extract_json(content), "actions")
    except RemoteAnalysisFailed:
        items = _parse_action_lines(content)
        if not items and content.strip() not in {"", "[]"}:
            raise
    actions: List[DiscoveredAction] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if originating_instruction and not item.get("originating_instruction"):
            item = {**item, "originating_instruction": originating_instruction}
        try:
            actions.append(DiscoveredAction.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping discovered action: %s", exc)
    return actions


def _parse_action_lines(content: str) -> List[dict]:
    items: List[dict] = []
    for line in (content or "").splitlines():
        cleaned = _NUMBERING_RE.sub("", line).strip()
        if "|" not in cleaned:
            continue
        parts = [part.strip() for part in cleaned.split("|")]
        if len(parts) == 2 and parts[1].lower() in PRIORITY_ORDER:
            parts = [parts[0], "", "click", parts[1]]
        item = {"description": parts[0], "selector": parts[1] if len(parts) > 1 else ""}
        if len(parts) > 2:
            item["verb"] = parts[2]
        item["priority"] = parts[3] if len(parts) > 3 else "medium"
        items.append(item)
    return items


__all__ = ["extract_json", "parse_actions", "parse_interpretation", "parse_ranked"]
