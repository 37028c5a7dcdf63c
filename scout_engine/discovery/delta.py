from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import List

_TAG_BOUNDARY_RE = re.compile(r"(?=<)")


def tokenize(markup: str) -> List[str]:
    return [token for token in _TAG_BOUNDARY_RE.split(markup or "") if token]


def markup_delta(previous: str, current: str) -> str:
    """Markup present in ``current`` that was not in ``previous``.

    Tokens are split at tag boundaries so a single inserted element shows up as its own
    fragment even on minified pages. Removed content is ignored.
    """

    if not current or current == previous:
        return ""
    if not previous:
        return current
    if current.startswith(previous):
        return current[len(previous):]
    before, after = tokenize(previous), tokenize(current)
    matcher = SequenceMatcher(None, before, after, autojunk=False)
    added: List[str] = []
    for tag, _, _, start, end in matcher.get_opcodes():
        if tag in {"insert", "replace"}:
            added.extend(after[start:end])
    return "".join(added)


def is_meaningful(delta: str) -> bool:
    """Whitespace-only and tag-only fragments without attributes are noise."""

    stripped = (delta or "").strip()
    if not stripped:
        return False
    return bool(re.sub(r"</?[a-z0-9]+\s*>", "", stripped, flags=re.IGNORECASE).strip())


__all__ = ["is_meaningful", "markup_delta", "tokenize"]
