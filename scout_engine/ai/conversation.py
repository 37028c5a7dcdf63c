"""Bounded conversation window handed to the AI collaborator."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Literal, Mapping

Role = Literal["user", "assistant", "system"]

CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    text: str

    @property
    def estimated_tokens(self) -> int:
        return max(1, len(self.text) // CHARS_PER_TOKEN)


class ConversationContext:
    """Rolling window of the last ``max_turns`` turns, trimmed to a token budget.

    The window lives for one session only and is never written anywhere.
    """

    def __init__(self, max_turns: int = 10, max_tokens: int = 2000) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.max_turns = max_turns
        self.max_tokens = max_tokens
        self._turns: Deque[ConversationTurn] = deque(maxlen=max_turns)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None) -> "ConversationContext":
        options = dict((settings or {}).get("conversation") or {})
        return cls(max_turns=int(options.get("max_turns", 10)), max_tokens=int(options.get("max_tokens", 2000)))

    def add(self, role: Role, text: str) -> None:
        cleaned = (text or "").strip()
        if cleaned:
            self._turns.append(ConversationTurn(role=role, text=cleaned))

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)

    def turns(self) -> List[ConversationTurn]:
        """Most recent turns that fit the token budget, oldest first."""

        kept: List[ConversationTurn] = []
        budget = self.max_tokens
        for turn in reversed(self._turns):
            if turn.estimated_tokens > budget:
                break
            kept.append(turn)
            budget -= turn.estimated_tokens
        kept.reverse()
        return kept

    def recent(self, count: int) -> List[ConversationTurn]:
        turns = self.turns()
        return turns[-count:] if count > 0 else []

    def user_text(self, count: int = 5) -> str:
        return " ".join(turn.text for turn in self.recent(count) if turn.role == "user").lower()

    def as_messages(self) -> List[Dict[str, str]]:
        return [{"role": turn.role, "content": turn.text} for turn in self.turns()]


__all__ = ["ConversationContext", "ConversationTurn"]
