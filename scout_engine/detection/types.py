from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ChangeKind(str, Enum):
    NAVIGATED = "navigated"
    SEMANTIC_SIGNAL = "semantic_signal"
    DOM_GREW = "dom_grew"
    DOM_SHRANK = "dom_shrank"
    UNCHANGED = "unchanged"


class SignalKind(str, Enum):
    MAGIC_LINK_SENT = "magic_link_sent"
    AUTH_SUCCESS = "auth_success"
    SUCCESS = "success"
    MODAL_OPENED = "modal_opened"
    MODAL_CLOSED = "modal_closed"
    ERROR = "error"
    LOADING_STARTED = "loading_started"
    LOADING_FINISHED = "loading_finished"


@dataclass(frozen=True)
class Snapshot:
    url: str
    title: str
    markup: str

    @property
    def markup_length(self) -> int:
        return len(self.markup)


@dataclass(frozen=True)
class ChangeReport:
    url_before: str
    url_after: str
    title_after: str
    kind: ChangeKind
    summary: str
    signal: Optional[SignalKind] = None
    length_before: int = 0
    length_after: int = 0
    elapsed: float = 0.0
    cancelled: bool = False

    def __post_init__(self) -> None:
        if (self.kind is ChangeKind.SEMANTIC_SIGNAL) != (self.signal is not None):
            raise ValueError("signal is required for, and only for, semantic signal reports")

    @property
    def navigated(self) -> bool:
        return self.kind is ChangeKind.NAVIGATED

    @property
    def page_changed(self) -> bool:
        return self.kind is not ChangeKind.UNCHANGED

    @property
    def classification(self) -> str:
        if self.signal is not None:
            return f"{self.kind.value}:{self.signal.value}"
        return self.kind.value

    def as_payload(self) -> Dict[str, Any]:
        return {
            "url_before": self.url_before,
            "url_after": self.url_after,
            "title_after": self.title_after,
            "classification": self.classification,
            "summary": self.summary,
            "length_before": self.length_before,
            "length_after": self.length_after,
            "elapsed": round(self.elapsed, 3),
            "cancelled": self.cancelled,
        }


__all__ = ["ChangeKind", "ChangeReport", "SignalKind", "Snapshot"]
