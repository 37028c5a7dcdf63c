from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from scout_engine.resolver.types import ClickStrategy


class CascadeStage(str, Enum):
    DIRECT = "direct"
    SELECTOR_VARIANT = "selector_variant"
    TEXT_SEARCH = "text_search"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of one cascade run.

    ``attempts_made`` counts primitive driver attempts, so callers can lower their trust in a
    selector that only worked after several tries.
    """

    succeeded: bool
    strategy_used: ClickStrategy
    attempts_made: int
    error: Optional[str] = None
    stage: Optional[CascadeStage] = None
    selector_used: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "strategy_used": self.strategy_used.value,
            "attempts_made": self.attempts_made,
            "error": self.error,
            "stage": self.stage.value if self.stage else None,
            "selector_used": self.selector_used,
        }


__all__ = ["CascadeStage", "ExecutionOutcome"]
