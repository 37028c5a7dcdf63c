from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from scout_engine.ai.models import DiscoveredAction


@dataclass(frozen=True)
class DiscoveryBatch:
    """Actions first seen in one analysis step."""

    actions: Tuple[DiscoveredAction, ...]
    is_initial: bool
    page_url: str = ""

    def __len__(self) -> int:
        return len(self.actions)

    def as_payload(self) -> Dict[str, Any]:
        return {
            "is_initial": self.is_initial,
            "page_url": self.page_url,
            "actions": [action.model_dump() for action in self.actions],
        }


__all__ = ["DiscoveryBatch"]
