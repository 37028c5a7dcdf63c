"""Contract for the optional AI collaborator."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from .conversation import ConversationContext
from .models import CommandInterpretation, DiscoveredAction, RankedElement, RankingCandidate


class AIAssistant(Protocol):
    """Every method may raise RemoteAnalysisFailed; callers recover locally."""

    async def interpret_command(
        self,
        text: str,
        known_actions: Sequence[str],
        context: Optional[ConversationContext] = None,
    ) -> CommandInterpretation:
        """Classify a free-text command."""

    async def rank_navigation_elements(
        self,
        text: str,
        candidates: Sequence[RankingCandidate],
    ) -> List[RankedElement]:
        """Rank candidate elements for ``text`` and recommend a click strategy."""

    async def analyze_initial_markup(self, html: str) -> List[DiscoveredAction]:
        """Return the key actions available on a freshly loaded page."""

    async def analyze_incremental_markup(
        self,
        delta: str,
        known: Sequence[DiscoveredAction],
    ) -> List[DiscoveredAction]:
        """Return actions introduced by ``delta`` that are not in ``known``."""

    async def aclose(self) -> None:
        """Release network resources."""


__all__ = ["AIAssistant"]
