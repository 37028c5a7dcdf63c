"""AI collaborator contract and payload models."""

from .base import AIAssistant
from .conversation import ConversationContext, ConversationTurn
from .models import CommandInterpretation, DiscoveredAction, RankedElement, RankingCandidate, UsageStats

__all__ = [
    "AIAssistant",
    "CommandInterpretation",
    "ConversationContext",
    "ConversationTurn",
    "DiscoveredAction",
    "RankedElement",
    "RankingCandidate",
    "UsageStats",
]
