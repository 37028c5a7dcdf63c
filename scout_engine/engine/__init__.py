"""Session orchestration for instruction-driven page exploration."""

from .engine import EngineStats, InstructionResult, InstructionStatus, NavigationEngine
from .events import BatchDiscovered, ChangeDetected, EngineEvent, Executed, Failed, Resolved, describe_event
from .feed import DiscoveryFeed, DiscoverySubscription

__all__ = [
	"BatchDiscovered",
	"ChangeDetected",
	"DiscoveryFeed",
	"DiscoverySubscription",
	"EngineEvent",
	"EngineStats",
	"Executed",
	"Failed",
	"InstructionResult",
	"InstructionStatus",
	"NavigationEngine",
	"Resolved",
	"describe_event",
]
