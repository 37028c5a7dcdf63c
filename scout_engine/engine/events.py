"""Tagged events emitted by the navigation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from scout_engine.detection.types import ChangeReport
from scout_engine.discovery.types import DiscoveryBatch
from scout_engine.execution.types import ExecutionOutcome
from scout_engine.resolver.types import Suggestion


@dataclass(frozen=True)
class Resolved:
    instruction: str
    suggestions: Tuple[Suggestion, ...]


@dataclass(frozen=True)
class Executed:
    instruction: str
    suggestion: Suggestion
    outcome: ExecutionOutcome


@dataclass(frozen=True)
class ChangeDetected:
    instruction: str
    report: ChangeReport


@dataclass(frozen=True)
class BatchDiscovered:
    batch: DiscoveryBatch


@dataclass(frozen=True)
class Failed:
    instruction: str
    classification: str
    message: str


EngineEvent = Union[Resolved, Executed, ChangeDetected, BatchDiscovered, Failed]


def describe_event(event: EngineEvent) -> str:
    """One-line rendering; raises TypeError for anything outside the union."""

    if isinstance(event, Resolved):
        top = event.suggestions[0].label if event.suggestions else "nothing"
        return f"resolved {event.instruction!r} -> {top} ({len(event.suggestions)} suggestions)"
    if isinstance(event, Executed):
        state = "succeeded" if event.outcome.succeeded else "failed"
        return f"{event.suggestion.label} {state} after {event.outcome.attempts_made} attempts"
    if isinstance(event, ChangeDetected):
        return event.report.summary
    if isinstance(event, BatchDiscovered):
        label = "initial" if event.batch.is_initial else "incremental"
        return f"{label} discovery batch with {len(event.batch)} actions"
    if isinstance(event, Failed):
        return f"{event.classification}: {event.message}"
    raise TypeError(f"Unknown engine event {type(event).__name__}")


__all__ = [
    "BatchDiscovered",
    "ChangeDetected",
    "EngineEvent",
    "Executed",
    "Failed",
    "Resolved",
    "describe_event",
]
