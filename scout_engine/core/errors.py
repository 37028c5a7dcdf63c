"""Custom exception hierarchy for the navigation engine."""

from __future__ import annotations

from typing import Any, List, Sequence


class ScoutError(RuntimeError):
    """Base exception for engine-specific failures."""

    kind = "error"

    def describe(self) -> str:
        """Short user-facing classification plus the best diagnostic available."""

        message = str(self) or self.__class__.__name__
        return f"{self.kind}: {message}"


class DriverUnavailable(ScoutError):
    """Raised when the browser driver is disconnected or the page is gone."""

    kind = "driver_unavailable"


class ElementNotFound(ScoutError):
    """Raised by drivers when a selector does not resolve to an element."""

    kind = "element_not_found"


class RemoteAnalysisFailed(ScoutError):
    """Raised by AI collaborators when a request or its response is unusable."""

    kind = "remote_analysis_failed"


class PollTimeout(ScoutError):
    """Raised when a bounded wait elapses."""

    kind = "timeout"


class InstructionAmbiguous(ScoutError):
    """Raised when no suggestion clears the minimum confidence."""

    kind = "instruction_ambiguous"

    def __init__(self, message: str, suggestions: Sequence[Any] | None = None) -> None:
        super().__init__(message)
        self.suggestions: List[Any] = list(suggestions or [])


__all__ = [
    "ScoutError",
    "DriverUnavailable",
    "ElementNotFound",
    "RemoteAnalysisFailed",
    "PollTimeout",
    "InstructionAmbiguous",
]
