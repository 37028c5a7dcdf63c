"""Core primitives shared by every engine component."""

from .errors import (
	DriverUnavailable,
	ElementNotFound,
	InstructionAmbiguous,
	PollTimeout,
	RemoteAnalysisFailed,
	ScoutError,
)

__all__ = [
	"DriverUnavailable",
	"ElementNotFound",
	"InstructionAmbiguous",
	"PollTimeout",
	"RemoteAnalysisFailed",
	"ScoutError",
]
