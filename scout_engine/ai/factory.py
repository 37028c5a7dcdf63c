from __future__ import annotations

from typing import Any, Mapping, Optional

from scout_engine.config_loader import section

from .base import AIAssistant
from .local import LocalAssistant
from .openai_client import OpenAIAssistant


def build_assistant(settings: Mapping[str, Any] | None) -> Optional[AIAssistant]:
    """Return the configured assistant, or None when remote analysis is disabled."""

    provider = str(section(settings, "ai").get("provider") or "none").strip().lower()
    if provider in {"", "none", "off", "disabled"}:
        return None
    if provider == "local":
        return LocalAssistant()
    if provider == "openai":
        return OpenAIAssistant.from_settings(settings)
    raise ValueError(f"Unknown AI provider: {provider}")

__all__ = ["build_assistant"]
