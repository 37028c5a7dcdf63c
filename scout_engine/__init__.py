"""Instruction-driven browser exploration engine."""

__version__ = "0.1.0"
