"""Observability module for the mirror.

This module provides:
- Structured JSON logging with request/artifact context
"""

from .logger import StructuredLogger, clear_context, get_logger, set_context

__all__ = [
    "StructuredLogger",
    "get_logger",
    "set_context",
    "clear_context",
]
