# hl7bench/orchestration/__init__.py
"""Dispatch coordination with state management."""

from .dispatcher import DispatchCoordinator, DEFAULT_PACING_MS

__all__ = [
    'DispatchCoordinator',
    'DEFAULT_PACING_MS',
]
