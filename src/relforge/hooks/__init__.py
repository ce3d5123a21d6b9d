"""
Lifecycle hooks registry for relforge models.
"""

from .dispatcher import EVENTS, HookDispatcher, hooks

__all__ = ["EVENTS", "HookDispatcher", "hooks"]
