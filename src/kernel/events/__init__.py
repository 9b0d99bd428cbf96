"""
Transition audit log.
"""

from src.kernel.events.event_store import EventStore

__all__ = [
    "EventStore",
]
