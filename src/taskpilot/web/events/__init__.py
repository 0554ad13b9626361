"""Board change notifications."""

from .manager import EventManager, event_manager
from .models import Event, EventType

__all__ = ["EventManager", "event_manager", "Event", "EventType"]
