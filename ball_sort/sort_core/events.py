"""
Session Events
==============

Typed events emitted by the game session and a small synchronous emitter.

Listeners run in subscription order, immediately, in the order the state
changes happen. Nothing is queued or batched.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Type, TYPE_CHECKING

from ball_sort.sort_core.moves import RejectReason

if TYPE_CHECKING:
    from ball_sort.sort_core.state_snapshot import SessionSnapshot


@dataclass(frozen=True)
class SessionEvent:
    """Base class for all session events."""


@dataclass(frozen=True)
class StateChanged(SessionEvent):
    snapshot: "SessionSnapshot"


@dataclass(frozen=True)
class MoveCompleted(SessionEvent):
    from_tube: int
    to_tube: int
    moved_count: int


@dataclass(frozen=True)
class MoveRejected(SessionEvent):
    from_tube: int
    to_tube: int
    reason: RejectReason


@dataclass(frozen=True)
class LevelCompleted(SessionEvent):
    level: int
    moves: int
    time_remaining: int
    stars: int


@dataclass(frozen=True)
class TimeUpdated(SessionEvent):
    time_remaining: int
    time_limit: int


Listener = Callable[[SessionEvent], None]


class EventEmitter:
    """
    Observer registry keyed by event class.

    Subscribing to SessionEvent receives every event.
    """

    def __init__(self):
        self._listeners: DefaultDict[Type[SessionEvent], List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: Type[SessionEvent], listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def unsubscribe(self, event_type: Type[SessionEvent], listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not subscribed."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event: SessionEvent) -> None:
        """Deliver an event to listeners of its class, then to catch-all listeners."""
        for listener in list(self._listeners.get(type(event), [])):
            listener(event)
        if type(event) is not SessionEvent:
            for listener in list(self._listeners.get(SessionEvent, [])):
                listener(event)
