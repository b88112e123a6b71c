"""
Tick Sources
============

Cancelable periodic tick sources driving the level countdown.

- ManualTickSource: ticks only when fire() is called. Deterministic, used by
  tests, the Gymnasium environment and the terminal tool.
- ThreadedTickSource: a background thread ticking every interval seconds.

After stop() returns, a source starts no further ticks.
"""

from __future__ import annotations

import threading
from abc import ABCMeta, abstractmethod
from typing import Callable, Optional

TickCallback = Callable[[], None]


class TickSource(metaclass=ABCMeta):
    @abstractmethod
    def start(self, callback: TickCallback) -> None:
        """Begin ticking, replacing any previous callback."""
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def running(self) -> bool:
        raise NotImplementedError


class ManualTickSource(TickSource):
    """Tick source advanced by hand."""

    def __init__(self):
        self._callback: Optional[TickCallback] = None

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def fire(self, count: int = 1) -> int:
        """
        Deliver up to count ticks.

        Stops early if a tick stops the source.

        Returns:
            Number of ticks delivered.
        """
        delivered = 0
        for _ in range(count):
            if self._callback is None:
                break
            self._callback()
            delivered += 1
        return delivered


class ThreadedTickSource(TickSource):
    """
    Ticks from a daemon thread every interval seconds.

    The callback runs on the tick thread; the receiver is responsible for
    serializing it with its other entry points and for ignoring a tick that
    was already in flight when stop() was called.
    """

    def __init__(self, interval: float = 1.0):
        self._interval = interval
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None

    def start(self, callback: TickCallback) -> None:
        self.stop()

        stop_event = threading.Event()

        def run() -> None:
            # wait() returns True once stop is requested
            while not stop_event.wait(self._interval):
                callback()

        self._stop_event = stop_event
        self._thread = threading.Thread(target=run, name="tick-source", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return

        # No join: the callback may be waiting on the caller. The thread
        # wakes immediately and exits without calling back.
        self._stop_event.set()
        self._thread = None
        self._stop_event = None
