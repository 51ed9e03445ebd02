"""
Observer Pattern Implementation for Transport Events

This module implements the Observer pattern used to report dispatch
progress to presentation code. A dispatch emits three kinds of events:
a message was started, a message completed with a TransportResult, and the
dispatch finished (normally or cancelled).

Listeners may be added or removed from any thread while events are in
flight. Delivery always iterates a snapshot of the listener list.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from hl7bench.models.transport_result import TransportResult


class DispatchOutcome(Enum):
    """How a dispatch ended."""
    COMPLETED = "Transport complete"
    CANCELLED = "Transport cancelled"


class TransportObserver(ABC):
    """Abstract base class for transport observers."""

    @abstractmethod
    def on_transport_started(self, control_id: str) -> None:
        """Called right before a message is handed to its channel."""
        pass

    @abstractmethod
    def on_transport_completed(self, result: "TransportResult") -> None:
        """Called with the outcome of one send attempt."""
        pass

    @abstractmethod
    def on_dispatch_finished(self, outcome: DispatchOutcome, message: str) -> None:
        """Called once when the dispatch loop exits."""
        pass


class CallbackObserver(TransportObserver):
    """Observer that forwards events to plain callables.

    Any callback left as ``None`` is skipped.
    """

    def __init__(self,
                 on_started: Optional[Callable[[str], None]] = None,
                 on_completed: Optional[Callable[["TransportResult"], None]] = None,
                 on_finished: Optional[Callable[[DispatchOutcome, str], None]] = None):
        self._on_started = on_started
        self._on_completed = on_completed
        self._on_finished = on_finished

    def on_transport_started(self, control_id: str) -> None:
        if self._on_started:
            self._on_started(control_id)

    def on_transport_completed(self, result: "TransportResult") -> None:
        if self._on_completed:
            self._on_completed(result)

    def on_dispatch_finished(self, outcome: DispatchOutcome, message: str) -> None:
        if self._on_finished:
            self._on_finished(outcome, message)


class TransportSubject:
    """Subject that notifies observers of transport events."""

    def __init__(self):
        self._observers: List[TransportObserver] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, observer: TransportObserver) -> None:
        """Subscribe an observer to transport events."""
        if observer is None:
            return
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)
                self._logger.debug(f"Subscribed observer: {observer!r}")
            else:
                self._logger.warning(f"Observer already subscribed: {observer!r}")

    def unsubscribe(self, observer: TransportObserver) -> None:
        """Unsubscribe an observer from transport events."""
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)
                self._logger.debug(f"Unsubscribed observer: {observer!r}")

    def snapshot(self) -> List[TransportObserver]:
        with self._lock:
            return list(self._observers)

    def notify_started(self, control_id: str) -> None:
        for observer in self.snapshot():
            self.safe_notify(observer.on_transport_started, control_id)

    def notify_completed(self, result: "TransportResult") -> None:
        for observer in self.snapshot():
            self.safe_notify(observer.on_transport_completed, result)

    def notify_finished(self, outcome: DispatchOutcome, message: str) -> None:
        for observer in self.snapshot():
            self.safe_notify(observer.on_dispatch_finished, outcome, message)

    def safe_notify(self, handler: Callable, *args) -> None:
        """Call a single observer method, logging anything it raises."""
        try:
            handler(*args)
        except Exception as e:
            self._logger.error(f"Error notifying observer {handler!r}: {e}", exc_info=True)

    def get_observer_count(self) -> int:
        """Get the number of registered observers."""
        with self._lock:
            return len(self._observers)

    @property
    def observer_count(self) -> int:
        return self.get_observer_count()
