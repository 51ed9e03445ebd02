from typing import Iterable, Optional, Tuple
import logging
import threading

from hl7bench.core.exceptions import ConfigurationError, DispatchInProgressError
from hl7bench.core.patterns.observer import DispatchOutcome, TransportObserver, TransportSubject
from hl7bench.core.patterns.state_machine import DispatchState, DispatchStateMachine
from hl7bench.models import AckStatus, MessageUnit, TransportConfig, TransportResult
from hl7bench.parsing import BatchSplitter
from hl7bench.transports import TransportRouter

DEFAULT_PACING_MS = 100


class DispatchCoordinator:
    """Sends a fixed list of messages one after another on a worker thread.

    Events for message *i* (started, then completed) are always delivered
    before those of message *i+1*, followed by exactly one finished event.
    Cancellation is cooperative: it is checked before each message and
    during the pause between messages, and never interrupts a send that is
    already in flight. The coordinator reports RUNNING until the finished
    event has been delivered, so a new dispatch can only start after it.
    """

    def __init__(self,
                 router: Optional[TransportRouter] = None,
                 subject: Optional[TransportSubject] = None,
                 pacing_ms: int = DEFAULT_PACING_MS):
        self.router = router or TransportRouter()
        self.subject = subject or TransportSubject()
        self.pacing_ms = pacing_ms
        self.state_machine = DispatchStateMachine()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._start_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._worker: Optional[threading.Thread] = None

    # ---------- public API ------------------------------------------------ #
    @property
    def state(self) -> DispatchState:
        return self.state_machine.state

    @property
    def is_running(self) -> bool:
        return self.state is DispatchState.RUNNING

    def start(self,
              units: Iterable[MessageUnit],
              config: TransportConfig,
              router: Optional[TransportRouter] = None,
              observer: Optional[TransportObserver] = None) -> None:
        """Validate, then dispatch ``units`` in the background and return at once.

        Raises ConfigurationError for an unusable configuration or an empty
        batch and DispatchInProgressError while another dispatch runs.
        """
        router = router or self.router
        batch: Tuple[MessageUnit, ...] = tuple(units)

        with self._start_lock:
            if self.is_running:
                raise DispatchInProgressError("A dispatch is already running")
            router.ensure_valid(config)
            if not batch:
                raise ConfigurationError("No HL7 messages found")

            self._cancel_event = threading.Event()
            self.state_machine.transition(DispatchState.RUNNING)
            self._worker = threading.Thread(
                target=self._run,
                args=(batch, config, router, observer, self._cancel_event),
                name=f"hl7-dispatch-{config.mode.value}",
                daemon=True,
            )
            self.logger.info(f"Dispatching {len(batch)} message(s) to {config.endpoint} via {config.mode}")
            self._worker.start()

    def start_text(self,
                   text: str,
                   config: TransportConfig,
                   router: Optional[TransportRouter] = None,
                   observer: Optional[TransportObserver] = None) -> int:
        """Split ``text`` into messages and start dispatching them; returns the count."""
        units = BatchSplitter.split(text)
        self.start(units, config, router=router, observer=observer)
        return len(units)

    def cancel(self) -> None:
        """Ask the running dispatch to stop before its next message."""
        if self.is_running:
            self.logger.info("Cancellation requested")
        self._cancel_event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits; returns False if it is still running."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    # ---------- worker ---------------------------------------------------- #
    def _run(self,
             batch: Tuple[MessageUnit, ...],
             config: TransportConfig,
             router: TransportRouter,
             observer: Optional[TransportObserver],
             cancel_event: threading.Event) -> None:
        channel = router.resolve(config)
        pause = max(self.pacing_ms, 0) / 1000.0
        attempted = 0

        try:
            for index, unit in enumerate(batch):
                if cancel_event.is_set():
                    break

                self._emit("on_transport_started", observer, unit.control_id)
                result = self._send_one(channel, unit, config)
                attempted += 1
                self._emit("on_transport_completed", observer, result)

                if index < len(batch) - 1 and cancel_event.wait(pause):
                    break
        finally:
            outcome = DispatchOutcome.COMPLETED if attempted == len(batch) else DispatchOutcome.CANCELLED
            target = DispatchState.COMPLETED if outcome is DispatchOutcome.COMPLETED else DispatchState.CANCELLED
            self.logger.info(f"{outcome.value}: {attempted}/{len(batch)} message(s) sent")
            # still RUNNING here, so no new dispatch can emit before this event
            self._emit("on_dispatch_finished", observer, outcome, outcome.value)
            self.state_machine.transition(target)

    def _send_one(self, channel, unit: MessageUnit, config: TransportConfig) -> TransportResult:
        try:
            return channel.send(unit.raw_content, unit.control_id, config)
        except Exception as e:
            # channels should not raise; keep the loop alive if one does
            self.logger.error(f"{channel!r} raised while sending {unit.control_id}: {e}", exc_info=True)
            return TransportResult.failure(
                unit.control_id, config.mode, AckStatus.CONNECTION_ERROR, f"Unexpected error: {e}", 0
            )

    def _emit(self, event: str, observer: Optional[TransportObserver], *args) -> None:
        notify = {
            "on_transport_started": self.subject.notify_started,
            "on_transport_completed": self.subject.notify_completed,
            "on_dispatch_finished": self.subject.notify_finished,
        }[event]
        notify(*args)
        if observer is not None:
            self.subject.safe_notify(getattr(observer, event), *args)
