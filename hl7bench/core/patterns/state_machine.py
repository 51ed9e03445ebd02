import logging
import threading
from enum import Enum, auto
from typing import Dict, Set

class DispatchState(Enum):
    IDLE       = auto()
    RUNNING    = auto()
    COMPLETED  = auto()
    CANCELLED  = auto()

class DispatchStateMachine:
    """Lifecycle of a single dispatch coordinator."""

    def __init__(self, initial: DispatchState = DispatchState.IDLE):
        self._state = initial
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._trans: Dict[DispatchState, Set[DispatchState]] = {
            DispatchState.IDLE:      {DispatchState.RUNNING},
            DispatchState.RUNNING:   {DispatchState.COMPLETED, DispatchState.CANCELLED},
            DispatchState.COMPLETED: {DispatchState.RUNNING},
            DispatchState.CANCELLED: {DispatchState.RUNNING},
        }

    @property
    def state(self) -> DispatchState: return self._state

    def can(self, nxt: DispatchState) -> bool: return nxt in self._trans[self._state]

    def transition(self, nxt: DispatchState) -> bool:
        with self._lock:
            if not self.can(nxt):
                self.logger.debug(f"Invalid state transition: {self._state.name} -> {nxt.name}")
                return False
            self.logger.debug(f"State transition: {self._state.name} -> {nxt.name}")
            self._state = nxt
            return True
