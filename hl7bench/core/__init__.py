# hl7bench/core/__init__.py
"""Core infrastructure components for the HL7 test bench."""

# Import order: most fundamental to most specific

from .exceptions import (
    Hl7BenchError,
    ConfigurationError,
    DispatchError,
    DispatchInProgressError,
    TlsSetupError,
)

from .patterns.state_machine import DispatchStateMachine, DispatchState
from .patterns.observer import (
    DispatchOutcome,
    TransportObserver,
    CallbackObserver,
    TransportSubject,
)


__all__ = [
    "DispatchStateMachine",
    "DispatchState",
    "DispatchOutcome",
    "TransportObserver",
    "CallbackObserver",
    "TransportSubject",
    "Hl7BenchError",
    "ConfigurationError",
    "DispatchError",
    "DispatchInProgressError",
    "TlsSetupError",
]
