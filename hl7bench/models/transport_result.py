from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .ack import AckClassifier, AckStatus
from .transport_config import TransportMode


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


@dataclass(frozen=True, slots=True)
class TransportResult:
    """Immutable outcome of one send attempt.

    ``error_message`` is set exactly when ``status`` is TIMEOUT or
    CONNECTION_ERROR; in that case ``raw_response`` is empty.
    """
    control_id: str
    mode: TransportMode
    status: AckStatus
    raw_response: str = ""
    round_trip_ms: int = 0
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.status.is_transport_failure != (self.error_message is not None):
            raise ValueError(
                f"error_message must be set iff status is a transport failure (status={self.status.name})"
            )

    # ---------- factories ------------------------------------------------- #
    @classmethod
    def success(cls,
                control_id: str,
                mode: TransportMode,
                raw_response: str,
                round_trip_ms: int,
                status: Optional[AckStatus] = None) -> "TransportResult":
        """Result for a response that was received; classified unless ``status`` is given."""
        return cls(
            control_id    = control_id,
            mode          = mode,
            status        = status or AckClassifier.classify(raw_response),
            raw_response  = raw_response or "",
            round_trip_ms = int(round_trip_ms),
        )

    @classmethod
    def failure(cls,
                control_id: str,
                mode: TransportMode,
                status: AckStatus,
                error_message: str,
                round_trip_ms: int) -> "TransportResult":
        if not status.is_transport_failure:
            raise ValueError(f"{status.name} is not a transport failure status")
        return cls(
            control_id    = control_id,
            mode          = mode,
            status        = status,
            raw_response  = "",
            round_trip_ms = int(round_trip_ms),
            error_message = error_message or status.display_name,
        )

    # ---------- display helpers ------------------------------------------- #
    @property
    def is_successful(self) -> bool:
        return self.status.is_successful

    @property
    def has_error(self) -> bool:
        return bool(self.error_message)

    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.strftime(TIMESTAMP_FORMAT)[:-3]

    @property
    def display_response(self) -> str:
        if self.has_error:
            return f"ERROR: {self.error_message}"
        return self.raw_response
