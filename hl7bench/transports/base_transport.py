"""
HL7 Transport Framework
Base abstract class shared by the MLLP and HTTP channels.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import logging
import time

from hl7bench.models import AckStatus, MessageUnit, TransportConfig, TransportResult


class BaseTransport(ABC):
    """
    Abstract base class for HL7 transports.

    Implements the Template Method pattern: ``send`` times the exchange and
    turns every failure into a TransportResult, subclasses only implement
    the protocol specific ``_exchange`` and ``_describe_failure`` steps.
    ``send`` never raises.
    """

    name: str = "transport"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    # Template method - defines the algorithm skeleton
    def send(self, message: str, control_id: str, config: TransportConfig) -> TransportResult:
        """Send one message and wait for its response."""
        started = time.monotonic()
        self.logger.debug(f"Sending {control_id} to {config.endpoint} ({len(message)} chars)")
        try:
            response, status = self._exchange(message, config)
        except Exception as e:
            elapsed = _elapsed_ms(started)
            status, error_message = self._describe_failure(e, config)
            self.logger.warning(f"{control_id} -> {config.endpoint}: {error_message}")
            return TransportResult.failure(control_id, config.mode, status, error_message, elapsed)

        elapsed = _elapsed_ms(started)
        result = TransportResult.success(control_id, config.mode, response, elapsed, status=status)
        self.logger.info(f"{control_id} -> {config.endpoint}: {result.status} in {elapsed} ms")
        return result

    def send_unit(self, unit: MessageUnit, config: TransportConfig) -> TransportResult:
        return self.send(unit.raw_content, unit.control_id, config)

    # Abstract methods that subclasses must implement (Strategy pattern)
    @abstractmethod
    def _exchange(self, message: str, config: TransportConfig) -> Tuple[str, Optional[AckStatus]]:
        """Perform the exchange; return the response and an optional status override."""
        pass

    @abstractmethod
    def _describe_failure(self, error: Exception, config: TransportConfig) -> Tuple[AckStatus, str]:
        """Map an exception raised by ``_exchange`` to a failure status and message."""
        pass

    @abstractmethod
    def validate_config(self, config: TransportConfig) -> bool:
        """Check the fields this transport needs."""
        pass

    def describe_invalid(self, config: TransportConfig) -> str:
        """Reason shown to the user when ``validate_config`` fails."""
        return f"Invalid configuration for {self.name}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
