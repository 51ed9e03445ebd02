import logging
from typing import Dict, Optional

from hl7bench.core.exceptions import ConfigurationError
from hl7bench.models import TransportConfig, TransportMode
from hl7bench.transports.base_transport import BaseTransport
from hl7bench.transports.http_transport import HttpTransport
from hl7bench.transports.mllp_transport import MllpTransport


class TransportRouter:
    """Selects the channel for a configuration.

    The router owns one instance per mode. Build it once and pass it to
    whoever needs to send; nothing here is process-wide state.
    """

    def __init__(self,
                 mllp: Optional[MllpTransport] = None,
                 http: Optional[HttpTransport] = None):
        self._registry: Dict[TransportMode, BaseTransport] = {
            TransportMode.MLLP: mllp or MllpTransport(),
            TransportMode.HTTP: http or HttpTransport(),
        }
        self.logger = logging.getLogger(self.__class__.__name__)

    def resolve(self, config: TransportConfig) -> BaseTransport:
        """Return the channel for ``config.mode``."""
        return self._registry[config.mode]

    @property
    def http_transport(self) -> HttpTransport:
        return self._registry[TransportMode.HTTP]

    @property
    def mllp_transport(self) -> MllpTransport:
        return self._registry[TransportMode.MLLP]

    def validate(self, config: TransportConfig) -> bool:
        if config is None or config.mode not in self._registry:
            return False
        if not _is_positive_ms(config.timeout_ms):
            return False
        return self.resolve(config).validate_config(config)

    def ensure_valid(self, config: TransportConfig) -> None:
        """Raise ConfigurationError with a readable reason if ``config`` is unusable."""
        if config is None:
            raise ConfigurationError("No connection configuration given")
        if config.mode not in self._registry:
            raise ConfigurationError(f"Unsupported transport mode: {config.mode}")
        if not _is_positive_ms(config.timeout_ms):
            raise ConfigurationError(f"Timeout must be a positive number of milliseconds (got {config.timeout_ms})")
        channel = self.resolve(config)
        if not channel.validate_config(config):
            raise ConfigurationError(channel.describe_invalid(config))
        self.logger.debug(f"Configuration valid for {channel.name}: {config.endpoint}")


def _is_positive_ms(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
