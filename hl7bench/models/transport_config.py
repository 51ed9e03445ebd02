from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional


DEFAULT_TIMEOUT_MS = 10000
DEFAULT_MLLP_PORT = 2575
DEFAULT_HTTP_URL = "http://localhost:8080/hl7"


class TransportMode(Enum):
    """Enumeration of supported transports."""
    MLLP = "mllp"
    HTTP = "http"

    @property
    def display_name(self) -> str:
        return {TransportMode.MLLP: "MLLP (TCP)", TransportMode.HTTP: "HTTP/HTTPS"}[self]

    def __str__(self) -> str:
        return self.display_name


@dataclass(frozen=True, slots=True)
class TlsIdentity:
    """File-backed client identity used by both channels when TLS is on.

    ``keystore_path`` is a PEM bundle holding the client certificate, its
    private key and any certificates to trust.
    """
    keystore_path: str
    passphrase: Optional[str] = field(default=None, repr=False)

    @property
    def exists(self) -> bool:
        return bool(self.keystore_path) and Path(self.keystore_path).is_file()


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Immutable connection parameters for one dispatch.

    Which fields matter depends on ``mode``: MLLP uses host/port, HTTP uses
    url. Validity is checked by the channels, not here.
    """
    mode: TransportMode
    host: str = ""
    port: int = 0
    url: str = ""
    use_tls: bool = False
    tls_identity: Optional[TlsIdentity] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # ---------- factories ------------------------------------------------- #
    @classmethod
    def default_mllp(cls) -> "TransportConfig":
        return cls(mode=TransportMode.MLLP, host="localhost", port=DEFAULT_MLLP_PORT)

    @classmethod
    def default_http(cls) -> "TransportConfig":
        return cls(mode=TransportMode.HTTP, url=DEFAULT_HTTP_URL)

    # ---------- copies ---------------------------------------------------- #
    def with_timeout(self, timeout_ms: int) -> "TransportConfig":
        return replace(self, timeout_ms=timeout_ms)

    def replace(self, **changes) -> "TransportConfig":
        return replace(self, **changes)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def endpoint(self) -> str:
        """Human readable target, used in log lines."""
        if self.mode is TransportMode.HTTP:
            return self.url
        return f"{self.host}:{self.port}"
