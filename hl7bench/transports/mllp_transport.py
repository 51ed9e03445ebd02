"""
MLLP Transport Implementation
Sends one framed HL7 message over TCP (optionally TLS) and reads one
framed response under a wall-clock deadline.
"""

import socket
import ssl
import time
from typing import Optional, Tuple

from hl7bench.core.exceptions import TlsSetupError
from hl7bench.models import AckStatus, TransportConfig
from hl7bench.transports.base_transport import BaseTransport
from hl7bench.transports.mllp_framing import MllpFrameDecoder, frame_message
from hl7bench.transports.tls import build_ssl_context

RECV_BUFFER_SIZE = 4096


class PeerClosedError(ConnectionError):
    """The peer closed the connection before a complete frame arrived."""


class MllpTransport(BaseTransport):
    """
    MLLP over TCP.

    The configured timeout bounds the connect (and TLS handshake) and,
    separately, the whole response read. The socket is closed on every path.
    """

    name = "MLLP (TCP)"

    def __init__(self, encoding: str = "utf-8"):
        super().__init__()
        self.encoding = encoding

    def validate_config(self, config: TransportConfig) -> bool:
        return bool(config.host and config.host.strip()) and 0 < config.port <= 65535

    def describe_invalid(self, config: TransportConfig) -> str:
        if not config.host or not config.host.strip():
            return "MLLP host is required"
        return f"MLLP port must be between 1 and 65535 (got {config.port})"

    def _exchange(self, message: str, config: TransportConfig) -> Tuple[str, Optional[AckStatus]]:
        timeout = config.timeout_seconds
        context = build_ssl_context(config.tls_identity) if config.use_tls else None

        self.logger.debug(f"Connecting to {config.host}:{config.port} (tls={config.use_tls})")
        with socket.create_connection((config.host, config.port), timeout=timeout) as raw:
            if context is None:
                return self._roundtrip(raw, message, config), None
            with context.wrap_socket(raw, server_hostname=config.host) as secured:
                return self._roundtrip(secured, message, config), None

    def _roundtrip(self, sock: socket.socket, message: str, config: TransportConfig) -> str:
        sock.sendall(frame_message(message, self.encoding))
        payload = self._read_frame(sock, config.timeout_seconds)
        return payload.decode(self.encoding, errors="replace")

    def _read_frame(self, sock: socket.socket, timeout: float) -> bytes:
        decoder = MllpFrameDecoder()
        deadline = time.monotonic() + timeout

        while not decoder.complete:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("response deadline elapsed")
            sock.settimeout(remaining)
            chunk = sock.recv(RECV_BUFFER_SIZE)
            if not chunk:
                raise PeerClosedError(f"connection closed by peer in state {decoder.state.name}")
            decoder.feed(chunk)

        return decoder.payload

    def _describe_failure(self, error: Exception, config: TransportConfig) -> Tuple[AckStatus, str]:
        if isinstance(error, socket.timeout):
            return AckStatus.TIMEOUT, f"Connection timeout after {config.timeout_ms}ms"
        if isinstance(error, TlsSetupError):
            return AckStatus.CONNECTION_ERROR, f"TLS setup failed: {error}"
        if isinstance(error, ssl.SSLError):
            return AckStatus.CONNECTION_ERROR, f"TLS handshake failed: {error}"
        if isinstance(error, OSError):
            return AckStatus.CONNECTION_ERROR, f"Connection error: {error}"
        return AckStatus.CONNECTION_ERROR, f"Unexpected error: {error}"
