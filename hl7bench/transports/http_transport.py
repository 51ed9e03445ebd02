"""
HTTP/HTTPS Transport Implementation
POSTs a raw HL7 message and classifies the response body.

The configured timeout bounds the connect and, separately, the whole
request from the first byte sent to the last byte of the response body.
"""

import ssl
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import ConnectTimeoutError, ReadTimeoutError

from hl7bench.core.exceptions import TlsSetupError
from hl7bench.models import AckClassifier, AckStatus, TransportConfig
from hl7bench.transports.base_transport import BaseTransport
from hl7bench.transports.tls import build_ssl_context

DEFAULT_CONTENT_TYPE = "application/hl7-v2"
VALID_SCHEMES = ("http", "https")
READ_CHUNK_SIZE = 65536


class HttpStatusError(Exception):
    """A non-2xx response; the body is echoed in the message."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class SSLContextAdapter(HTTPAdapter):
    """HTTPAdapter that hands a prepared SSLContext to urllib3.

    A context without hostname checking (trust supplied by a keystore)
    also turns off urllib3's own hostname match.
    """

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs):
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def _tls_kwargs(self, kwargs):
        kwargs["ssl_context"] = self._ssl_context
        if not self._ssl_context.check_hostname:
            kwargs["assert_hostname"] = False
        return kwargs

    def init_poolmanager(self, *args, **kwargs):
        return super().init_poolmanager(*args, **self._tls_kwargs(kwargs))

    def proxy_manager_for(self, *args, **kwargs):
        return super().proxy_manager_for(*args, **self._tls_kwargs(kwargs))


def is_timeout(error: Exception) -> bool:
    """True for any requests/urllib3 error that means a deadline passed.

    requests reports a read timeout that happens while the body is
    consumed as a ConnectionError wrapping urllib3's ReadTimeoutError.
    """
    if isinstance(error, (requests.exceptions.Timeout, ReadTimeoutError, ConnectTimeoutError)):
        return True
    if isinstance(error, requests.exceptions.ConnectionError):
        return any(isinstance(arg, (ReadTimeoutError, ConnectTimeoutError)) for arg in error.args)
    return False


class HttpTransport(BaseTransport):
    """
    HTTP/HTTPS transport.

    Any 2xx is a delivered message: the body is classified as an ACK when
    it carries an MSA segment and counts as a generic success otherwise.
    Non-2xx responses are reported as connection errors carrying the
    status code and body.
    """

    name = "HTTP/HTTPS"

    def __init__(self, content_type: str = DEFAULT_CONTENT_TYPE, encoding: str = "utf-8"):
        super().__init__()
        self._content_type = DEFAULT_CONTENT_TYPE
        self.content_type = content_type
        self.encoding = encoding

    @property
    def content_type(self) -> str:
        return self._content_type

    @content_type.setter
    def content_type(self, value: Optional[str]):
        self._content_type = value.strip() if value and value.strip() else DEFAULT_CONTENT_TYPE

    def validate_config(self, config: TransportConfig) -> bool:
        if not config.url or not config.url.strip():
            return False
        try:
            scheme = urlparse(config.url.strip()).scheme
        except ValueError:
            return False
        return scheme.lower() in VALID_SCHEMES

    def describe_invalid(self, config: TransportConfig) -> str:
        if not config.url or not config.url.strip():
            return "HTTP URL is required"
        return f"HTTP URL must use http or https: {config.url}"

    def _build_session(self, config: TransportConfig) -> requests.Session:
        session = requests.Session()
        identity = config.tls_identity
        if config.use_tls and identity is not None and identity.exists:
            session.mount("https://", SSLContextAdapter(build_ssl_context(identity)))
        return session

    # ---------- exchange -------------------------------------------------- #
    def _exchange(self, message: str, config: TransportConfig) -> Tuple[str, Optional[AckStatus]]:
        deadline = time.monotonic() + config.timeout_seconds
        pending: Future = Future()
        worker = threading.Thread(
            target=self._post_into,
            args=(pending, message, config, deadline),
            name="hl7-http-request",
            daemon=True,
        )
        worker.start()

        try:
            status_code, body = pending.result(timeout=max(deadline - time.monotonic(), 0))
        except FutureTimeout:
            if pending.done():
                raise
            # the worker gives up on its own at the deadline or the next read timeout
            raise requests.exceptions.Timeout(f"no complete response within {config.timeout_ms}ms") from None

        if not 200 <= status_code < 300:
            raise HttpStatusError(status_code, body)

        if AckClassifier.has_ack_segment(body):
            return body, None
        return body, AckStatus.GENERIC_SUCCESS

    def _post_into(self, pending: Future, message: str, config: TransportConfig, deadline: float) -> None:
        try:
            pending.set_result(self._post(message, config, deadline))
        except Exception as e:
            pending.set_exception(e)

    def _post(self, message: str, config: TransportConfig, deadline: float) -> Tuple[int, str]:
        headers = {
            "Content-Type": self.content_type,
            "Accept": self.content_type,
        }
        timeout = config.timeout_seconds

        with self._build_session(config) as session:
            with session.post(
                config.url.strip(),
                data=message.encode(self.encoding),
                headers=headers,
                timeout=(timeout, timeout),
                stream=True,
            ) as response:
                raw = self._read_body(response, deadline)
                body = raw.decode(response.encoding or self.encoding, errors="replace")
                return response.status_code, body

    @staticmethod
    def _read_body(response: requests.Response, deadline: float) -> bytes:
        """Read the body in whatever pieces arrive, giving up at ``deadline``."""
        body = bytearray()
        while True:
            if time.monotonic() >= deadline:
                raise requests.exceptions.ReadTimeout("response deadline elapsed")
            chunk = response.raw.read1(READ_CHUNK_SIZE, decode_content=True)
            if not chunk:
                return bytes(body)
            body += chunk

    def _describe_failure(self, error: Exception, config: TransportConfig) -> Tuple[AckStatus, str]:
        if isinstance(error, HttpStatusError):
            return AckStatus.CONNECTION_ERROR, str(error)
        if is_timeout(error):
            return AckStatus.TIMEOUT, f"HTTP timeout after {config.timeout_ms}ms"
        if isinstance(error, TlsSetupError):
            return AckStatus.CONNECTION_ERROR, f"TLS setup failed: {error}"
        if isinstance(error, requests.exceptions.SSLError):
            return AckStatus.CONNECTION_ERROR, f"TLS handshake failed: {error}"
        return AckStatus.CONNECTION_ERROR, f"HTTP error: {error}"
