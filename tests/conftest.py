import socket
import ssl
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest

from hl7bench.models import extract_control_id
from hl7bench.transports.mllp_framing import MllpFrameDecoder, frame_message


# Self-signed bundle (encrypted key + certificate for DNS:localhost only),
# used as the client identity and as the servers' certificate.
IDENTITY_PEM = str(Path(__file__).parent / "fixtures" / "identity.pem")
IDENTITY_PASSPHRASE = "changeit"

ADT_A01 = (
    "MSH|^~\\&|APP|FAC|RCVAPP|RCVFAC|202401010000||ADT^A01|MSG001|P|2.3\r"
    "EVN|A01|202401010000\r"
    "PID|1||123456^^^MRN||DOE^JOHN||19800101|M"
)


def make_message(control_id: str, event: str = "A01") -> str:
    return (
        f"MSH|^~\\&|APP|FAC|RCVAPP|RCVFAC|202401010000||ADT^{event}|{control_id}|P|2.3\r"
        f"EVN|{event}|202401010000"
    )


def make_ack(control_id: str, code: str = "AA") -> str:
    return (
        f"MSH|^~\\&|RCVAPP|RCVFAC|APP|FAC|202401010001||ACK^A01|ACK{control_id}|P|2.3\r"
        f"MSA|{code}|{control_id}\r"
    )


def read_frame(conn: socket.socket) -> bytes:
    decoder = MllpFrameDecoder()
    while not decoder.complete:
        chunk = conn.recv(65536)
        if not chunk:
            break
        decoder.feed(chunk)
    return decoder.payload


def read_http_request(conn: socket.socket) -> bytes:
    """Read one HTTP request with a Content-Length body; returns the body."""
    data = b""
    while b"\r\n\r\n" not in data:
        chunk = conn.recv(65536)
        if not chunk:
            return b""
        data += chunk
    head, _, body = data.partition(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            length = int(value.strip())
    while len(body) < length:
        chunk = conn.recv(65536)
        if not chunk:
            break
        body += chunk
    return body


def server_ssl_context() -> ssl.SSLContext:
    """Server side of the test identity; requires the same identity from clients."""
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(IDENTITY_PEM, password=IDENTITY_PASSPHRASE)
    context.load_verify_locations(cafile=IDENTITY_PEM)
    context.verify_mode = ssl.CERT_REQUIRED
    return context


class LoopbackServer:
    """TCP server on 127.0.0.1 that hands each connection to ``handler``."""

    def __init__(self, handler, ssl_context=None):
        self.handler = handler
        self.ssl_context = ssl_context
        self.received = []
        self.stopped = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self._sock.settimeout(0.1)
        self.host, self.port = self._sock.getsockname()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self.stopped.is_set():
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn):
        conn.settimeout(10)
        try:
            if self.ssl_context is not None:
                conn = self.ssl_context.wrap_socket(conn, server_side=True)
            with conn:
                self.handler(conn, self)
        except OSError:
            conn.close()

    def close(self):
        self.stopped.set()
        self._thread.join(2)
        self._sock.close()


@pytest.fixture
def mllp_server():
    servers = []

    def start(handler, ssl_context=None):
        server = LoopbackServer(handler, ssl_context)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


def reply_with_ack(conn, server):
    payload = read_frame(conn).decode("utf-8")
    control_id = extract_control_id(payload)
    server.received.append(control_id)
    conn.sendall(frame_message(make_ack(control_id)))


@pytest.fixture
def ack_server(mllp_server):
    """Replies to every message with an AA acknowledgment for its control id."""
    return mllp_server(reply_with_ack)


@pytest.fixture
def tls_ack_server(mllp_server):
    """Same as ``ack_server`` behind TLS with the test identity."""
    return mllp_server(reply_with_ack, server_ssl_context())


@pytest.fixture
def silent_server(mllp_server):
    """Accepts connections and never answers."""

    def handler(conn, server):
        server.stopped.wait(5)

    return mllp_server(handler)


@pytest.fixture
def closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class HttpStub:
    """Programmable HTTP endpoint; records each request."""

    def __init__(self, ssl_context=None):
        self.status = 200
        self.body = b""
        self.content_type = "application/hl7-v2"
        self.delay = 0.0
        self.requests = []

        stub = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                stub.requests.append({
                    "path": self.path,
                    "headers": dict(self.headers),
                    "body": self.rfile.read(length),
                })
                if stub.delay:
                    time.sleep(stub.delay)
                self.send_response(stub.status)
                self.send_header("Content-Type", stub.content_type)
                self.send_header("Content-Length", str(len(stub.body)))
                self.end_headers()
                self.wfile.write(stub.body)

            def log_message(self, *args):
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.server.daemon_threads = True
        scheme = "http"
        if ssl_context is not None:
            self.server.socket = ssl_context.wrap_socket(self.server.socket, server_side=True)
            scheme = "https"
        self.url = f"{scheme}://127.0.0.1:{self.server.server_address[1]}/hl7"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def respond(self, status=200, body="", delay=0.0, content_type="application/hl7-v2"):
        self.status = status
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.delay = delay
        self.content_type = content_type

    def close(self):
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def http_stub():
    stub = HttpStub()
    yield stub
    stub.close()


@pytest.fixture
def https_stub():
    stub = HttpStub(server_ssl_context())
    yield stub
    stub.close()
