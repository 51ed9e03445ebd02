import time

import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from hl7bench.models import AckStatus, TlsIdentity, TransportConfig, TransportMode
from hl7bench.transports import DEFAULT_CONTENT_TYPE, HttpTransport
from hl7bench.transports.http_transport import is_timeout

from conftest import IDENTITY_PASSPHRASE, IDENTITY_PEM, make_ack, make_message, read_http_request


def http_config(url, timeout_ms=2000, **kwargs):
    return TransportConfig(mode=TransportMode.HTTP, url=url, timeout_ms=timeout_ms, **kwargs)


def test_ack_in_body_is_classified(http_stub):
    http_stub.respond(200, make_ack("C1", "AA"))

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url))

    assert result.status == AckStatus.ACK_ACCEPT
    assert result.mode is TransportMode.HTTP
    assert result.raw_response == make_ack("C1", "AA")
    assert result.error_message is None


def test_application_error_ack(http_stub):
    http_stub.respond(200, make_ack("C1", "AE"))

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url))

    assert result.status == AckStatus.ACK_ERROR
    assert not result.is_successful


@pytest.mark.parametrize("status,body", [(200, "OK"), (202, ""), (204, "")])
def test_2xx_without_ack_is_generic_success(http_stub, status, body):
    http_stub.respond(status, body, content_type="text/plain")

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url))

    assert result.status == AckStatus.GENERIC_SUCCESS
    assert result.is_successful
    assert result.raw_response == body


def test_non_2xx_is_connection_error(http_stub):
    http_stub.respond(500, "boom")

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url))

    assert result.status == AckStatus.CONNECTION_ERROR
    assert result.error_message == "HTTP 500: boom"
    assert result.raw_response == ""


def test_non_2xx_with_ack_body_is_still_an_error(http_stub):
    http_stub.respond(400, make_ack("C1", "AR"))

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url))

    assert result.status == AckStatus.CONNECTION_ERROR
    assert result.error_message.startswith("HTTP 400: ")


def test_slow_server_times_out(http_stub):
    http_stub.respond(200, make_ack("C1"), delay=1.0)

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url, timeout_ms=200))

    assert result.status == AckStatus.TIMEOUT
    assert result.error_message == "HTTP timeout after 200ms"
    assert result.round_trip_ms < 1000


def test_connection_refused(closed_port):
    result = HttpTransport().send(make_message("C1"), "C1", http_config(f"http://127.0.0.1:{closed_port}/hl7"))

    assert result.status == AckStatus.CONNECTION_ERROR
    assert result.error_message.startswith("HTTP error:")


def test_request_body_and_headers(http_stub):
    http_stub.respond(200, make_ack("C1"))
    message = make_message("C1")

    HttpTransport().send(message, "C1", http_config(http_stub.url))

    request = http_stub.requests[0]
    assert request["path"] == "/hl7"
    assert request["body"] == message.encode("utf-8")
    assert request["headers"]["Content-Type"] == DEFAULT_CONTENT_TYPE
    assert request["headers"]["Accept"] == DEFAULT_CONTENT_TYPE


def test_custom_content_type_is_sent(http_stub):
    http_stub.respond(200, make_ack("C1"))
    transport = HttpTransport()
    transport.content_type = "x-application/hl7-v2+er7"

    transport.send(make_message("C1"), "C1", http_config(http_stub.url))

    assert http_stub.requests[0]["headers"]["Content-Type"] == "x-application/hl7-v2+er7"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_content_type_resets_to_default(value):
    transport = HttpTransport(content_type="text/plain")
    transport.content_type = value

    assert transport.content_type == DEFAULT_CONTENT_TYPE


def test_unreadable_keystore_reports_tls_setup(http_stub, tmp_path):
    keystore = tmp_path / "client.pem"
    keystore.write_text("garbage")
    config = http_config(http_stub.url, use_tls=True, tls_identity=TlsIdentity(str(keystore)))

    result = HttpTransport().send(make_message("C1"), "C1", config)

    assert result.status == AckStatus.CONNECTION_ERROR
    assert result.error_message.startswith("TLS setup failed")
    assert http_stub.requests == []


@pytest.mark.parametrize("url,valid", [
    ("http://localhost:8080/hl7", True),
    ("https://example.org/hl7", True),
    ("HTTPS://example.org", True),
    ("ftp://example.org", False),
    ("localhost:8080", False),
    ("", False),
    ("   ", False),
])
def test_validate_config(url, valid):
    assert HttpTransport().validate_config(http_config(url)) is valid


def trickle(conn, server, data, size=4, interval=0.1):
    for offset in range(0, len(data), size):
        if server.stopped.is_set():
            return
        conn.sendall(data[offset:offset + size])
        time.sleep(interval)


def response_head(length):
    return (f"HTTP/1.1 200 OK\r\nContent-Type: application/hl7-v2\r\n"
            f"Content-Length: {length}\r\n\r\n").encode("ascii")


def test_trickled_body_hits_total_deadline(mllp_server):
    body = make_ack("C1").encode("ascii") * 4

    def handler(conn, server):
        read_http_request(conn)
        conn.sendall(response_head(len(body)))
        trickle(conn, server, body)

    server = mllp_server(handler)
    started = time.monotonic()
    result = HttpTransport().send(make_message("C1"), "C1", http_config(f"http://127.0.0.1:{server.port}/hl7", 300))

    assert result.status == AckStatus.TIMEOUT
    assert result.error_message == "HTTP timeout after 300ms"
    assert time.monotonic() - started < 1.5


def test_trickled_headers_hit_total_deadline(mllp_server):
    body = make_ack("C1").encode("ascii")

    def handler(conn, server):
        read_http_request(conn)
        trickle(conn, server, response_head(len(body)) + body)

    server = mllp_server(handler)
    started = time.monotonic()
    result = HttpTransport().send(make_message("C1"), "C1", http_config(f"http://127.0.0.1:{server.port}/hl7", 300))

    assert result.status == AckStatus.TIMEOUT
    assert time.monotonic() - started < 1.5


def test_body_stalling_midway_is_a_timeout(mllp_server):
    def handler(conn, server):
        read_http_request(conn)
        conn.sendall(response_head(100) + b"MSH|^~")
        server.stopped.wait(5)

    server = mllp_server(handler)
    result = HttpTransport().send(make_message("C1"), "C1", http_config(f"http://127.0.0.1:{server.port}/hl7", 300))

    assert result.status == AckStatus.TIMEOUT
    assert result.error_message == "HTTP timeout after 300ms"


def test_large_body_is_read_completely(http_stub):
    ack = make_ack("C1") + "NTE|1||" + "x" * (2 * 1024 * 1024)
    http_stub.respond(200, ack)

    result = HttpTransport().send(make_message("C1"), "C1", http_config(http_stub.url, timeout_ms=10000))

    assert result.status == AckStatus.ACK_ACCEPT
    assert result.raw_response == ack


@pytest.mark.parametrize("error", [
    requests.exceptions.ReadTimeout("read timed out"),
    requests.exceptions.ConnectTimeout("connect timed out"),
    requests.exceptions.ConnectionError(ReadTimeoutError(None, None, "Read timed out.")),
    ReadTimeoutError(None, None, "Read timed out."),
])
def test_read_timeouts_in_any_wrapping_are_timeouts(error):
    status, message = HttpTransport()._describe_failure(error, http_config("http://h/hl7", 300))

    assert is_timeout(error)
    assert status == AckStatus.TIMEOUT
    assert message == "HTTP timeout after 300ms"


def test_plain_connection_error_is_not_a_timeout():
    error = requests.exceptions.ConnectionError("connection refused")

    assert not is_timeout(error)
    assert HttpTransport()._describe_failure(error, http_config("http://h/hl7"))[0] == AckStatus.CONNECTION_ERROR


def test_https_exchange_with_keystore_identity(https_stub):
    https_stub.respond(200, make_ack("C1"))
    identity = TlsIdentity(IDENTITY_PEM, IDENTITY_PASSPHRASE)
    config = http_config(https_stub.url, use_tls=True, tls_identity=identity)

    result = HttpTransport().send(make_message("C1"), "C1", config)

    assert result.status == AckStatus.ACK_ACCEPT
    assert https_stub.requests[0]["body"] == make_message("C1").encode("utf-8")


def test_https_without_identity_rejects_untrusted_server(https_stub):
    https_stub.respond(200, make_ack("C1"))

    result = HttpTransport().send(make_message("C1"), "C1", http_config(https_stub.url, use_tls=True))

    assert result.status == AckStatus.CONNECTION_ERROR
    assert result.error_message.startswith("TLS handshake failed")
    assert https_stub.requests == []
