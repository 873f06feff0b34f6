import logging
import socket
import struct
import time
import urllib.parse

import pytest

pytestmark = pytest.mark.integration


def _connect(base_url):
    url = urllib.parse.urlparse(base_url)
    sock = socket.create_connection((url.hostname, url.port), timeout=5)
    return sock


def _read_all(sock):
    data = b""
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk


def test_put_short_body_answers_500(live_server):
    sock = _connect(live_server)
    try:
        sock.sendall(b"PUT /upload HTTP/1.1\r\nHost: test\r\nContent-Length: 100\r\n\r\n" + b"u" * 40)
        sock.shutdown(socket.SHUT_WR)
        response = _read_all(sock)
    finally:
        sock.close()

    status_line, _, rest = response.partition(b"\r\n")
    assert status_line.split()[1] == b"500"
    body = rest.partition(b"\r\n\r\n")[2]
    assert b"incomplete read: wanted = 100, read = 40: unexpected EOF" in body
    assert b"Bad Request" not in body


def test_download_disconnect_during_rate_wait_is_logged(live_server, caplog):
    def incomplete_writes():
        return [r.getMessage() for r in caplog.records if "incomplete write" in r.getMessage()]

    with caplog.at_level(logging.ERROR, logger="trafficsrv.transfer"):
        sock = _connect(live_server)
        sock.sendall(b"GET /?size=1K&rate=2 HTTP/1.1\r\nHost: test\r\n\r\n")
        assert sock.recv(4096).startswith(b"HTTP/1.")
        # reset instead of a graceful close so the next server write fails
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        sock.close()

        closed = time.monotonic()
        while not incomplete_writes() and time.monotonic() - closed < 4:
            time.sleep(0.05)

    messages = incomplete_writes()
    assert len(messages) == 1
    assert "wanted = 1024" in messages[0]
    assert "client went away" in messages[0]
