from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterator
from urllib.parse import parse_qsl, urlsplit

import pytest


SLOW_DELAY = 0.3
TRICKLE_BYTES = 20
TRICKLE_INTERVAL = 0.1


@dataclass(slots=True)
class RecordedRequest:
    method: str
    path: str
    raw_query: str
    query: list[tuple[str, str]]
    headers: dict[str, str]
    body: bytes


class RecordingServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), RecordingHandler)
        self.requests: list[RecordedRequest] = []
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()
        self.slow_delay = SLOW_DELAY

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def handle_error(self, request, client_address) -> None:
        # Timeout tests close the socket before the handler writes.
        pass


class RecordingHandler(BaseHTTPRequestHandler):
    server: RecordingServer

    def log_message(self, format: str, *args: object) -> None:
        pass

    def do_GET(self) -> None:
        self._handle()

    def do_POST(self) -> None:
        self._handle()

    def do_PUT(self) -> None:
        self._handle()

    def do_DELETE(self) -> None:
        self._handle()

    def _handle(self) -> None:
        parts = urlsplit(self.path)
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        record = RecordedRequest(
            method=self.command,
            path=parts.path,
            raw_query=parts.query,
            query=parse_qsl(parts.query, keep_blank_values=True),
            headers={key.lower(): value for key, value in self.headers.items()},
            body=body,
        )
        with self.server.lock:
            self.server.requests.append(record)

        if parts.path == "/ping":
            self._reply(200, b"pong" if ("x", "1") in record.query else b"missing x")
        elif parts.path == "/echo":
            self._reply(200, body)
        elif parts.path == "/headers":
            self._reply(200, json.dumps(record.headers).encode("utf-8"))
        elif parts.path.startswith("/status/"):
            code = int(parts.path.rsplit("/", 1)[-1])
            self._reply(code, f"status {code}".encode("utf-8"))
        elif parts.path == "/login":
            self.send_response(200)
            self.send_header("Set-Cookie", "session=secret; Path=/")
            self.send_header("Content-Length", "2")
            self.end_headers()
            self.wfile.write(b"in")
        elif parts.path == "/whoami":
            self._reply(200, self.headers.get("Cookie", "").encode("utf-8"))
        elif parts.path == "/trickle":
            self._trickle()
        elif parts.path == "/slow":
            self._slow()
        elif parts.path == "/truncated":
            self.send_response(200)
            self.send_header("Content-Length", "100")
            self.end_headers()
            self.wfile.write(b"short")
            self.wfile.flush()
            self.close_connection = True
        else:
            self._reply(200, b"ok")

    def _trickle(self) -> None:
        self.send_response(200)
        self.send_header("Content-Length", str(TRICKLE_BYTES))
        self.end_headers()
        for _ in range(TRICKLE_BYTES):
            self.wfile.write(b".")
            self.wfile.flush()
            time.sleep(TRICKLE_INTERVAL)

    def _slow(self) -> None:
        with self.server.lock:
            self.server.active += 1
            self.server.max_active = max(self.server.max_active, self.server.active)
        try:
            time.sleep(self.server.slow_delay)
        finally:
            with self.server.lock:
                self.server.active -= 1
        self._reply(200, b"slow")

    def _reply(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


@pytest.fixture
def http_server() -> Iterator[RecordingServer]:
    server = RecordingServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
