"""Blocking request dispatcher built on ``requests``."""

from __future__ import annotations

import http.cookiejar
import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Mapping

import requests
from requests.cookies import RequestsCookieJar
from requests.structures import CaseInsensitiveDict

from .errors import RequestBuildError, ResponseReadError, TransportError
from .request import HttpMethod, QueryParam, RequestDescriptor, SdkRequest


_LOGGER = logging.getLogger(__name__)
_JSON_CONTENT_TYPE = "application/json"
_CHUNK_SIZE = 16 * 1024


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Everything needed for one round trip, fixed before the call starts."""

    method: HttpMethod
    url: str
    headers: Mapping[str, str]
    query: tuple[QueryParam, ...]
    data: bytes | None
    timeout: float | None
    debug: bool


@dataclass(slots=True)
class DispatchResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    body: bytes
    text: str
    elapsed: float


def build_context(
    host: str,
    default_headers: Mapping[str, str],
    descriptor: RequestDescriptor,
    *,
    default_timeout: float | None = None,
) -> RequestContext:
    """Merge dispatcher defaults with ``descriptor`` into a ``RequestContext``.

    Per-call headers win over defaults, and POST/PUT always carry
    ``Content-Type: application/json`` whatever the payload shape. The URI is
    appended to the host verbatim.
    """

    headers: CaseInsensitiveDict[str] = CaseInsensitiveDict(default_headers)
    headers.update(descriptor.headers)

    data: bytes | None = None
    if descriptor.method.has_body:
        data = descriptor.body.encode()
        headers["Content-Type"] = _JSON_CONTENT_TYPE

    timeout = descriptor.timeout if descriptor.timeout is not None else default_timeout
    if timeout is not None and timeout <= 0:
        timeout = None

    return RequestContext(
        method=descriptor.method,
        url=host + descriptor.uri,
        headers=dict(headers),
        query=tuple(descriptor.query),
        data=data,
        timeout=timeout,
        debug=descriptor.debug,
    )


def send(session: requests.Session, context: RequestContext) -> DispatchResponse:
    """Perform the round trip described by ``context`` and drain the body."""

    try:
        prepared = session.prepare_request(
            requests.Request(
                method=context.method.name,
                url=context.url,
                headers=dict(context.headers),
                params=list(context.query),
                data=context.data,
            )
        )
    except (requests.RequestException, ValueError) as exc:
        raise RequestBuildError(
            "Failed to build request",
            details={"url": context.url, "reason": str(exc)},
        ) from exc

    if context.debug:
        _LOGGER.info(
            "Dispatching request",
            extra={"event": "dispatch.request", "method": prepared.method, "url": prepared.url},
        )

    settings = session.merge_environment_settings(prepared.url, {}, True, None, None)
    start_time = time.monotonic()
    deadline = start_time + context.timeout if context.timeout is not None else None
    try:
        response = session.send(prepared, timeout=context.timeout, **settings)
    except (requests.exceptions.InvalidSchema, requests.exceptions.InvalidURL) as exc:
        raise RequestBuildError(
            "Failed to build request",
            details={"url": prepared.url, "reason": str(exc)},
        ) from exc
    except requests.RequestException as exc:
        raise TransportError(
            "Request failed",
            details={"method": prepared.method, "url": prepared.url, "reason": str(exc)},
        ) from exc

    with response:
        watchdog = _start_watchdog(response, deadline)
        try:
            body = _drain(response, deadline, context.timeout)
        except requests.RequestException as exc:
            if deadline is not None and time.monotonic() >= deadline:
                raise _deadline_error(response, context.timeout) from exc
            raise ResponseReadError(
                "Failed to read response body",
                details={"url": response.url, "status": response.status_code, "reason": str(exc)},
            ) from exc
        finally:
            if watchdog is not None:
                watchdog.cancel()
        elapsed = time.monotonic() - start_time

    if context.debug:
        _LOGGER.info(
            "Received response",
            extra={
                "event": "dispatch.response",
                "status": response.status_code,
                "bytes": len(body),
                "elapsed": round(elapsed, 3),
            },
        )

    return DispatchResponse(
        url=response.url,
        status=response.status_code,
        headers=dict(response.headers.items()),
        body=body,
        text=_decode_text(body, response),
        elapsed=elapsed,
    )


def _deadline_error(response: requests.Response, timeout: float | None) -> TransportError:
    return TransportError(
        "Request timed out",
        details={"url": response.url, "timeout": timeout, "reason": "deadline exceeded while reading body"},
    )


def _drain(response: requests.Response, deadline: float | None, timeout: float | None) -> bytes:
    """Read the whole body, failing once ``deadline`` has passed."""

    chunks: list[bytes] = []
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        chunks.append(chunk)
        if deadline is not None and time.monotonic() >= deadline:
            raise _deadline_error(response, timeout)
    if deadline is not None and time.monotonic() >= deadline:
        raise _deadline_error(response, timeout)
    return b"".join(chunks)


def _start_watchdog(response: requests.Response, deadline: float | None) -> threading.Timer | None:
    """Shut the socket down at ``deadline`` so a trickling body cannot block a read past it."""

    if deadline is None:
        return None
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return None
    timer = threading.Timer(max(deadline - time.monotonic(), 0.0), _shutdown_socket, args=(sock,))
    timer.daemon = True
    timer.start()
    return timer


def _shutdown_socket(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # already closed by the reader
        return


def _decode_text(body: bytes, response: requests.Response) -> str:
    if not body:
        return ""
    encoding = "utf-8"
    content_type = response.headers.get("Content-Type", "")
    if "charset" in content_type.lower() and response.encoding:
        encoding = response.encoding
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class RequestDispatcher:
    """Issues one blocking HTTP call per ``execute`` against a fixed host.

    Calls on one instance are serialised by an exclusive lock. Separate
    instances do not share any state.
    """

    def __init__(
        self,
        host: str,
        default_headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._host = host
        self._default_headers: dict[str, str] = {
            str(k): str(v) for k, v in (default_headers or {}).items()
        }
        self._timeout = timeout
        self._session = session or requests.Session()
        # Nothing but the default headers outlives a call, so cookies are never stored.
        self._session.cookies = RequestsCookieJar(
            policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
        )
        self._lock = threading.Lock()
        self._headers_lock = threading.Lock()

    @property
    def host(self) -> str:
        return self._host

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def default_headers(self) -> dict[str, str]:
        with self._headers_lock:
            return dict(self._default_headers)

    def add_default_header(self, key: str, value: str) -> None:
        with self._headers_lock:
            self._default_headers[str(key)] = str(value)

    def execute(self, request: RequestDescriptor | SdkRequest) -> str:
        """Send ``request`` and return the response body as text."""
        return self.execute_response(request).text

    def execute_response(self, request: RequestDescriptor | SdkRequest) -> DispatchResponse:
        descriptor = (
            request
            if isinstance(request, RequestDescriptor)
            else RequestDescriptor.from_request(request)
        )
        with self._lock:
            context = build_context(
                self._host,
                self.default_headers,
                descriptor,
                default_timeout=self._timeout,
            )
            return send(self._session, context)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RequestDispatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "DispatchResponse",
    "RequestContext",
    "RequestDispatcher",
    "build_context",
    "send",
]
