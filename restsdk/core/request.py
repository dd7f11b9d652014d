"""Immutable description of a single outgoing request."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, NamedTuple, Protocol, Sequence, Union

from .errors import PayloadEncodingError


class HttpMethod(Enum):
    POST = 1
    GET = 2
    PUT = 3
    DELETE = 4

    @property
    def has_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT)

    @classmethod
    def coerce(cls, value: Any) -> "HttpMethod":
        """Return the member for ``value`` (member, numeric code or name).

        Unknown values raise ``ValueError``: an invalid method is a programming
        error and is never reported as a ``DispatchError``.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        elif isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"specify a valid http method, got {value!r}")


class QueryParam(NamedTuple):
    key: str
    value: str


# HTML-sensitive characters and line separators are sent as \u escapes. They can
# only occur inside string literals, so translating the dumped text is safe.
_HTML_SAFE_ESCAPES = {
    ord("<"): "\\u003c",
    ord(">"): "\\u003e",
    ord("&"): "\\u0026",
    0x2028: "\\u2028",
    0x2029: "\\u2029",
}


@dataclass(frozen=True, slots=True)
class JsonPayload:
    data: Mapping[str, Any]

    def encode(self) -> bytes:
        try:
            text = json.dumps(
                self.data,
                separators=(",", ":"),
                sort_keys=True,
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise PayloadEncodingError(
                "Failed to encode JSON payload",
                details={"reason": str(exc)},
            ) from exc
        return text.translate(_HTML_SAFE_ESCAPES).encode("utf-8")


@dataclass(frozen=True, slots=True)
class RawPayload:
    data: str | bytes

    def encode(self) -> bytes:
        if isinstance(self.data, bytes):
            return self.data
        return self.data.encode("utf-8")


@dataclass(frozen=True, slots=True)
class NoPayload:
    def encode(self) -> bytes:
        return b""


NO_PAYLOAD = NoPayload()

Payload = Union[JsonPayload, RawPayload, NoPayload]


def as_payload(body: Any) -> Payload:
    """Wrap a loosely typed body in its payload variant.

    Mappings become JSON, strings and bytes are sent verbatim, and anything
    else (including ``None``) sends an empty body.
    """

    if isinstance(body, (JsonPayload, RawPayload, NoPayload)):
        return body
    if isinstance(body, Mapping):
        return JsonPayload(dict(body))
    if isinstance(body, (str, bytes)):
        return RawPayload(body)
    return NO_PAYLOAD


class SdkRequest(Protocol):
    """Getter-style request contract accepted by ``RequestDescriptor.from_request``."""

    def get_timeout(self) -> float | None: ...

    def get_debug(self) -> bool: ...

    def get_http_method(self) -> Any: ...

    def get_header(self) -> Mapping[str, str] | None: ...

    def get_uri(self) -> str: ...

    def get_get(self) -> Iterable[tuple[str, str]] | None: ...

    def get_body(self) -> Any: ...


def _query_pairs(query: Iterable[tuple[str, str]] | Mapping[str, str] | None) -> tuple[QueryParam, ...]:
    if not query:
        return ()
    items = query.items() if isinstance(query, Mapping) else query
    return tuple(QueryParam(str(key), str(value)) for key, value in items)


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    method: HttpMethod
    uri: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Sequence[QueryParam] = ()
    body: Payload = NO_PAYLOAD
    timeout: float | None = None
    debug: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod.coerce(self.method))
        object.__setattr__(self, "uri", str(self.uri))
        object.__setattr__(
            self, "headers", {str(k): str(v) for k, v in (self.headers or {}).items()}
        )
        object.__setattr__(self, "query", _query_pairs(self.query))
        object.__setattr__(self, "body", as_payload(self.body))

    @classmethod
    def from_request(cls, request: SdkRequest) -> "RequestDescriptor":
        return cls(
            method=request.get_http_method(),
            uri=request.get_uri(),
            headers=request.get_header() or {},
            query=request.get_get() or (),
            body=request.get_body(),
            timeout=request.get_timeout(),
            debug=bool(request.get_debug()),
        )


__all__ = [
    "HttpMethod",
    "QueryParam",
    "JsonPayload",
    "RawPayload",
    "NoPayload",
    "NO_PAYLOAD",
    "Payload",
    "as_payload",
    "SdkRequest",
    "RequestDescriptor",
]
