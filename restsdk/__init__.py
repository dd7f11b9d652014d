"""Thin blocking HTTP request dispatcher."""

from .core import (
    DispatchError,
    DispatchResponse,
    HttpMethod,
    JsonPayload,
    NO_PAYLOAD,
    PayloadEncodingError,
    QueryParam,
    RawPayload,
    RequestBuildError,
    RequestDescriptor,
    RequestDispatcher,
    ResponseReadError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "DispatchError",
    "DispatchResponse",
    "HttpMethod",
    "JsonPayload",
    "NO_PAYLOAD",
    "PayloadEncodingError",
    "QueryParam",
    "RawPayload",
    "RequestBuildError",
    "RequestDescriptor",
    "RequestDispatcher",
    "ResponseReadError",
    "TransportError",
]
