"""Core primitives for request dispatching."""

from .dispatcher import DispatchResponse, RequestContext, RequestDispatcher, build_context, send
from .errors import (
    DispatchError,
    PayloadEncodingError,
    RequestBuildError,
    ResponseReadError,
    TransportError,
)
from .request import (
    NO_PAYLOAD,
    HttpMethod,
    JsonPayload,
    NoPayload,
    QueryParam,
    RawPayload,
    RequestDescriptor,
    SdkRequest,
    as_payload,
)

__all__ = [
    "DispatchResponse",
    "RequestContext",
    "RequestDispatcher",
    "build_context",
    "send",
    "DispatchError",
    "PayloadEncodingError",
    "RequestBuildError",
    "ResponseReadError",
    "TransportError",
    "NO_PAYLOAD",
    "HttpMethod",
    "JsonPayload",
    "NoPayload",
    "QueryParam",
    "RawPayload",
    "RequestDescriptor",
    "SdkRequest",
    "as_payload",
]
