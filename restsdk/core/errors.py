"""Exceptions raised while dispatching requests."""

from __future__ import annotations

from typing import Any, Mapping


class DispatchError(RuntimeError):
    """Raised when a request cannot be built, sent or read.

    ``details`` carries structured context (url, status, reason...) and is
    appended to the message as ``key=value`` pairs.
    """

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})"


class RequestBuildError(DispatchError):
    """The URL or request could not be constructed."""


class PayloadEncodingError(DispatchError):
    """A JSON payload could not be encoded; nothing was sent."""


class TransportError(DispatchError):
    """Connection, TLS or timeout failure during the round trip."""


class ResponseReadError(DispatchError):
    """The response body could not be fully read."""


__all__ = [
    "DispatchError",
    "RequestBuildError",
    "PayloadEncodingError",
    "TransportError",
    "ResponseReadError",
]
