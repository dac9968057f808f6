"""Typed errors raised by the relay-http clients."""

from __future__ import annotations

from typing import Any, Mapping


class RequestError(Exception):
    """Base exception for every failed request.

    ``status`` follows HTTP conventions: the response status for HTTP errors,
    ``408`` for timeouts, ``0`` when the host could not be reached and ``500``
    for anything unexpected.
    """

    def __init__(
        self,
        message: str,
        status: int,
        data: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    @property
    def status_code(self) -> int:
        return self.status

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status={self.status!r})"


class HTTPStatusError(RequestError):
    """Raised for responses outside the 2xx range."""


class RequestTimeoutError(RequestError):
    """Raised when a request exceeds its effective timeout."""


class NetworkError(RequestError):
    """Raised for transport-level failures like DNS and TCP errors."""


class UnexpectedRequestError(RequestError):
    """Raised for failures that fit no other category."""
