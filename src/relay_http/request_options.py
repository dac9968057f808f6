"""Per-request options for the relay-http clients."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from .models import RequestMethod


@dataclass(frozen=True)
class RevalidationOptions:
    revalidate: int | bool | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RequestOptions:
    method: RequestMethod = "GET"
    headers: Mapping[str, str] | None = None
    params: Mapping[str, Any] | None = None
    data: Any = None
    body: str | bytes | Mapping[str, Any] | None = None
    request_type: str | None = None
    timeout: int | None = None
    cache: str | None = None
    revalidation: RevalidationOptions | None = None
    # extension over the constructor/env base: overrides it for this call only, never sent on the wire
    base_url: str | None = None

    def with_headers(self, headers: Mapping[str, str] | None = None, **extra: str) -> "RequestOptions":
        return replace(self, headers={**(self.headers or {}), **(headers or {}), **extra})

    def with_params(self, params: Mapping[str, Any] | None = None, **extra: Any) -> "RequestOptions":
        return replace(self, params={**(self.params or {}), **(params or {}), **extra})
