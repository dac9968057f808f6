"""Synchronous and asynchronous HTTP clients with interceptor chains."""

from __future__ import annotations

import json
import os
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Sequence
from urllib.parse import urlencode

import httpx
from loguru import logger
from pydantic import BaseModel

from .exceptions import (
    HTTPStatusError,
    NetworkError,
    RequestError,
    RequestTimeoutError,
    UnexpectedRequestError,
)
from .interceptors import (
    FulfilledHandler,
    InterceptorManager,
    RejectedHandler,
    RequestInterceptor,
    ResponseInterceptor,
    apply_request_interceptors,
    apply_request_interceptors_async,
    apply_response_interceptors,
    apply_response_interceptors_async,
)
from .models import REQUEST_METHODS, RequestMethod
from .request_options import RequestOptions
from .security import sanitize_headers, validate_base_url
from .transport import OutcomeKind, TransportOutcome, asend, send

TIMEOUT_MESSAGE = "Request timed out, please try again later"
UNREACHABLE_MESSAGE = "Unable to reach the server, please check the network connection"
UNKNOWN_MESSAGE = "An unknown error occurred"


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def _is_structured(value: Any) -> bool:
    if isinstance(value, (Mapping, BaseModel)):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _coerce_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return _compact_json(dict(value))
    if _is_structured(value):
        return _compact_json(value if isinstance(value, BaseModel) else list(value))
    return str(value)


def _serialize_params(params: Mapping[str, Any]) -> dict[str, str]:
    serialized: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        serialized[str(key)] = _coerce_query_value(value)
    return serialized


def _append_query(url: str, query: str) -> str:
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def _has_content_type(headers: Mapping[str, str]) -> bool:
    return any(key.lower() == "content-type" for key in headers)


def _split_body(body: Any) -> tuple[str | bytes | None, dict[str, Any] | None]:
    if body is None:
        return None, None
    if isinstance(body, (str, bytes)):
        return body, None
    if isinstance(body, Mapping):
        return None, dict(body)
    raise TypeError(f"Unsupported request body type: {type(body).__name__}")


def _parse_response(response: httpx.Response) -> Any:
    if not response.content:
        return None
    return response.json()


def _http_error(response: httpx.Response) -> HTTPStatusError:
    message = f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping) and payload.get("message"):
        message = str(payload["message"])
    return HTTPStatusError(message, response.status_code, payload, headers=response.headers)


class _BaseHttpClient:
    default_timeout = 10000
    default_base_url_env_var = "API_URL_BASE"
    default_headers: Mapping[str, str] = {
        "Accept": "application/json",
        "User-Agent": "relay-http/0.1.0",
    }

    def __init__(
        self,
        base_url: str = "",
        timeout: int = default_timeout,
        *,
        headers: Mapping[str, str] | None = None,
        base_url_env_var: str = default_base_url_env_var,
        follow_redirects: bool = True,
    ) -> None:
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ValueError("timeout must be a positive number of milliseconds")
        self.base_url = base_url or ""
        if self.base_url:
            validate_base_url(self.base_url)
        self.timeout = timeout
        self.base_url_env_var = base_url_env_var
        self._default_headers = dict(self.default_headers)
        if headers:
            self._default_headers.update({str(key): str(value) for key, value in headers.items()})

        self._request_interceptors: InterceptorManager[RequestInterceptor] = InterceptorManager()
        self._response_interceptors: InterceptorManager[ResponseInterceptor] = InterceptorManager()

        self._client_kwargs = {
            "timeout": timeout / 1000,
            "follow_redirects": follow_redirects,
            "trust_env": False,
        }

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> int:
        return self._request_interceptors.use(interceptor)

    def add_response_interceptor(
        self,
        on_fulfilled: FulfilledHandler | None,
        on_rejected: RejectedHandler | None = None,
    ) -> int:
        return self._response_interceptors.use(ResponseInterceptor(on_fulfilled, on_rejected))

    def remove_request_interceptor(self, handle: int) -> None:
        self._request_interceptors.eject(handle)

    def remove_response_interceptor(self, handle: int) -> None:
        self._response_interceptors.eject(handle)

    def _merge_options(self, options: RequestOptions | None) -> RequestOptions:
        config = options or RequestOptions()
        return replace(config, method=config.method or "GET", timeout=config.timeout or self.timeout)

    @staticmethod
    def _with_method(method: RequestMethod, options: RequestOptions | None, fields: Mapping[str, Any]) -> RequestOptions:
        if "method" in fields:
            raise TypeError(f"{method.lower()}() sets the method to {method}; use request() to choose another")
        return replace(options or RequestOptions(), method=method, **fields)

    def _resolve_url(self, path: str, config: RequestOptions) -> str:
        base = config.base_url or self.base_url or os.getenv(self.base_url_env_var, "")
        return f"{base}{path}"

    def _prepare(self, endpoint: str, config: RequestOptions) -> tuple[str, RequestOptions, int]:
        """Fold params and data into the URL and body, then drop client-only fields."""
        url = endpoint
        if config.params is not None:
            url = _append_query(url, urlencode(_serialize_params(config.params)))
            config = replace(config, params=None)

        if config.data is not None:
            if config.request_type == "form":
                config = replace(config, body=config.data)
            else:
                headers = dict(config.headers or {})
                if not _has_content_type({**self._default_headers, **headers}):
                    headers["Content-Type"] = "application/json"
                data = config.data.model_dump(mode="json") if isinstance(config.data, BaseModel) else config.data
                config = replace(config, body=_compact_json(data), headers=headers)
            config = replace(config, data=None)

        timeout = config.timeout or self.timeout
        config = replace(config, timeout=None, request_type=None, base_url=None)
        return url, config, timeout

    def _build_request(
        self,
        client: httpx.Client | httpx.AsyncClient,
        url: str,
        config: RequestOptions,
        timeout: int,
    ) -> httpx.Request:
        method = str(config.method).upper()
        if method not in REQUEST_METHODS:
            raise ValueError(f"Unsupported request method: {config.method}")
        headers = httpx.Headers(self._default_headers)
        headers.update(config.headers or {})
        content, form = _split_body(config.body)
        extensions: dict[str, Any] = {}
        if config.cache is not None:
            extensions["cache"] = config.cache
        if config.revalidation is not None:
            extensions["revalidation"] = config.revalidation

        logger.debug("-> {} {} headers={}", method, url, sanitize_headers(headers))
        return client.build_request(
            method,
            url,
            headers=headers,
            content=content,
            data=form,
            timeout=httpx.Timeout(timeout / 1000),
            extensions=extensions or None,
        )

    @staticmethod
    def _settle(outcome: TransportOutcome, url: str) -> Any:
        if outcome.kind is OutcomeKind.TIMEOUT:
            raise RequestTimeoutError(TIMEOUT_MESSAGE, 408, None, cause=outcome.error)
        if outcome.kind is OutcomeKind.CONNECTION_FAILURE:
            raise NetworkError(UNREACHABLE_MESSAGE, 0, None, cause=outcome.error)
        if outcome.kind is OutcomeKind.FAILURE and outcome.error is not None:
            raise outcome.error

        response = outcome.response
        if response is None:
            raise RuntimeError("transport reported success without a response")
        logger.debug("<- {} {}", response.status_code, url)
        if response.is_success:
            return _parse_response(response)
        raise _http_error(response)

    @staticmethod
    def _classify_failure(exc: Exception, url: str) -> RequestError:
        if isinstance(exc, RequestError):
            return exc
        logger.opt(exception=exc).error("Request to {} failed unexpectedly", url)
        return UnexpectedRequestError(UNKNOWN_MESSAGE, 500, exc, cause=exc)


class HttpClient(_BaseHttpClient):
    """Synchronous client.

    Interceptors must be plain callables; use :class:`AsyncHttpClient` for
    coroutine interceptors.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: int = _BaseHttpClient.default_timeout,
        *,
        headers: Mapping[str, str] | None = None,
        base_url_env_var: str = _BaseHttpClient.default_base_url_env_var,
        follow_redirects: bool = True,
        httpx_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout,
            headers=headers,
            base_url_env_var=base_url_env_var,
            follow_redirects=follow_redirects,
        )
        self._httpx = httpx_client or httpx.Client(**self._client_kwargs)

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._httpx.close()

    def request(self, path: str, options: RequestOptions | None = None) -> Any:
        config = self._merge_options(options)
        endpoint = self._resolve_url(path, config)
        result: Any = None
        error: RequestError | None = None
        try:
            config = apply_request_interceptors(self._request_interceptors, endpoint, config)
            url, config, timeout = self._prepare(endpoint, config)
            outcome = send(self._httpx, self._build_request(self._httpx, url, config, timeout), timeout / 1000)
            result = self._settle(outcome, url)
        except Exception as exc:
            error = self._classify_failure(exc, endpoint)
        return apply_response_interceptors(self._response_interceptors, result, error)

    def get(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return self.request(path, self._with_method("GET", options, fields))

    def post(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return self.request(path, self._with_method("POST", options, fields))

    def put(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return self.request(path, self._with_method("PUT", options, fields))

    def patch(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return self.request(path, self._with_method("PATCH", options, fields))

    def delete(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return self.request(path, self._with_method("DELETE", options, fields))


class AsyncHttpClient(_BaseHttpClient):
    """Asynchronous client."""

    def __init__(
        self,
        base_url: str = "",
        timeout: int = _BaseHttpClient.default_timeout,
        *,
        headers: Mapping[str, str] | None = None,
        base_url_env_var: str = _BaseHttpClient.default_base_url_env_var,
        follow_redirects: bool = True,
        httpx_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout,
            headers=headers,
            base_url_env_var=base_url_env_var,
            follow_redirects=follow_redirects,
        )
        self._httpx = httpx_client or httpx.AsyncClient(**self._client_kwargs)

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._httpx.aclose()

    async def request(self, path: str, options: RequestOptions | None = None) -> Any:
        config = self._merge_options(options)
        endpoint = self._resolve_url(path, config)
        result: Any = None
        error: RequestError | None = None
        try:
            config = await apply_request_interceptors_async(self._request_interceptors, endpoint, config)
            url, config, timeout = self._prepare(endpoint, config)
            request = self._build_request(self._httpx, url, config, timeout)
            outcome = await asend(self._httpx, request, timeout / 1000)
            result = self._settle(outcome, url)
        except Exception as exc:
            error = self._classify_failure(exc, endpoint)
        return await apply_response_interceptors_async(self._response_interceptors, result, error)

    async def get(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return await self.request(path, self._with_method("GET", options, fields))

    async def post(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return await self.request(path, self._with_method("POST", options, fields))

    async def put(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return await self.request(path, self._with_method("PUT", options, fields))

    async def patch(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return await self.request(path, self._with_method("PATCH", options, fields))

    async def delete(self, path: str, options: RequestOptions | None = None, **fields: Any) -> Any:
        return await self.request(path, self._with_method("DELETE", options, fields))
