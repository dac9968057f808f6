"""Interceptor registries and the chains that run them."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterator, TypeVar, Union

from pydantic import ValidationError

from .exceptions import RequestError
from .models import GenericResponseResult
from .request_options import RequestOptions

RequestInterceptor = Callable[[str, RequestOptions], Union[RequestOptions, Awaitable[RequestOptions]]]
FulfilledHandler = Callable[[Any], Any]
RejectedHandler = Callable[[BaseException], Any]

T = TypeVar("T")


@dataclass(frozen=True)
class ResponseInterceptor:
    on_fulfilled: FulfilledHandler | None = None
    on_rejected: RejectedHandler | None = None


class InterceptorManager(Generic[T]):
    """Ordered registry whose handles survive removals.

    ``use`` returns the position of the new entry. ``eject`` leaves a hole at
    that position instead of shifting later entries, so handles stay valid.
    """

    def __init__(self) -> None:
        self._handlers: list[T | None] = []

    def use(self, handler: T) -> int:
        self._handlers.append(handler)
        return len(self._handlers) - 1

    def eject(self, handle: int) -> None:
        if 0 <= handle < len(self._handlers):
            self._handlers[handle] = None

    def clear(self) -> None:
        self._handlers = []

    def __iter__(self) -> Iterator[T]:
        # snapshot so registrations made mid-request only affect later calls
        return iter([handler for handler in self._handlers if handler is not None])

    def __len__(self) -> int:
        return sum(1 for handler in self._handlers if handler is not None)


def _check_config(config: Any, interceptor: Callable[..., Any]) -> RequestOptions:
    if not isinstance(config, RequestOptions):
        name = getattr(interceptor, "__name__", repr(interceptor))
        raise TypeError(f"request interceptor {name} returned {type(config).__name__}, expected RequestOptions")
    return config


def apply_request_interceptors(
    interceptors: InterceptorManager[RequestInterceptor],
    endpoint: str,
    config: RequestOptions,
) -> RequestOptions:
    current = config
    for interceptor in interceptors:
        result = interceptor(endpoint, current)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError("async request interceptors require AsyncHttpClient")
        current = _check_config(result, interceptor)
    return current


async def apply_request_interceptors_async(
    interceptors: InterceptorManager[RequestInterceptor],
    endpoint: str,
    config: RequestOptions,
) -> RequestOptions:
    current = config
    for interceptor in interceptors:
        result = interceptor(endpoint, current)
        if inspect.isawaitable(result):
            result = await result
        current = _check_config(result, interceptor)
    return current


def apply_response_interceptors(
    interceptors: InterceptorManager[ResponseInterceptor],
    value: Any = None,
    error: BaseException | None = None,
) -> Any:
    """Fold a settled result through the response chain.

    A handler that returns settles the chain as a success, one that raises
    settles it as a failure. The final failure is raised.
    """
    for interceptor in interceptors:
        handler = interceptor.on_fulfilled if error is None else interceptor.on_rejected
        if handler is None:
            continue
        try:
            value = handler(value if error is None else error)
        except Exception as exc:
            error = exc
        else:
            error = None
    if error is not None:
        raise error
    return value


async def apply_response_interceptors_async(
    interceptors: InterceptorManager[ResponseInterceptor],
    value: Any = None,
    error: BaseException | None = None,
) -> Any:
    for interceptor in interceptors:
        handler = interceptor.on_fulfilled if error is None else interceptor.on_rejected
        if handler is None:
            continue
        try:
            result = handler(value if error is None else error)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            error = exc
        else:
            value = result
            error = None
    if error is not None:
        raise error
    return value


def unwrap_response_envelope(payload: Any) -> Any:
    """Unwrap a ``{code, message, data}`` envelope.

    Meant to be registered as an ``on_fulfilled`` response interceptor. Success
    envelopes yield their ``data``, failure envelopes raise a
    :class:`RequestError` with the envelope code as status, and anything that is
    not an envelope passes through untouched.
    """
    try:
        envelope = GenericResponseResult.model_validate(payload)
    except ValidationError:
        return payload
    if envelope.is_success:
        return envelope.data
    raise RequestError(envelope.message, envelope.code, envelope.data)
