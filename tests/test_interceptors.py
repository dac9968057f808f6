from __future__ import annotations

import asyncio

import pytest

from relay_http import RequestError, RequestOptions, ResponseCodes, unwrap_response_envelope
from relay_http.interceptors import (
    InterceptorManager,
    ResponseInterceptor,
    apply_request_interceptors,
    apply_response_interceptors,
    apply_response_interceptors_async,
)


def test_manager_handles_stay_stable_after_eject() -> None:
    manager: InterceptorManager[str] = InterceptorManager()
    first = manager.use("a")
    second = manager.use("b")
    third = manager.use("c")

    manager.eject(second)

    assert (first, second, third) == (0, 1, 2)
    assert list(manager) == ["a", "c"]
    assert len(manager) == 2
    manager.eject(third)
    assert list(manager) == ["a"]


def test_manager_eject_ignores_unknown_handles() -> None:
    manager: InterceptorManager[str] = InterceptorManager()
    manager.use("a")
    manager.eject(5)
    manager.eject(-1)
    assert list(manager) == ["a"]


def test_manager_clear() -> None:
    manager: InterceptorManager[str] = InterceptorManager()
    manager.use("a")
    manager.clear()
    assert len(manager) == 0


def test_request_chain_feeds_each_interceptor_the_previous_config() -> None:
    manager = InterceptorManager()
    manager.use(lambda endpoint, config: config.with_params(a=1))
    manager.use(lambda endpoint, config: config.with_params(b=(config.params or {})["a"] + 1))

    result = apply_request_interceptors(manager, "https://x.test/y", RequestOptions())

    assert result.params == {"a": 1, "b": 2}


def test_response_chain_skips_missing_handlers() -> None:
    manager: InterceptorManager[ResponseInterceptor] = InterceptorManager()
    manager.use(ResponseInterceptor(on_rejected=lambda error: "recovered"))
    manager.use(ResponseInterceptor(on_fulfilled=lambda value: value.upper()))

    assert apply_response_interceptors(manager, "ok") == "OK"
    assert apply_response_interceptors(manager, error=ValueError("x")) == "RECOVERED"


def test_response_chain_raises_final_error() -> None:
    manager: InterceptorManager[ResponseInterceptor] = InterceptorManager()
    manager.use(ResponseInterceptor(on_fulfilled=lambda value: value))
    error = RequestError("gone", 410)

    with pytest.raises(RequestError) as exc_info:
        apply_response_interceptors(manager, error=error)
    assert exc_info.value is error


def test_async_response_chain_mixes_sync_and_async_handlers() -> None:
    async def double(value: int) -> int:
        return value * 2

    manager: InterceptorManager[ResponseInterceptor] = InterceptorManager()
    manager.use(ResponseInterceptor(on_fulfilled=double))
    manager.use(ResponseInterceptor(on_fulfilled=lambda value: value + 1))

    assert asyncio.run(apply_response_interceptors_async(manager, 5)) == 11


def test_unwrap_response_envelope_returns_data_on_success() -> None:
    payload = {"code": ResponseCodes.SUCCESS, "message": "ok", "data": {"id": 3}}
    assert unwrap_response_envelope(payload) == {"id": 3}


def test_unwrap_response_envelope_raises_on_failure_code() -> None:
    payload = {"code": 403, "message": "forbidden", "data": None}
    with pytest.raises(RequestError) as exc_info:
        unwrap_response_envelope(payload)

    assert exc_info.value.status == ResponseCodes.FORBIDDEN
    assert exc_info.value.message == "forbidden"


def test_unwrap_response_envelope_passes_other_payloads_through() -> None:
    assert unwrap_response_envelope([1, 2]) == [1, 2]
    assert unwrap_response_envelope({"items": []}) == {"items": []}
    assert unwrap_response_envelope(None) is None
