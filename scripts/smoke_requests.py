#!/usr/bin/env python3
"""Manual smoke test: drive HttpClient against a live httpbin-compatible server."""

from __future__ import annotations

import os
import sys

from loguru import logger

from relay_http import HttpClient, RequestError, RequestOptions

BASE_URL = os.getenv("API_URL_BASE", "https://httpbin.org")

passed: list[str] = []
failed: list[tuple[str, str]] = []


def ok(name: str, result: object = None) -> None:
    tag = type(result).__name__ if result is not None else "None"
    print(f"  PASS  {name}  -> {tag}")
    passed.append(name)


def fail(name: str, err: Exception) -> None:
    msg = str(err)[:200]
    print(f"  FAIL  {name}  -> {msg}")
    failed.append((name, msg))


def run(name: str, fn, *, expected_status: int | None = None):
    """Run fn(), record pass/fail/expected-error."""
    try:
        result = fn()
    except RequestError as e:
        if expected_status is not None and e.status == expected_status:
            ok(name, e)
        else:
            fail(name, e)
        return None
    if expected_status is not None:
        fail(name, RuntimeError(f"expected status {expected_status}, got a result"))
        return None
    ok(name, result)
    return result


def main() -> None:
    logger.enable("relay_http")
    client = HttpClient(BASE_URL, timeout=15000)
    client.add_request_interceptor(lambda endpoint, config: config.with_headers({"X-Smoke": "1"}))

    print(f"\n=== {BASE_URL} ===")
    run("get with params", lambda: client.get("/get", params={"q": "smoke", "tags": ["a", "b"]}))
    run("post json", lambda: client.post("/post", data={"hello": "world"}))
    run("post form", lambda: client.post("/post", data={"a": "1"}, request_type="form"))
    run("put", lambda: client.put("/put", data={"n": 1}))
    run("patch", lambda: client.patch("/patch", data={"n": 2}))
    run("delete", lambda: client.delete("/delete"))
    run("status 404", lambda: client.get("/status/404"), expected_status=404)
    run("timeout", lambda: client.request("/delay/3", RequestOptions(timeout=500)), expected_status=408)

    unreachable = HttpClient("http://127.0.0.1:9", timeout=2000)
    run("unreachable host", lambda: unreachable.get("/"), expected_status=0)

    client.close()
    unreachable.close()

    print(f"\n{len(passed)} passed, {len(failed)} failed")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
