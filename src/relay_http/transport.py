"""Transport boundary: send a prepared request and report how it settled.

The clients never inspect raw transport exceptions. ``send`` and ``asend``
turn every settlement into a :class:`TransportOutcome` tagged with one of the
:class:`OutcomeKind` values, and classification works from the tag alone.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

import httpx


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    CONNECTION_FAILURE = "connection_failure"
    FAILURE = "failure"


@dataclass(frozen=True)
class TransportOutcome:
    kind: OutcomeKind
    response: httpx.Response | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, response: httpx.Response) -> "TransportOutcome":
        return cls(OutcomeKind.SUCCESS, response=response)

    @classmethod
    def timeout(cls, error: Exception | None = None) -> "TransportOutcome":
        return cls(OutcomeKind.TIMEOUT, error=error)

    @classmethod
    def connection_failure(cls, error: Exception) -> "TransportOutcome":
        return cls(OutcomeKind.CONNECTION_FAILURE, error=error)

    @classmethod
    def failure(cls, error: Exception) -> "TransportOutcome":
        return cls(OutcomeKind.FAILURE, error=error)


def send(client: httpx.Client, request: httpx.Request, timeout: float) -> TransportOutcome:
    """Send and read the body, giving up once ``timeout`` seconds have passed.

    httpx applies its timeout to each socket operation, so a body that trickles
    in could outlive it. The body is streamed and the overall deadline checked
    after every chunk.
    """
    deadline = time.monotonic() + timeout
    try:
        response = client.send(request, stream=True)
    except httpx.TimeoutException as exc:
        return TransportOutcome.timeout(exc)
    except httpx.NetworkError as exc:
        return TransportOutcome.connection_failure(exc)
    except Exception as exc:
        return TransportOutcome.failure(exc)

    try:
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            if time.monotonic() > deadline:
                return TransportOutcome.timeout()
            chunks.append(chunk)
        if time.monotonic() > deadline:
            return TransportOutcome.timeout()
    except httpx.TimeoutException as exc:
        return TransportOutcome.timeout(exc)
    except httpx.NetworkError as exc:
        return TransportOutcome.connection_failure(exc)
    except Exception as exc:
        return TransportOutcome.failure(exc)
    finally:
        response.close()

    # iter_bytes already decoded any content-encoding
    headers = [
        (key, value)
        for key, value in response.headers.multi_items()
        if key.lower() not in {"content-encoding", "content-length", "transfer-encoding"}
    ]
    return TransportOutcome.success(
        httpx.Response(
            response.status_code,
            headers=headers,
            content=b"".join(chunks),
            request=request,
            extensions=response.extensions,
        )
    )


async def asend(client: httpx.AsyncClient, request: httpx.Request, timeout: float) -> TransportOutcome:
    """Race the send against a ``timeout`` second deadline.

    ``wait_for`` cancels the pending send when the deadline fires and drops the
    deadline when the send settles first, so the loser never touches the result.
    """
    try:
        response = await asyncio.wait_for(client.send(request), timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        return TransportOutcome.timeout(exc)
    except httpx.NetworkError as exc:
        return TransportOutcome.connection_failure(exc)
    except Exception as exc:
        return TransportOutcome.failure(exc)
    return TransportOutcome.success(response)
