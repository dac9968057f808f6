"""Response codes and envelope models shared with the backend."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

RequestMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

REQUEST_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


class ResponseCodes(IntEnum):
    """Business codes carried in the ``code`` field of a response envelope."""

    SUCCESS = 0
    GENERAL_ERROR = -1
    VALIDATION_ERROR = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class RelayModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GenericResponseResult(RelayModel):
    """Generic ``{code, message, data}`` envelope returned by many backends."""

    code: int
    message: str = ""
    data: Any = None

    @property
    def is_success(self) -> bool:
        return self.code == ResponseCodes.SUCCESS
