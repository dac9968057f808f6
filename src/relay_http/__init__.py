"""Minimal HTTP client with configurable base URL, timeout and interceptor chains."""

from loguru import logger

from .client import AsyncHttpClient, HttpClient
from .exceptions import (
    HTTPStatusError,
    NetworkError,
    RequestError,
    RequestTimeoutError,
    UnexpectedRequestError,
)
from .interceptors import InterceptorManager, ResponseInterceptor, unwrap_response_envelope
from .models import GenericResponseResult, RequestMethod, ResponseCodes
from .request_options import RequestOptions, RevalidationOptions

__version__ = "0.1.0"

# Library logging stays silent until the application calls logger.enable("relay_http").
logger.disable("relay_http")

__all__ = [
    "AsyncHttpClient",
    "GenericResponseResult",
    "HTTPStatusError",
    "HttpClient",
    "InterceptorManager",
    "NetworkError",
    "RequestError",
    "RequestMethod",
    "RequestOptions",
    "RequestTimeoutError",
    "ResponseCodes",
    "ResponseInterceptor",
    "RevalidationOptions",
    "UnexpectedRequestError",
    "unwrap_response_envelope",
]
