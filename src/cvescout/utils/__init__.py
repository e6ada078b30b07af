"""Utility functions and helpers for cvescout."""

from cvescout.utils.http_client import (
    ApiResult,
    CveSearchAPIError,
    HTTPClientError,
    ResultStatus,
    build_api_url,
    create_http_client,
    handle_response,
)

__all__ = [
    "ApiResult",
    "CveSearchAPIError",
    "HTTPClientError",
    "ResultStatus",
    "build_api_url",
    "create_http_client",
    "handle_response",
]
