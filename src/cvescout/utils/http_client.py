"""HTTP client utilities for cvescout services."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CveSearchAPIError(HTTPClientError):
    """The CVE-Search API answered with an internal server error."""


class ResultStatus(StrEnum):
    """Outcome of a CVE-Search request."""

    OK = "ok"
    NOT_CONFIGURED = "not_configured"
    UNAVAILABLE = "unavailable"
    EMPTY = "empty"


class ApiResult(BaseModel):
    """Decoded API response, or the reason there is none."""

    status: ResultStatus
    data: Any = None
    status_code: int | None = None

    @property
    def has_data(self) -> bool:
        """Check if the request produced a decoded body."""
        return self.status is ResultStatus.OK

    def unwrap_or(self, default: Any) -> Any:
        """Return the decoded body, or ``default`` when there is none."""
        if self.has_data and self.data is not None:
            return self.data
        return default


@asynccontextmanager
async def create_http_client(
    timeout: int = 30,
    verify: bool = True,
    **kwargs: Any,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an async HTTP client with sensible defaults.

    Args:
        timeout: Request timeout in seconds.
        verify: Verify TLS certificates and hostnames.
        **kwargs: Additional arguments passed to httpx.AsyncClient.

    Yields:
        Configured httpx.AsyncClient instance.
    """
    # Remove timeout from kwargs if accidentally passed there too
    kwargs.pop("timeout", None)

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        verify=verify,
        follow_redirects=True,
        **kwargs,
    ) as client:
        yield client


def build_api_url(base_url: str, endpoint: str) -> str:
    """Join a CVE-Search base URL and an API endpoint.

    One trailing slash is removed from the base URL and one leading slash
    from the endpoint.
    """
    if base_url.endswith("/"):
        base_url = base_url[:-1]
    if endpoint.startswith("/"):
        endpoint = endpoint[1:]
    return f"{base_url}/api/{endpoint}"


def handle_response(response: httpx.Response) -> ApiResult:
    """Handle HTTP response and raise on server faults.

    Args:
        response: httpx Response object.

    Returns:
        ApiResult holding the parsed JSON body.

    Raises:
        CveSearchAPIError: For a 500 response with a body.
    """
    if not response.content:
        return ApiResult(status=ResultStatus.EMPTY, status_code=response.status_code)

    if response.status_code == 500:
        logger.error(f"CVE-Search server error: {response.text[:200]}")
        raise CveSearchAPIError("Unknown CVE-Search API Error", response.status_code)

    if response.status_code != 200:
        logger.debug(f"Decoding HTTP {response.status_code} response from {response.url}")

    try:
        data = response.json()
    except ValueError as e:
        logger.warning(f"Undecodable response from {response.url}: {e}")
        return ApiResult(status=ResultStatus.EMPTY, status_code=response.status_code)

    if not data:
        return ApiResult(status=ResultStatus.EMPTY, status_code=response.status_code)

    return ApiResult(status=ResultStatus.OK, data=data, status_code=response.status_code)
