"""CVE-Search API service.

Thin async client over the CVE-Search REST API. Every operation issues a
single GET against ``{base_url}/api/...`` and returns the decoded JSON, or an
empty result when the service is not configured, unreachable or silent.

API Documentation: https://cve-search.github.io/cve-search/api/api.html
"""

from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from cvescout.config import CveSearchSettings, Settings
from cvescout.models.cpe import format_product_name, format_vendor_name
from cvescout.utils.http_client import (
    ApiResult,
    ResultStatus,
    build_api_url,
    create_http_client,
    handle_response,
)

# Filters accepted by the /query endpoint, sent as request headers.
QUERY_CRITERIA = frozenset(
    {
        "rejected",
        "cvss_score",
        "cvss_modifier",
        "time_start",
        "time_end",
        "time_modifier",
        "time_type",
        "skip",
        "limit",
    }
)


class CveSearchService:
    """Service for interacting with a CVE-Search instance."""

    def __init__(
        self,
        settings: Settings | CveSearchSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize CVE-Search service.

        Args:
            settings: Application settings, or the CVE-Search section alone.
            transport: Optional httpx transport, used instead of the network.
        """
        self.config = settings.cve_search if isinstance(settings, Settings) else settings
        self.transport = transport
        self.headers: dict[str, str] = {"Accept": "application/json"}

    @property
    def is_configured(self) -> bool:
        """Check if a CVE-Search URL is configured."""
        return self.config.is_configured

    async def get(self, endpoint: str, headers: Mapping[str, str] | None = None) -> ApiResult:
        """Fetch a JSON response from a CVE-Search GET endpoint.

        Args:
            endpoint: Endpoint path including parameters, e.g. ``/cvefor/{cpe}``.
            headers: Extra request headers. Only the query endpoint uses them.

        Returns:
            ApiResult with the decoded body, or the reason there is none.

        Raises:
            CveSearchAPIError: If the API answers with HTTP 500.
        """
        if not self.config.base_url:
            return ApiResult(status=ResultStatus.NOT_CONFIGURED)

        url = build_api_url(self.config.base_url, endpoint)
        request_headers = {**self.headers, **(headers or {})}

        kwargs: dict[str, Any] = {}
        if self.transport is not None:
            kwargs["transport"] = self.transport

        async with create_http_client(
            timeout=self.config.timeout,
            verify=not self.config.skip_tls_verify,
            **kwargs,
        ) as client:
            logger.debug(f"GET {url}")
            try:
                response = await client.get(url, headers=request_headers)
            except httpx.TransportError as e:
                logger.warning(f"CVE-Search request to {url} failed: {e!r}")
                return ApiResult(status=ResultStatus.UNAVAILABLE)

        return handle_response(response)

    async def get_cve_for_cpe(self, cpe: str, limit: int | None = 50) -> list[Any]:
        """Retrieve the CVEs related to a CPE code.

        Args:
            cpe: CPE 2.3 string, see :func:`cvescout.models.cpe.form_cpe23_string`.
            limit: Maximum number of CVEs. When set, CVE-Search sorts the
                results by CVSS score. Falsy values request everything.

        Returns:
            Raw CVE entries.
        """
        endpoint = f"/cvefor/{cpe}"
        if limit:
            endpoint += f"?limit={limit}"
        return (await self.get(endpoint)).unwrap_or([])

    async def get_cve(self, cve_id: str) -> dict[str, Any]:
        """Retrieve information about a single CVE."""
        return (await self.get(f"/cve/{cve_id}")).unwrap_or({})

    async def get_cwe(self, cwe_id: str | None = None) -> Any:
        """Retrieve all CWEs, or a single CWE when an ID is given."""
        if cwe_id:
            return (await self.get(f"/cwe/{cwe_id}")).unwrap_or({})
        return (await self.get("/cwe")).unwrap_or([])

    async def get_capec_for_cwe(self, cwe_id: str) -> list[Any]:
        """Retrieve the CAPEC attack patterns related to a CWE."""
        return (await self.get(f"/capec/{cwe_id}")).unwrap_or([])

    async def get_capec(self, capec_id: str) -> dict[str, Any]:
        """Retrieve a CAPEC attack pattern by ID."""
        return (await self.get(f"/capec/show/{capec_id}")).unwrap_or({})

    async def get_recent_cve(self, limit: int = 50) -> list[Any]:
        """Retrieve the most recent CVEs."""
        return (await self.get(f"/last?limit={limit}")).unwrap_or([])

    async def query(self, filters: Mapping[str, Any]) -> list[Any]:
        """Retrieve CVEs matching filter criteria.

        Recognized filters:
            rejected: Show or hide rejected CVEs (``show``, ``hide``).
            cvss_score: CVSS score.
            cvss_modifier: Score match modifier (``above``, ``equals``, ``below``).
            time_start: Earliest time (dd-mm-yyyy or dd-mm-yy, using - or /).
            time_end: Latest time, same format.
            time_modifier: ``from``, ``until``, ``between`` or ``outside``.
            time_type: Case-sensitive time property (``Modified``,
                ``Published``, ``last-modified``).
            skip: Skip the latest n CVEs.
            limit: Maximum number of CVEs.

        Other keys are ignored.

        Args:
            filters: Filter name to value mapping.

        Returns:
            Raw CVE entries.
        """
        headers: dict[str, str] = {}
        for key, value in filters.items():
            if key not in QUERY_CRITERIA:
                logger.debug(f"Ignoring unknown query filter {key!r}")
                continue
            headers[key] = str(value)

        result = (await self.get("/query", headers)).unwrap_or([])
        # Recent CVE-Search versions wrap query results in an envelope
        if isinstance(result, dict) and "results" in result:
            return result["results"] or []
        return result

    async def get_vendors(self) -> list[str]:
        """Retrieve the list of known vendors."""
        result = (await self.get("/browse")).unwrap_or([])
        if isinstance(result, dict) and "vendor" in result:
            return result["vendor"]
        return result

    async def get_products_by_vendor(self, vendor: str) -> list[str]:
        """Retrieve the products known for a vendor."""
        vendor = format_vendor_name(vendor)
        result = (await self.get(f"/browse/{vendor}")).unwrap_or([])
        if isinstance(result, dict) and "product" in result:
            return result["product"]
        return result

    async def get_cve_by_vendor_and_product(self, vendor: str, product: str) -> Any:
        """Retrieve the CVEs of a vendor's product.

        CVE-Search answers with an object holding the entries under
        ``results``; the body is returned as is.
        """
        vendor = format_vendor_name(vendor)
        product = format_product_name(product)
        return (await self.get(f"/search/{vendor}/{product}")).unwrap_or([])

    async def get_cve_by_link(self, key: str, value: str) -> Any:
        """Retrieve the CVEs linked to a key/value pair, e.g. a CWE or a reference."""
        return (await self.get(f"/link/{key}/{value}")).unwrap_or([])
