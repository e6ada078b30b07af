"""Inventory CVE lookups.

Matches installed software against CVE-Search and returns normalized,
newest-first CveRecord lists ready for display.
"""

import asyncio
from collections.abc import Iterable
from typing import Any

from loguru import logger

from cvescout.config import Settings
from cvescout.models.cpe import (
    CpePart,
    form_cpe23_string,
    format_product_name,
    format_vendor_name,
)
from cvescout.models.cve import (
    CveRecord,
    InventoryItem,
    RecentCve,
    format_cve_results,
    sort_by_published,
)
from cvescout.services.cve_search_service import CveSearchService


class InventoryService:
    """Service for looking up the CVEs affecting inventory software."""

    def __init__(self, settings: Settings, client: CveSearchService | None = None):
        """Initialize inventory service.

        Args:
            settings: Application settings.
            client: CVE-Search client; built from settings when omitted.
        """
        self.settings = settings
        self.config = settings.cve_search
        self.client = client or CveSearchService(settings)

    def _normalize(
        self,
        entries: Iterable[Any],
        vendor: str | None,
        product: str | None,
    ) -> list[CveRecord]:
        return format_cve_results(
            entries,
            vendor,
            product,
            strict=self.config.strict_cpe_parsing,
            abort_on_malformed=self.config.abort_on_malformed_batch,
        )

    async def cves_for_software(self, vendor: str | None, product: str) -> list[CveRecord]:
        """Get the CVEs affecting any version of a product.

        Args:
            vendor: Manufacturer name as recorded in the inventory.
            product: Software name as recorded in the inventory.

        Returns:
            Records sorted newest first; empty when the vendor is unknown.
        """
        return await self.cves_for_version(vendor, product, "*")

    async def cves_for_version(
        self,
        vendor: str | None,
        product: str,
        version: str | None,
    ) -> list[CveRecord]:
        """Get the CVEs affecting one version of a product.

        Args:
            vendor: Manufacturer name as recorded in the inventory.
            product: Software name as recorded in the inventory.
            version: Installed version; ``None`` matches every version.

        Returns:
            Records sorted newest first; empty when the vendor is unknown.
        """
        if not vendor:
            return []

        cpe = form_cpe23_string(
            CpePart.APPLICATION,
            format_vendor_name(vendor),
            format_product_name(product),
            version or "*",
        )
        entries = await self.client.get_cve_for_cpe(cpe, limit=self.config.default_limit)
        if not entries:
            return []

        records = self._normalize(entries, vendor, product)
        logger.info(f"Found {len(records)} CVEs for {cpe}")
        return sort_by_published(records)

    async def _lookup_item(
        self,
        item: InventoryItem,
        semaphore: asyncio.Semaphore,
    ) -> list[CveRecord]:
        if not item.vendor:
            return []

        async with semaphore:
            response = await self.client.get_cve_by_vendor_and_product(item.vendor, item.product)

        if not isinstance(response, dict):
            return []
        results = response.get("results")
        if not results or not isinstance(results, list):
            return []
        return self._normalize(results, item.vendor, item.product)

    async def cves_for_inventory(self, items: Iterable[InventoryItem]) -> list[CveRecord]:
        """Get the CVEs affecting every product of an inventory.

        Items without a vendor are skipped. Lookups run concurrently, at
        most ``max_concurrency`` at a time.

        Args:
            items: Inventory records.

        Returns:
            Records of all items merged and sorted newest first.

        Raises:
            CveSearchAPIError: If any lookup hits a CVE-Search server error.
        """
        items = list(items)
        if not self.client.is_configured:
            logger.warning("CVE-Search URL is not configured, skipping inventory scan")
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        batches = await asyncio.gather(*(self._lookup_item(item, semaphore) for item in items))

        records = [record for batch in batches for record in batch]
        logger.info(f"Found {len(records)} CVEs across {len(items)} inventory items")
        return sort_by_published(records)

    async def recent_feed(self, limit: int = 10) -> list[RecentCve]:
        """Get the latest published CVEs.

        Args:
            limit: Number of CVEs to return.

        Returns:
            Recent CVE summaries, as ordered by CVE-Search.
        """
        entries = await self.client.get_recent_cve(limit)
        if isinstance(entries, dict):
            entries = entries.get("results") or []
        return [RecentCve.from_cve_search(entry) for entry in entries if isinstance(entry, dict)]
