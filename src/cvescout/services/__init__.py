"""Services for cvescout CVE lookups."""

from cvescout.services.cve_search_service import CveSearchService
from cvescout.services.inventory_service import InventoryService

__all__ = [
    "CveSearchService",
    "InventoryService",
]
