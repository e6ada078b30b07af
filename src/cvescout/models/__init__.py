"""Data models for cvescout."""

from cvescout.models.cpe import (
    CpeParseError,
    CpePart,
    VulnerableConfig,
    form_cpe23_string,
    format_product_name,
    format_vendor_name,
    parse_cpe,
)
from cvescout.models.cve import (
    CveRecord,
    InventoryItem,
    RecentCve,
    cvss_background_color,
    format_cve_results,
    sort_by_published,
)

__all__ = [
    "CpeParseError",
    "CpePart",
    "CveRecord",
    "InventoryItem",
    "RecentCve",
    "VulnerableConfig",
    "cvss_background_color",
    "form_cpe23_string",
    "format_cve_results",
    "format_product_name",
    "format_vendor_name",
    "parse_cpe",
    "sort_by_published",
]
