"""CVE data models for CVE-Search API payloads."""

import html
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, field_validator

from cvescout.models.cpe import CpeParseError, VulnerableConfig, parse_cpe


class InventoryItem(BaseModel):
    """An installed software record supplied by the inventory."""

    vendor: str | None = Field(default=None, description="Manufacturer name as recorded")
    product: str = Field(..., description="Software name as recorded")
    version: str | None = Field(default=None, description="Installed version")


class RecentCve(BaseModel):
    """Entry of the latest CVEs feed."""

    id: str
    summary: str = ""
    published_date: str | None = None

    @classmethod
    def from_cve_search(cls, data: dict[str, Any]) -> "RecentCve":
        """Create RecentCve from a /last response entry."""
        return cls(
            id=str(data.get("id", "")),
            summary=data.get("summary") or "",
            published_date=data.get("Published"),
        )


class CveRecord(BaseModel):
    """Normalized CVE record ready for display."""

    id: str = Field(default="", description="CVE identifier")
    date_published: str | None = Field(default=None, description="Publication date as returned")
    date_modified: str | None = Field(default=None, description="Last modification date")
    vendor: str | None = None
    product: str | None = None
    summary: str = Field(default="", description="HTML-escaped summary")
    cvss: float = Field(default=0.0, description="CVSS base score")
    cvss_time: str | None = None
    cvss_vector: str | None = None
    cwe: str | None = None
    access: Any = None
    assigner: str | None = None
    impact: Any = None
    references: list[str] = Field(default_factory=list)
    vulnerable_configs: list[VulnerableConfig] = Field(default_factory=list)

    @field_validator("cvss", mode="before")
    @classmethod
    def coerce_cvss(cls, v: Any) -> float:
        """Coerce missing or non-numeric scores to 0.0."""
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator(
        "date_published",
        "date_modified",
        "cvss_time",
        "cvss_vector",
        "cwe",
        "assigner",
        mode="before",
    )
    @classmethod
    def stringify(cls, v: Any) -> str | None:
        """Keep text fields as text whatever JSON type they arrive as."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("references", mode="before")
    @classmethod
    def default_references(cls, v: Any) -> list[Any]:
        """Accept a missing reference list."""
        return [str(ref) for ref in v or []]

    @property
    def published_timestamp(self) -> float:
        """Publication date as a POSIX timestamp, 0.0 when unparsable."""
        return parse_timestamp(self.date_published)

    @property
    def severity_color(self) -> str:
        """Background colour for this record's CVSS score."""
        return cvss_background_color(self.cvss)

    @staticmethod
    def _extract_configs(entry: dict[str, Any], strict: bool) -> list[VulnerableConfig]:
        """Decode the vulnerable_configuration list of a raw entry."""
        configs: list[VulnerableConfig] = []
        for item in entry.get("vulnerable_configuration") or []:
            cpe = item.get("id") if isinstance(item, dict) else item
            try:
                if not isinstance(cpe, str):
                    raise CpeParseError(repr(cpe), 0)
                configs.append(parse_cpe(cpe))
            except CpeParseError as e:
                if strict:
                    raise
                logger.warning(f"Skipping vulnerable configuration of {entry.get('id')}: {e}")
        return configs

    @classmethod
    def from_cve_search(
        cls,
        entry: dict[str, Any],
        vendor: str | None = None,
        product: str | None = None,
        strict: bool = False,
    ) -> "CveRecord":
        """Create CveRecord from a CVE-Search entry.

        Args:
            entry: Single CVE object from a CVE-Search response.
            vendor: Vendor to report; taken from the first vulnerable
                configuration when None.
            product: Product to report; same fallback as vendor.
            strict: Raise on malformed vulnerable configurations.

        Returns:
            CveRecord populated from the entry.

        Raises:
            CpeParseError: In strict mode, for a malformed configuration.
        """
        configs = cls._extract_configs(entry, strict)
        if configs:
            if vendor is None:
                vendor = configs[0].vendor
            if product is None:
                product = configs[0].product

        return cls(
            id=str(entry.get("id") or ""),
            date_published=entry.get("Published"),
            date_modified=entry.get("Modified", entry.get("last-modified")),
            vendor=vendor,
            product=product,
            summary=html.escape(entry.get("summary") or ""),
            cvss=entry.get("cvss"),
            cvss_time=entry.get("cvss-time"),
            cvss_vector=entry.get("cvss-vector"),
            cwe=entry.get("cwe"),
            access=entry.get("access"),
            assigner=entry.get("assigner"),
            impact=entry.get("impact"),
            references=entry.get("references"),
            vulnerable_configs=configs,
        )


def format_cve_results(
    results: Iterable[Any],
    vendor: str | None = None,
    product: str | None = None,
    *,
    strict: bool = False,
    abort_on_malformed: bool = True,
) -> list[CveRecord]:
    """Normalize a batch of CVE-Search entries.

    A batch containing anything other than JSON objects is rejected as a
    whole and yields an empty list, unless ``abort_on_malformed`` is False,
    in which case only the offending entries are dropped.

    Args:
        results: Raw entries from a CVE-Search response.
        vendor: Vendor reported for every record, if known.
        product: Product reported for every record, if known.
        strict: Raise on malformed vulnerable configuration strings.
        abort_on_malformed: Discard the batch on a non-object entry.

    Returns:
        Normalized records in input order.
    """
    formatted: list[CveRecord] = []
    for entry in results:
        if not isinstance(entry, dict):
            if abort_on_malformed:
                logger.warning(f"Discarding CVE batch: unexpected {type(entry).__name__} entry")
                return []
            logger.warning(f"Skipping unexpected {type(entry).__name__} entry in CVE batch")
            continue
        formatted.append(CveRecord.from_cve_search(entry, vendor, product, strict=strict))
    return formatted


def parse_timestamp(value: str | None) -> float:
    """Parse an ISO 8601 date into a POSIX timestamp.

    Naive values are read as UTC. Missing or unparsable values give 0.0.
    """
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def sort_by_published(records: Iterable[CveRecord]) -> list[CveRecord]:
    """Order records newest first.

    Stable ascending sort on the publication timestamp, then reversed, so
    records sharing a timestamp come out in reverse input order and
    undated records end up last.
    """
    ordered = sorted(records, key=lambda record: record.published_timestamp)
    ordered.reverse()
    return ordered


def cvss_background_color(cvss_score: float) -> str:
    """Map a CVSS score to the background colour used for display."""
    if cvss_score == 0:
        return "transparent"
    if 0 < cvss_score < 4:
        return "lightblue"
    if 4 <= cvss_score < 7:
        return "yellow"
    if 7 <= cvss_score < 9:
        return "orange"
    return "red"
