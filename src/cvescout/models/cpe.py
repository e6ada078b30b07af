"""CPE 2.3 identifier helpers.

Formatting turns free-text inventory names into the lower-case, underscore
separated tokens CVE-Search expects. Parsing decodes the colon-delimited
strings CVE-Search returns under ``vulnerable_configuration``.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

CPE_MIN_SEGMENTS = 8


class CpePart(StrEnum):
    """CPE part codes."""

    APPLICATION = "a"
    OPERATING_SYSTEM = "o"
    HARDWARE = "h"


class CpeParseError(ValueError):
    """Raised when a CPE string does not have enough segments."""

    def __init__(self, value: str, segments: int):
        super().__init__(
            f"Malformed CPE string {value!r}: expected at least "
            f"{CPE_MIN_SEGMENTS} segments, got {segments}"
        )
        self.value = value
        self.segments = segments


def format_vendor_name(name: str) -> str:
    """Format a vendor name the way CVE-Search registers it.

    Only lower-cases and replaces spaces with underscores; punctuation is
    kept (``"ASP.NET Core"`` becomes ``"asp.net_core"``).
    """
    return name.replace(" ", "_").lower()


def format_product_name(name: str) -> str:
    """Format a product name the way CVE-Search registers it."""
    return name.replace(" ", "_").lower()


def form_cpe23_string(
    part: str,
    vendor: str,
    product: str,
    version: str = "*",
    update: str = "*",
    edition: str = "*",
    language: str = "*",
) -> str:
    """Form a CPE 2.3 coded string usable with the CVE-Search API.

    Vendor and product are embedded as given; run them through
    :func:`format_vendor_name` / :func:`format_product_name` first.

    Args:
        part: ``a`` (application), ``o`` (operating system) or ``h`` (hardware).
            Not validated.
        vendor: Registered vendor name.
        product: Registered product name.
        version: Product version.
        update: Update level.
        edition: Edition.
        language: Language.

    Returns:
        The CPE string, e.g. ``cpe:2.3:a:glpi-project:glpi:9.4.0:*:*:*``.
    """
    return f"cpe:2.3:{part}:{vendor}:{product}:{version}:{update}:{edition}:{language}"


class VulnerableConfig(BaseModel):
    """A product configuration affected by a CVE."""

    cpe_name: str = Field(..., description="CPE scheme name, normally 'cpe'")
    cpe_version: str = Field(..., description="CPE specification version")
    part: str = Field(default="", description="CPE part code")
    vendor: str
    product: str
    version: str
    stability: str = Field(default="*", description="Update segment")
    platform: str = Field(default="*", description="Edition segment")

    @classmethod
    def from_cpe(cls, value: str) -> "VulnerableConfig":
        """Create VulnerableConfig from a colon-delimited CPE string."""
        return parse_cpe(value)


def parse_cpe(value: str) -> VulnerableConfig:
    """Decode a CPE 2.3 string into its leading segments.

    Segments past the eighth are ignored.

    Raises:
        CpeParseError: If the string has fewer than eight segments.
    """
    segments = value.split(":")
    if len(segments) < CPE_MIN_SEGMENTS:
        raise CpeParseError(value, len(segments))

    cpe_name, cpe_version, part, vendor, product, version, stability, platform = segments[
        :CPE_MIN_SEGMENTS
    ]
    return VulnerableConfig(
        cpe_name=cpe_name,
        cpe_version=cpe_version,
        part=part,
        vendor=vendor,
        product=product,
        version=version,
        stability=stability,
        platform=platform,
    )
