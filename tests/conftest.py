"""Pytest configuration and fixtures for cvescout tests."""

from collections.abc import Callable

import httpx
import pytest

from cvescout.config import CveSearchSettings, Settings
from cvescout.services.cve_search_service import CveSearchService


@pytest.fixture
def sample_cve_search_entry():
    """Sample CVE-Search /cvefor response entry."""
    return {
        "id": "CVE-2020-11060",
        "Published": "2020-05-12T17:15:00",
        "Modified": "2020-05-18T16:41:00",
        "assigner": "cve@mitre.org",
        "cvss": 8.5,
        "cvss-time": "2020-05-18T16:41:00",
        "cvss-vector": "AV:N/AC:M/Au:S/C:C/I:C/A:C",
        "cwe": "CWE-94",
        "access": {"authentication": "SINGLE", "complexity": "MEDIUM", "vector": "NETWORK"},
        "impact": {
            "availability": "COMPLETE",
            "confidentiality": "COMPLETE",
            "integrity": "COMPLETE",
        },
        "summary": "In GLPI before 9.4.6, an attacker can execute <script> via a 'crafted' backup.",
        "references": [
            "https://github.com/glpi-project/glpi/security/advisories/GHSA-cvvq-3fww-5v6f",
        ],
        "vulnerable_configuration": [
            "cpe:2.3:a:glpi-project:glpi:9.4.5:*:*:*:*:*:*:*",
            {"id": "cpe:2.3:a:glpi-project:glpi:9.4.4:*:*:*:*:*:*:*", "title": "GLPI 9.4.4"},
        ],
    }


@pytest.fixture
def sample_recent_response():
    """Sample CVE-Search /last response."""
    return [
        {
            "id": "CVE-2024-0002",
            "Published": "2024-01-02T10:00:00",
            "summary": "Second vulnerability.",
        },
        {
            "id": "CVE-2024-0001",
            "Published": "2024-01-01T10:00:00",
            "summary": "First vulnerability.",
        },
    ]


@pytest.fixture
def cve_search_settings():
    """CVE-Search settings pointing at a fake instance."""
    return CveSearchSettings(base_url="https://cve.example.com/")


@pytest.fixture
def mock_settings(cve_search_settings):
    """Create mock settings for testing."""
    return Settings(log_level="DEBUG", cve_search=cve_search_settings)


@pytest.fixture
def unconfigured_settings():
    """Settings without a CVE-Search URL."""
    return Settings(cve_search=CveSearchSettings(base_url=None))


@pytest.fixture
def recorded_requests():
    """Requests seen by the mock transport."""
    return []


@pytest.fixture
def make_service(mock_settings, recorded_requests) -> Callable[..., CveSearchService]:
    """Build a CveSearchService answering through a request handler."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        settings: Settings | None = None,
    ) -> CveSearchService:
        def _record(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return CveSearchService(settings or mock_settings, transport=httpx.MockTransport(_record))

    return _make
