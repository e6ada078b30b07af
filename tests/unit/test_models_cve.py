"""Tests for CVE record normalization."""

import pytest

from cvescout.models.cpe import CpeParseError
from cvescout.models.cve import (
    CveRecord,
    RecentCve,
    cvss_background_color,
    format_cve_results,
    parse_timestamp,
    sort_by_published,
)


class TestCveRecord:
    """Tests for CveRecord model."""

    def test_from_cve_search(self, sample_cve_search_entry):
        """Test creating a record from a CVE-Search entry."""
        record = CveRecord.from_cve_search(sample_cve_search_entry, "GLPI-Project", "GLPI")

        assert record.id == "CVE-2020-11060"
        assert record.date_published == "2020-05-12T17:15:00"
        assert record.date_modified == "2020-05-18T16:41:00"
        assert record.vendor == "GLPI-Project"
        assert record.product == "GLPI"
        assert record.cvss == 8.5
        assert record.cvss_vector == "AV:N/AC:M/Au:S/C:C/I:C/A:C"
        assert record.cvss_time == "2020-05-18T16:41:00"
        assert record.cwe == "CWE-94"
        assert record.access["vector"] == "NETWORK"
        assert record.assigner == "cve@mitre.org"
        assert len(record.references) == 1

    def test_summary_is_html_escaped(self, sample_cve_search_entry):
        """Test the summary is safe to embed in HTML."""
        record = CveRecord.from_cve_search(sample_cve_search_entry)

        assert "<script>" not in record.summary
        assert "&lt;script&gt;" in record.summary
        assert "&#x27;crafted&#x27;" in record.summary

    def test_decodes_string_and_object_configurations(self, sample_cve_search_entry):
        """Test both vulnerable configuration shapes are decoded."""
        record = CveRecord.from_cve_search(sample_cve_search_entry)

        assert [c.version for c in record.vulnerable_configs] == ["9.4.5", "9.4.4"]
        assert all(c.vendor == "glpi-project" for c in record.vulnerable_configs)

    def test_vendor_product_fallback_from_configuration(self):
        """Test vendor and product come from the first configuration when unset."""
        record = CveRecord.from_cve_search(
            {
                "id": "CVE-2021-0001",
                "vulnerable_configuration": [
                    "cpe:2.3:a:acme:widget:1.0:*:*:*",
                    "cpe:2.3:a:other:gadget:2.0:*:*:*",
                ],
            }
        )

        assert record.vendor == "acme"
        assert record.product == "widget"

    def test_given_vendor_wins_over_configuration(self):
        """Test an explicit vendor is kept while product falls back."""
        record = CveRecord.from_cve_search(
            {"id": "CVE-2021-0001", "vulnerable_configuration": ["cpe:2.3:a:acme:widget:1.0:*:*:*"]},
            vendor="ACME Corp",
        )

        assert record.vendor == "ACME Corp"
        assert record.product == "widget"

    def test_missing_fields(self):
        """Test a sparse entry normalizes with defaults."""
        record = CveRecord.from_cve_search({"id": "CVE-2021-0002"})

        assert record.cvss == 0.0
        assert record.summary == ""
        assert record.references == []
        assert record.vulnerable_configs == []
        assert record.vendor is None

    def test_non_numeric_cvss(self):
        """Test an unparsable score becomes 0.0."""
        record = CveRecord.from_cve_search({"id": "CVE-2021-0003", "cvss": "n/a"})
        assert record.cvss == 0.0

    def test_malformed_configuration_is_skipped(self):
        """Test a bad configuration string is dropped in lenient mode."""
        record = CveRecord.from_cve_search(
            {
                "id": "CVE-2021-0004",
                "vulnerable_configuration": ["cpe:2.3:a:broken", "cpe:2.3:a:acme:widget:1.0:*:*:*"],
            }
        )

        assert len(record.vulnerable_configs) == 1
        assert record.vendor == "acme"

    def test_malformed_configuration_raises_when_strict(self):
        """Test a bad configuration string raises in strict mode."""
        with pytest.raises(CpeParseError):
            CveRecord.from_cve_search(
                {"id": "CVE-2021-0004", "vulnerable_configuration": ["cpe:2.3:a:broken"]},
                strict=True,
            )

    def test_severity_color(self, sample_cve_search_entry):
        """Test the record exposes its severity colour."""
        record = CveRecord.from_cve_search(sample_cve_search_entry)
        assert record.severity_color == "orange"


class TestFormatCveResults:
    """Tests for batch normalization."""

    def test_preserves_input_order(self, sample_cve_search_entry):
        """Test records come out in input order."""
        second = {**sample_cve_search_entry, "id": "CVE-2020-99999"}
        records = format_cve_results([sample_cve_search_entry, second], "GLPI-Project", "GLPI")

        assert [r.id for r in records] == ["CVE-2020-11060", "CVE-2020-99999"]

    def test_non_object_entry_discards_batch(self, sample_cve_search_entry):
        """Test one malformed entry voids the whole batch."""
        batch = [sample_cve_search_entry, "CVE-2020-99999", sample_cve_search_entry]
        assert format_cve_results(batch) == []

    def test_non_object_entry_skipped_when_not_aborting(self, sample_cve_search_entry):
        """Test lenient mode drops only the malformed entry."""
        batch = [sample_cve_search_entry, ["unexpected"], sample_cve_search_entry]
        records = format_cve_results(batch, abort_on_malformed=False)

        assert len(records) == 2

    def test_empty_batch(self):
        """Test an empty batch yields no records."""
        assert format_cve_results([]) == []


class TestSortByPublished:
    """Tests for newest-first ordering."""

    def test_descending(self):
        """Test the newest record comes first."""
        records = format_cve_results(
            [
                {"id": "CVE-2020-0001", "Published": "2020-01-01"},
                {"id": "CVE-2021-0001", "Published": "2021-01-01"},
            ]
        )

        assert [r.id for r in sort_by_published(records)] == ["CVE-2021-0001", "CVE-2020-0001"]

    def test_ties_come_out_in_reverse_input_order(self):
        """Test equal timestamps are reversed relative to the input."""
        records = format_cve_results(
            [
                {"id": "CVE-A", "Published": "2020-01-01T00:00:00"},
                {"id": "CVE-B", "Published": "2020-01-01T00:00:00"},
                {"id": "CVE-C", "Published": "2019-01-01T00:00:00"},
            ]
        )

        assert [r.id for r in sort_by_published(records)] == ["CVE-B", "CVE-A", "CVE-C"]

    def test_unparsable_dates_sort_last(self):
        """Test undated records end up at the bottom."""
        records = format_cve_results(
            [
                {"id": "CVE-BAD", "Published": "not a date"},
                {"id": "CVE-NONE"},
                {"id": "CVE-OK", "Published": "2015-06-01T12:00:00"},
            ]
        )

        assert [r.id for r in sort_by_published(records)] == ["CVE-OK", "CVE-NONE", "CVE-BAD"]

    def test_parse_timestamp(self):
        """Test naive dates are read as UTC."""
        assert parse_timestamp("1970-01-02T00:00:00") == 86400.0
        assert parse_timestamp("1970-01-02T00:00:00Z") == 86400.0
        assert parse_timestamp(None) == 0.0
        assert parse_timestamp("yesterday") == 0.0


class TestCvssBackgroundColor:
    """Tests for the CVSS severity colour mapping."""

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0, "transparent"),
            (0.0, "transparent"),
            (0.1, "lightblue"),
            (3.9, "lightblue"),
            (4.0, "yellow"),
            (6.99, "yellow"),
            (7.0, "orange"),
            (8.99, "orange"),
            (9.0, "red"),
            (10.0, "red"),
            (-1, "red"),
        ],
    )
    def test_boundaries(self, score, expected):
        """Test each severity band boundary."""
        assert cvss_background_color(score) == expected


class TestRecentCve:
    """Tests for RecentCve model."""

    def test_from_cve_search(self, sample_recent_response):
        """Test creating a feed item from a /last entry."""
        item = RecentCve.from_cve_search(sample_recent_response[0])

        assert item.id == "CVE-2024-0002"
        assert item.summary == "Second vulnerability."
        assert item.published_date == "2024-01-02T10:00:00"
