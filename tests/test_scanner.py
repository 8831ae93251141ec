"""Tests for the end-to-end scanner."""

import json
from unittest.mock import Mock

import pytest

from mediguard.analyzer import ComplianceAnalyzer
from mediguard.config import Config, ScanConfiguration
from mediguard.generative import GenerativeViolationSource
from mediguard.models import ViolationSet
from mediguard.scanner import AdCheckResult, ComplianceScanner, ScanReport


def _scanner(site=None, analyzer=None) -> ComplianceScanner:
    return ComplianceScanner(
        Config(render_js=False),
        analyzer=analyzer or ComplianceAnalyzer(),
        http_client=site.client() if site else None,
    )


@pytest.fixture
def clinic_site(fake_site, page_html):
    return fake_site({
        "/": page_html("Home", "Get 20% off your first visit with our team.", links=["/about"]),
        "/about": page_html("About", "Our award-winning dentists have 20 years of experience."),
    })


class TestScanWebsite:
    """Test cases for ComplianceScanner.scan_website."""

    @pytest.mark.asyncio
    async def test_completed_scan(self, clinic_site, seed_url):
        """Test a successful scan reports pages and violations."""
        scanner = _scanner(clinic_site)

        report = await scanner.scan_website(seed_url, ScanConfiguration(max_pages=5))

        assert report.status == "completed"
        assert report.reason is None
        assert report.pages_scanned == 2
        assert report.transport == "http"
        assert not report.degraded
        assert not report.llm_enabled

        found = {(v.original_text, v.page_url) for v in report.violations}
        assert ("20% off", "https://clinic.example/") in found
        assert ("award-winning", "https://clinic.example/about") in found
        assert report.summary.total == len(report.violations)

    @pytest.mark.asyncio
    async def test_progress_reported(self, clinic_site, seed_url):
        """Test the progress callback sees every fetched URL."""
        seen = []

        await _scanner(clinic_site).scan_website(
            seed_url,
            ScanConfiguration(),
            on_progress=lambda url, completed, total: seen.append(url),
        )

        assert seen == ["https://clinic.example/", "https://clinic.example/about"]

    @pytest.mark.asyncio
    async def test_robots_blocked(self, fake_site, page_html, seed_url):
        """Test a robots.txt block yields a failed report without pages."""
        site = fake_site({"/": page_html("Home")}, robots="User-agent: *\nDisallow: /")

        report = await _scanner(site).scan_website(seed_url, ScanConfiguration())

        assert report.status == "failed"
        assert report.reason == "RobotsDisallowed"
        assert "robots.txt" in report.error
        assert report.pages == []
        assert report.pages_scanned == 0
        assert site.requested == []

    @pytest.mark.asyncio
    async def test_unreachable_site(self, fake_site, seed_url):
        """Test a site where every fetch fails."""
        site = fake_site({}, status_overrides={"/": 503})

        report = await _scanner(site).scan_website(seed_url, ScanConfiguration())

        assert report.status == "failed"
        assert report.reason == "FetchFailed"
        assert "503" in report.error
        assert len(report.pages) == 1
        assert report.pages[0].crawl_error
        assert report.pages_scanned == 0
        assert len(report.violations) == 0

    @pytest.mark.asyncio
    async def test_llm_findings_included(self, clinic_site, seed_url):
        """Test generative findings flow into the report."""
        client = Mock()
        client.complete.return_value = json.dumps([{
            "type": "misleading_claims",
            "rule": "National Law, Section 133(1)(b)",
            "severity": "medium",
            "originalText": "award-winning dentists",
            "issue": "Unsubstantiated award claim",
        }])
        analyzer = ComplianceAnalyzer(GenerativeViolationSource(client))

        report = await _scanner(clinic_site, analyzer).scan_website(
            seed_url, ScanConfiguration()
        )

        texts = [v.original_text for v in report.violations]
        assert report.llm_enabled
        assert "award-winning dentists" in texts
        assert "award-winning" not in texts

    @pytest.mark.asyncio
    async def test_to_dict(self, clinic_site, seed_url):
        """Test the JSON shape of a report."""
        report = await _scanner(clinic_site).scan_website(seed_url, ScanConfiguration())

        data = report.to_dict()

        assert data["status"] == "completed"
        assert data["pagesScanned"] == 2
        assert data["summary"]["totalViolations"] == len(data["violations"])
        assert data["violations"][0]["location"]["selector"] == "p"
        assert set(data) >= {"url", "pages", "transport", "degraded", "llmEnabled", "duration"}
        assert [page["depth"] for page in data["pages"]] == [0, 1]
        assert data["robotsTxtFound"] is False
        json.dumps(data)


class TestCheckAdCopy:
    """Test cases for ComplianceScanner.check_ad_copy."""

    def test_violations_found(self):
        """Test ad copy with a discount is flagged."""
        result = _scanner().check_ad_copy("Get $500 off your first visit")

        assert not result.is_compliant
        assert result.message == "1 potential compliance issue found."
        assert result.summary.critical == 1
        assert result.violations.violations[0].page_url == "ad-creator://preview"
        assert result.compliant_content is None

    def test_plural_message(self):
        """Test the message for several violations."""
        result = _scanner().check_ad_copy("Guaranteed results! Book now.")
        assert result.message == "2 potential compliance issues found."

    def test_compliant_copy(self):
        """Test clean copy passes."""
        result = _scanner().check_ad_copy("Our clinic offers consultations by appointment.")

        assert result.is_compliant
        assert result.message == "No compliance violations detected!"
        assert result.to_dict()["isCompliant"] is True

    def test_title_is_checked(self):
        """Test the headline is analyzed along with the body."""
        result = _scanner().check_ad_copy("Consultations by appointment.", title="Limited time only")

        assert [v.original_text for v in result.violations] == ["Limited time"]
        assert result.violations.violations[0].selector == "title"

    def test_rewrite(self):
        """Test the compliant rewrite is included when asked for."""
        result = _scanner().check_ad_copy("Get $500 off today", rewrite=True)

        assert result.compliant_content == "Get Professional treatment available today"
        assert result.to_dict()["compliantContent"] == result.compliant_content

    def test_empty_content(self):
        """Test empty copy is rejected."""
        with pytest.raises(ValueError, match="Content is required"):
            _scanner().check_ad_copy("   ")


class TestReports:
    """Test cases for report objects."""

    def test_empty_report(self):
        """Test defaults of a report with no findings."""
        report = ScanReport(url="https://clinic.example/", status="completed")

        assert report.pages_scanned == 0
        assert report.summary.total == 0
        assert report.to_dict()["violations"] == []

    def test_ad_result_without_rewrite(self):
        """Test compliantContent is omitted unless requested."""
        assert "compliantContent" not in AdCheckResult(ViolationSet()).to_dict()

    @pytest.mark.asyncio
    async def test_report_carries_crawl_details(self, fake_site, page_html, seed_url):
        """Test link depths and robots.txt presence reach the report."""
        site = fake_site(
            {
                "/": page_html("Home", links=["/team"]),
                "/team": page_html("Team", links=["/team/dr-lee"]),
                "/team/dr-lee": page_html("Dr Lee"),
            },
            robots="User-agent: *\nDisallow: /private",
        )

        report = await _scanner(site).scan_website(seed_url, ScanConfiguration())

        assert report.robots_found is True
        assert report.depths == {
            "https://clinic.example/": 0,
            "https://clinic.example/team": 1,
            "https://clinic.example/team/dr-lee": 2,
        }
