"""End-to-end scanning: website scans and ad-copy checks."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from mediguard.analyzer import ComplianceAnalyzer
from mediguard.config import Config, ScanConfiguration
from mediguard.exceptions import RobotsDisallowed
from mediguard.models import (
    CrawlState,
    CrawlStatus,
    PageContent,
    SeveritySummary,
    ViolationSet,
)
from mediguard.site_crawler import ProgressCallback, SiteCrawler

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass
class ScanReport:
    """Outcome of one website scan."""

    url: str
    status: str
    reason: Optional[str] = None
    error: Optional[str] = None
    pages: List[PageContent] = field(default_factory=list)
    violations: ViolationSet = field(default_factory=ViolationSet)
    transport: Optional[str] = None
    degraded: bool = False
    llm_enabled: bool = False
    deadline_reached: bool = False
    robots_found: bool = False
    depths: Dict[str, int] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def pages_scanned(self) -> int:
        return sum(1 for page in self.pages if not page.crawl_error)

    @property
    def summary(self) -> SeveritySummary:
        return self.violations.summary

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status,
            "reason": self.reason,
            "error": self.error,
            "pagesScanned": self.pages_scanned,
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary.to_dict(),
            "pages": [
                {**page.to_dict(), "depth": self.depths.get(page.url)}
                for page in self.pages
            ],
            "robotsTxtFound": self.robots_found,
            "transport": self.transport,
            "degraded": self.degraded,
            "llmEnabled": self.llm_enabled,
            "deadlineReached": self.deadline_reached,
            "duration": round(self.duration, 2),
        }


@dataclass
class AdCheckResult:
    """Outcome of checking one piece of ad copy."""

    violations: ViolationSet
    compliant_content: Optional[str] = None

    @property
    def summary(self) -> SeveritySummary:
        return self.violations.summary

    @property
    def is_compliant(self) -> bool:
        return self.violations.is_compliant

    @property
    def message(self) -> str:
        count = len(self.violations)
        if count == 0:
            return "No compliance violations detected!"
        return f"{count} potential compliance issue{'' if count == 1 else 's'} found."

    def to_dict(self) -> dict:
        data = {
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary.to_dict(),
            "isCompliant": self.is_compliant,
            "message": self.message,
        }
        if self.compliant_content is not None:
            data["compliantContent"] = self.compliant_content
        return data


class ComplianceScanner:
    """Runs website scans and ad-copy checks."""

    def __init__(
        self,
        config: Optional[Config] = None,
        analyzer: Optional[ComplianceAnalyzer] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        fetcher=None,
    ):
        """Initialize the scanner.

        Args:
            config: Runtime configuration (LLM, user agent, rendering)
            analyzer: Optional pre-built analyzer
            http_client: Optional httpx client for robots.txt and static fetching
            fetcher: Optional pre-built PageFetcher
        """
        self.config = config or Config.from_env()
        self.analyzer = analyzer or ComplianceAnalyzer.from_config(self.config)
        self.http_client = http_client
        self.fetcher = fetcher

    def _crawler(self, scan_config: ScanConfiguration) -> SiteCrawler:
        return SiteCrawler(
            scan_config,
            user_agent=self.config.user_agent,
            fetcher=self.fetcher,
            http_client=self.http_client,
            render_js=self.config.render_js,
        )

    async def scan_website(
        self,
        url: str,
        scan_config: Optional[ScanConfiguration] = None,
        on_progress: Optional[ProgressCallback] = None,
        deadline: Optional[float] = None,
    ) -> ScanReport:
        """Crawl a site and analyze every page.

        Args:
            url: Seed URL
            scan_config: Crawl bounds; defaults from the environment
            on_progress: Optional crawl progress callback
            deadline: Optional wall-clock budget in seconds for crawl and analysis

        Returns:
            ScanReport with status "completed", or "failed" with a reason
        """
        scan_config = scan_config or ScanConfiguration.from_env()
        started = time.monotonic()
        deadline_at = started + deadline if deadline is not None else None
        state = CrawlState()

        logger.info(f"Scanning {url}")

        try:
            await self._crawler(scan_config).crawl_site(
                url, on_progress=on_progress, state=state, deadline=deadline
            )
        except RobotsDisallowed as e:
            logger.warning(f"Scan of {url} blocked: {e}")
            return ScanReport(
                url=state.seed_url or url,
                status=STATUS_FAILED,
                reason=type(e).__name__,
                error=str(e),
                llm_enabled=self.analyzer.llm_enabled,
                duration=time.monotonic() - started,
            )

        report = ScanReport(
            url=state.seed_url,
            status=STATUS_COMPLETED,
            pages=list(state.results),
            depths=dict(state.depths),
            transport=state.transport,
            degraded=state.degraded,
            llm_enabled=self.analyzer.llm_enabled,
            deadline_reached=state.deadline_reached,
            robots_found=state.robots_found,
        )

        if state.status == CrawlStatus.FAILED:
            report.status = STATUS_FAILED
            report.reason = "FetchFailed"
            report.error = state.error
            report.duration = time.monotonic() - started
            return report

        # LLM calls are blocking; keep them off the event loop
        page_sets = await asyncio.to_thread(
            self.analyzer.analyze_pages, state.results, deadline_at
        )
        if deadline_at is not None and len(page_sets) < len(state.results):
            report.deadline_reached = True

        report.violations = ViolationSet(tuple(
            violation for page_set in page_sets for violation in page_set
        ))
        report.duration = time.monotonic() - started

        logger.info(
            f"Scan of {report.url} complete: {report.pages_scanned} pages, "
            f"{report.summary.total} violations ({report.summary.critical} critical)"
        )
        return report

    def check_ad_copy(
        self,
        text: str,
        title: Optional[str] = None,
        rewrite: bool = False,
    ) -> AdCheckResult:
        """Check marketing copy before publication.

        Args:
            text: Ad copy
            title: Optional headline
            rewrite: Also produce a compliant version of the copy

        Returns:
            AdCheckResult

        Raises:
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Content is required")

        page = PageContent.from_text(text, title)
        violations = self.analyzer.analyze_page(page, mode="ad")
        logger.info(f"Ad copy analysis complete: {len(violations)} violations found")

        compliant_content = None
        if rewrite:
            compliant_content = self.analyzer.generate_compliant_content(text, violations)

        return AdCheckResult(violations=violations, compliant_content=compliant_content)
