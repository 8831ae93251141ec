"""Data models for compliance scanning."""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from mediguard.constants import (
    AD_COPY_TITLE,
    AD_COPY_URL,
    FAILED_SCAN_DESCRIPTION,
    FAILED_SCAN_HEADING,
    FAILED_SCAN_PARAGRAPH,
    FAILED_SCAN_TITLE,
)


class ViolationType(str, Enum):
    """Category of advertising breach."""
    PROHIBITED_INDUCEMENT = "prohibited_inducement"
    MISLEADING_CLAIMS = "misleading_claims"
    PROHIBITED_TESTIMONIALS = "prohibited_testimonials"
    UNREASONABLE_EXPECTATIONS = "unreasonable_expectations"
    THERAPEUTIC_GOODS = "therapeutic_goods"
    CONSUMER_LAW = "consumer_law"


class Severity(str, Enum):
    """Violation severity, most serious first."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: 0 for critical up to 3 for low."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class CrawlStatus(str, Enum):
    """Lifecycle of one crawl run."""
    IDLE = "idle"
    ROBOTS_CHECK = "robots_check"
    CRAWLING = "crawling"
    DONE = "done"
    BLOCKED = "blocked"
    FAILED = "failed"


@dataclass(frozen=True)
class Headings:
    h1: tuple[str, ...] = ()
    h2: tuple[str, ...] = ()
    h3: tuple[str, ...] = ()


@dataclass(frozen=True)
class Link:
    text: str
    href: str
    is_internal: bool


@dataclass(frozen=True)
class Image:
    src: str
    alt: str = ""
    title: Optional[str] = None


@dataclass(frozen=True)
class Form:
    action: str
    method: str = "GET"
    inputs: tuple[str, ...] = ()


@dataclass(frozen=True)
class PageContent:
    """Structured content of one crawled (or synthetic) page."""

    url: str
    title: str
    meta_description: str = ""
    headings: Headings = field(default_factory=Headings)
    paragraphs: tuple[str, ...] = ()
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
    forms: tuple[Form, ...] = ()
    scripts: tuple[str, ...] = ()
    crawl_error: Optional[str] = None  # Set only on the synthetic failure page

    @classmethod
    def failed(cls, url: str, reason: str) -> "PageContent":
        """Synthetic page standing in for a site that could not be fetched."""
        return cls(
            url=url,
            title=FAILED_SCAN_TITLE,
            meta_description=FAILED_SCAN_DESCRIPTION,
            headings=Headings(h1=(FAILED_SCAN_HEADING,)),
            paragraphs=(FAILED_SCAN_PARAGRAPH,),
            crawl_error=reason,
        )

    @classmethod
    def from_text(cls, text: str, title: Optional[str] = None) -> "PageContent":
        """Wrap submitted ad copy so it can go through page detection."""
        return cls(
            url=AD_COPY_URL,
            title=title or AD_COPY_TITLE,
            headings=Headings(h1=(title,) if title else ()),
            paragraphs=(text,),
        )

    def to_dict(self) -> dict:
        data = {
            "url": self.url,
            "title": self.title,
            "metaDescription": self.meta_description,
            "headings": {
                "h1": list(self.headings.h1),
                "h2": list(self.headings.h2),
                "h3": list(self.headings.h3),
            },
            "paragraphs": list(self.paragraphs),
            "links": [
                {"text": l.text, "href": l.href, "isInternal": l.is_internal}
                for l in self.links
            ],
            "images": [
                {"src": i.src, "alt": i.alt, "title": i.title} for i in self.images
            ],
            "forms": [
                {"action": f.action, "method": f.method, "inputs": list(f.inputs)}
                for f in self.forms
            ],
            "scripts": list(self.scripts),
        }
        if self.crawl_error:
            data["crawlError"] = self.crawl_error
        return data


@dataclass
class FetchResult:
    """Raw HTML returned by a fetch transport."""

    url: str
    html: str
    status_code: int = 200
    final_url: Optional[str] = None
    load_time: float = 0.0
    transport: str = "http"


@dataclass(frozen=True)
class Violation:
    """One flagged statement."""

    type: ViolationType
    rule: str
    severity: Severity
    original_text: str
    issue: str
    suggestion: str
    compliant_rewrite: str
    page_url: Optional[str] = None
    page_title: Optional[str] = None
    context: Optional[str] = None  # Page-type label
    selector: Optional[str] = None
    source: str = "deterministic"  # or "generative"

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "rule": self.rule,
            "severity": self.severity.value,
            "originalText": self.original_text,
            "issue": self.issue,
            "suggestion": self.suggestion,
            "compliantRewrite": self.compliant_rewrite,
            "pageUrl": self.page_url,
            "pageTitle": self.page_title,
            "context": self.context,
            "location": {"selector": self.selector},
            "source": self.source,
        }


@dataclass(frozen=True)
class SeveritySummary:
    """Tally of violations per severity."""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def of(cls, violations) -> "SeveritySummary":
        counts = {s: 0 for s in Severity}
        for violation in violations:
            counts[violation.severity] += 1
        return cls(
            total=sum(counts.values()),
            critical=counts[Severity.CRITICAL],
            high=counts[Severity.HIGH],
            medium=counts[Severity.MEDIUM],
            low=counts[Severity.LOW],
        )

    def to_dict(self) -> dict:
        return {
            "totalViolations": self.total,
            "criticalViolations": self.critical,
            "highViolations": self.high,
            "mediumViolations": self.medium,
            "lowViolations": self.low,
        }


@dataclass(frozen=True)
class ViolationSet:
    """Merged, de-duplicated output of one detection pass over one text blob."""

    violations: tuple[Violation, ...] = ()

    def __iter__(self):
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    @property
    def summary(self) -> SeveritySummary:
        return SeveritySummary.of(self.violations)

    @property
    def is_compliant(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary.to_dict(),
            "isCompliant": self.is_compliant,
        }


@dataclass
class CrawlState:
    """Mutable state of a single crawl run.

    Owned by exactly one SiteCrawler.crawl_site call. Callers that may cancel
    the crawl can pass their own instance in and read partial results from it
    afterwards.
    """

    seed_url: str = ""
    status: CrawlStatus = CrawlStatus.IDLE
    visited: set[str] = field(default_factory=set)
    frontier: deque = field(default_factory=deque)  # (url, depth) pairs
    queued: set[str] = field(default_factory=set)
    results: list[PageContent] = field(default_factory=list)
    depths: dict[str, int] = field(default_factory=dict)  # page url -> link depth
    robots_found: bool = False
    failed: dict[str, str] = field(default_factory=dict)
    transport: Optional[str] = None
    degraded: bool = False
    deadline_reached: bool = False
    error: Optional[str] = None

    @property
    def completed(self) -> int:
        return len(self.results)

    def enqueue(self, url: str, depth: int) -> bool:
        """Add a URL to the frontier unless it was already seen.

        Returns:
            True if the URL was added
        """
        if url in self.visited or url in self.queued:
            return False
        self.frontier.append((url, depth))
        self.queued.add(url)
        return True

    def pop(self) -> tuple[str, int]:
        # queued keeps the url so a skipped page is never enqueued twice
        return self.frontier.popleft()
