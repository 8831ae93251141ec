"""Healthcare advertising compliance scanner using LLM and rule-based detection."""

__version__ = "0.1.0"

from mediguard.analyzer import ComplianceAnalyzer
from mediguard.config import Config, ScanConfiguration, settings
from mediguard.exceptions import (
    ComplianceScanError,
    DetectionSourceUnavailable,
    FetchFailed,
    MalformedCandidate,
    RobotsDisallowed,
    TransportDegraded,
)
from mediguard.generative import GenerativeViolationSource
from mediguard.llm import LLMClient
from mediguard.merger import merge_violations
from mediguard.models import (
    CrawlState,
    CrawlStatus,
    PageContent,
    Severity,
    SeveritySummary,
    Violation,
    ViolationSet,
    ViolationType,
)
from mediguard.rules import RULE_CATALOG, evaluate_rules
from mediguard.scanner import AdCheckResult, ComplianceScanner, ScanReport
from mediguard.site_crawler import SiteCrawler, start_crawl

__all__ = [
    # Core
    "ComplianceScanner",
    "ComplianceAnalyzer",
    "SiteCrawler",
    "start_crawl",
    "GenerativeViolationSource",
    "LLMClient",
    "merge_violations",
    "evaluate_rules",
    "RULE_CATALOG",
    # Models
    "PageContent",
    "CrawlState",
    "CrawlStatus",
    "Violation",
    "ViolationSet",
    "ViolationType",
    "Severity",
    "SeveritySummary",
    "ScanReport",
    "AdCheckResult",
    # Configuration
    "Config",
    "ScanConfiguration",
    "settings",
    # Errors
    "ComplianceScanError",
    "RobotsDisallowed",
    "FetchFailed",
    "TransportDegraded",
    "DetectionSourceUnavailable",
    "MalformedCandidate",
]
