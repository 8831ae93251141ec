"""Exception taxonomy for the scanning pipeline.

Only RobotsDisallowed crosses the crawl boundary as an exception. The other
conditions are recovered where they occur and only show up as reduced
coverage (and in the logs).
"""

from typing import Optional


class ComplianceScanError(Exception):
    """Base class for all scanner errors."""


class RobotsDisallowed(ComplianceScanError):
    """Raised when robots.txt forbids crawling the seed URL."""

    def __init__(self, seed_url: str, rule: Optional[str] = None):
        self.seed_url = seed_url
        self.rule = rule
        message = f"robots.txt disallows crawling {seed_url}"
        if rule:
            message += f" (Disallow: {rule})"
        super().__init__(message)


class FetchFailed(ComplianceScanError):
    """A single page could not be fetched."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class TransportDegraded(ComplianceScanError):
    """The rendering transport is unusable for the rest of the run."""

    def __init__(self, transport: str, reason: str):
        self.transport = transport
        self.reason = reason
        super().__init__(f"{transport} transport unavailable: {reason}")


class DetectionSourceUnavailable(ComplianceScanError):
    """The generative collaborator failed or is disabled."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class MalformedCandidate(ComplianceScanError):
    """A candidate violation whose text is not found in its source."""

    def __init__(self, original_text: str, reason: str = "Flagged text not found in source"):
        self.original_text = original_text
        self.reason = reason
        super().__init__(f"{reason}: {original_text!r}")
