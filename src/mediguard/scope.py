"""URL normalisation and crawl scope rules."""

from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from mediguard.constants import NON_CRAWLABLE_PREFIXES, NON_DOCUMENT_EXTENSIONS


def normalize_url(url: str) -> str:
    """Normalize URL by removing fragments and trailing slashes.

    Scheme and host are lower-cased; an empty path becomes "/".

    Args:
        url: Absolute URL to normalize

    Returns:
        Normalized URL
    """
    parsed = urlparse(url.strip())
    path = parsed.path or "/"
    normalized = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{path}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    # Remove trailing slash (except for root)
    if normalized.endswith('/') and len(path) > 1 and not parsed.query:
        normalized = normalized[:-1]
    return normalized


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Resolve a possibly relative reference against a page URL.

    Returns:
        Absolute URL, or None for references that cannot be resolved
    """
    href = (href or "").strip()
    if not href:
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def is_crawlable_href(href: str) -> bool:
    return bool(href) and not href.strip().lower().startswith(NON_CRAWLABLE_PREFIXES)


def is_document_path(path: str) -> bool:
    """False for paths that point at assets rather than HTML pages."""
    path_lower = path.lower()
    return not any(path_lower.endswith(ext) for ext in NON_DOCUMENT_EXTENSIONS)


class UrlScope:
    """Decides which URLs belong to the site being crawled."""

    def __init__(
        self,
        seed_url: str,
        include_subdomains: bool = False,
        exclude_patterns: Optional[Iterable[str]] = None,
    ):
        """Initialize the scope.

        Args:
            seed_url: The crawl seed; its host defines the site
            include_subdomains: Whether subdomains of the seed host are in scope
            exclude_patterns: Path substrings (case-insensitive) to skip
        """
        self.seed_url = seed_url
        self.seed_host = (urlparse(seed_url).hostname or "").lower()
        self.include_subdomains = include_subdomains
        self.exclude_patterns = [p.lower() for p in (exclude_patterns or []) if p]

    def is_internal(self, url: str) -> bool:
        """Host rule: same host, or a subdomain when enabled."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        if parsed.scheme not in ("http", "https"):
            return False
        host = (parsed.hostname or "").lower()
        if not host:
            return False
        if host == self.seed_host:
            return True
        return self.include_subdomains and host.endswith("." + self.seed_host)

    def is_excluded(self, url: str) -> bool:
        path = urlparse(url).path.lower()
        return any(pattern in path for pattern in self.exclude_patterns)

    def should_enqueue(self, url: str) -> bool:
        """In scope, an HTML document, and not excluded."""
        if not self.is_internal(url):
            return False
        if not is_document_path(urlparse(url).path):
            return False
        return not self.is_excluded(url)
