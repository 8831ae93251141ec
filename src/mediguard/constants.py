# src/mediguard/constants.py
"""Centralized constants for the compliance scanner.

This module contains magic numbers and fixed values that are used across
multiple modules. For user-configurable settings, see config.py and
ScanConfiguration.
"""

# =============================================================================
# Crawler Constants
# =============================================================================

# Default pages to crawl per scan
DEFAULT_MAX_PAGES = 10

# Default link depth from the seed page (seed is depth 0)
DEFAULT_MAX_DEPTH = 2

# Default per-navigation timeout in milliseconds
DEFAULT_TIMEOUT_MS = 30000

# Paths that are never worth scanning for advertising content
DEFAULT_EXCLUDE_PATTERNS = ["/admin", "/login", "/wp-admin", "/dashboard"]

# Default user agent, also the token matched against robots.txt groups
DEFAULT_USER_AGENT = "MediGuard-AI-Scanner/2.0"

# Timeout for the robots.txt request in seconds
ROBOTS_TXT_TIMEOUT_SECONDS = 5.0

# Extra seconds allowed on top of the navigation timeout before a fetch is dropped
FETCH_TIMEOUT_GRACE_SECONDS = 5.0

# Link schemes and prefixes that never point at a crawlable page
NON_CRAWLABLE_PREFIXES = ("mailto:", "tel:", "javascript:", "#", "data:")

# File extensions that are not HTML documents
NON_DOCUMENT_EXTENSIONS = {
    '.pdf', '.jpg', '.jpeg', '.png', '.gif', '.svg', '.webp',
    '.zip', '.tar', '.gz', '.mp4', '.mp3', '.avi', '.mov',
    '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
    '.css', '.js', '.xml', '.json', '.ico', '.woff', '.woff2', '.ttf',
}


# =============================================================================
# Extraction Constants
# =============================================================================

# Paragraphs at or below this many characters are noise (per transport)
MIN_PARAGRAPH_LENGTH = {
    "browser": 0,
    "http": 10,
}

# Title used when a page has neither <title> nor <h1>
UNTITLED_PAGE = "Untitled Page"

# Synthetic page returned when nothing at all could be fetched
FAILED_SCAN_TITLE = "Scan Failed"
FAILED_SCAN_DESCRIPTION = "Scan failed due to technical issues"
FAILED_SCAN_HEADING = "Website scan could not be completed"
FAILED_SCAN_PARAGRAPH = (
    "The website could not be accessed due to technical restrictions "
    "or connectivity issues."
)

# URL given to the synthetic page wrapping submitted ad copy
AD_COPY_URL = "ad-creator://preview"
AD_COPY_TITLE = "Ad Content"


# =============================================================================
# Browser Constants
# =============================================================================

# Desktop viewport dimensions for browser crawling
DESKTOP_VIEWPORT_WIDTH = 1920
DESKTOP_VIEWPORT_HEIGHT = 1080

# Milliseconds to let client-side rendering settle after navigation
RENDER_SETTLE_MS = 2000


# =============================================================================
# Detection Constants
# =============================================================================

# Maximum characters of page text sent to the LLM in one call
DEFAULT_MAX_CONTENT_CHARS = 12000

# Default LLM settings
DEFAULT_LLM_MODEL = "gpt-4-turbo-preview"
DEFAULT_LLM_PROVIDER = "openai"
DEFAULT_LLM_MAX_TOKENS = 4000
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0

# Sampling temperatures for the two prompt variants and the rewrite
PAGE_ANALYSIS_TEMPERATURE = 0.1
AD_ANALYSIS_TEMPERATURE = 0.3
REWRITE_TEMPERATURE = 0.3

# Regulation citations
NATIONAL_LAW_133_1_A = "National Law, Section 133(1)(a)"
NATIONAL_LAW_133_1_B = "National Law, Section 133(1)(b)"
NATIONAL_LAW_133_1_C = "National Law, Section 133(1)(c)"
NATIONAL_LAW_133_1_D = "National Law, Section 133(1)(d)"
NATIONAL_LAW_133_1_E = "National Law, Section 133(1)(e)"
TGA_CODE_12 = "TGA Code, Section 12"
ACL_18 = "Australian Consumer Law, Section 18"

# Page-type labels used to enrich LLM prompts
PAGE_TYPE_SERVICE = "Service page"
PAGE_TYPE_ABOUT = "About page"
PAGE_TYPE_CONTACT = "Contact page"
PAGE_TYPE_PRICING = "Pricing page"
PAGE_TYPE_GENERAL = "General page"
