"""Generative (LLM) violation source.

The LLM is asked for a JSON array of violations. Anything that goes wrong
(no key, network errors, timeouts, unparseable or malformed output) turns
into an empty result at this boundary; ``detect`` never raises.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mediguard.config import Config
from mediguard.constants import (
    AD_ANALYSIS_TEMPERATURE,
    DEFAULT_MAX_CONTENT_CHARS,
    PAGE_ANALYSIS_TEMPERATURE,
    PAGE_TYPE_ABOUT,
    PAGE_TYPE_CONTACT,
    PAGE_TYPE_GENERAL,
    PAGE_TYPE_PRICING,
    PAGE_TYPE_SERVICE,
    REWRITE_TEMPERATURE,
)
from mediguard.exceptions import DetectionSourceUnavailable
from mediguard.llm import LLMClient
from mediguard.models import PageContent, Severity, Violation, ViolationType

logger = logging.getLogger(__name__)


_RESPONSE_FORMAT = """Return your analysis as a JSON array of violations. Each violation must include:
- type: one of "prohibited_inducement", "misleading_claims", "prohibited_testimonials", "unreasonable_expectations", "therapeutic_goods", "consumer_law"
- rule: specific regulation reference (e.g., "National Law, Section 133(1)(e)")
- severity: "critical", "high", "medium", or "low"
- originalText: the exact text, copied verbatim from the content, that violates the rule
- issue: clear explanation of why this violates the rule
- suggestion: specific guidance on how to fix it
- compliantRewrite: a compliant version of the text"""

PAGE_SYSTEM_PROMPT = f"""You are an expert in Australian healthcare advertising compliance: AHPRA National Law Section 133, TGA Code Section 12 and Australian Consumer Law Section 18.

Analyze medical and aesthetic practice website content and identify compliance violations. Be precise and only flag actual violations, not potential issues.

{_RESPONSE_FORMAT}

Only return violations that clearly breach the regulations. Be conservative: missing a minor issue is better than a false positive. Return [] when there are none."""

AD_SYSTEM_PROMPT = f"""You are a STRICT Australian healthcare advertising compliance expert: AHPRA National Law Section 133, TGA Code Section 12 and Australian Consumer Law Section 18.

Marketing copy is checked before publication, so detect every violation. Over-detection is preferable to missing a breach that could lead to regulatory action.

{_RESPONSE_FORMAT}

If the content contains obvious financial discounts, time pressure or guarantees you MUST report them."""

REWRITE_SYSTEM_PROMPT = """You are an expert in Australian healthcare advertising compliance. Rewrite marketing content so it complies with AHPRA, TGA and ACL rules while keeping the core message and a professional tone.

Guidelines:
- Remove all prohibited inducements (discounts, special offers, time-limited deals)
- Replace guaranteed outcomes with qualified statements
- Remove testimonials and patient quotes
- Use professional, factual language
- Keep the content engaging but compliant"""

_PAGE_PROMPT = """Analyze this Australian medical/aesthetic practice website content for compliance violations:

PAGE URL: {url}
PAGE TITLE: {title}
PAGE TYPE: {page_type}

CONTENT TO ANALYZE:
{content}

VIOLATIONS TO CHECK:

1. PROHIBITED INDUCEMENTS (Section 133(1)(e)): discounts, special offers, gifts,
   time-limited offers, "free" services with conditions, competitive pricing claims.
2. MISLEADING CLAIMS (Section 133(1)(a) and (b)): guaranteed outcomes,
   unsubstantiated superlatives ("best", "leading"), comparative claims without evidence.
3. PROHIBITED TESTIMONIALS (Section 133(1)(c)): patient testimonials or quotes,
   before/after claims, success stories or case studies.
4. UNREASONABLE EXPECTATIONS (Section 133(1)(d)): permanent or guaranteed results,
   exaggerated outcome claims.
5. THERAPEUTIC GOODS (TGA Code Section 12): unsubstantiated therapeutic claims,
   restricted therapeutic language.
6. CONSUMER LAW (ACL Section 18): misleading pricing, false availability claims.

Return only clear violations as a JSON array."""

_AD_PROMPT = """Analyze this Australian healthcare advertising copy for compliance violations.

CONTENT TO ANALYZE: "{content}"

VIOLATIONS TO DETECT:

1. FINANCIAL INDUCEMENTS (always prohibited): dollar or percentage discounts,
   "save $X", "special price", "special offer", "free" services with conditions.
2. TIME PRESSURE (always prohibited): "limited time", "this week only",
   "expires soon", "hurry", "book now", "limited spots".
3. GUARANTEED OUTCOMES (always prohibited): "guarantee", "promise",
   "100% success", "permanent results", "will transform".
4. PATIENT TESTIMONIALS (always prohibited): quotes, reviews, "patient says",
   "success story", before/after claims.
5. UNSUBSTANTIATED SUPERLATIVES: "best", "leading", "top", "award-winning".
6. THERAPEUTIC CLAIMS: unsubstantiated health or cure claims.

Examples that MUST be reported:
- "$500 off" -> prohibited_inducement (critical)
- "limited time" -> prohibited_inducement (high)
- "guaranteed" -> misleading_claims (critical)
- "best clinic" -> misleading_claims (medium)

Return a JSON array of the violations found."""

_REWRITE_PROMPT = """Rewrite this medical/aesthetic practice marketing content so it fully complies with Australian healthcare advertising regulations:

ORIGINAL CONTENT:
{content}

VIOLATIONS FOUND:
{violations}

Return only the rewritten compliant content, no explanations."""


def page_type(url: str, title: str) -> str:
    """Coarse page-type label used to give the LLM context.

    Args:
        url: Page URL
        title: Page title

    Returns:
        One of the PAGE_TYPE_* labels
    """
    url = (url or "").lower()
    title = (title or "").lower()

    if "service" in url or "treatment" in url or "service" in title:
        return PAGE_TYPE_SERVICE
    if "about" in url or "about" in title:
        return PAGE_TYPE_ABOUT
    if "contact" in url or "contact" in title:
        return PAGE_TYPE_CONTACT
    if "price" in url or "cost" in url or "price" in title:
        return PAGE_TYPE_PRICING
    return PAGE_TYPE_GENERAL


class CandidateViolation(BaseModel):
    """Shape every entry of the LLM's JSON array must have."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: ViolationType
    rule: str = Field(min_length=1)
    severity: Severity
    original_text: str = Field(alias="originalText", min_length=1)
    issue: str = ""
    suggestion: str = ""
    compliant_rewrite: str = Field(default="", alias="compliantRewrite")

    @field_validator("type", "severity", mode="before")
    @classmethod
    def _lowercase(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_violation(self) -> Violation:
        return Violation(
            type=self.type,
            rule=self.rule,
            severity=self.severity,
            original_text=self.original_text,
            issue=self.issue,
            suggestion=self.suggestion,
            compliant_rewrite=self.compliant_rewrite,
            source="generative",
        )


def extract_json_array(text: str) -> Optional[list]:
    """Find the first well-formed JSON array in free text.

    Returns:
        The decoded list, or None if the text holds no JSON array
    """
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    return None


def parse_violations(response: str) -> List[Violation]:
    """Parse an LLM reply into violations.

    Args:
        response: Raw reply text

    Returns:
        Parsed violations, in reply order

    Raises:
        ValueError: If the reply holds no JSON array or any entry is malformed
    """
    entries = extract_json_array(response or "")
    if entries is None:
        raise ValueError("No JSON array in LLM response")

    violations = []
    for index, entry in enumerate(entries):
        try:
            candidate = CandidateViolation.model_validate(entry)
        except ValidationError as e:
            raise ValueError(f"Malformed violation at index {index}: {e.error_count()} errors") from e
        violations.append(candidate.to_violation())
    return violations


@dataclass
class DetectionOutcome:
    """Result of one generative detection call: violations or an error."""

    violations: List[Violation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GenerativeViolationSource:
    """Finds violations by asking an LLM."""

    def __init__(
        self,
        client: Optional[LLMClient] = None,
        max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS,
    ):
        """Initialize the source.

        Args:
            client: LLM client; None disables the source
            max_content_chars: Text is truncated to this length before prompting
        """
        self.client = client
        self.max_content_chars = max_content_chars

    @classmethod
    def from_config(cls, config: Config) -> "GenerativeViolationSource":
        """Build the source from runtime configuration.

        A missing API key or unsupported provider disables the source instead
        of failing the scan.
        """
        client = None
        if config.llm_api_key:
            try:
                client = LLMClient(
                    api_key=config.llm_api_key,
                    model=config.llm_model,
                    provider=config.llm_provider,
                    max_tokens=config.llm_max_tokens,
                    timeout=config.llm_timeout,
                )
            except ValueError as e:
                logger.warning(f"Generative detection disabled: {e}")
        else:
            logger.warning("No LLM API key configured; generative detection disabled")
        return cls(client, max_content_chars=config.max_content_chars)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _truncate(self, text: str) -> str:
        if len(text) <= self.max_content_chars:
            return text
        logger.debug(f"Truncating {len(text)} chars to {self.max_content_chars} for LLM")
        return text[:self.max_content_chars]

    def _build_prompt(self, text: str, context: Optional[PageContent], mode: str) -> tuple:
        content = self._truncate(text)
        if mode == "ad":
            return AD_SYSTEM_PROMPT, _AD_PROMPT.format(content=content), AD_ANALYSIS_TEMPERATURE

        url = context.url if context else ""
        title = context.title if context else ""
        prompt = _PAGE_PROMPT.format(
            url=url, title=title, page_type=page_type(url, title), content=content
        )
        return PAGE_SYSTEM_PROMPT, prompt, PAGE_ANALYSIS_TEMPERATURE

    def analyze(
        self,
        text: str,
        context: Optional[PageContent] = None,
        mode: str = "page",
    ) -> DetectionOutcome:
        """Run one LLM detection call over a text blob.

        Args:
            text: Text to analyze
            context: Page the text came from (for the prompt)
            mode: "page" for the conservative prompt, "ad" for the strict one

        Returns:
            DetectionOutcome with violations, or with error set
        """
        if not self.enabled:
            return DetectionOutcome(error=DetectionSourceUnavailable("LLM client not configured").reason)
        if not text or not text.strip():
            return DetectionOutcome()

        system, prompt, temperature = self._build_prompt(text, context, mode)

        try:
            response = self.client.complete(system, prompt, temperature=temperature)
        except Exception as e:
            error = DetectionSourceUnavailable(f"LLM call failed: {e}")
            logger.warning(str(error))
            return DetectionOutcome(error=error.reason)

        try:
            violations = parse_violations(response)
        except ValueError as e:
            logger.warning(f"Discarding LLM response: {e}")
            return DetectionOutcome(error=str(e))

        logger.debug(f"LLM reported {len(violations)} candidate violations")
        return DetectionOutcome(violations=violations)

    def detect(
        self,
        text: str,
        context: Optional[PageContent] = None,
        mode: str = "page",
    ) -> List[Violation]:
        """Like analyze, but returns an empty list on any failure."""
        return self.analyze(text, context, mode).violations

    def rewrite(self, text: str, violations: List[Violation]) -> Optional[str]:
        """Ask the LLM for a compliant version of the whole text.

        Returns:
            The rewritten text, or None if the LLM is unavailable or failed
        """
        if not self.enabled:
            return None

        listing = "\n".join(
            f"- {v.type.value}: {v.original_text} ({v.issue})" for v in violations
        )
        prompt = _REWRITE_PROMPT.format(content=self._truncate(text), violations=listing)

        try:
            response = self.client.complete(
                REWRITE_SYSTEM_PROMPT, prompt, temperature=REWRITE_TEMPERATURE
            )
        except Exception as e:
            logger.warning(f"Compliant rewrite failed: {e}")
            return None

        return response.strip() or None
