"""Compliance analyzer combining generative and deterministic detection."""

import logging
import time
from dataclasses import replace
from typing import Iterable, List, Optional

from mediguard.config import Config
from mediguard.constants import AD_COPY_URL
from mediguard.generative import GenerativeViolationSource, page_type
from mediguard.merger import merge_violations
from mediguard.models import PageContent, Violation, ViolationSet
from mediguard.rules import RULE_CATALOG, ComplianceRule, evaluate_rules

logger = logging.getLogger(__name__)


def page_text(page: PageContent) -> str:
    """Text blob analyzed for one page: title, meta, headings, paragraphs and link texts."""
    parts = [
        page.title,
        page.meta_description,
        *page.headings.h1,
        *page.headings.h2,
        *page.headings.h3,
        *page.paragraphs,
        *(link.text for link in page.links),
    ]
    return "\n\n".join(part for part in parts if part and part.strip())


def image_texts(page: PageContent) -> List[str]:
    texts = (f"{image.alt} {image.title or ''}".strip() for image in page.images)
    return [text for text in texts if text]


def form_texts(page: PageContent) -> List[str]:
    texts = (" ".join(form.inputs) for form in page.forms)
    return [text for text in texts if text]


def locate_selector(text: str, page: PageContent) -> Optional[str]:
    """Best-guess element type holding the flagged text."""
    needle = text.lower()

    if needle in page.title.lower():
        return "title"
    if needle in page.meta_description.lower():
        return "meta"
    for selector, items in (
        ("h1", page.headings.h1),
        ("h2", page.headings.h2),
        ("h3", page.headings.h3),
        ("p", page.paragraphs),
        ("a", [link.text for link in page.links]),
    ):
        if any(needle in item.lower() for item in items):
            return selector
    return None


class ComplianceAnalyzer:
    """Detects advertising violations in pages and ad copy."""

    def __init__(
        self,
        generative: Optional[GenerativeViolationSource] = None,
        catalog: Iterable[ComplianceRule] = RULE_CATALOG,
    ):
        """Initialize the analyzer.

        Args:
            generative: LLM violation source; None runs deterministic rules only
            catalog: Deterministic rules to apply
        """
        self.generative = generative or GenerativeViolationSource(None)
        self.catalog = tuple(catalog)

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "ComplianceAnalyzer":
        config = config or Config.from_env()
        return cls(GenerativeViolationSource.from_config(config))

    @property
    def llm_enabled(self) -> bool:
        return self.generative.enabled

    def detect_violations(
        self,
        text: str,
        page: Optional[PageContent] = None,
        mode: Optional[str] = None,
    ) -> ViolationSet:
        """Run both sources over one text blob and merge the results.

        Args:
            text: Text to analyze
            page: Page the text came from, if any
            mode: "page" or "ad"; defaults to "ad" for free text and the
                ad-copy page, "page" otherwise

        Returns:
            Merged ViolationSet
        """
        if mode is None:
            mode = "ad" if page is None or page.url == AD_COPY_URL else "page"

        generative = self.generative.detect(text, page, mode)
        deterministic = evaluate_rules(text, self.catalog)
        result = merge_violations(generative, deterministic, source_text=text)

        logger.debug(
            f"Detected {len(result)} violations "
            f"({len(generative)} generative, {len(deterministic)} deterministic candidates)"
        )
        return result

    def analyze_page(self, page: PageContent, mode: Optional[str] = None) -> ViolationSet:
        """Analyze every text-bearing part of one page.

        The main text goes through both sources; image alt/title text and
        form inputs go through the rule catalog only. Every violation is
        stamped with the page URL, title, page type and selector.

        Args:
            page: Page to analyze
            mode: Prompt variant, see detect_violations

        Returns:
            Merged ViolationSet for the page
        """
        if page.crawl_error:
            logger.info(f"Skipping analysis of failed page {page.url}")
            return ViolationSet()

        text = page_text(page)
        found: List[Violation] = []
        if text:
            found = [
                replace(v, selector=locate_selector(v.original_text, page))
                for v in self.detect_violations(text, page, mode)
            ]

        extras: List[Violation] = []
        for selector, blobs in (("img", image_texts(page)), ("form", form_texts(page))):
            for blob in blobs:
                extras.extend(
                    replace(v, selector=selector) for v in evaluate_rules(blob, self.catalog)
                )

        merged = merge_violations(found, extras) if extras else ViolationSet(tuple(found))

        context = page_type(page.url, page.title)
        return ViolationSet(tuple(
            replace(v, page_url=page.url, page_title=page.title, context=context)
            for v in merged
        ))

    def analyze_pages(
        self,
        pages: Iterable[PageContent],
        deadline_at: Optional[float] = None,
    ) -> List[ViolationSet]:
        """Analyze pages in order.

        Args:
            pages: Pages to analyze
            deadline_at: Optional time.monotonic() value after which no
                further pages are analyzed

        Returns:
            One ViolationSet per analyzed page
        """
        results = []
        for page in pages:
            if deadline_at is not None and time.monotonic() >= deadline_at:
                logger.warning(f"Analysis deadline reached after {len(results)} pages")
                break
            results.append(self.analyze_page(page))
        return results

    def generate_compliant_content(self, text: str, violations: Iterable[Violation]) -> str:
        """Produce a compliant version of ad copy.

        Uses the LLM when available; otherwise each flagged phrase is
        replaced by its compliant rewrite.

        Args:
            text: Original copy
            violations: Violations found in it

        Returns:
            Rewritten copy (the original when there is nothing to fix)
        """
        violations = list(violations)
        if not violations:
            return text

        rewritten = self.generative.rewrite(text, violations)
        if rewritten:
            return rewritten

        # Longest phrases first so shorter overlapping ones do not split them
        result = text
        for violation in sorted(violations, key=lambda v: len(v.original_text), reverse=True):
            if violation.original_text in result:
                result = result.replace(violation.original_text, violation.compliant_rewrite)
        return result
