"""HTML to PageContent extraction."""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from mediguard.constants import UNTITLED_PAGE
from mediguard.models import Form, Headings, Image, Link, PageContent
from mediguard.scope import UrlScope, is_crawlable_href, resolve_url

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


class PageExtractor:
    """Turns fetched HTML into a structured PageContent record."""

    def __init__(self, scope: Optional[UrlScope] = None, min_paragraph_length: int = 0):
        """Initialize the extractor.

        Args:
            scope: Crawl scope used to mark links internal or external.
                Without one, links on the page's own host are internal.
            min_paragraph_length: Paragraphs of this many characters or fewer
                are dropped
        """
        self.scope = scope
        self.min_paragraph_length = min_paragraph_length

    def extract(self, html: str, url: str) -> PageContent:
        """Extract page content from HTML.

        Args:
            html: HTML content
            url: The page URL (absolute, normalized)

        Returns:
            PageContent with all references made absolute
        """
        soup = BeautifulSoup(html or "", "html.parser")
        scope = self.scope or UrlScope(url)

        h1 = self._texts(soup, "h1")
        h2 = self._texts(soup, "h2")
        h3 = self._texts(soup, "h3")

        # Title, falling back to the first heading
        title_tag = soup.find("title")
        title = clean_text(title_tag.get_text()) if title_tag else ""
        if not title:
            title = h1[0] if h1 else UNTITLED_PAGE

        # Meta description
        description_tag = soup.find("meta", attrs={"name": "description"})
        if not (description_tag and description_tag.get("content")):
            description_tag = soup.find("meta", attrs={"property": "og:description"})
        meta_description = clean_text(description_tag.get("content")) if description_tag else ""

        paragraphs = tuple(
            text for text in self._texts(soup, "p")
            if len(text) > self.min_paragraph_length
        )

        return PageContent(
            url=url,
            title=title,
            meta_description=meta_description,
            headings=Headings(h1=tuple(h1), h2=tuple(h2), h3=tuple(h3)),
            paragraphs=paragraphs,
            links=tuple(self._links(soup, url, scope)),
            images=tuple(self._images(soup, url)),
            forms=tuple(self._forms(soup, url)),
            scripts=tuple(self._scripts(soup, url)),
        )

    @staticmethod
    def _texts(soup, tag_name: str) -> List[str]:
        texts = (clean_text(tag.get_text(" ")) for tag in soup.find_all(tag_name))
        return [text for text in texts if text]

    @staticmethod
    def _links(soup, url: str, scope: UrlScope) -> List[Link]:
        links = []
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"]
            if not is_crawlable_href(href):
                continue
            absolute_url = resolve_url(href, url)
            if not absolute_url:
                continue
            links.append(Link(
                text=clean_text(anchor.get_text(" ")),
                href=absolute_url,
                is_internal=scope.is_internal(absolute_url),
            ))
        return links

    @staticmethod
    def _images(soup, url: str) -> List[Image]:
        images = []
        for img in soup.find_all("img"):
            src = resolve_url(img.get("src", ""), url)
            if not src:
                continue
            title = img.get("title")
            images.append(Image(
                src=src,
                alt=clean_text(img.get("alt", "")),
                title=clean_text(title) if title else None,
            ))
        return images

    @staticmethod
    def _forms(soup, url: str) -> List[Form]:
        forms = []
        for form in soup.find_all("form"):
            action = resolve_url(form.get("action", ""), url) or url
            method = (form.get("method") or "GET").upper()

            # dict keeps first-seen order while dropping duplicates
            inputs = {}
            for field in form.find_all(["input", "textarea", "select"]):
                name = field.get("name") or field.get("id")
                if name:
                    inputs[name] = None

            forms.append(Form(action=action, method=method, inputs=tuple(inputs)))
        return forms

    @staticmethod
    def _scripts(soup, url: str) -> List[str]:
        scripts = []
        for script in soup.find_all("script", src=True):
            src = resolve_url(script["src"], url)
            if src:
                scripts.append(src)
        return scripts
