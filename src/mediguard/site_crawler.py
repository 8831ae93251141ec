"""Breadth-first site crawler producing PageContent records."""

import asyncio
import logging
import time
from typing import Callable, List, Optional

import httpx

from mediguard.config import ScanConfiguration
from mediguard.constants import (
    DEFAULT_USER_AGENT,
    FETCH_TIMEOUT_GRACE_SECONDS,
    MIN_PARAGRAPH_LENGTH,
    ROBOTS_TXT_TIMEOUT_SECONDS,
)
from mediguard.exceptions import FetchFailed, RobotsDisallowed
from mediguard.extractor import PageExtractor
from mediguard.fetcher import PageFetcher
from mediguard.models import CrawlState, CrawlStatus, FetchResult, PageContent
from mediguard.robots import RobotsPolicy
from mediguard.scope import UrlScope, normalize_url

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class SiteCrawler:
    """Crawls one site using breadth-first search (BFS).

    The crawler:
    - Checks robots.txt before fetching anything
    - Stays on the seed host (optionally its subdomains)
    - Visits each URL at most once, never deeper than max_depth
    - Stops at max_pages results, an empty frontier or the deadline
    """

    def __init__(
        self,
        config: Optional[ScanConfiguration] = None,
        user_agent: Optional[str] = None,
        fetcher: Optional[PageFetcher] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        render_js: bool = True,
    ):
        """Initialize the site crawler.

        Args:
            config: Crawl bounds and politeness rules
            user_agent: User agent for robots.txt matching and fetching
            fetcher: Optional pre-built PageFetcher (opened by crawl_site)
            http_client: Optional httpx client for robots.txt and static fetching
            render_js: Try the browser transport before static HTTP
        """
        self.config = config or ScanConfiguration()
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.http_client = http_client
        self.render_js = render_js
        self._fetcher = fetcher

    def _build_fetcher(self) -> PageFetcher:
        if self._fetcher is not None:
            return self._fetcher
        return PageFetcher(
            self.config,
            user_agent=self.user_agent,
            render_js=self.render_js,
            http_client=self.http_client,
        )

    async def _load_robots(self, seed_url: str) -> RobotsPolicy:
        if not self.config.respect_robots_txt:
            return RobotsPolicy.allow_all()

        if self.http_client is not None:
            return await RobotsPolicy.fetch(seed_url, self.http_client, self.user_agent)

        async with httpx.AsyncClient(
            timeout=ROBOTS_TXT_TIMEOUT_SECONDS, follow_redirects=True
        ) as client:
            return await RobotsPolicy.fetch(seed_url, client, self.user_agent)

    async def crawl_site(
        self,
        seed_url: str,
        on_progress: Optional[ProgressCallback] = None,
        state: Optional[CrawlState] = None,
        deadline: Optional[float] = None,
    ) -> CrawlState:
        """Crawl a site starting from a seed URL.

        Args:
            seed_url: The starting URL
            on_progress: Called as (current_url, completed, estimated_total)
                for every dequeued URL, including ones then skipped
            state: Optional state to fill in; a caller that cancels the crawl
                can read partial results from it
            deadline: Optional wall-clock budget in seconds

        Returns:
            The finished CrawlState. Its status is DONE, or FAILED when no page
            could be fetched (results then holds one synthetic failure page).

        Raises:
            RobotsDisallowed: If robots.txt forbids crawling the seed URL
        """
        seed_url = normalize_url(seed_url)
        state = state if state is not None else CrawlState()
        state.seed_url = seed_url
        deadline_at = time.monotonic() + deadline if deadline is not None else None

        scope = UrlScope(
            seed_url,
            include_subdomains=self.config.include_subdomains,
            exclude_patterns=self.config.exclude_patterns,
        )

        state.status = CrawlStatus.ROBOTS_CHECK
        robots = await self._load_robots(seed_url)
        state.robots_found = robots.found
        rule = robots.blocking_rule(seed_url)
        if rule is not None:
            state.status = CrawlStatus.BLOCKED
            state.error = f"Disallowed by robots.txt rule: {rule}"
            logger.warning(f"robots.txt blocks crawling of {seed_url} (Disallow: {rule})")
            raise RobotsDisallowed(seed_url, rule)

        logger.info(f"Starting site crawl from: {seed_url}")
        logger.info(f"Max pages: {self.config.max_pages}, Max depth: {self.config.max_depth}")

        state.status = CrawlStatus.CRAWLING
        state.enqueue(seed_url, 0)

        async with self._build_fetcher() as fetcher:
            state.transport = fetcher.transport_name
            state.degraded = fetcher.degraded
            await self._crawl_loop(state, fetcher, scope, robots, on_progress, deadline_at)

        if not state.results:
            reason = (
                state.failed.get(seed_url)
                or next(iter(state.failed.values()), None)
                or "No pages could be fetched"
            )
            state.status = CrawlStatus.FAILED
            state.error = reason
            state.results.append(PageContent.failed(seed_url, reason))
            logger.error(f"Crawl failed for {seed_url}: {reason}")
        else:
            state.status = CrawlStatus.DONE
            logger.info(
                f"Crawl complete! Processed {state.completed} pages "
                f"(failed: {len(state.failed)}, transport: {state.transport})"
            )

        return state

    async def _crawl_loop(
        self,
        state: CrawlState,
        fetcher: PageFetcher,
        scope: UrlScope,
        robots: RobotsPolicy,
        on_progress: Optional[ProgressCallback],
        deadline_at: Optional[float],
    ) -> None:
        max_pages = self.config.max_pages
        max_depth = self.config.max_depth
        fetch_timeout = self.config.timeout_seconds + FETCH_TIMEOUT_GRACE_SECONDS

        while state.frontier and state.completed < max_pages:
            if deadline_at is not None and time.monotonic() >= deadline_at:
                state.deadline_reached = True
                logger.warning(
                    f"Crawl deadline reached after {state.completed} pages; "
                    "returning partial results"
                )
                break

            url, depth = state.pop()

            if on_progress:
                estimated_total = min(max_pages, state.completed + len(state.frontier) + 1)
                on_progress(url, state.completed, estimated_total)

            if url in state.visited:
                continue
            if depth > max_depth:
                continue
            if scope.is_excluded(url):
                logger.debug(f"Skipping {url} (excluded)")
                continue
            if not robots.allows(url):
                logger.info(f"Skipping {url} (disallowed by robots.txt)")
                continue

            state.visited.add(url)

            timeout = fetch_timeout
            if deadline_at is not None:
                timeout = max(0.0, min(timeout, deadline_at - time.monotonic()))

            try:
                fetched = await asyncio.wait_for(fetcher.fetch(url), timeout=timeout)
            except FetchFailed as e:
                state.failed[url] = e.reason
                logger.warning(f"Failed to fetch {url}: {e.reason}")
                continue
            except asyncio.TimeoutError:
                state.failed[url] = f"Timed out after {timeout:.1f}s"
                logger.warning(f"Timed out fetching {url}")
                continue
            finally:
                state.transport = fetcher.transport_name
                state.degraded = fetcher.degraded

            page_url = self._landing_url(url, fetched, state, scope, robots)
            if page_url is None:
                continue

            extractor = PageExtractor(
                scope, min_paragraph_length=MIN_PARAGRAPH_LENGTH.get(fetched.transport, 0)
            )
            page = extractor.extract(fetched.html, page_url)
            state.results.append(page)
            state.depths[page_url] = depth
            logger.info(f"[{state.completed}/{max_pages}] {page_url} (depth {depth})")

            if depth + 1 > max_depth:
                continue

            for link in page.links:
                if not link.is_internal:
                    continue
                target = normalize_url(link.href)
                if scope.should_enqueue(target):
                    state.enqueue(target, depth + 1)

    @staticmethod
    def _landing_url(
        url: str,
        fetched: FetchResult,
        state: CrawlState,
        scope: UrlScope,
        robots: RobotsPolicy,
    ) -> Optional[str]:
        """URL a fetched page is recorded under, after following redirects.

        Returns None (and records why) when the redirect left the site, landed
        on an excluded or disallowed path, or landed on a page already crawled.
        """
        final_url = normalize_url(fetched.final_url) if fetched.final_url else url
        if final_url == url:
            return url

        if not scope.is_internal(final_url):
            state.failed[url] = f"Redirected off-site to {final_url}"
            logger.warning(f"Skipping {url}: redirected off-site to {final_url}")
            return None
        if scope.is_excluded(final_url) or not robots.allows(final_url):
            state.failed[url] = f"Redirected to excluded URL {final_url}"
            logger.info(f"Skipping {url}: redirected to excluded URL {final_url}")
            return None
        if final_url in state.visited:
            logger.debug(f"Skipping {url}: redirected to already crawled {final_url}")
            return None

        logger.debug(f"{url} redirected to {final_url}")
        state.visited.add(final_url)
        state.queued.add(final_url)
        return final_url


async def start_crawl(
    seed_url: str,
    config: Optional[ScanConfiguration] = None,
    on_progress: Optional[ProgressCallback] = None,
    **kwargs,
) -> List[PageContent]:
    """Crawl a site and return its pages.

    Args:
        seed_url: The starting URL
        config: Crawl bounds and politeness rules
        on_progress: Optional progress callback
        **kwargs: Passed to SiteCrawler (user_agent, fetcher, http_client,
            render_js) or crawl_site (state, deadline)

    Returns:
        Between 1 and max_pages PageContent records

    Raises:
        RobotsDisallowed: If robots.txt forbids crawling the seed URL
    """
    state = kwargs.pop("state", None)
    deadline = kwargs.pop("deadline", None)
    crawler = SiteCrawler(config, **kwargs)
    result = await crawler.crawl_site(
        seed_url, on_progress=on_progress, state=state, deadline=deadline
    )
    return list(result.results)
