"""robots.txt loading and gating.

Only User-agent and Disallow directives are honoured. A group applies when
its agent is "*" or matches our user agent token. A missing or unreadable
robots.txt allows everything.
"""

import logging
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from mediguard.constants import ROBOTS_TXT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def _agent_token(user_agent: str) -> str:
    """Product token of a user agent, e.g. 'mediguard-ai-scanner'."""
    return user_agent.strip().split("/", 1)[0].split(" ", 1)[0].lower()


class RobotsPolicy:
    """Disallow rules from robots.txt that apply to this crawler."""

    def __init__(self, disallowed: Optional[List[str]] = None, found: bool = False):
        self.disallowed = list(disallowed or [])
        self.found = found

    @classmethod
    def allow_all(cls) -> "RobotsPolicy":
        return cls([], found=False)

    @classmethod
    def parse(cls, content: str, user_agent: str) -> "RobotsPolicy":
        """Parse robots.txt content.

        Args:
            content: Raw robots.txt body
            user_agent: Our user agent string

        Returns:
            RobotsPolicy holding the applicable Disallow paths
        """
        token = _agent_token(user_agent)
        disallowed: List[str] = []
        agents: set = set()
        in_rules = False

        for raw_line in content.splitlines():
            line = raw_line.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue

            key, value = line.split(":", 1)
            key = key.strip().lower()
            value = value.strip()

            if key == "user-agent":
                # A user-agent line after rules starts a new group
                if in_rules:
                    agents = set()
                    in_rules = False
                agents.add(value.lower())
            elif key in ("disallow", "allow"):
                in_rules = True
                if key != "disallow" or not value:
                    # Empty Disallow means allow everything for the group
                    continue
                if any(a == "*" or (a and a in token) for a in agents):
                    disallowed.append(value)

        return cls(disallowed, found=True)

    @classmethod
    async def fetch(
        cls,
        seed_url: str,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = ROBOTS_TXT_TIMEOUT_SECONDS,
    ) -> "RobotsPolicy":
        """Fetch and parse robots.txt for the seed's origin.

        Args:
            seed_url: Crawl seed URL
            client: HTTP client to use
            user_agent: Our user agent string
            timeout: Request timeout in seconds

        Returns:
            RobotsPolicy (allow-all when robots.txt is missing or unreadable)
        """
        parsed = urlparse(seed_url)
        robots_url = f"{parsed.scheme}://{parsed.netloc}/robots.txt"

        try:
            response = await client.get(
                robots_url,
                headers={"User-Agent": user_agent, "Accept": "text/plain,text/html,*/*"},
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Could not load robots.txt from {robots_url}: {e}")
            return cls.allow_all()

        if response.status_code != 200:
            logger.info(f"No robots.txt found at {robots_url} (status: {response.status_code})")
            return cls.allow_all()

        policy = cls.parse(response.text, user_agent)
        logger.info(
            f"Loaded robots.txt from {robots_url} "
            f"({len(policy.disallowed)} applicable Disallow rules)"
        )
        return policy

    def blocking_rule(self, url: str) -> Optional[str]:
        """Return the Disallow path that forbids this URL, if any."""
        path = urlparse(url).path or "/"
        for rule in self.disallowed:
            if rule == "/" or path.startswith(rule):
                return rule
        return None

    def allows(self, url: str) -> bool:
        return self.blocking_rule(url) is None
