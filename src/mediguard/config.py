from dotenv import load_dotenv
from dataclasses import dataclass
from typing import List, Optional
import os

from pydantic import BaseModel, ConfigDict, Field

from mediguard.constants import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_PROVIDER,
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_MAX_CONTENT_CHARS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def resolve_api_key(provider: str) -> Optional[str]:
    """Pick the API key for a provider from the environment.

    Args:
        provider: LLM provider name (openai, anthropic)

    Returns:
        The provider-specific key, else LLM_API_KEY, else None
    """
    specific = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
    }.get(provider)
    if specific and os.getenv(specific):
        return os.getenv(specific)
    return os.getenv("LLM_API_KEY")


@dataclass
class Config:
    """Runtime configuration for the scanner."""
    llm_api_key: Optional[str] = None
    llm_model: str = DEFAULT_LLM_MODEL
    llm_provider: str = DEFAULT_LLM_PROVIDER
    llm_max_tokens: int = DEFAULT_LLM_MAX_TOKENS
    llm_timeout: float = DEFAULT_LLM_TIMEOUT_SECONDS
    max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS
    user_agent: str = DEFAULT_USER_AGENT
    render_js: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config: Configuration instance with values from environment
        """
        provider = os.getenv("LLM_PROVIDER", DEFAULT_LLM_PROVIDER)
        return cls(
            llm_api_key=resolve_api_key(provider),
            llm_model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
            llm_provider=provider,
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", str(DEFAULT_LLM_MAX_TOKENS))),
            llm_timeout=float(os.getenv("LLM_TIMEOUT", str(DEFAULT_LLM_TIMEOUT_SECONDS))),
            max_content_chars=int(os.getenv("MAX_CONTENT_CHARS", str(DEFAULT_MAX_CONTENT_CHARS))),
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            render_js=_env_bool("RENDER_JS", True),
        )


class ScanConfiguration(BaseModel):
    """
    Bounds and politeness rules for one site crawl.

    All fields are validated by Pydantic so a crawl can never start with a
    negative page budget or an unbounded timeout.
    """

    model_config = ConfigDict(frozen=True)

    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES,
        description="Maximum number of pages returned by the crawl",
        ge=1,
        le=500,
    )

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        description="Maximum link hops from the seed URL (seed is depth 0)",
        ge=0,
        le=20,
    )

    include_subdomains: bool = Field(
        default=False,
        description="Treat subdomains of the seed host as in scope",
    )

    exclude_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Case-insensitive path substrings that are never fetched",
    )

    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Per-navigation timeout in milliseconds",
        ge=1000,
        le=300000,
    )

    respect_robots_txt: bool = Field(
        default=True,
        description="Check robots.txt before crawling",
    )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls) -> "ScanConfiguration":
        """Load a scan configuration from environment variables.

        Environment variables are prefixed with MEDIGUARD_SCAN_,
        e.g. MEDIGUARD_SCAN_MAX_PAGES=25. Exclude patterns are comma separated.

        Returns:
            ScanConfiguration with values from environment
        """
        prefix = "MEDIGUARD_SCAN_"
        values = {}

        for field_name in cls.model_fields:
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue
            if field_name == "exclude_patterns":
                values[field_name] = [p.strip() for p in env_value.split(",") if p.strip()]
            elif field_name in ("include_subdomains", "respect_robots_txt"):
                values[field_name] = env_value.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[field_name] = env_value

        return cls(**values)
