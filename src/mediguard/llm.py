"""LLM client used by the generative violation source."""

from typing import Optional
import os
import logging

from mediguard.constants import (
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_PROVIDER,
    DEFAULT_LLM_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class LLMClient:
    """Client for a chat-completion LLM.

    One call per request: a hard timeout and no retries, so a slow or failing
    provider costs at most ``timeout`` seconds per text blob.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_LLM_MODEL,
        provider: str = DEFAULT_LLM_PROVIDER,
        max_tokens: int = DEFAULT_LLM_MAX_TOKENS,
        timeout: float = DEFAULT_LLM_TIMEOUT_SECONDS,
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider
            model: Model name to use
            provider: LLM provider (openai, anthropic)
            max_tokens: Maximum tokens for LLM response
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        self.model = model
        self.provider = provider
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

        if not self.api_key:
            raise ValueError(
                "API key must be provided or set in LLM_API_KEY environment variable"
            )

        if provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported provider: {provider}")

    def complete(self, system: str, prompt: str, temperature: float = 0.3) -> str:
        """Send one system + user prompt pair and return the reply text.

        Args:
            system: System prompt
            prompt: User prompt
            temperature: Sampling temperature

        Returns:
            Response text (empty string when the model returned nothing)

        Raises:
            Exception: Whatever the provider SDK raises (timeouts, auth, rate limits)
        """
        logger.debug(f"Calling {self.provider} model {self.model} ({len(prompt)} prompt chars)")
        if self.provider == "anthropic":
            return self._call_anthropic(system, prompt, temperature)
        return self._call_openai(system, prompt, temperature)

    def _call_openai(self, system: str, prompt: str, temperature: float) -> str:
        """Call OpenAI API.

        Args:
            system: System prompt
            prompt: The prompt to send
            temperature: Sampling temperature

        Returns:
            Response text
        """
        try:
            import openai
        except ImportError:
            raise ImportError(
                "openai package not installed. Install with: pip install openai"
            )

        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=self.max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _call_anthropic(self, system: str, prompt: str, temperature: float) -> str:
        """Call Anthropic API.

        Args:
            system: System prompt
            prompt: The prompt to send
            temperature: Sampling temperature

        Returns:
            Response text
        """
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic package not installed. Install with: pip install 'mediguard[anthropic]'"
            )

        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        response = self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.content:
            return ""
        return response.content[0].text or ""
