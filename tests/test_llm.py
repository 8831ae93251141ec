"""Tests for the LLM client."""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from mediguard.llm import LLMClient


def _openai_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestLLMClient:
    """Test cases for LLMClient."""

    def test_requires_api_key(self):
        """Test that a missing key is rejected."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError):
                LLMClient()

    def test_key_from_environment(self):
        """Test the LLM_API_KEY fallback."""
        with patch.dict("os.environ", {"LLM_API_KEY": "env-key"}, clear=True):
            assert LLMClient().api_key == "env-key"

    def test_unsupported_provider(self):
        """Test that unknown providers are rejected."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            LLMClient(api_key="sk-test", provider="llama")

    def test_openai_call(self):
        """Test one OpenAI call with a hard timeout and no retries."""
        fake_sdk = Mock()
        fake_sdk.chat.completions.create.return_value = _openai_response("[]")

        with patch("openai.OpenAI", return_value=fake_sdk) as constructor:
            client = LLMClient(api_key="sk-test", model="gpt-4o", timeout=12.0)
            reply = client.complete("system text", "user text", temperature=0.1)

        assert reply == "[]"
        constructor.assert_called_once_with(api_key="sk-test", timeout=12.0, max_retries=0)

        kwargs = fake_sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    def test_openai_client_reused(self):
        """Test the SDK client is created once per LLMClient."""
        fake_sdk = Mock()
        fake_sdk.chat.completions.create.return_value = _openai_response("ok")

        with patch("openai.OpenAI", return_value=fake_sdk) as constructor:
            client = LLMClient(api_key="sk-test")
            client.complete("s", "p")
            client.complete("s", "p")

        assert constructor.call_count == 1

    def test_openai_empty_reply(self):
        """Test empty replies come back as an empty string."""
        fake_sdk = Mock()
        fake_sdk.chat.completions.create.return_value = _openai_response(None)

        with patch("openai.OpenAI", return_value=fake_sdk):
            assert LLMClient(api_key="sk-test").complete("s", "p") == ""

    def test_errors_propagate(self):
        """Test provider errors are raised to the caller."""
        fake_sdk = Mock()
        fake_sdk.chat.completions.create.side_effect = TimeoutError("timed out")

        with patch("openai.OpenAI", return_value=fake_sdk):
            with pytest.raises(TimeoutError):
                LLMClient(api_key="sk-test").complete("s", "p")

    def test_anthropic_call(self):
        """Test one Anthropic call with the system prompt passed separately."""
        pytest.importorskip("anthropic")
        fake_sdk = Mock()
        fake_sdk.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(text="[]")]
        )

        with patch("anthropic.Anthropic", return_value=fake_sdk) as constructor:
            client = LLMClient(api_key="ant-key", provider="anthropic", model="claude-test")
            reply = client.complete("system text", "user text")

        assert reply == "[]"
        constructor.assert_called_once_with(api_key="ant-key", timeout=60.0, max_retries=0)
        kwargs = fake_sdk.messages.create.call_args.kwargs
        assert kwargs["system"] == "system text"
        assert kwargs["messages"] == [{"role": "user", "content": "user text"}]
