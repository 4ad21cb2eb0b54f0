"""Tests for LLM client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from tenacity import wait_none

from triage.errors import MalformedResponseError, RateLimitedError, UnavailableError
from triage.llm import LLMClient, MockLLMClient, translate_error
from triage.llm.client import build_multimodal_message, encode_file_for_message
from triage.models import LLMResponse


REQUEST = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def _completion(content: str = "ok"):
    """Shape of an OpenAI chat completion response."""
    choice = MagicMock()
    choice.message.content = content
    choice.finish_reason = "stop"
    response = MagicMock()
    response.choices = [choice]
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 5
    return response


def _client(*side_effect) -> LLMClient:
    client = LLMClient(api_key="test-key")
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock(side_effect=list(side_effect))
    return client


class TestMockLLMClient:
    """Tests for MockLLMClient."""

    @pytest.mark.asyncio
    async def test_mock_client_returns_response(self):
        """Test that mock client returns a valid response."""
        client = MockLLMClient()

        response = await client.complete(
            model="test/model",
            messages=[{"role": "user", "content": "Hello"}],
        )

        assert isinstance(response, LLMResponse)
        assert response.model == "test/model"
        assert response.content == "{}"

    @pytest.mark.asyncio
    async def test_mock_client_records_calls(self):
        """Test that mock client records all calls."""
        client = MockLLMClient(responses={"model-a": '{"a": 1}'})

        await client.complete(model="model-a", messages=[{"role": "user", "content": "First"}], temperature=0.5)
        await client.complete_multimodal(
            model="model-b",
            messages=[{"role": "user", "content": "Second"}],
            files=[(b"data", "image/png")],
        )

        assert len(client.calls) == 2
        assert client.calls[0]["temperature"] == 0.5
        assert client.calls[1]["files"] == [(b"data", "image/png")]

    @pytest.mark.asyncio
    async def test_mock_client_error(self):
        client = MockLLMClient(error=UnavailableError("down"))
        with pytest.raises(UnavailableError):
            await client.complete(model="m", messages=[])
        assert len(client.calls) == 1


class TestErrorTranslation:
    """Tests for mapping SDK errors onto the collaborator taxonomy."""

    def test_rate_limit(self):
        error = openai.RateLimitError("slow", response=httpx.Response(429, request=REQUEST), body=None)
        assert isinstance(translate_error(error), RateLimitedError)

    @pytest.mark.parametrize("error", [
        openai.APIConnectionError(request=REQUEST),
        openai.InternalServerError("boom", response=httpx.Response(502, request=REQUEST), body=None),
        httpx.ConnectTimeout("timed out"),
    ])
    def test_unavailable(self, error):
        translated = translate_error(error)
        assert isinstance(translated, UnavailableError)
        assert translated.retryable

    def test_other_status(self):
        error = openai.BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None)
        translated = translate_error(error)
        assert isinstance(translated, UnavailableError)
        assert "400" in str(translated)


class TestLLMClient:
    """Tests for LLMClient."""

    def test_client_requires_api_key(self):
        """Test that client raises error without API key."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError) as exc_info:
                LLMClient()

            assert "API key required" in str(exc_info.value)

    def test_client_reads_env_api_key(self):
        """Test that client reads API key from environment."""
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "env-key"}):
            client = LLMClient()
            assert client.api_key == "env-key"

    def test_client_sets_openrouter_base_url(self):
        """Test that client uses OpenRouter base URL."""
        client = LLMClient(api_key="test-key")
        assert client.client.base_url.host == "openrouter.ai"
        assert client.client.max_retries == 0

    @pytest.mark.asyncio
    async def test_complete(self):
        client = _client(_completion("hello"))

        response = await client.complete(model="m", messages=[{"role": "user", "content": "hi"}], json_mode=True)

        assert response.content == "hello"
        assert response.input_tokens == 10
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_no_choices_is_malformed(self):
        empty = _completion()
        empty.choices = []
        client = _client(empty)

        with pytest.raises(MalformedResponseError):
            await client.complete(model="m", messages=[])

    @pytest.mark.asyncio
    async def test_unavailable_is_retried(self):
        client = _client(openai.APIConnectionError(request=REQUEST), _completion("recovered"))
        complete = LLMClient.complete.retry_with(wait=wait_none())

        response = await complete(client, model="m", messages=[])

        assert response.content == "recovered"
        assert client.client.chat.completions.create.await_count == 2

    @pytest.mark.asyncio
    async def test_retry_gives_up_after_three_attempts(self):
        client = _client(*[openai.APIConnectionError(request=REQUEST)] * 3)
        complete = LLMClient.complete.retry_with(wait=wait_none())

        with pytest.raises(UnavailableError):
            await complete(client, model="m", messages=[])
        assert client.client.chat.completions.create.await_count == 3

    @pytest.mark.asyncio
    async def test_rate_limit_not_retried(self):
        error = openai.RateLimitError("slow", response=httpx.Response(429, request=REQUEST), body=None)
        client = _client(error, _completion())

        with pytest.raises(RateLimitedError):
            await client.complete(model="m", messages=[])
        assert client.client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_multimodal_attaches_files_to_last_user_message(self):
        client = _client(_completion())

        await client.complete_multimodal(
            model="m",
            messages=[{"role": "user", "content": "Summarize"}],
            files=[(b"png", "image/png")],
        )

        sent = client.client.chat.completions.create.call_args.kwargs["messages"][-1]
        assert sent["content"][0] == {"type": "text", "text": "Summarize"}
        assert sent["content"][1]["type"] == "image_url"


class TestMessageBuilding:
    """Tests for multimodal message helpers."""

    def test_pdf_uses_file_part(self):
        part = encode_file_for_message(b"%PDF", "application/pdf")
        assert part["type"] == "file"
        assert part["file"]["file_data"].startswith("data:application/pdf;base64,")

    def test_text_only_message(self):
        assert build_multimodal_message("user", "hi") == {"role": "user", "content": "hi"}
