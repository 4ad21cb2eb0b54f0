"""
OpenRouter LLM client used by the collaborator adapters.

OpenRouter speaks the OpenAI chat-completions protocol, so the OpenAI SDK
is pointed at its base URL. SDK and transport failures leave this module
as collaborator errors; only UnavailableError is retried.
"""

import base64
import logging
import os
from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from triage.errors import (
    CollaboratorError,
    MalformedResponseError,
    RateLimitedError,
    UnavailableError,
)
from triage.models.assessment import LLMResponse


logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"

FileParts = Optional[list[tuple[bytes, str]]]


def encode_file_for_message(data: bytes, mime_type: str, filename: str = "document.pdf") -> dict:
    """
    Turn raw bytes into a content part.

    Images go out as ``image_url`` parts; PDFs as ``file`` parts, which is
    the shape Gemini models on OpenRouter accept for documents.
    """
    url = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
    if mime_type == PDF_MIME:
        return {"type": "file", "file": {"filename": filename, "file_data": url}}
    return {"type": "image_url", "image_url": {"url": url}}


def build_multimodal_message(role: str, text: str, files: FileParts = None) -> dict:
    """Chat message with ``text`` first and one part per attached file."""
    if not files:
        return {"role": role, "content": text}
    parts = [{"type": "text", "text": text}]
    parts.extend(encode_file_for_message(data, mime) for data, mime in files)
    return {"role": role, "content": parts}


def translate_error(error: Exception) -> CollaboratorError:
    """Map an OpenAI SDK or httpx error onto the collaborator taxonomy."""
    if isinstance(error, openai.RateLimitError):
        return RateLimitedError(str(error), collaborator="llm")
    if isinstance(error, (openai.APIConnectionError, openai.InternalServerError, httpx.HTTPError)):
        return UnavailableError(str(error), collaborator="llm")
    if isinstance(error, openai.APIStatusError):
        return UnavailableError(f"LLM API returned status {error.status_code}", collaborator="llm")
    return UnavailableError(str(error), collaborator="llm")


_retry_unavailable = retry(
    retry=retry_if_exception_type(UnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class LLMClient:
    """Async OpenRouter client."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
        timeout: float = 60.0,
    ):
        """
        Args:
            api_key: OpenRouter key; OPENROUTER_API_KEY is used when omitted
            site_url: HTTP-Referer sent for OpenRouter attribution
            site_name: X-Title sent for OpenRouter attribution
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If no API key is available
        """
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenRouter API key required. Set OPENROUTER_API_KEY or configure "
                "openrouter_api_key in settings."
            )

        self.site_url = site_url or os.getenv("OPENROUTER_SITE_URL", "http://localhost:8000")
        self.site_name = site_name or os.getenv("OPENROUTER_SITE_NAME", "Triage Assist")

        # Retries are handled by tenacity so rate limits are never retried
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.OPENROUTER_BASE_URL,
            timeout=timeout,
            max_retries=0,
            default_headers={"HTTP-Referer": self.site_url, "X-Title": self.site_name},
        )

    @_retry_unavailable
    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            model: OpenRouter model id
            messages: Chat messages
            temperature: Sampling temperature
            max_tokens: Completion cap, provider default when None
            json_mode: Ask for a JSON object response

        Raises:
            RateLimitedError: Provider returned 429
            UnavailableError: Network, timeout or server failure after retries
            MalformedResponseError: Response carried no choices
        """
        request = {"model": model, "messages": messages, "temperature": temperature}
        if max_tokens:
            request["max_tokens"] = max_tokens
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**request)
        except (openai.OpenAIError, httpx.HTTPError) as e:
            error = translate_error(e)
            logger.warning(f"LLM call to {model} failed: {error.__class__.__name__}: {e}")
            raise error from e

        if not response.choices:
            raise MalformedResponseError(f"{model} returned no choices", collaborator="llm")

        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            model=model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            finish_reason=choice.finish_reason or "stop",
        )

    async def complete_multimodal(
        self,
        model: str,
        messages: list[dict],
        files: FileParts = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Like complete(), with files attached to a trailing user message."""
        if files and messages and messages[-1].get("role") == "user":
            last = messages[-1]
            messages = messages[:-1] + [
                build_multimodal_message("user", last.get("content", ""), files)
            ]

        return await self.complete(
            model,
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=json_mode,
        )


class MockLLMClient:
    """
    Offline stand-in for LLMClient.

    Answers with canned content per model ("{}" otherwise), or raises the
    configured error, and records every call in ``calls``.
    """

    def __init__(
        self,
        responses: Optional[dict[str, str]] = None,
        error: Optional[Exception] = None,
    ):
        self.responses = responses or {}
        self.error = error
        self.calls: list[dict] = []

    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append({
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        if self.error is not None:
            raise self.error

        content = self.responses.get(model, "{}")
        return LLMResponse(
            content=content,
            model=model,
            input_tokens=sum(len(str(m.get("content", ""))) // 4 for m in messages),
            output_tokens=len(content) // 4,
        )

    async def complete_multimodal(
        self,
        model: str,
        messages: list[dict],
        files: FileParts = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        response = await self.complete(model, messages, temperature, max_tokens, json_mode)
        self.calls[-1]["files"] = files or []
        return response
