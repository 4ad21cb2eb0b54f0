"""
Shared Protocol definitions for the external collaborators.

The core only talks to these interfaces, which allows dependency
injection of LLM-backed implementations in production and stubs in tests.
Every collaborator fails with a CollaboratorError subclass
(RateLimitedError, UnavailableError, MalformedResponseError).
"""

from typing import Optional, Protocol

from triage.models.assessment import ExtractionResult, LLMResponse, TriageResult
from triage.models.patient import AgeSex, Patient, PatientLocation
from triage.models.record import MedicalRecord
from triage.models.screening import EndemicAssessment, ScreeningAnswers


class LLMClientProtocol(Protocol):
    """
    Protocol defining the interface for LLM clients.

    Used by the LLM-backed collaborators without coupling them to a
    specific implementation.
    """

    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Complete a chat conversation with the LLM.

        Args:
            model: Model identifier (e.g., "google/gemini-3-pro-preview")
            messages: List of message dicts with "role" and "content"
            temperature: Sampling temperature (0-1)
            max_tokens: Optional maximum tokens to generate
            json_mode: Ask the provider for a JSON object response

        Returns:
            LLMResponse with content and token usage
        """
        ...

    async def complete_multimodal(
        self,
        model: str,
        messages: list[dict],
        files: Optional[list[tuple[bytes, str]]],
        temperature: float,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Complete a multimodal conversation (with files/images).

        Args:
            model: Model identifier
            messages: List of message dicts
            files: Optional list of (content_bytes, mime_type) tuples
            temperature: Sampling temperature
            max_tokens: Optional maximum tokens
            json_mode: Ask the provider for a JSON object response

        Returns:
            LLMResponse with content and token usage
        """
        ...


class RiskAssessor(Protocol):
    """Symptom risk classifier."""

    async def assess(
        self,
        patient: Patient,
        narrative: str,
        recent_history: list[MedicalRecord],
    ) -> TriageResult:
        ...


class EndemicAssessor(Protocol):
    """Endemic-disease questionnaire classifier."""

    async def assess(self, answers: ScreeningAnswers, age_sex: AgeSex) -> EndemicAssessment:
        ...


class DocumentExtractor(Protocol):
    """Summarizes an uploaded clinical document."""

    async def extract(self, data: bytes, mime_type: str) -> ExtractionResult:
        ...


class AddressSuggester(Protocol):
    """Completes a partial address into structured candidates."""

    async def suggest(self, partial: str) -> list[PatientLocation]:
        """Return at most five candidates."""
        ...
