"""
LLM-backed AddressSuggester.

Completes partial street or neighborhood input into structured
Mozambican addresses.
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from triage.collaborators.protocols import LLMClientProtocol
from triage.errors import MalformedResponseError
from triage.models.patient import DEFAULT_COUNTRY, PatientLocation
from triage.utils.parsing import extract_json


logger = logging.getLogger(__name__)


MAX_SUGGESTIONS = 5

ADDRESS_PROMPT_TEMPLATE = """Provide a list of {limit} real address suggestions in Mozambique based on this partial input: "{partial}".
The results should be specific to urban or rural areas in Mozambique.
Return a JSON array of objects with fields: street, bairro, distrito, cidade, country (fixed as {country})."""


class LLMAddressSuggester:
    """AddressSuggester implemented with a chat-completion model."""

    name = "address_suggester"

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        model: str = "google/gemini-3-flash-preview",
        limit: int = MAX_SUGGESTIONS,
    ):
        self.llm_client = llm_client
        self.model = model
        self.limit = min(limit, MAX_SUGGESTIONS)

    async def suggest(self, partial: str) -> list[PatientLocation]:
        prompt = ADDRESS_PROMPT_TEMPLATE.format(
            limit=self.limit,
            partial=partial.replace('"', "'"),
            country=DEFAULT_COUNTRY,
        )

        response = await self.llm_client.complete(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=800,
        )

        data = extract_json(response.content, collaborator=self.name)
        # Some models wrap the array in an object
        if isinstance(data, dict):
            data = next((v for v in data.values() if isinstance(v, list)), None)
        if not isinstance(data, list):
            raise MalformedResponseError("Expected a list of addresses", collaborator=self.name)

        candidates = []
        for item in data:
            try:
                candidates.append(PatientLocation.model_validate(item))
            except PydanticValidationError:
                logger.debug(f"Skipping malformed address candidate: {item!r}")
        return candidates[: self.limit]
