"""
LLM-backed DocumentExtractor.

Summarizes photographed or uploaded clinical documents (lab results,
prescriptions, discharge letters) and recovers the date printed on them.
"""

import logging

from triage.collaborators.protocols import LLMClientProtocol
from triage.errors import MalformedResponseError
from triage.models.assessment import ExtractionResult
from triage.utils.parsing import extract_json, parse_date, snake_keys


logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """Analyze this clinical document (lab result, prescription, report or similar).

Return JSON {"summary": string, "document_date": "YYYY-MM-DD" or null}.
- "summary": the clinically relevant content in a few sentences
- "document_date": the date printed on the document, null if none is visible"""


class LLMDocumentExtractor:
    """DocumentExtractor implemented with a multimodal model."""

    name = "document_extractor"

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        model: str = "google/gemini-3-flash-preview",
    ):
        self.llm_client = llm_client
        self.model = model

    async def extract(self, data: bytes, mime_type: str) -> ExtractionResult:
        response = await self.llm_client.complete_multimodal(
            model=self.model,
            messages=[{"role": "user", "content": EXTRACTION_PROMPT}],
            files=[(data, mime_type)],
            temperature=0.1,
            max_tokens=800,
            json_mode=True,
        )

        payload = snake_keys(extract_json(response.content, collaborator=self.name))
        summary = str(payload.get("summary") or "").strip() if isinstance(payload, dict) else ""
        if not summary:
            raise MalformedResponseError("Missing summary", collaborator=self.name)

        document_date = parse_date(payload.get("document_date"))
        if payload.get("document_date") and document_date is None:
            logger.info(f"Ignoring unparseable document date {payload.get('document_date')!r}")

        return ExtractionResult(summary=summary, document_date=document_date)
