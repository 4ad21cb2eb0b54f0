"""
LLM-backed RiskAssessor.

Classifies a symptom narrative against the patient's profile and recent
timeline into LOW / MODERATE / HIGH risk with structured guidance.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from triage.collaborators.protocols import LLMClientProtocol
from triage.errors import MalformedResponseError
from triage.models.assessment import TriageResult
from triage.models.patient import Patient
from triage.models.record import MedicalRecord
from triage.utils.parsing import as_str_list, extract_json, snake_keys


logger = logging.getLogger(__name__)


RISK_SYSTEM_PROMPT = """You are an expert medical triage assistant. Analyze the symptoms provided and the patient's history. Determine the risk level and provide a structured assessment. Be conservative with risk levels. If symptoms sound life-threatening, use 'HIGH RISK / EMERGENCY'.

Respond ONLY with a JSON object with these keys:
- "risk_level": exactly one of "LOW RISK", "MODERATE RISK", "HIGH RISK / EMERGENCY"
- "reason": string
- "top_questions": list of strings
- "possible_causes": list of {"name", "rationale", "confidence" (0-1)}
- "next_actions": list of {"urgency", "details"}
- "otc_options": list of {"name", "purpose", "warnings"}
- "when_to_seek_care": list of strings"""

RISK_PROMPT_TEMPLATE = """Patient Profile:
{profile}

Recent History:
{history}

Symptoms:
{narrative}"""


def format_history(records: list[MedicalRecord], max_chars: int = 400) -> str:
    if not records:
        return "None"
    lines = []
    for record in records:
        content = record.content.strip().replace("\n", " ")
        if len(content) > max_chars:
            content = content[:max_chars] + "..."
        lines.append(f"- {record.sort_date:%Y-%m-%d}: {content}")
    return "\n".join(lines)


class LLMRiskAssessor:
    """RiskAssessor implemented with a chat-completion model."""

    name = "risk_assessor"

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        model: str = "google/gemini-3-pro-preview",
        temperature: float = 0.2,
        max_tokens: Optional[int] = 2000,
    ):
        self.llm_client = llm_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def assess(
        self,
        patient: Patient,
        narrative: str,
        recent_history: list[MedicalRecord],
    ) -> TriageResult:
        """
        Assess a symptom narrative.

        Raises:
            CollaboratorError subclasses on transport or parse failure
        """
        user_prompt = RISK_PROMPT_TEMPLATE.format(
            profile=patient.profile_text(),
            history=format_history(recent_history),
            narrative=narrative.strip(),
        )

        response = await self.llm_client.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": RISK_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=True,
        )

        data = snake_keys(extract_json(response.content, collaborator=self.name))
        if not isinstance(data, dict) or "risk_level" not in data:
            raise MalformedResponseError("Missing risk_level", collaborator=self.name)

        for key in ("top_questions", "when_to_seek_care"):
            data[key] = as_str_list(data.get(key))

        try:
            return TriageResult.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Risk assessment failed validation: {e.error_count()} errors")
            raise MalformedResponseError("Invalid triage result", collaborator=self.name) from e
