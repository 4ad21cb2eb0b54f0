"""
LLM-backed EndemicAssessor.

Categorizes a completed malaria/endemic screening questionnaire. The
danger-sign override is NOT delegated here: the screening wizard applies
it locally to whatever this assessor returns.
"""

import logging
from typing import Optional

from triage.collaborators.protocols import LLMClientProtocol
from triage.errors import MalformedResponseError
from triage.models.enums import Language
from triage.models.patient import AgeSex
from triage.models.screening import EndemicAssessment, ScreeningAnswers
from triage.utils.parsing import extract_json, snake_keys


logger = logging.getLogger(__name__)


ENDEMIC_PROMPT_TEMPLATE = """CLINICAL QUESTIONNAIRE DATA (Malaria/Endemic Screening Protocol):
{answers}

Patient Info: Age {age}, Sex {sex}

Task:
1. Categorize risk: Severe Endemic Disease Suspected, Non-severe Disease Suspected, Respiratory, Diarrheal, or Other.
2. Recommendation: Referral to Hospital, Lab Test, or Managed Self-medication.

Return JSON {{"risk_level": string, "recommendation": string, "summary": string}}.
Respond in {language}."""

LANGUAGE_NAMES = {
    Language.EN: "English",
    Language.PT: "Portuguese",
}


class LLMEndemicAssessor:
    """EndemicAssessor implemented with a chat-completion model."""

    name = "endemic_assessor"

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        model: str = "google/gemini-3-pro-preview",
        language: Language = Language.EN,
        max_tokens: Optional[int] = 800,
    ):
        self.llm_client = llm_client
        self.model = model
        self.language = language
        self.max_tokens = max_tokens

    async def assess(self, answers: ScreeningAnswers, age_sex: AgeSex) -> EndemicAssessment:
        prompt = ENDEMIC_PROMPT_TEMPLATE.format(
            answers=answers.as_prompt(),
            age=age_sex.age,
            sex=age_sex.sex.value,
            language=LANGUAGE_NAMES.get(self.language, "English"),
        )

        response = await self.llm_client.complete(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.1,
            max_tokens=self.max_tokens,
            json_mode=True,
        )

        data = snake_keys(extract_json(response.content, collaborator=self.name))
        if not isinstance(data, dict) or not str(data.get("risk_level") or "").strip():
            raise MalformedResponseError("Missing risk_level", collaborator=self.name)

        return EndemicAssessment(
            risk_level=str(data["risk_level"]),
            recommendation=str(data.get("recommendation") or ""),
            summary=str(data.get("summary") or ""),
        )
