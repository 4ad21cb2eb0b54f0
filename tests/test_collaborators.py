"""Tests for the LLM-backed collaborators."""

import json
from datetime import datetime

import pytest

from triage.collaborators import (
    LLMAddressSuggester,
    LLMDocumentExtractor,
    LLMEndemicAssessor,
    LLMRiskAssessor,
)
from triage.errors import MalformedResponseError
from triage.llm import MockLLMClient
from triage.models import AgeSex, Language, MedicalRecord, Patient, RiskLevel, ScreeningAnswers, Sex


@pytest.fixture
def patient():
    return Patient(id="p1", full_name="Ana", age=30, sex=Sex.FEMALE, known_conditions=["HIV"])


class TestLLMRiskAssessor:
    """Tests for the risk assessor adapter."""

    RESPONSE = {
        "riskLevel": "HIGH RISK / EMERGENCY",
        "reason": "Neck stiffness with fever",
        "topQuestions": ["Any rash?"],
        "possibleCauses": [{"name": "Meningitis", "rationale": "fever, stiff neck", "confidence": 0.6}],
        "nextActions": [{"urgency": "Immediate", "details": "Go to hospital"}],
        "otcOptions": [],
        "whenToSeekCare": "Now",
    }

    @pytest.mark.asyncio
    async def test_parses_camel_case_response(self, patient):
        llm = MockLLMClient(responses={"risk-model": json.dumps(self.RESPONSE)})
        assessor = LLMRiskAssessor(llm, model="risk-model")

        result = await assessor.assess(patient, "Fever and stiff neck", [])

        assert result.risk_level == RiskLevel.HIGH
        assert result.possible_causes[0].name == "Meningitis"
        assert result.when_to_seek_care == ["Now"]
        assert llm.calls[0]["json_mode"] is True

    @pytest.mark.asyncio
    async def test_prompt_includes_profile_and_history(self, patient):
        llm = MockLLMClient(responses={"risk-model": json.dumps(self.RESPONSE)})
        history = [MedicalRecord(
            patient_id="p1", content="Started ART",
            document_date=datetime(2025, 1, 10),
        )]

        await LLMRiskAssessor(llm, model="risk-model").assess(patient, "Cough", history)

        user_prompt = llm.calls[0]["messages"][-1]["content"]
        assert "Known Conditions: HIV" in user_prompt
        assert "2025-01-10: Started ART" in user_prompt
        assert "Cough" in user_prompt

    @pytest.mark.asyncio
    async def test_fenced_json_accepted(self, patient):
        content = "```json\n" + json.dumps({"risk_level": "low"}) + "\n```"
        llm = MockLLMClient(responses={"risk-model": content})

        result = await LLMRiskAssessor(llm, model="risk-model").assess(patient, "Tired", [])
        assert result.risk_level == RiskLevel.LOW

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["not json at all", "{}", json.dumps({
        "risk_level": "LOW RISK",
        "possible_causes": [{"name": "x", "confidence": 7}],
    })])
    async def test_malformed_responses(self, patient, content):
        llm = MockLLMClient(responses={"risk-model": content})
        with pytest.raises(MalformedResponseError):
            await LLMRiskAssessor(llm, model="risk-model").assess(patient, "Tired", [])


class TestLLMEndemicAssessor:
    """Tests for the endemic assessor adapter."""

    @pytest.mark.asyncio
    async def test_assess(self):
        llm = MockLLMClient(responses={"endemic": json.dumps({
            "riskLevel": "Non-severe Disease Suspected",
            "recommendation": "Lab Test",
            "summary": "Probable malaria",
        })})
        assessor = LLMEndemicAssessor(llm, model="endemic", language=Language.PT)

        assessment = await assessor.assess(
            ScreeningAnswers(fever_now=True, fever_temp=38.9),
            AgeSex(age=30, sex=Sex.FEMALE),
        )

        assert assessment.risk_level == "Non-severe Disease Suspected"
        assert assessment.recommendation == "Lab Test"
        prompt = llm.calls[0]["messages"][0]["content"]
        assert "Temp=38.9" in prompt
        assert "Age 30" in prompt
        assert "Respond in Portuguese" in prompt

    @pytest.mark.asyncio
    async def test_missing_risk_level(self):
        llm = MockLLMClient(responses={"endemic": json.dumps({"summary": "?"})})
        with pytest.raises(MalformedResponseError):
            await LLMEndemicAssessor(llm, model="endemic").assess(
                ScreeningAnswers(), AgeSex(age=5, sex=Sex.MALE)
            )


class TestLLMDocumentExtractor:
    """Tests for the document extractor adapter."""

    @pytest.mark.asyncio
    async def test_extract_with_date(self):
        llm = MockLLMClient(responses={"vision": json.dumps({
            "summary": "Hemoglobin 9.1 g/dL",
            "documentDate": "03/11/2024",
        })})

        result = await LLMDocumentExtractor(llm, model="vision").extract(b"img", "image/png")

        assert result.summary == "Hemoglobin 9.1 g/dL"
        assert result.document_date == datetime(2024, 11, 3)
        assert llm.calls[0]["files"] == [(b"img", "image/png")]

    @pytest.mark.asyncio
    async def test_unparseable_date_ignored(self):
        llm = MockLLMClient(responses={"vision": json.dumps({
            "summary": "Prescription", "document_date": "sometime in May",
        })})
        result = await LLMDocumentExtractor(llm, model="vision").extract(b"img", "image/png")
        assert result.document_date is None

    @pytest.mark.asyncio
    async def test_empty_summary_is_malformed(self):
        llm = MockLLMClient(responses={"vision": json.dumps({"summary": ""})})
        with pytest.raises(MalformedResponseError):
            await LLMDocumentExtractor(llm, model="vision").extract(b"img", "image/png")


class TestLLMAddressSuggester:
    """Tests for the address suggester adapter."""

    ADDRESS = {
        "street": "Av. 24 de Julho",
        "bairro": "Polana Cimento",
        "distrito": "KaMpfumo",
        "cidade": "Maputo",
        "country": "Moçambique",
    }

    @pytest.mark.asyncio
    async def test_suggest_caps_and_skips_bad_items(self):
        items = [self.ADDRESS] * 6 + ["not an address"]
        llm = MockLLMClient(responses={"geo": json.dumps(items)})

        suggestions = await LLMAddressSuggester(llm, model="geo").suggest("24 de")

        assert len(suggestions) == 5
        assert suggestions[0].cidade == "Maputo"

    @pytest.mark.asyncio
    async def test_wrapped_list_accepted(self):
        llm = MockLLMClient(responses={"geo": json.dumps({"addresses": [self.ADDRESS]})})
        suggestions = await LLMAddressSuggester(llm, model="geo").suggest("Polana")
        assert suggestions[0].bairro == "Polana Cimento"

    @pytest.mark.asyncio
    async def test_non_list_is_malformed(self):
        llm = MockLLMClient(responses={"geo": json.dumps({"error": "none"})})
        with pytest.raises(MalformedResponseError):
            await LLMAddressSuggester(llm, model="geo").suggest("Polana")
