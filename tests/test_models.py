"""Tests for data models and parsing helpers."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from triage.errors import MalformedResponseError
from triage.models import (
    Attachment,
    EndemicRiskTier,
    MedicalRecord,
    Patient,
    PatientDraft,
    PatientLocation,
    RiskLevel,
    ScreeningAnswers,
    Sex,
    TriageResult,
    Vitals,
)
from triage.utils.parsing import as_str_list, extract_json, parse_date, snake_keys


class TestEnums:
    """Tests for free-text normalization."""

    @pytest.mark.parametrize("text,expected", [
        ("HIGH RISK / EMERGENCY", RiskLevel.HIGH),
        ("red", RiskLevel.HIGH),
        ("Low risk", RiskLevel.LOW),
        ("moderate", RiskLevel.MODERATE),
        ("unclear", RiskLevel.MODERATE),
    ])
    def test_risk_level_from_text(self, text, expected):
        assert RiskLevel.from_text(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("Severe Endemic Disease Suspected", EndemicRiskTier.SEVERE),
        ("Non-severe Disease Suspected", EndemicRiskTier.NON_SEVERE),
        ("non severe malaria", EndemicRiskTier.NON_SEVERE),
        ("Respiratory infection", EndemicRiskTier.RESPIRATORY),
        ("Diarrheal", EndemicRiskTier.DIARRHEAL),
        ("", EndemicRiskTier.OTHER),
    ])
    def test_tier_from_text(self, text, expected):
        assert EndemicRiskTier.from_text(text) == expected

    def test_most_severe(self):
        assert EndemicRiskTier.most_severe() == EndemicRiskTier.SEVERE


class TestPatientModels:
    """Tests for Patient and PatientDraft."""

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Patient(id="p1", full_name="   ")

    def test_draft_round_trip_preserves_created_at(self):
        created = datetime(2024, 5, 1, 8, 0)
        patient = Patient(id="p1", full_name="Ana", created_at=created, sex=Sex.INTERSEX)

        draft = PatientDraft.from_patient(patient)
        rebuilt = draft.to_patient("p1", now=datetime(2025, 1, 1))

        assert rebuilt.created_at == created
        assert rebuilt.updated_at == datetime(2025, 1, 1)
        assert rebuilt.sex == Sex.INTERSEX

    def test_draft_forbids_unknown_fields(self):
        with pytest.raises(ValidationError):
            PatientDraft(shoe_size=42)

    def test_location(self):
        location = PatientLocation(street="Rua 1", cidade="Beira")
        assert location.one_line() == "Rua 1, Beira, Moçambique"
        assert PatientLocation().is_empty


class TestRecordModels:
    """Tests for MedicalRecord and its parts."""

    def test_records_are_immutable(self):
        record = MedicalRecord(patient_id="p1", content="note")
        with pytest.raises(ValidationError):
            record.content = "edited"

    def test_duplicate_attachment_ids_rejected(self):
        attachment = Attachment(id="a1", name="x.png", mime_type="image/png")
        with pytest.raises(ValidationError):
            MedicalRecord(patient_id="p1", attachments=[attachment, attachment])

    def test_vitals_summary(self):
        vitals = Vitals(systolic=120, diastolic=80, spo2=97)
        assert vitals.summary() == "BP 120/80, SpO2 97%"

    def test_sort_date_prefers_document_date(self):
        record = MedicalRecord(
            patient_id="p1",
            created_at=datetime(2025, 1, 2),
            document_date=datetime(2024, 6, 1),
        )
        assert record.sort_date == datetime(2024, 6, 1)


class TestAssessmentModels:
    """Tests for collaborator result models."""

    def test_triage_summary_text(self):
        result = TriageResult(risk_level="HIGH RISK / EMERGENCY", reason="Seizure", when_to_seek_care=["Now"])
        text = result.summary_text()
        assert text.splitlines()[0] == "[AI TRIAGE SUMMARY]"
        assert "Risk: HIGH RISK / EMERGENCY" in text
        assert "- Now" in text

    def test_screening_prompt_blanks_gated_fields(self):
        answers = ScreeningAnswers(travel=False, travel_where="Tete", fever_now=False, fever_temp=39)
        prompt = answers.as_prompt()
        assert "Tete" not in prompt
        assert "Temp=," in prompt


class TestParsing:
    """Tests for response parsing helpers."""

    def test_extract_json_plain_and_fenced(self):
        assert extract_json('{"a": 1}') == {"a": 1}
        assert extract_json('```json\n[1, 2]\n```') == [1, 2]

    def test_extract_json_embedded(self):
        assert extract_json('Here you go: {"a": 1} hope it helps') == {"a": 1}

    @pytest.mark.parametrize("content", ["", "   ", "no json here"])
    def test_extract_json_failure(self, content):
        with pytest.raises(MalformedResponseError):
            extract_json(content, collaborator="test")

    @pytest.mark.parametrize("value,expected", [
        ("2024-11-03", datetime(2024, 11, 3)),
        ("2024-11-03T10:15:00Z", datetime(2024, 11, 3, 10, 15)),
        ("03.11.2024", datetime(2024, 11, 3)),
        ("", None),
        (None, None),
        ("yesterday", None),
    ])
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected

    def test_snake_keys(self):
        assert snake_keys({"riskLevel": 1, "top_questions": 2}) == {"risk_level": 1, "top_questions": 2}
        assert snake_keys([1]) == [1]

    def test_as_str_list(self):
        assert as_str_list(None) == []
        assert as_str_list("one") == ["one"]
        assert as_str_list(["a", " ", 3]) == ["a", "3"]
