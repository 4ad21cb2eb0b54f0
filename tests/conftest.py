"""
Pytest configuration and shared fixtures for the test suite.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from triage.models import (
    EndemicAssessment,
    LLMResponse,
    MedicalRecord,
    Patient,
    RiskLevel,
    Sex,
    TriageResult,
)
from triage.repositories import ClinicalStore
from triage.storage import Base64Codec, PersistentStore


# ============================================================================
# Mock LLM Client
# ============================================================================

@pytest.fixture
def mock_llm_response():
    """Factory for creating mock LLM responses."""
    def _create(content: str, model: str = "test-model", input_tokens: int = 100, output_tokens: int = 50):
        return LLMResponse(
            content=content,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
    return _create


@pytest.fixture
def mock_llm_client(mock_llm_response):
    """Create a mock LLM client that returns configurable responses."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=mock_llm_response("{}"))
    client.complete_multimodal = AsyncMock(return_value=mock_llm_response("{}"))
    return client


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    """In-memory PersistentStore without the base64 warning."""
    return PersistentStore(cipher=Base64Codec(warn=False))


@pytest.fixture
def clinical():
    """Empty in-memory ClinicalStore."""
    return ClinicalStore.in_memory()


@pytest.fixture
def make_patient():
    """Factory for finalized patients."""
    counter = {"n": 0}

    def _create(name: str = "Ana", sex: Sex = Sex.FEMALE, age: int = 30, **kwargs):
        counter["n"] += 1
        return Patient(
            id=kwargs.pop("id", f"p{counter['n']}"),
            full_name=name,
            sex=sex,
            age=age,
            **kwargs,
        )
    return _create


@pytest.fixture
def make_record():
    """Factory for medical records."""
    def _create(patient_id: str, content: str = "note", **kwargs):
        return MedicalRecord(patient_id=patient_id, content=content, **kwargs)
    return _create


@pytest.fixture
def populated(clinical, make_patient, make_record):
    """Store with patients A and B, each with records."""
    a = clinical.patients.upsert(make_patient("Alice", id="A"))
    b = clinical.patients.upsert(make_patient("Bruno", sex=Sex.MALE, id="B"))
    for day in (1, 2, 3):
        clinical.records.add(make_record("A", f"A day {day}", document_date=datetime(2025, 1, day)))
    for day in (4, 5):
        clinical.records.add(make_record("B", f"B day {day}", document_date=datetime(2025, 1, day)))
    return clinical, a, b


# ============================================================================
# Collaborator Stubs
# ============================================================================

@pytest.fixture
def endemic_assessor():
    """EndemicAssessor stub answering 'Non-severe'."""
    assessor = MagicMock()
    assessor.assess = AsyncMock(return_value=EndemicAssessment(
        risk_level="Non-severe Disease Suspected",
        recommendation="Lab Test",
        summary="Likely uncomplicated febrile illness.",
    ))
    return assessor


@pytest.fixture
def risk_assessor():
    """RiskAssessor stub answering MODERATE."""
    assessor = MagicMock()
    assessor.assess = AsyncMock(return_value=TriageResult(
        risk_level=RiskLevel.MODERATE,
        reason="Persistent fever for three days",
        when_to_seek_care=["Confusion", "Difficulty breathing"],
    ))
    return assessor
