"""
External collaborators.

Protocols consumed by the core, plus LLM-backed implementations.
"""

from triage.collaborators.address import LLMAddressSuggester
from triage.collaborators.documents import LLMDocumentExtractor
from triage.collaborators.endemic import LLMEndemicAssessor
from triage.collaborators.protocols import (
    AddressSuggester,
    DocumentExtractor,
    EndemicAssessor,
    LLMClientProtocol,
    RiskAssessor,
)
from triage.collaborators.risk import LLMRiskAssessor

__all__ = [
    "AddressSuggester",
    "DocumentExtractor",
    "EndemicAssessor",
    "LLMAddressSuggester",
    "LLMClientProtocol",
    "LLMDocumentExtractor",
    "LLMEndemicAssessor",
    "LLMRiskAssessor",
    "RiskAssessor",
]
