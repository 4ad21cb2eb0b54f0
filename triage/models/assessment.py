"""
Triage Assist - Collaborator result models

Typed results returned by the external collaborators (risk assessor,
document extractor) and by the LLM client that backs them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from triage.models.enums import RiskLevel


class LLMResponse(BaseModel):
    """Response from an LLM API call."""

    content: str = Field(..., description="Response text content")
    model: str = Field(..., description="Model that generated the response")
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    finish_reason: str = Field(default="stop")


class PossibleCause(BaseModel):
    name: str
    rationale: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class NextAction(BaseModel):
    urgency: str
    details: str = ""


class OtcOption(BaseModel):
    name: str
    purpose: str = ""
    warnings: str = ""


class TriageResult(BaseModel):
    """Structured symptom risk assessment."""

    risk_level: RiskLevel
    reason: str = ""
    top_questions: list[str] = Field(default_factory=list)
    possible_causes: list[PossibleCause] = Field(default_factory=list)
    next_actions: list[NextAction] = Field(default_factory=list)
    otc_options: list[OtcOption] = Field(default_factory=list)
    when_to_seek_care: list[str] = Field(default_factory=list)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value):
        if isinstance(value, RiskLevel):
            return value
        return RiskLevel.from_text(str(value))

    def summary_text(self) -> str:
        """Timeline text for an AI-summary record."""
        lines = [
            "[AI TRIAGE SUMMARY]",
            f"Risk: {self.risk_level.value}",
            f"Reason: {self.reason}",
        ]
        if self.possible_causes:
            lines.append("Possible causes:")
            lines.extend(
                f"- {c.name} ({c.confidence:.0%}): {c.rationale}" for c in self.possible_causes
            )
        if self.next_actions:
            lines.append("Next actions:")
            lines.extend(f"- [{a.urgency}] {a.details}" for a in self.next_actions)
        if self.when_to_seek_care:
            lines.append("Seek care if:")
            lines.extend(f"- {item}" for item in self.when_to_seek_care)
        return "\n".join(lines)


COULD_NOT_ANALYZE = "Could not analyze this document."


class ExtractionResult(BaseModel):
    """Summary extracted from an uploaded clinical document."""

    summary: str
    document_date: Optional[datetime] = None
    analyzed: bool = True

    @classmethod
    def could_not_analyze(cls) -> "ExtractionResult":
        return cls(summary=COULD_NOT_ANALYZE, analyzed=False)
