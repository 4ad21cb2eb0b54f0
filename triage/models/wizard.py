"""
Triage Assist - Wizard transition results

Wizard commands return a TransitionResult instead of raising, so a blocked
transition never unwinds across component boundaries.
"""

from dataclasses import dataclass
from typing import Optional, Union

from triage.models.enums import OnboardingStep, ScreeningPhase


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a wizard command."""

    accepted: bool
    state: Union[OnboardingStep, ScreeningPhase]
    message: Optional[str] = None
    retryable: bool = False

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls, state) -> "TransitionResult":
        return cls(accepted=True, state=state)

    @classmethod
    def blocked(cls, state, message: str, retryable: bool = False) -> "TransitionResult":
        return cls(accepted=False, state=state, message=message, retryable=retryable)
