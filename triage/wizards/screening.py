"""
Screening Wizard - four-phase endemic disease questionnaire.

PRIMARY -> FEVER_SYMPTOMS -> DANGER_SIGNS are walked with next()/back().
analyze() is the only way into RESULTS; it consults the EndemicAssessor and
then applies the local danger-sign override, so a reported danger sign
always ends in hospital referral whatever the assessor says.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from triage.collaborators.protocols import EndemicAssessor
from triage.errors import CollaboratorError
from triage.models.enums import FeverType, OperatorRole, RecordSource, ScreeningPhase
from triage.models.patient import Patient
from triage.models.record import MedicalRecord, new_record_id
from triage.models.screening import ScreeningAnswers, ScreeningResult, apply_danger_override
from triage.models.wizard import TransitionResult
from triage.repositories.records import RecordRepository
from triage.wizards.base import RequestSequencer, SingleFlight


logger = logging.getLogger(__name__)


PHASE_COUNT = len(ScreeningPhase)


def screening_report(answers: ScreeningAnswers, result: ScreeningResult) -> str:
    """Timeline text of a committed screening."""
    a = answers.relevant()
    if a.fever_now:
        temp = f"{a.fever_temp}°C" if a.fever_temp is not None else "?"
        days = f"{a.fever_days}d" if a.fever_days is not None else "?"
        fever = f"{temp}, {days}, {a.fever_type.value}"
    else:
        fever = "No"

    lines = [
        "[ENDEMIC TRIAGE REPORT]",
        f"Risk: {result.tier.value}",
        f"Recommendation: {result.recommendation}",
        f"Clinical Summary: {result.summary}",
    ]
    if result.danger_override:
        lines.append(f"Assessor classification overridden (was: {result.assessor_risk_level})")
    if result.recommendation_override:
        lines.append(f"Assessor recommendation overridden (was: {result.assessor_recommendation or 'none'})")
    lines += [
        "",
        "Questionnaire Data:",
        f"- Fever: {fever}",
        f"- Danger Signs: {', '.join(result.danger_signs) if result.danger_signs else 'NONE'}",
    ]
    if a.travel:
        lines.append(f"- Recent travel: {a.travel_where or 'yes'}")
    if not (a.eat_normal and a.drink_normal):
        lines.append("- Oral intake impaired")
    return "\n".join(lines)


class ScreeningWizard:
    """Endemic screening for one patient."""

    def __init__(
        self,
        records: RecordRepository,
        assessor: EndemicAssessor,
        patient: Patient,
    ):
        self.records = records
        self.assessor = assessor
        self.patient = patient

        self._flight = SingleFlight("endemic assessment")
        self._requests = RequestSequencer()
        self.last_error: Optional[str] = None
        self.reset()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> ScreeningPhase:
        return self._phase

    @property
    def progress(self) -> float:
        return int(self._phase) / PHASE_COUNT

    @property
    def answers(self) -> ScreeningAnswers:
        return self._answers.model_copy()

    @property
    def result(self) -> Optional[ScreeningResult]:
        return self._result

    @property
    def danger_signs_present(self) -> bool:
        return self._answers.has_danger_signs

    @property
    def analyzing(self) -> bool:
        return self._flight.busy

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update(self, **fields) -> TransitionResult:
        """
        Change answers. Turning fever_now on or off also sets fever_type to
        continuous or none unless fever_type is given in the same call.
        """
        if self._phase == ScreeningPhase.RESULTS:
            return TransitionResult.blocked(self._phase, "Answers are locked after analysis")
        if self._flight.busy:
            return TransitionResult.blocked(self._phase, "Analysis in progress", retryable=True)

        unknown = set(fields) - set(ScreeningAnswers.model_fields)
        if unknown:
            return TransitionResult.blocked(self._phase, f"Unknown answers: {', '.join(sorted(unknown))}")

        if "fever_now" in fields and "fever_type" not in fields:
            fields["fever_type"] = FeverType.CONTINUOUS if fields["fever_now"] else FeverType.NONE

        try:
            self._answers = ScreeningAnswers.model_validate({**self._answers.model_dump(), **fields})
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "answers"
            return TransitionResult.blocked(self._phase, f"Invalid {field}: {first.get('msg')}")
        return TransitionResult.ok(self._phase)

    def next(self) -> TransitionResult:
        if self._phase == ScreeningPhase.DANGER_SIGNS:
            return TransitionResult.blocked(self._phase, "Run the analysis to see results")
        if self._phase == ScreeningPhase.RESULTS:
            return TransitionResult.ok(self._phase)
        self._phase = ScreeningPhase(self._phase + 1)
        return TransitionResult.ok(self._phase)

    def back(self) -> TransitionResult:
        if self._phase in (ScreeningPhase.PRIMARY, ScreeningPhase.RESULTS):
            return TransitionResult.ok(self._phase)
        if self._flight.busy:
            return TransitionResult.blocked(self._phase, "Analysis in progress", retryable=True)
        self._phase = ScreeningPhase(self._phase - 1)
        return TransitionResult.ok(self._phase)

    async def analyze(self) -> TransitionResult:
        """
        Classify the answers and move to RESULTS.

        On collaborator failure the wizard stays in DANGER_SIGNS with its
        answers intact and last_error set; calling analyze() again retries.
        """
        if self._phase != ScreeningPhase.DANGER_SIGNS:
            return TransitionResult.blocked(self._phase, "Complete the questionnaire first")
        if not self._flight.try_acquire():
            return TransitionResult.blocked(self._phase, "Analysis already in progress", retryable=True)

        ticket = self._requests.issue()
        with self._flight.hold():
            answers = self._answers
            try:
                assessment = await self.assessor.assess(answers.relevant(), self.patient.age_sex())
            except CollaboratorError as e:
                if not self._requests.is_current(ticket):
                    return self._discarded()
                logger.warning(
                    f"Endemic assessment failed for patient {self.patient.id}: {e.__class__.__name__}"
                )
                self.last_error = e.user_message
                return TransitionResult.blocked(self._phase, e.user_message, retryable=True)

        if not self._requests.is_current(ticket):
            return self._discarded()

        result = apply_danger_override(answers, assessment)
        if result.danger_override or result.recommendation_override:
            logger.warning(
                f"Danger signs {result.danger_signs} override assessor "
                f"classification {assessment.risk_level!r} for patient {self.patient.id}"
            )

        self._result = result
        self.last_error = None
        self._phase = ScreeningPhase.RESULTS
        return TransitionResult.ok(self._phase)

    def commit(self) -> Optional[MedicalRecord]:
        """
        Write the screening to the patient's timeline and reset.

        Returns:
            The stored record, or None if not at RESULTS or rejected
        """
        if self._phase != ScreeningPhase.RESULTS or self._result is None:
            return None

        record = MedicalRecord(
            id=new_record_id("epi"),
            patient_id=self.patient.id,
            operator_role=OperatorRole.CLINICIAN,
            source=RecordSource.SCREENING,
            content=screening_report(self._answers, self._result),
        )
        stored = self.records.add(record)
        if stored is None:
            self.last_error = "The screening could not be saved"
            return None

        logger.info(f"Committed screening {stored.id} ({self._result.tier.name})")
        self.reset()
        return stored

    def reset(self) -> TransitionResult:
        """Discard answers and result. Nothing is persisted."""
        self._requests.invalidate()
        self._answers = ScreeningAnswers()
        self._result: Optional[ScreeningResult] = None
        self._phase = ScreeningPhase.PRIMARY
        self.last_error = None
        return TransitionResult.ok(self._phase)

    def _discarded(self) -> TransitionResult:
        logger.info(f"Discarded endemic assessment for patient {self.patient.id}: screening was reset")
        return TransitionResult.blocked(self._phase, "The screening was reset; analysis discarded")
