"""
Assist Session - symptom risk assessment for the active patient.

Holds the clinician's narrative and the last TriageResult. A failed
assessment keeps the narrative so the user can retry without retyping.
"""

import logging
from typing import Optional

from triage.collaborators.protocols import RiskAssessor
from triage.errors import CollaboratorError
from triage.models.assessment import TriageResult
from triage.models.enums import OperatorRole, RecordSource
from triage.models.record import MedicalRecord, new_record_id
from triage.repositories.clinical import ClinicalStore
from triage.wizards.base import RequestSequencer, SingleFlight


logger = logging.getLogger(__name__)


EMERGENCY_SCRIPT = (
    "I am calling to report a medical emergency for a patient. "
    "Name: {name}, Age: {age}. They are currently experiencing {symptoms}. "
    "Our location is {location}."
)

DEFAULT_SYMPTOMS = "severe health complications"
DEFAULT_LOCATION = "our current location"


class AssistSession:
    """One narrative-to-assessment exchange at a time."""

    def __init__(
        self,
        clinical: ClinicalStore,
        assessor: RiskAssessor,
        history_limit: int = 5,
    ):
        """
        Initialize the session.

        Args:
            clinical: Store providing the active patient and timeline
            assessor: RiskAssessor collaborator
            history_limit: Number of recent records sent as context
        """
        self.clinical = clinical
        self.assessor = assessor
        self.history_limit = history_limit

        self._flight = SingleFlight("risk assessment")
        self._requests = RequestSequencer()
        self.narrative: str = ""
        self.result: Optional[TriageResult] = None
        self.last_error: Optional[str] = None
        self._assessed_patient_id: Optional[str] = None
        self._assessed_narrative = ""

    @property
    def busy(self) -> bool:
        return self._flight.busy

    async def run(self, narrative: Optional[str] = None) -> Optional[TriageResult]:
        """
        Assess the narrative against the active patient.

        Args:
            narrative: New narrative text; the stored one is reused if None

        Returns:
            The TriageResult, or None if there was nothing to assess, a
            request was already in flight, or the assessor failed. A
            rejected call leaves the pending narrative untouched.
        """
        if self._flight.busy:
            self.last_error = "An assessment is already in progress."
            return None
        if narrative is not None:
            self.narrative = narrative

        patient = self.clinical.active_patient()
        if patient is None:
            self.last_error = "Please select a patient first."
            return None
        if not self.narrative.strip():
            self.last_error = "Describe the symptoms first."
            return None
        self._flight.try_acquire()

        submitted = self.narrative
        ticket = self._requests.issue()
        with self._flight.hold():
            history = self.clinical.records.recent(patient.id, self.history_limit)
            try:
                result = await self.assessor.assess(patient, submitted, history)
            except CollaboratorError as e:
                if not self._requests.is_current(ticket):
                    return None
                logger.warning(f"Risk assessment failed for patient {patient.id}: {e.__class__.__name__}")
                self.last_error = e.user_message
                return None

        if not self._requests.is_current(ticket):
            logger.info(f"Discarded risk assessment for patient {patient.id}: session was cleared")
            return None

        self.result = result
        self._assessed_patient_id = patient.id
        self._assessed_narrative = submitted
        self.last_error = None
        logger.info(f"Assessed patient {patient.id}: {result.risk_level.name}")
        return result

    def save_summary(self, operator_role: OperatorRole = OperatorRole.PATIENT) -> Optional[MedicalRecord]:
        """Append the last result to the assessed patient's timeline."""
        if self.result is None or self._assessed_patient_id is None:
            return None

        content = self.result.summary_text()
        if self._assessed_narrative.strip():
            content += f"\nSymptoms reported: {self._assessed_narrative.strip()}"

        record = MedicalRecord(
            id=new_record_id("ai"),
            patient_id=self._assessed_patient_id,
            operator_role=operator_role,
            source=RecordSource.AI_SUMMARY,
            content=content,
        )
        return self.clinical.records.add(record)

    def emergency_script(self) -> Optional[str]:
        """Script to read to an emergency operator, or None without a patient."""
        patient = self.clinical.active_patient()
        if patient is None:
            return None

        location = patient.location
        place = ", ".join(p for p in (location.street, location.bairro, location.cidade) if p)
        return EMERGENCY_SCRIPT.format(
            name=patient.full_name,
            age=patient.age,
            symptoms=self.narrative.strip() or DEFAULT_SYMPTOMS,
            location=place or DEFAULT_LOCATION,
        )

    def clear(self) -> None:
        """Forget narrative and result; a pending assessment is discarded."""
        self._requests.invalidate()
        self.narrative = ""
        self.result = None
        self.last_error = None
        self._assessed_patient_id = None
        self._assessed_narrative = ""
