"""
Onboarding Wizard - multi-step patient creation and editing.

The step graph is defined once (STEP_ORDER plus SKIP_RULES) and both
directions are derived from it, so back() is always the exact inverse of
next() for a given draft.
"""

import logging
import uuid
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from triage.collaborators.protocols import AddressSuggester
from triage.errors import CollaboratorError
from triage.models.enums import OnboardingStep, Sex
from triage.models.patient import Patient, PatientDraft, PatientLocation
from triage.models.wizard import TransitionResult
from triage.repositories.patients import PatientRepository
from triage.wizards.base import RequestSequencer


logger = logging.getLogger(__name__)


STEP_ORDER: tuple[OnboardingStep, ...] = tuple(OnboardingStep)

# Step -> predicate that skips it for a given draft
SKIP_RULES: dict[OnboardingStep, Callable[[PatientDraft], bool]] = {
    OnboardingStep.CLINICAL_CONTEXT: lambda draft: draft.sex == Sex.MALE,
}

# Fields the wizard owns; callers cannot set them through update()
PROTECTED_FIELDS = frozenset({"id", "created_at"})

PREGNANCY_FIELDS = ("is_pregnant_or_breastfeeding", "pregnancy_weeks")


def is_skipped(step: OnboardingStep, draft: PatientDraft) -> bool:
    rule = SKIP_RULES.get(step)
    return bool(rule and rule(draft))


def effective_path(draft: PatientDraft) -> list[OnboardingStep]:
    """Steps the draft actually visits, in order."""
    return [step for step in STEP_ORDER if not is_skipped(step, draft)]


def next_step(step: OnboardingStep, draft: PatientDraft) -> Optional[OnboardingStep]:
    """Following step on the effective path, or None at the end."""
    for candidate in STEP_ORDER[STEP_ORDER.index(step) + 1:]:
        if not is_skipped(candidate, draft):
            return candidate
    return None


def previous_step(step: OnboardingStep, draft: PatientDraft) -> Optional[OnboardingStep]:
    """Preceding step on the effective path, or None at the start."""
    for candidate in reversed(STEP_ORDER[:STEP_ORDER.index(step)]):
        if not is_skipped(candidate, draft):
            return candidate
    return None


def clear_pregnancy_if_male(draft: PatientDraft) -> PatientDraft:
    if draft.sex == Sex.MALE:
        for name in PREGNANCY_FIELDS:
            setattr(draft, name, None)
    return draft


class OnboardingWizard:
    """
    Drives a PatientDraft through the onboarding steps.

    Commands return TransitionResult; nothing is persisted until
    finalize() succeeds from REVIEW.
    """

    def __init__(
        self,
        patients: PatientRepository,
        address_suggester: Optional[AddressSuggester] = None,
        patient: Optional[Patient] = None,
        address_min_chars: int = 3,
        max_address_suggestions: int = 5,
    ):
        """
        Initialize the wizard.

        Args:
            patients: Repository the finalized patient is written to
            address_suggester: Optional collaborator used at LOCATION
            patient: Existing patient to edit; a new draft is started if None
            address_min_chars: Shortest input sent to the suggester
            max_address_suggestions: Cap on kept suggestions
        """
        self.patients = patients
        self.address_suggester = address_suggester
        self.address_min_chars = address_min_chars
        self.max_address_suggestions = max_address_suggestions

        self._sequencer = RequestSequencer()
        self.suggestions: list[PatientLocation] = []
        self.last_error: Optional[str] = None

        self._start(patient)

    @classmethod
    def for_patient(
        cls,
        patients: PatientRepository,
        patient_id: str,
        address_suggester: Optional[AddressSuggester] = None,
        **kwargs,
    ) -> "OnboardingWizard":
        """
        Open the wizard on an existing patient, positioned at REVIEW.

        Raises:
            NotFoundError: if the patient id is unknown
        """
        patient = patients.require(patient_id)
        return cls(patients, address_suggester=address_suggester, patient=patient, **kwargs)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def step(self) -> OnboardingStep:
        return self._step

    @property
    def draft(self) -> PatientDraft:
        """Copy of the current draft."""
        return self._draft.model_copy(deep=True)

    @property
    def path(self) -> list[OnboardingStep]:
        return effective_path(self._draft)

    @property
    def progress(self) -> float:
        """Position on the effective path divided by its length."""
        path = self.path
        position = sum(1 for s in path if STEP_ORDER.index(s) <= STEP_ORDER.index(self._step))
        return position / len(path)

    @property
    def editing(self) -> bool:
        """True after jumping back from REVIEW until return_to_review()."""
        return self._editing

    @property
    def is_new(self) -> bool:
        return self._draft.id is None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update(self, **fields) -> TransitionResult:
        """
        Apply field changes to the draft atomically.

        Setting sex to MALE clears the pregnancy fields immediately.
        """
        unknown = set(fields) - set(PatientDraft.model_fields)
        if unknown:
            return TransitionResult.blocked(self._step, f"Unknown fields: {', '.join(sorted(unknown))}")
        protected = set(fields) & PROTECTED_FIELDS
        if protected:
            return TransitionResult.blocked(self._step, f"Read-only fields: {', '.join(sorted(protected))}")

        candidate = self._draft.model_copy(deep=True)
        try:
            for name, value in fields.items():
                setattr(candidate, name, value)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "draft"
            return TransitionResult.blocked(self._step, f"Invalid {field}: {first.get('msg')}")

        was_male = self._draft.sex == Sex.MALE
        self._draft = clear_pregnancy_if_male(candidate)
        if self._draft.sex == Sex.MALE and not was_male:
            logger.debug("Sex set to male; pregnancy fields cleared")
        return TransitionResult.ok(self._step)

    def next(self) -> TransitionResult:
        if self._step == OnboardingStep.REVIEW:
            return TransitionResult.ok(self._step)

        problem = self._leave_problem(self._step)
        if problem:
            return TransitionResult.blocked(self._step, problem)

        self._step = next_step(self._step, self._draft)
        return TransitionResult.ok(self._step)

    def back(self) -> TransitionResult:
        previous = previous_step(self._step, self._draft)
        if previous is not None:
            self._step = previous
        return TransitionResult.ok(self._step)

    def jump_to(self, step: OnboardingStep) -> TransitionResult:
        """
        Jump to an earlier step, or to any step from REVIEW, keeping every
        other field. A step skipped by the current draft cannot be targeted.
        """
        step = OnboardingStep(step)
        if is_skipped(step, self._draft):
            return TransitionResult.blocked(self._step, f"Step {step.value} does not apply to this patient")

        from_review = self._step == OnboardingStep.REVIEW
        if not from_review and STEP_ORDER.index(step) > STEP_ORDER.index(self._step):
            return TransitionResult.blocked(self._step, "Cannot skip ahead")

        if from_review and step != OnboardingStep.REVIEW:
            self._editing = True
        self._step = step
        return TransitionResult.ok(self._step)

    def return_to_review(self) -> TransitionResult:
        """Finish an edit started from REVIEW."""
        if not self._editing:
            return TransitionResult.blocked(self._step, "Not editing from review")

        problem = self._leave_problem(OnboardingStep.IDENTITY)
        if problem:
            return TransitionResult.blocked(self._step, problem)

        self._editing = False
        self._step = OnboardingStep.REVIEW
        return TransitionResult.ok(self._step)

    def finalize(self) -> Optional[Patient]:
        """
        Commit the draft from REVIEW.

        Returns:
            The upserted patient (now active), or None if not at REVIEW or
            the draft is incomplete
        """
        if self._step != OnboardingStep.REVIEW:
            self.last_error = "Finish the remaining steps before saving"
            return None

        problem = self._leave_problem(OnboardingStep.IDENTITY)
        if problem:
            self.last_error = problem
            return None

        patient_id = self._draft.id or str(uuid.uuid4())
        try:
            patient = self._draft.to_patient(patient_id)
        except PydanticValidationError as e:
            logger.warning(f"Draft for {patient_id} failed validation: {e.error_count()} errors")
            self.last_error = "Some answers are invalid"
            return None

        self.patients.upsert(patient)
        logger.info(f"Onboarding finalized patient {patient.id}")
        self._start(None)
        return patient

    def cancel(self) -> TransitionResult:
        """Discard the draft. The repository is untouched."""
        self._start(None)
        return TransitionResult.ok(self._step)

    # ------------------------------------------------------------------
    # Address suggestions
    # ------------------------------------------------------------------

    async def suggest_address(self, partial: str) -> list[PatientLocation]:
        """
        Look up address candidates for partial input.

        Responses to superseded requests are dropped. A failed lookup keeps
        the previous suggestions and sets last_error.
        """
        if len((partial or "").strip()) < self.address_min_chars:
            self._sequencer.invalidate()
            self.suggestions = []
            return []
        if self.address_suggester is None:
            return self.suggestions

        ticket = self._sequencer.issue()
        try:
            candidates = await self.address_suggester.suggest(partial.strip())
        except CollaboratorError as e:
            if self._sequencer.is_current(ticket):
                logger.warning(f"Address lookup failed: {e.__class__.__name__}")
                self.last_error = e.user_message
            return self.suggestions

        if not self._sequencer.is_current(ticket):
            logger.debug(f"Dropping stale address suggestions for request {ticket}")
            return self.suggestions

        self.suggestions = candidates[: self.max_address_suggestions]
        self.last_error = None
        return self.suggestions

    def select_suggestion(self, candidate: PatientLocation) -> TransitionResult:
        result = self.update(location=candidate)
        if result:
            self._sequencer.invalidate()
            self.suggestions = []
        return result

    # ------------------------------------------------------------------

    def _start(self, patient: Optional[Patient]) -> None:
        if patient is None:
            self._draft = PatientDraft()
            self._step = OnboardingStep.IDENTITY
        else:
            self._draft = PatientDraft.from_patient(patient)
            self._step = OnboardingStep.REVIEW
        self._editing = False
        self._sequencer.invalidate()
        self.suggestions = []
        self.last_error = None

    def _leave_problem(self, step: OnboardingStep) -> Optional[str]:
        if step == OnboardingStep.IDENTITY and not self._draft.full_name.strip():
            return "Please enter a name"
        return None
