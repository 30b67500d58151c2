"""Patient access check shared by every patient-scoped use case."""

from __future__ import annotations

from shared.exceptions import ForbiddenError
from shared.infrastructure.observability import get_logger

from clinical.domain.entities.patient import Patient
from clinical.domain.repositories.patient_repository import PatientRepository
from clinical.domain.value_objects.auth_context import AuthContext

logger = get_logger(__name__)


async def assert_patient_access(patients: PatientRepository, auth: AuthContext, patient_id: str) -> Patient:
    """
    Ensure ``patient_id`` belongs to the caller's clinic.

    A patient of another clinic is indistinguishable from a missing one, so
    both are reported as forbidden.

    Raises:
        ForbiddenError: If the patient is not registered with ``auth.clinic_id``
    """
    patient = await patients.find_by_id(auth.clinic_id, patient_id)
    if patient is None:
        logger.warning(
            "Patient access denied",
            user_id=auth.user_id,
            clinic_id=auth.clinic_id,
            patient_id=patient_id,
        )
        raise ForbiddenError("Access denied to patient", details={"patient_id": patient_id})
    return patient
