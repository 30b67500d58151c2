"""Patient and clinic lookups for the caller's clinic."""

from __future__ import annotations

from typing import List

from shared.exceptions import ForbiddenError, NotFoundError
from shared.infrastructure.observability import get_logger

from clinical.application.services.authorization import require_scopes
from clinical.domain.entities.clinic import Clinic
from clinical.domain.entities.patient import Patient, PatientStatus
from clinical.domain.repositories.clinic_repository import ClinicRepository
from clinical.domain.repositories.patient_repository import PatientRepository
from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.scope import Scope

logger = get_logger(__name__)


class PatientsService:
    def __init__(self, patients: PatientRepository) -> None:
        self.patients = patients

    async def list_patients(self, auth: AuthContext) -> List[Patient]:
        """Active patients of the caller's clinic."""
        require_scopes(auth, Scope.NOTES_READ)
        logger.info("Listing patients for clinic", clinic_id=auth.clinic_id)
        patients = await self.patients.list_by_clinic(auth.clinic_id)
        return [p for p in patients if p.status == PatientStatus.ACTIVE]


class ClinicsService:
    def __init__(self, clinics: ClinicRepository) -> None:
        self.clinics = clinics

    async def get_clinic(self, auth: AuthContext, clinic_id: str) -> Clinic:
        """
        Return the caller's own clinic.

        Raises:
            ForbiddenError: If ``clinic_id`` is another clinic
            NotFoundError: If the clinic record does not exist
        """
        if clinic_id != auth.clinic_id:
            logger.warning("Clinic access denied", user_id=auth.user_id, clinic_id=auth.clinic_id, requested=clinic_id)
            raise ForbiddenError("Access denied to clinic", details={"clinic_id": clinic_id})
        clinic = await self.clinics.find_by_id(clinic_id)
        if clinic is None:
            raise NotFoundError("Clinic", clinic_id, code="clinic_not_found")
        return clinic
