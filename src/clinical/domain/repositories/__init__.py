from clinical.domain.repositories.clinic_repository import ClinicRepository
from clinical.domain.repositories.note_repository import NoteRepository
from clinical.domain.repositories.patient_repository import PatientRepository

__all__ = ["ClinicRepository", "NoteRepository", "PatientRepository"]
