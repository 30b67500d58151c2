from clinical.infrastructure.repositories.clinic_repository_impl import KVClinicRepository
from clinical.infrastructure.repositories.note_repository_impl import KVNoteRepository
from clinical.infrastructure.repositories.patient_repository_impl import KVPatientRepository

__all__ = ["KVClinicRepository", "KVNoteRepository", "KVPatientRepository"]
