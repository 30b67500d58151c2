from clinical.application.services.authorization import require_scopes
from clinical.application.services.directory_service import ClinicsService, PatientsService
from clinical.application.services.notes_service import NotesService
from clinical.application.services.patient_access import assert_patient_access

__all__ = ["ClinicsService", "NotesService", "PatientsService", "assert_patient_access", "require_scopes"]
