from clinical.domain.entities.clinic import Clinic, ClinicStatus
from clinical.domain.entities.note import Note
from clinical.domain.entities.patient import Patient, PatientStatus

__all__ = ["Clinic", "ClinicStatus", "Note", "Patient", "PatientStatus"]
