"""Shared test data and helpers."""
from datetime import date

from clinical.domain.entities.clinic import Clinic
from clinical.domain.entities.patient import Patient, PatientStatus
from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.note_values import NoteDraft
from clinical.domain.value_objects.scope import ALL_SCOPES
from clinical.infrastructure.repositories import KVClinicRepository, KVPatientRepository
from shared.config import Settings
from shared.exceptions import StoreError

CURSOR_SECRET = "test-cursor-secret"

CLINIC_A = "clinic-a"
CLINIC_B = "clinic-b"
PATIENT_A1 = "patient-a1"
PATIENT_A2 = "patient-a2"
PATIENT_B1 = "patient-b1"

AUTH_A = AuthContext(user_id="user-1", display_name="Dr. One", clinic_id=CLINIC_A, scopes=ALL_SCOPES)
AUTH_B = AuthContext(user_id="user-2", display_name="Dr. Two", clinic_id=CLINIC_B, scopes=ALL_SCOPES)


class FakeClock:
    """Epoch-seconds clock the test advances by hand."""

    def __init__(self, start: float = 1_700_000_010.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenStore:
    """Store whose every call fails like an unreachable backend."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or StoreError("Store read failed")

    async def _fail(self, *args, **kwargs):
        raise self.error

    get_item = put_item = update_item = delete_item = query = scan = _fail


def make_draft(study_date=date(2024, 3, 1), title="Follow-up", content="Patient stable.", **kw) -> NoteDraft:
    return NoteDraft(study_date=study_date, title=title, content=content, **kw)


def make_settings(**overrides) -> Settings:
    values = dict(environment="local", cursor_secret=CURSOR_SECRET, log_format="console", log_level="WARNING")
    values.update(overrides)
    return Settings(**values)


async def seed_directory(store) -> None:
    """Two clinics; clinic A has an active and an archived patient, clinic B one patient."""
    clinics = KVClinicRepository(store)
    patients = KVPatientRepository(store)
    await clinics.create(Clinic(clinic_id=CLINIC_A, name="North Clinic", phone="555-0100"))
    await clinics.create(Clinic(clinic_id=CLINIC_B, name="South Clinic"))
    await patients.create(Patient(clinic_id=CLINIC_A, patient_id=PATIENT_A1, first_name="Ann", last_name="Lee"))
    await patients.create(
        Patient(clinic_id=CLINIC_A, patient_id=PATIENT_A2, first_name="Bo", status=PatientStatus.ARCHIVED)
    )
    await patients.create(Patient(clinic_id=CLINIC_B, patient_id=PATIENT_B1, first_name="Cy"))
