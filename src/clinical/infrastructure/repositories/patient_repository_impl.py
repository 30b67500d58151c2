"""
Key-Value Store Implementation of Patient Repository
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from shared.infrastructure.kvstore import Attr, IKeyValueStore, ItemExists
from shared.infrastructure.observability import get_logger

from clinical.domain.entities.patient import Patient, PatientStatus
from clinical.domain.repositories.patient_repository import PatientRepository
from clinical.infrastructure.keys import METADATA_SK, build_patient_pk, patient_pk_prefix

logger = get_logger(__name__)

ENTITY_TYPE = "PATIENT"

_OPTIONAL_FIELDS = (
    "first_name",
    "last_name",
    "gender",
    "email",
    "phone",
    "address",
    "insurance_provider",
    "insurance_id",
)


class KVPatientRepository(PatientRepository):
    """Patients are stored as the ``METADATA`` item of their own partition."""

    def __init__(self, store: IKeyValueStore) -> None:
        self.store = store

    def _to_item(self, patient: Patient) -> dict[str, Any]:
        item: dict[str, Any] = {
            "pk": build_patient_pk(patient.clinic_id, patient.patient_id),
            "sk": METADATA_SK,
            "entity_type": ENTITY_TYPE,
            "clinic_id": patient.clinic_id,
            "patient_id": patient.patient_id,
            "status": patient.status.value,
            "created_at": patient.created_at.isoformat(),
            "updated_at": patient.updated_at.isoformat(),
        }
        for name in _OPTIONAL_FIELDS:
            value = getattr(patient, name)
            if value is not None:
                item[name] = value
        if patient.date_of_birth is not None:
            item["date_of_birth"] = patient.date_of_birth.isoformat()
        return item

    def _to_domain(self, item: Mapping[str, Any]) -> Patient:
        dob = item.get("date_of_birth")
        return Patient(
            clinic_id=item["clinic_id"],
            patient_id=item["patient_id"],
            date_of_birth=date.fromisoformat(dob) if dob else None,
            status=PatientStatus(item.get("status", PatientStatus.ACTIVE.value)),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
            **{name: item.get(name) for name in _OPTIONAL_FIELDS},
        )

    async def create(self, patient: Patient) -> Patient:
        await self.store.put_item(self._to_item(patient), condition=~ItemExists())
        logger.info("Patient created", clinic_id=patient.clinic_id, patient_id=patient.patient_id)
        return patient

    async def find_by_id(self, clinic_id: str, patient_id: str) -> Optional[Patient]:
        item = await self.store.get_item(build_patient_pk(clinic_id, patient_id), METADATA_SK)
        if item is None or item.get("entity_type") != ENTITY_TYPE:
            return None
        return self._to_domain(item)

    async def list_by_clinic(self, clinic_id: str) -> List[Patient]:
        page = await self.store.scan(
            pk_prefix=patient_pk_prefix(clinic_id),
            filter=Attr("sk").eq(METADATA_SK) & Attr("entity_type").eq(ENTITY_TYPE),
        )
        return [self._to_domain(item) for item in page.items]
