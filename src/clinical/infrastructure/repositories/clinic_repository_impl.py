"""
Key-Value Store Implementation of Clinic Repository
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from shared.infrastructure.kvstore import Attr, IKeyValueStore, ItemExists
from shared.infrastructure.observability import get_logger

from clinical.domain.entities.clinic import Clinic, ClinicStatus
from clinical.domain.repositories.clinic_repository import ClinicRepository
from clinical.infrastructure.keys import CLINIC_PREFIX, METADATA_SK, build_clinic_pk

logger = get_logger(__name__)

ENTITY_TYPE = "CLINIC"


class KVClinicRepository(ClinicRepository):

    def __init__(self, store: IKeyValueStore) -> None:
        self.store = store

    def _to_item(self, clinic: Clinic) -> dict[str, Any]:
        return {
            "pk": build_clinic_pk(clinic.clinic_id),
            "sk": METADATA_SK,
            "entity_type": ENTITY_TYPE,
            "clinic_id": clinic.clinic_id,
            "name": clinic.name,
            "address": clinic.address,
            "phone": clinic.phone,
            "email": clinic.email,
            "timezone": clinic.timezone,
            "status": clinic.status.value,
            "created_at": clinic.created_at.isoformat(),
            "updated_at": clinic.updated_at.isoformat(),
        }

    def _to_domain(self, item: Mapping[str, Any]) -> Clinic:
        return Clinic(
            clinic_id=item["clinic_id"],
            name=item["name"],
            address=item.get("address"),
            phone=item.get("phone"),
            email=item.get("email"),
            timezone=item.get("timezone") or "America/New_York",
            status=ClinicStatus(item.get("status", ClinicStatus.ACTIVE.value)),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )

    async def create(self, clinic: Clinic) -> Clinic:
        await self.store.put_item(self._to_item(clinic), condition=~ItemExists())
        logger.info("Clinic created", clinic_id=clinic.clinic_id)
        return clinic

    async def find_by_id(self, clinic_id: str) -> Optional[Clinic]:
        item = await self.store.get_item(build_clinic_pk(clinic_id), METADATA_SK)
        if item is None or item.get("entity_type") != ENTITY_TYPE:
            return None
        return self._to_domain(item)

    async def list(self) -> List[Clinic]:
        page = await self.store.scan(pk_prefix=CLINIC_PREFIX, filter=Attr("entity_type").eq(ENTITY_TYPE))
        return [self._to_domain(item) for item in page.items]
