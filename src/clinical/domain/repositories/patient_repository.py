from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from clinical.domain.entities.patient import Patient


class PatientRepository(ABC):

    @abstractmethod
    async def create(self, patient: Patient) -> Patient:
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, clinic_id: str, patient_id: str) -> Optional[Patient]:
        raise NotImplementedError

    @abstractmethod
    async def list_by_clinic(self, clinic_id: str) -> List[Patient]:
        raise NotImplementedError
