from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from clinical.domain.entities.clinic import Clinic


class ClinicRepository(ABC):

    @abstractmethod
    async def create(self, clinic: Clinic) -> Clinic:
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, clinic_id: str) -> Optional[Clinic]:
        raise NotImplementedError

    @abstractmethod
    async def list(self) -> List[Clinic]:
        raise NotImplementedError
