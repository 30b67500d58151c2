"""Clinical note entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from clinical.domain.value_objects.attachment import Attachment


@dataclass
class Note:
    """
    A clinical note about one patient, owned by one clinic.

    ``note_id`` is the external identity; ``study_date`` is part of the storage
    ordering and never changes after creation. ``version`` starts at 1 and
    grows by one with every successful update.
    """

    note_id: str
    clinic_id: str
    patient_id: str
    study_date: date
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    created_by: str
    created_by_name: str
    updated_by: str
    updated_by_name: str
    version: int = 1
    note_type: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
