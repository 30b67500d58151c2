from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from clinical.domain.entities.note import Note
from clinical.domain.value_objects.note_values import ListNotesOptions, NoteDraft, NotePage, NotePatch


class NoteRepository(ABC):
    """
    Tenant-partitioned note storage.

    Every method takes the ``clinic_id`` explicitly; implementations must never
    read or write outside that clinic's partitions. Soft-deleted notes are
    invisible to every read and cannot be mutated.
    """

    @abstractmethod
    async def create(
        self,
        clinic_id: str,
        patient_id: str,
        author_id: str,
        author_name: str,
        draft: NoteDraft,
    ) -> Note:
        """Persist a new note with a fresh id and ``version == 1``."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, clinic_id: str, patient_id: str, note_id: str) -> Note:
        """
        Resolve a live note by id alone.

        Raises:
            NotFoundError: If absent or soft-deleted
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_id_without_study_date(
        self, clinic_id: str, patient_id: str, note_id: str
    ) -> Optional[Note]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(
        self, clinic_id: str, patient_id: str, note_id: str, study_date: date
    ) -> Optional[Note]:
        """Point read of a live note; None if absent or soft-deleted."""
        raise NotImplementedError

    @abstractmethod
    async def list(self, clinic_id: str, patient_id: str, options: ListNotesOptions) -> NotePage:
        """Newest-first page of live notes."""
        raise NotImplementedError

    @abstractmethod
    async def update(
        self,
        clinic_id: str,
        patient_id: str,
        note_id: str,
        study_date: date,
        editor_id: str,
        editor_name: str,
        patch: NotePatch,
    ) -> Note:
        """
        Apply ``patch`` if the stored version equals ``patch.expected_version``.

        Raises:
            NotFoundError: If absent or soft-deleted
            VersionConflictError: If the stored version differs
        """
        raise NotImplementedError

    @abstractmethod
    async def soft_delete(
        self, clinic_id: str, patient_id: str, note_id: str, study_date: date, actor_id: str
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def hard_delete(self, clinic_id: str, patient_id: str, note_id: str, study_date: date) -> None:
        """Physically remove a note. Administrative use only."""
        raise NotImplementedError
