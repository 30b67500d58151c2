"""Inputs and results of note repository operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional

from clinical.domain.entities.note import Note
from clinical.domain.value_objects.attachment import Attachment


class _Unset:
    """Marker for a patch field the caller did not send."""

    _instance: Optional[_Unset] = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

PATCHABLE_FIELDS = ("title", "content", "note_type", "tags", "attachments")


@dataclass(frozen=True)
class NoteDraft:
    """Fields supplied when creating a note."""

    study_date: date
    title: str
    content: str
    note_type: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)


@dataclass(frozen=True)
class NotePatch:
    """
    Partial update of a note.

    Only fields that are not ``UNSET`` are written; ``note_type=None`` clears
    the note type. ``expected_version`` is the version the caller last read.
    """

    expected_version: int
    title: Any = UNSET
    content: Any = UNSET
    note_type: Any = UNSET
    tags: Any = UNSET
    attachments: Any = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in PATCHABLE_FIELDS
            if getattr(self, name) is not UNSET
        }


@dataclass(frozen=True)
class ListNotesOptions:
    cursor: Optional[str] = None
    limit: int = 20
    study_date_from: Optional[date] = None
    study_date_to: Optional[date] = None
    tag: Optional[str] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class NotePage:
    items: List[Note]
    next_cursor: Optional[str] = None
    has_more: bool = False
