"""Note, patient and clinic DTOs using Pydantic v2 (camelCase on the wire)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clinical.domain.entities.clinic import Clinic
from clinical.domain.entities.note import Note
from clinical.domain.entities.patient import Patient
from clinical.domain.value_objects.attachment import Attachment
from clinical.domain.value_objects.note_values import NoteDraft, NotePatch

T = TypeVar("T")

MAX_ATTACHMENT_BYTES = 100 * 1024 * 1024


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataResponse(CamelModel, Generic[T]):
    """Success envelope: ``{"data": ...}``."""
    data: T


# ───────────────────────── requests ─────────────────────────

class AttachmentSchema(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: str = Field(..., min_length=1, max_length=100)
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=127)
    size_bytes: int = Field(..., gt=0, le=MAX_ATTACHMENT_BYTES)
    storage_key: str = Field(
        ...,
        min_length=1,
        max_length=1024,
        validation_alias=AliasChoices("storageKey", "s3Key", "storage_key"),
    )
    uploaded_at: datetime

    def to_domain(self) -> Attachment:
        return Attachment(
            id=self.id,
            file_name=self.file_name,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
            storage_key=self.storage_key,
            uploaded_at=self.uploaded_at,
        )

    @classmethod
    def from_domain(cls, attachment: Attachment) -> AttachmentSchema:
        return cls(
            id=attachment.id,
            file_name=attachment.file_name,
            content_type=attachment.content_type,
            size_bytes=attachment.size_bytes,
            storage_key=attachment.storage_key,
            uploaded_at=attachment.uploaded_at,
        )


def _check_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    if len(tags) > 20:
        raise ValueError("At most 20 tags are allowed")
    for tag in tags:
        if not tag or len(tag) > 50:
            raise ValueError("Tags must be 1-50 characters")
    return tags


class CreateNoteRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    study_date: date
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1, max_length=50000)
    note_type: Optional[str] = Field(None, min_length=1, max_length=50)
    tags: List[str] = Field(default_factory=list)
    attachments: List[AttachmentSchema] = Field(default_factory=list, max_length=10)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _check_tags(v) or []

    def to_draft(self) -> NoteDraft:
        return NoteDraft(
            study_date=self.study_date,
            title=self.title,
            content=self.content,
            note_type=self.note_type,
            tags=list(self.tags),
            attachments=[a.to_domain() for a in self.attachments],
        )


class UpdateNoteRequest(CamelModel):
    """
    Partial update. Omitted fields are left unchanged; ``version`` is the
    version the client last read.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    version: int = Field(..., gt=0)
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = Field(None, min_length=1, max_length=50000)
    note_type: Optional[str] = Field(None, min_length=1, max_length=50)
    tags: Optional[List[str]] = None
    attachments: Optional[List[AttachmentSchema]] = Field(None, max_length=10)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_tags(v)

    @field_validator("title", "content", "tags", "attachments")
    @classmethod
    def reject_null(cls, v):
        # only noteType may be cleared with an explicit null
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v

    def to_patch(self) -> NotePatch:
        sent = self.model_fields_set
        changes = {}
        for name in ("title", "content", "note_type", "tags"):
            if name in sent:
                changes[name] = getattr(self, name)
        if "attachments" in sent:
            changes["attachments"] = [a.to_domain() for a in self.attachments or []]
        return NotePatch(expected_version=self.version, **changes)


# ───────────────────────── responses ─────────────────────────

class NoteResponse(CamelModel):
    note_id: str
    patient_id: str
    study_date: date
    title: str
    content: str
    note_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    attachments: List[AttachmentSchema] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    created_by: str
    created_by_name: str
    version: int

    @classmethod
    def from_domain(cls, note: Note) -> NoteResponse:
        return cls(
            note_id=note.note_id,
            patient_id=note.patient_id,
            study_date=note.study_date,
            title=note.title,
            content=note.content,
            note_type=note.note_type,
            tags=list(note.tags),
            attachments=[AttachmentSchema.from_domain(a) for a in note.attachments],
            created_at=note.created_at,
            updated_at=note.updated_at,
            created_by=note.created_by,
            created_by_name=note.created_by_name,
            version=note.version,
        )


class NoteListResponse(CamelModel):
    items: List[NoteResponse]
    next_cursor: Optional[str] = None
    has_more: bool = False


class PatientResponse(CamelModel):
    patient_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str

    @classmethod
    def from_domain(cls, patient: Patient) -> PatientResponse:
        return cls(
            patient_id=patient.patient_id,
            first_name=patient.first_name,
            last_name=patient.last_name,
            date_of_birth=patient.date_of_birth,
            gender=patient.gender,
            email=patient.email,
            phone=patient.phone,
            status=patient.status.value,
        )


class ClinicResponse(CamelModel):
    clinic_id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: Optional[str] = None

    @classmethod
    def from_domain(cls, clinic: Clinic) -> ClinicResponse:
        return cls(
            clinic_id=clinic.clinic_id,
            name=clinic.name,
            address=clinic.address,
            phone=clinic.phone,
            email=clinic.email,
            timezone=clinic.timezone,
        )
