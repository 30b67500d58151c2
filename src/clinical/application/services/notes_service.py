"""Note use cases scoped to the caller's clinic."""

from __future__ import annotations

from shared.exceptions import ValidationError
from shared.infrastructure.observability import get_logger

from clinical.application.services.authorization import require_scopes
from clinical.application.services.patient_access import assert_patient_access
from clinical.domain.entities.note import Note
from clinical.domain.repositories.note_repository import NoteRepository
from clinical.domain.repositories.patient_repository import PatientRepository
from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.note_values import ListNotesOptions, NoteDraft, NotePage, NotePatch
from clinical.domain.value_objects.scope import Scope

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class NotesService:
    """
    Orchestrates access checks and note repository calls.

    Every call checks the caller's scopes, then the patient against
    ``auth.clinic_id``; the repository is only ever addressed with the
    caller's own clinic.
    """

    def __init__(
        self,
        notes: NoteRepository,
        patients: PatientRepository,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self.notes = notes
        self.patients = patients
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def create_note(self, auth: AuthContext, patient_id: str, draft: NoteDraft) -> Note:
        require_scopes(auth, Scope.NOTES_WRITE)
        await assert_patient_access(self.patients, auth, patient_id)
        return await self.notes.create(auth.clinic_id, patient_id, auth.user_id, auth.display_name, draft)

    async def get_note(self, auth: AuthContext, patient_id: str, note_id: str) -> Note:
        require_scopes(auth, Scope.NOTES_READ)
        await assert_patient_access(self.patients, auth, patient_id)
        return await self.notes.get(auth.clinic_id, patient_id, note_id)

    async def list_notes(self, auth: AuthContext, patient_id: str, options: ListNotesOptions) -> NotePage:
        require_scopes(auth, Scope.NOTES_READ)
        await assert_patient_access(self.patients, auth, patient_id)

        if (
            options.study_date_from is not None
            and options.study_date_to is not None
            and options.study_date_from > options.study_date_to
        ):
            raise ValidationError("studyDateFrom must not be after studyDateTo")

        limit = options.limit if options.limit and options.limit > 0 else self.default_page_size
        limit = min(limit, self.max_page_size)
        search = options.search.strip() if options.search else None

        return await self.notes.list(
            auth.clinic_id,
            patient_id,
            ListNotesOptions(
                cursor=options.cursor,
                limit=limit,
                study_date_from=options.study_date_from,
                study_date_to=options.study_date_to,
                tag=options.tag or None,
                search=search or None,
            ),
        )

    async def update_note(self, auth: AuthContext, patient_id: str, note_id: str, patch: NotePatch) -> Note:
        require_scopes(auth, Scope.NOTES_WRITE)
        await assert_patient_access(self.patients, auth, patient_id)
        existing = await self.notes.get(auth.clinic_id, patient_id, note_id)
        return await self.notes.update(
            auth.clinic_id,
            patient_id,
            note_id,
            existing.study_date,
            auth.user_id,
            auth.display_name,
            patch,
        )

    async def delete_note(self, auth: AuthContext, patient_id: str, note_id: str) -> None:
        require_scopes(auth, Scope.NOTES_DELETE)
        await assert_patient_access(self.patients, auth, patient_id)
        existing = await self.notes.get(auth.clinic_id, patient_id, note_id)
        await self.notes.soft_delete(auth.clinic_id, patient_id, note_id, existing.study_date, auth.user_id)
