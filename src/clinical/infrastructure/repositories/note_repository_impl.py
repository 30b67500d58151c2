"""
Key-Value Store Implementation of Note Repository
Maps between Note domain entity and store items
"""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

from shared.exceptions import ConditionalCheckFailedError, NotFoundError, VersionConflictError
from shared.infrastructure.kvstore import Attr, Condition, IKeyValueStore, ItemExists, SortKeyRange
from shared.infrastructure.observability import get_logger

from clinical.domain.entities.note import Note
from clinical.domain.repositories.note_repository import NoteRepository
from clinical.domain.value_objects.attachment import Attachment
from clinical.domain.value_objects.note_values import ListNotesOptions, NoteDraft, NotePage, NotePatch
from clinical.infrastructure.cursor import Cursor
from clinical.infrastructure.keys import (
    NOTE_PREFIX,
    build_note_pk,
    build_note_sk,
    note_sk_lower_bound,
    note_sk_upper_bound,
)

logger = get_logger(__name__)

ENTITY_TYPE = "NOTE"

_LIVE = Attr("deleted_at").not_exists()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _serialize_field(name: str, value: Any) -> Any:
    if name == "attachments":
        return [a.to_dict() for a in value or []]
    if name == "tags":
        return list(value or [])
    return value


class KVNoteRepository(NoteRepository):
    """
    Note repository over the ordered key-value store.

    Notes live in the patient partition ``CLINIC#{c}#PATIENT#{p}`` under
    ``NOTE#{study_date}#{note_id}``, so a descending range query yields the
    newest study dates first.

    Attributes:
        store: Ordered key-value store
        cursor_secret: Key used to sign pagination cursors
    """

    def __init__(
        self,
        store: IKeyValueStore,
        cursor_secret: str,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.cursor_secret = cursor_secret
        self._clock = clock

    # ---------- mapping ----------

    def _to_item(self, note: Note) -> dict[str, Any]:
        item: dict[str, Any] = {
            "pk": build_note_pk(note.clinic_id, note.patient_id),
            "sk": build_note_sk(note.study_date, note.note_id),
            "entity_type": ENTITY_TYPE,
            "note_id": note.note_id,
            "clinic_id": note.clinic_id,
            "patient_id": note.patient_id,
            "study_date": note.study_date.isoformat(),
            "title": note.title,
            "content": note.content,
            "note_type": note.note_type,
            "tags": list(note.tags),
            "attachments": [a.to_dict() for a in note.attachments],
            "created_at": note.created_at.isoformat(),
            "updated_at": note.updated_at.isoformat(),
            "created_by": note.created_by,
            "created_by_name": note.created_by_name,
            "updated_by": note.updated_by,
            "updated_by_name": note.updated_by_name,
            "version": note.version,
        }
        if note.deleted_at is not None:
            item["deleted_at"] = note.deleted_at.isoformat()
            item["deleted_by"] = note.deleted_by
        return item

    def _to_domain(self, item: Mapping[str, Any]) -> Note:
        return Note(
            note_id=item["note_id"],
            clinic_id=item["clinic_id"],
            patient_id=item["patient_id"],
            study_date=date.fromisoformat(item["study_date"]),
            title=item["title"],
            content=item["content"],
            note_type=item.get("note_type"),
            tags=list(item.get("tags") or []),
            attachments=[Attachment.from_dict(a) for a in item.get("attachments") or []],
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
            created_by=item["created_by"],
            created_by_name=item.get("created_by_name", ""),
            updated_by=item["updated_by"],
            updated_by_name=item.get("updated_by_name", ""),
            version=int(item["version"]),
            deleted_at=_parse_dt(item.get("deleted_at")),
            deleted_by=item.get("deleted_by"),
        )

    # ---------- NoteRepository ----------

    async def create(
        self,
        clinic_id: str,
        patient_id: str,
        author_id: str,
        author_name: str,
        draft: NoteDraft,
    ) -> Note:
        now = self._clock()
        note = Note(
            note_id=str(uuid.uuid4()),
            clinic_id=clinic_id,
            patient_id=patient_id,
            study_date=draft.study_date,
            title=draft.title,
            content=draft.content,
            note_type=draft.note_type,
            tags=list(draft.tags),
            attachments=list(draft.attachments),
            created_at=now,
            updated_at=now,
            created_by=author_id,
            created_by_name=author_name,
            updated_by=author_id,
            updated_by_name=author_name,
            version=1,
        )
        # fails with ConditionalCheckFailedError on an id collision
        await self.store.put_item(self._to_item(note), condition=~ItemExists())
        logger.info("Note created", clinic_id=clinic_id, patient_id=patient_id, note_id=note.note_id)
        return note

    async def find_by_id_without_study_date(
        self, clinic_id: str, patient_id: str, note_id: str
    ) -> Optional[Note]:
        page = await self.store.query(
            build_note_pk(clinic_id, patient_id),
            sort_key=SortKeyRange.begins_with(NOTE_PREFIX),
            filter=Attr("note_id").eq(note_id) & _LIVE,
            limit=1,
        )
        return self._to_domain(page.items[0]) if page.items else None

    async def get(self, clinic_id: str, patient_id: str, note_id: str) -> Note:
        note = await self.find_by_id_without_study_date(clinic_id, patient_id, note_id)
        if note is None:
            raise NotFoundError("Note", note_id, code="note_not_found")
        return note

    async def find_by_id(
        self, clinic_id: str, patient_id: str, note_id: str, study_date: date
    ) -> Optional[Note]:
        item = await self.store.get_item(
            build_note_pk(clinic_id, patient_id), build_note_sk(study_date, note_id)
        )
        if item is None or not _LIVE.evaluate(item):
            return None
        return self._to_domain(item)

    def _sort_key_range(self, options: ListNotesOptions) -> SortKeyRange:
        lower = note_sk_lower_bound(options.study_date_from) if options.study_date_from else None
        upper = note_sk_upper_bound(options.study_date_to) if options.study_date_to else None
        return SortKeyRange(lower=lower, upper=upper, prefix=NOTE_PREFIX)

    def _list_filter(self, options: ListNotesOptions) -> Condition:
        condition = _LIVE
        if options.tag:
            condition = condition & Attr("tags").contains(options.tag)
        if options.search:
            condition = condition & (
                Attr("title").icontains(options.search) | Attr("content").icontains(options.search)
            )
        return condition

    async def list(self, clinic_id: str, patient_id: str, options: ListNotesOptions) -> NotePage:
        pk = build_note_pk(clinic_id, patient_id)
        limit = max(1, options.limit)

        start_sk = None
        if options.cursor:
            cursor = Cursor.decode(options.cursor, self.cursor_secret, partition_key=pk)
            if cursor is None:
                logger.info("Ignoring invalid pagination cursor", clinic_id=clinic_id, patient_id=patient_id)
            else:
                start_sk = cursor.sk

        page = await self.store.query(
            pk,
            sort_key=self._sort_key_range(options),
            filter=self._list_filter(options),
            limit=limit + 1,
            exclusive_start_sk=start_sk,
            scan_forward=False,
        )

        items = page.items
        if len(items) <= limit:
            return NotePage(items=[self._to_domain(i) for i in items])

        kept = items[:limit]
        next_cursor = Cursor(pk=pk, sk=kept[-1]["sk"]).encode(self.cursor_secret)
        return NotePage(items=[self._to_domain(i) for i in kept], next_cursor=next_cursor, has_more=True)

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
        pk = build_note_pk(clinic_id, patient_id)
        sk = build_note_sk(study_date, note_id)

        set_fields = {name: _serialize_field(name, value) for name, value in patch.changes().items()}
        set_fields.update(
            updated_at=self._clock().isoformat(),
            updated_by=editor_id,
            updated_by_name=editor_name,
        )

        try:
            item = await self.store.update_item(
                pk,
                sk,
                set_fields=set_fields,
                increment={"version": 1},
                condition=ItemExists() & _LIVE & Attr("version").eq(patch.expected_version),
            )
        except ConditionalCheckFailedError:
            current = await self.store.get_item(pk, sk)
            if current is None or not _LIVE.evaluate(current):
                raise NotFoundError("Note", note_id, code="note_not_found")
            logger.info(
                "Note update rejected on stale version",
                clinic_id=clinic_id,
                note_id=note_id,
                expected_version=patch.expected_version,
                current_version=current.get("version"),
            )
            raise VersionConflictError(patch.expected_version, int(current["version"]))

        logger.info("Note updated", clinic_id=clinic_id, patient_id=patient_id, note_id=note_id, version=item["version"])
        return self._to_domain(item)

    async def soft_delete(
        self, clinic_id: str, patient_id: str, note_id: str, study_date: date, actor_id: str
    ) -> None:
        try:
            await self.store.update_item(
                build_note_pk(clinic_id, patient_id),
                build_note_sk(study_date, note_id),
                set_fields={"deleted_at": self._clock().isoformat(), "deleted_by": actor_id},
                condition=ItemExists() & _LIVE,
            )
        except ConditionalCheckFailedError:
            raise NotFoundError("Note", note_id, code="note_not_found")
        logger.info("Note soft deleted", clinic_id=clinic_id, patient_id=patient_id, note_id=note_id)

    async def hard_delete(self, clinic_id: str, patient_id: str, note_id: str, study_date: date) -> None:
        await self.store.delete_item(build_note_pk(clinic_id, patient_id), build_note_sk(study_date, note_id))
        logger.info("Note hard deleted", clinic_id=clinic_id, patient_id=patient_id, note_id=note_id)
