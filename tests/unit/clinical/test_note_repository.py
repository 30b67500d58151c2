import asyncio
from datetime import date, datetime, timezone

import pytest

from clinical.domain.value_objects.attachment import Attachment
from clinical.domain.value_objects.note_values import ListNotesOptions, NotePatch
from clinical.infrastructure.cursor import Cursor
from clinical.infrastructure.keys import build_note_pk, build_note_sk
from clinical.infrastructure.repositories import KVNoteRepository
from shared.exceptions import (
    ConditionalCheckFailedError,
    NotFoundError,
    StoreError,
    VersionConflictError,
)

from support import BrokenStore, CURSOR_SECRET, make_draft

C1, C2, P1 = "c1", "c2", "p1"


async def _create_many(repo, n, **kw):
    notes = []
    for day in range(1, n + 1):
        notes.append(await repo.create(C1, P1, "u1", "Dr. One", make_draft(study_date=date(2024, 1, day), **kw)))
    return notes


async def test_create_assigns_id_and_version(note_repo, store):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(tags=["cardio"]))

    assert note.version == 1
    assert note.created_by == note.updated_by == "u1"
    assert note.created_by_name == "Dr. One"
    raw = await store.get_item(build_note_pk(C1, P1), build_note_sk(note.study_date, note.note_id))
    assert raw["entity_type"] == "NOTE"
    assert raw["tags"] == ["cardio"]
    assert "deleted_at" not in raw


async def test_create_collision_is_conflict(store, monkeypatch):
    repo = KVNoteRepository(store, CURSOR_SECRET)
    monkeypatch.setattr("clinical.infrastructure.repositories.note_repository_impl.uuid.uuid4", lambda: "fixed-id")
    await repo.create(C1, P1, "u1", "Dr. One", make_draft())
    with pytest.raises(ConditionalCheckFailedError):
        await repo.create(C1, P1, "u1", "Dr. One", make_draft())


async def test_get_and_find(note_repo):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(study_date=date(2024, 5, 2)))

    assert (await note_repo.get(C1, P1, note.note_id)).note_id == note.note_id
    assert (await note_repo.find_by_id(C1, P1, note.note_id, date(2024, 5, 2))).title == note.title
    assert await note_repo.find_by_id(C1, P1, note.note_id, date(2024, 5, 3)) is None
    assert await note_repo.find_by_id_without_study_date(C1, P1, "missing") is None
    with pytest.raises(NotFoundError):
        await note_repo.get(C1, P1, "missing")


async def test_attachments_round_trip(note_repo):
    attachment = Attachment(
        id="a1",
        file_name="scan.pdf",
        content_type="application/pdf",
        size_bytes=1024,
        storage_key="clinic/c1/patient/p1/note/n/a1/scan.pdf",
        uploaded_at=datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc),
    )
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(attachments=[attachment]))
    assert (await note_repo.get(C1, P1, note.note_id)).attachments == [attachment]


async def test_tenant_isolation(note_repo):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft())

    with pytest.raises(NotFoundError):
        await note_repo.get(C2, P1, note.note_id)
    assert (await note_repo.list(C2, P1, ListNotesOptions())).items == []


async def test_pagination_walks_every_note_newest_first(note_repo):
    await _create_many(note_repo, 5)

    seen, sizes, flags, cursor = [], [], [], None
    while True:
        page = await note_repo.list(C1, P1, ListNotesOptions(cursor=cursor, limit=2))
        seen += [n.study_date.day for n in page.items]
        sizes.append(len(page.items))
        flags.append(page.has_more)
        if not page.has_more:
            assert page.next_cursor is None
            break
        cursor = page.next_cursor

    assert sizes == [2, 2, 1]
    assert flags == [True, True, False]
    assert seen == [5, 4, 3, 2, 1]


async def test_exact_page_has_no_more(note_repo):
    await _create_many(note_repo, 2)
    page = await note_repo.list(C1, P1, ListNotesOptions(limit=2))
    assert len(page.items) == 2
    assert page.has_more is False and page.next_cursor is None


async def test_invalid_or_foreign_cursor_restarts(note_repo):
    await _create_many(note_repo, 3)
    first = await note_repo.list(C1, P1, ListNotesOptions(limit=3))

    foreign = Cursor(build_note_pk(C2, P1), build_note_sk("2024-01-02", "x")).encode(CURSOR_SECRET)
    for bad in ("garbage", foreign):
        page = await note_repo.list(C1, P1, ListNotesOptions(cursor=bad, limit=3))
        assert [n.note_id for n in page.items] == [n.note_id for n in first.items]


async def test_date_range_is_inclusive(note_repo):
    await _create_many(note_repo, 5)
    page = await note_repo.list(
        C1, P1, ListNotesOptions(study_date_from=date(2024, 1, 2), study_date_to=date(2024, 1, 4))
    )
    assert [n.study_date.day for n in page.items] == [4, 3, 2]

    page = await note_repo.list(C1, P1, ListNotesOptions(study_date_from=date(2024, 1, 4)))
    assert [n.study_date.day for n in page.items] == [5, 4]


async def test_tag_and_search_filters_fill_pages(note_repo):
    for day, title in enumerate(["Blood panel", "Knee x-ray", "BLOOD pressure", "Flu", "low blood sugar"], start=1):
        tags = ["lab"] if "lood" in title.lower() else []
        await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(study_date=date(2024, 2, day), title=title, tags=tags))

    page = await note_repo.list(C1, P1, ListNotesOptions(limit=2, search="blood"))
    assert [n.title for n in page.items] == ["low blood sugar", "BLOOD pressure"]
    assert page.has_more is True

    page = await note_repo.list(C1, P1, ListNotesOptions(limit=2, search="blood", cursor=page.next_cursor))
    assert [n.title for n in page.items] == ["Blood panel"]
    assert page.has_more is False

    page = await note_repo.list(C1, P1, ListNotesOptions(tag="lab"))
    assert len(page.items) == 3


async def test_search_matches_content(note_repo):
    await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(title="Visit", content="Mild TACHYCARDIA noted"))
    page = await note_repo.list(C1, P1, ListNotesOptions(search="tachycardia"))
    assert len(page.items) == 1


async def test_update_bumps_version_and_sets_only_patched_fields(note_repo):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(tags=["a"]))

    updated = await note_repo.update(
        C1, P1, note.note_id, note.study_date, "u2", "Dr. Two",
        NotePatch(expected_version=1, title="Revised"),
    )

    assert updated.version == 2
    assert updated.title == "Revised"
    assert updated.content == note.content
    assert updated.tags == ["a"]
    assert updated.updated_by == "u2" and updated.updated_by_name == "Dr. Two"
    assert updated.created_by == "u1"


async def test_update_can_clear_note_type(note_repo):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft(note_type="progress"))
    updated = await note_repo.update(
        C1, P1, note.note_id, note.study_date, "u1", "Dr. One", NotePatch(expected_version=1, note_type=None)
    )
    assert updated.note_type is None


async def test_stale_version_conflicts_without_writing(note_repo, store):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft())
    await note_repo.update(C1, P1, note.note_id, note.study_date, "u1", "Dr. One", NotePatch(1, title="v2"))
    key = (build_note_pk(C1, P1), build_note_sk(note.study_date, note.note_id))
    before = await store.get_item(*key)

    with pytest.raises(VersionConflictError) as exc:
        await note_repo.update(C1, P1, note.note_id, note.study_date, "u1", "Dr. One", NotePatch(1, title="lost"))

    assert exc.value.expected_version == 1
    assert exc.value.current_version == 2
    assert await store.get_item(*key) == before


async def test_concurrent_updates_one_wins(note_repo):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft())

    results = await asyncio.gather(
        note_repo.update(C1, P1, note.note_id, note.study_date, "u1", "A", NotePatch(1, title="A")),
        note_repo.update(C1, P1, note.note_id, note.study_date, "u2", "B", NotePatch(1, title="B")),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, VersionConflictError)]
    assert len(winners) == 1 and len(losers) == 1
    assert winners[0].version == 2
    assert losers[0].current_version == 2


async def test_update_missing_note_is_not_found(note_repo):
    with pytest.raises(NotFoundError):
        await note_repo.update(C1, P1, "missing", date(2024, 1, 1), "u1", "Dr. One", NotePatch(1, title="x"))


async def test_soft_delete_hides_but_keeps_item(note_repo, store):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft())
    await note_repo.soft_delete(C1, P1, note.note_id, note.study_date, "u9")

    with pytest.raises(NotFoundError):
        await note_repo.get(C1, P1, note.note_id)
    assert await note_repo.find_by_id(C1, P1, note.note_id, note.study_date) is None
    assert (await note_repo.list(C1, P1, ListNotesOptions())).items == []

    raw = await store.get_item(build_note_pk(C1, P1), build_note_sk(note.study_date, note.note_id))
    assert raw["deleted_by"] == "u9"
    assert raw["deleted_at"]

    with pytest.raises(NotFoundError):
        await note_repo.soft_delete(C1, P1, note.note_id, note.study_date, "u9")
    with pytest.raises(NotFoundError):
        await note_repo.update(C1, P1, note.note_id, note.study_date, "u1", "Dr. One", NotePatch(1, title="x"))


async def test_hard_delete_removes_item(note_repo, store):
    note = await note_repo.create(C1, P1, "u1", "Dr. One", make_draft())
    await note_repo.hard_delete(C1, P1, note.note_id, note.study_date)
    assert await store.get_item(build_note_pk(C1, P1), build_note_sk(note.study_date, note.note_id)) is None


async def test_store_failures_propagate():
    repo = KVNoteRepository(BrokenStore(), CURSOR_SECRET)
    with pytest.raises(StoreError):
        await repo.get(C1, P1, "n1")
    with pytest.raises(StoreError):
        await repo.list(C1, P1, ListNotesOptions())
    with pytest.raises(StoreError):
        await repo.create(C1, P1, "u1", "Dr. One", make_draft())


async def test_update_store_failure_propagates():
    repo = KVNoteRepository(BrokenStore(), CURSOR_SECRET)
    with pytest.raises(StoreError):
        await repo.update(C1, P1, "n1", date(2024, 3, 1), "u1", "Dr. One", NotePatch(1, title="x"))


class _LostReadStore(BrokenStore):
    """Rejects the guarded write, then fails the read that would explain why."""

    async def update_item(self, *args, **kwargs):
        raise ConditionalCheckFailedError("Conditional check failed")


async def test_update_conflict_reread_failure_is_a_store_error():
    repo = KVNoteRepository(_LostReadStore(), CURSOR_SECRET)
    with pytest.raises(StoreError) as exc_info:
        await repo.update(C1, P1, "n1", date(2024, 3, 1), "u1", "Dr. One", NotePatch(1, title="x"))
    assert not isinstance(exc_info.value, (NotFoundError, VersionConflictError))
