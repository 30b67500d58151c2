import pytest

from shared.exceptions import ConditionalCheckFailedError
from shared.infrastructure.kvstore import Attr, ItemExists, SortKeyRange


async def test_put_get_returns_copies(store):
    item = {"pk": "P", "sk": "S", "tags": ["a"]}
    await store.put_item(item)
    item["tags"].append("mutated")

    got = await store.get_item("P", "S")
    assert got == {"pk": "P", "sk": "S", "tags": ["a"]}
    got["tags"].append("again")
    assert (await store.get_item("P", "S"))["tags"] == ["a"]


async def test_conditional_put_rejects_existing(store):
    await store.put_item({"pk": "P", "sk": "S", "v": 1}, condition=~ItemExists())
    with pytest.raises(ConditionalCheckFailedError):
        await store.put_item({"pk": "P", "sk": "S", "v": 2}, condition=~ItemExists())
    assert (await store.get_item("P", "S"))["v"] == 1


async def test_update_increments_and_upserts(store):
    first = await store.update_item("P", "S", increment={"count": 1})
    second = await store.update_item("P", "S", increment={"count": 1}, set_fields={"x": "y"})
    assert first["count"] == 1
    assert second == {"pk": "P", "sk": "S", "count": 2, "x": "y"}


async def test_failed_update_changes_nothing(store):
    await store.put_item({"pk": "P", "sk": "S", "version": 2, "title": "old"})
    with pytest.raises(ConditionalCheckFailedError):
        await store.update_item(
            "P", "S", set_fields={"title": "new"}, increment={"version": 1},
            condition=Attr("version").eq(1),
        )
    assert await store.get_item("P", "S") == {"pk": "P", "sk": "S", "version": 2, "title": "old"}


async def test_remove_attributes(store):
    await store.put_item({"pk": "P", "sk": "S", "a": 1, "b": 2})
    updated = await store.update_item("P", "S", remove=["a"])
    assert "a" not in updated and updated["b"] == 2


async def test_expired_items_read_as_absent(store, clock):
    await store.put_item({"pk": "P", "sk": "S"}, expires_at=int(clock()) + 10)
    assert await store.get_item("P", "S") is not None
    clock.advance(10)
    assert await store.get_item("P", "S") is None
    assert (await store.query("P")).items == []


async def test_query_orders_and_filters_before_limit(store):
    for i in range(6):
        await store.put_item({"pk": "P", "sk": f"NOTE#{i}", "keep": i % 3 == 0})
    await store.put_item({"pk": "P", "sk": "METADATA"})

    page = await store.query(
        "P",
        sort_key=SortKeyRange.begins_with("NOTE#"),
        filter=Attr("keep").eq(True),
        limit=2,
        scan_forward=False,
    )
    assert [i["sk"] for i in page.items] == ["NOTE#3", "NOTE#0"]
    assert page.last_evaluated_key == ("P", "NOTE#0")


async def test_query_exclusive_start(store):
    for i in range(4):
        await store.put_item({"pk": "P", "sk": f"K#{i}"})
    forward = await store.query("P", exclusive_start_sk="K#1")
    backward = await store.query("P", exclusive_start_sk="K#2", scan_forward=False)
    assert [i["sk"] for i in forward.items] == ["K#2", "K#3"]
    assert [i["sk"] for i in backward.items] == ["K#1", "K#0"]


async def test_scan_by_partition_prefix(store):
    await store.put_item({"pk": "CLINIC#a", "sk": "METADATA", "entity_type": "CLINIC"})
    await store.put_item({"pk": "CLINIC#a#PATIENT#1", "sk": "METADATA", "entity_type": "PATIENT"})
    await store.put_item({"pk": "RATELIMIT#read#u", "sk": "WINDOW#0", "count": 1})

    page = await store.scan(pk_prefix="CLINIC#", filter=Attr("entity_type").eq("CLINIC"))
    assert [i["pk"] for i in page.items] == ["CLINIC#a"]


async def test_conditional_delete(store):
    await store.put_item({"pk": "P", "sk": "S", "locked": True})
    with pytest.raises(ConditionalCheckFailedError):
        await store.delete_item("P", "S", condition=Attr("locked").not_exists())
    await store.delete_item("P", "S")
    await store.delete_item("P", "S")
    assert await store.get_item("P", "S") is None


async def test_purge_expired(store, clock):
    await store.put_item({"pk": "P", "sk": "old"}, expires_at=int(clock()) - 1)
    await store.put_item({"pk": "P", "sk": "new"}, expires_at=int(clock()) + 100)
    assert await store.purge_expired() == 1
