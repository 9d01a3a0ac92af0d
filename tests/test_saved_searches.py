from datetime import timedelta

import pytest
from conftest import NOW
from pydantic import ValidationError

from socialsearch.core.errors import ConflictError, NotFoundError, QuotaExceededError
from socialsearch.schemas.saved import SavedSearchCreate, SavedSearchUpdate
from socialsearch.services.saved_searches import SavedSearchStore, saved_search_out


def body(name="Local runners", query="running", **extra):
    return SavedSearchCreate(name=name, query=query, type=extra.pop("type", "users"), **extra)


async def test_create_initialises_usage(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)

    row = await store.create(me.id, body(filters={"sort_by": "date", "verified": True}, notifications=True))

    out = saved_search_out(row)
    assert out.use_count == 0
    assert out.is_active is True
    assert out.last_used is None
    assert out.notifications is True
    assert out.filters == {"sort_by": "date", "verified": True}


async def test_duplicate_name_conflicts_per_owner(db, seed):
    me = await seed.user("me")
    other = await seed.user("other")
    store = SavedSearchStore(db)
    await store.create(me.id, body())

    with pytest.raises(ConflictError) as exc:
        await store.create(me.id, body(query="something else"))
    assert exc.value.status_code == 409

    theirs = await store.create(other.id, body())
    assert theirs.name == "Local runners"


def test_name_is_trimmed():
    assert body(name="  Cooks ").name == "Cooks"
    assert SavedSearchUpdate(id=1, name=" Cooks\t").name == "Cooks"

    with pytest.raises(ValidationError):
        body(name="   ")
    with pytest.raises(ValidationError):
        SavedSearchUpdate(id=1, name="  ")


async def test_trailing_space_does_not_dodge_name_conflict(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    await store.create(me.id, body(name="Cooks"))

    with pytest.raises(ConflictError):
        await store.create(me.id, body(name="Cooks "))


async def test_quota(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    for i in range(50):
        await store.create(me.id, body(name=f"search {i}"))

    with pytest.raises(QuotaExceededError) as exc:
        await store.create(me.id, body(name="one too many"))
    assert exc.value.status_code == 400
    assert "(50)" in exc.value.detail

    # Name conflicts are reported before the quota.
    with pytest.raises(ConflictError):
        await store.create(me.id, body(name="search 0"))


async def test_partial_update(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    first = await store.create(me.id, body(name="first"))
    await store.create(me.id, body(name="second"))

    with pytest.raises(ConflictError):
        await store.update(me.id, SavedSearchUpdate(id=first.id, name="second"))

    same = await store.update(me.id, SavedSearchUpdate(id=first.id, name="first", query="trail running"))
    assert same.name == "first"
    assert same.query == "trail running"
    assert same.scope == "users"

    paused = await store.update(me.id, SavedSearchUpdate(id=first.id, is_active=False))
    assert paused.is_active is False
    assert paused.query == "trail running"


async def test_update_with_only_id_bumps_updated_at(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    row = await store.create(me.id, body())
    before = row.updated_at

    touched = await store.update(me.id, SavedSearchUpdate(id=row.id))

    assert touched.updated_at >= before
    assert touched.use_count == 0


async def test_active_filter_and_order(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    never = await store.create(me.id, body(name="never used"))
    used = await store.create(me.id, body(name="used"))
    inactive = await store.create(me.id, body(name="inactive"))
    await store.update(me.id, SavedSearchUpdate(id=inactive.id, is_active=False))
    await store.record_use(me.id, used.id, used_at=NOW - timedelta(days=1))

    rows, total = await store.list(me.id, limit=20)
    assert [r.id for r in rows] == [used.id, never.id, inactive.id]
    assert total == 3

    active_rows, active_total = await store.list(me.id, limit=20, active=True)
    assert [r.id for r in active_rows] == [used.id, never.id]
    assert active_total == 2

    inactive_rows, _ = await store.list(me.id, limit=20, active=False)
    assert [r.id for r in inactive_rows] == [inactive.id]


async def test_record_use(db, seed):
    me = await seed.user("me")
    store = SavedSearchStore(db)
    row = await store.create(me.id, body())

    await store.record_use(me.id, row.id, used_at=NOW)
    again = await store.record_use(me.id, row.id, used_at=NOW + timedelta(minutes=5))

    out = saved_search_out(again)
    assert out.use_count == 2
    assert out.last_used.startswith("2026-06-01T12:05")


async def test_owner_scoped_delete(db, seed):
    me = await seed.user("me")
    other = await seed.user("other")
    store = SavedSearchStore(db)
    row = await store.create(me.id, body())

    with pytest.raises(NotFoundError):
        await store.delete(other.id, row.id)

    await store.delete(me.id, row.id)
    with pytest.raises(NotFoundError):
        await store.get(me.id, row.id)
