from datetime import timedelta

import pytest
from conftest import NOW

from socialsearch.core.errors import NotFoundError
from socialsearch.schemas.search import SearchScope
from socialsearch.services.events import SearchCompleted
from socialsearch.services.history import SearchHistoryStore, history_out


def completed(user, query, *, scope="all", minutes=0, results=3):
    return SearchCompleted(
        actor_id=user.id,
        query=query,
        scope=scope,
        filters={"sort_by": "relevance", "date_range": "all", "verified": False},
        results_count=results,
        occurred_at=NOW + timedelta(minutes=minutes),
    )


async def test_record_and_list_newest_first(db, seed):
    me = await seed.user("me")
    store = SearchHistoryStore(db)
    for i, q in enumerate(["one", "two", "three"]):
        await store.record(completed(me, q, minutes=i))

    rows, total = await store.list(me.id, limit=20)

    assert [r.query for r in rows] == ["three", "two", "one"]
    assert total == 3
    entry = history_out(rows[0])
    assert entry.type is SearchScope.ALL
    assert entry.results_count == 3
    assert entry.is_favorite is False
    assert entry.filters["sort_by"] == "relevance"


async def test_favorites_listed_first(db, seed):
    me = await seed.user("me")
    store = SearchHistoryStore(db)
    old = await store.record(completed(me, "old", minutes=-60))
    await store.record(completed(me, "recent", minutes=0))

    await store.set_favorite(me.id, old.id, True)
    rows, _ = await store.list(me.id, limit=20)

    assert [r.query for r in rows] == ["old", "recent"]
    assert rows[0].is_favorite is True


async def test_favorite_toggle_bumps_updated_at(db, seed):
    me = await seed.user("me")
    store = SearchHistoryStore(db)
    row = await store.record(completed(me, "q", minutes=-600))
    before = row.updated_at

    updated = await store.set_favorite(me.id, row.id, True)
    assert updated.updated_at > before

    cleared = await store.set_favorite(me.id, row.id, False)
    assert cleared.is_favorite is False


async def test_scope_filter(db, seed):
    me = await seed.user("me")
    store = SearchHistoryStore(db)
    await store.record(completed(me, "a", scope="users"))
    await store.record(completed(me, "b", scope="posts", minutes=1))

    users_only, total = await store.list(me.id, limit=20, scope=SearchScope.USERS)
    everything, all_total = await store.list(me.id, limit=20, scope=SearchScope.ALL)

    assert [r.query for r in users_only] == ["a"]
    assert total == 1
    assert all_total == 2
    assert len(everything) == 2


async def test_paging(db, seed):
    me = await seed.user("me")
    store = SearchHistoryStore(db)
    for i in range(5):
        await store.record(completed(me, f"q{i}", minutes=i))

    rows, total = await store.list(me.id, limit=2, offset=2)

    assert [r.query for r in rows] == ["q2", "q1"]
    assert total == 5


async def test_entries_are_owner_scoped(db, seed):
    me = await seed.user("me")
    other = await seed.user("other")
    store = SearchHistoryStore(db)
    theirs = await store.record(completed(other, "private"))

    rows, total = await store.list(me.id, limit=20)
    assert rows == [] and total == 0

    with pytest.raises(NotFoundError):
        await store.set_favorite(me.id, theirs.id, True)
    with pytest.raises(NotFoundError):
        await store.delete(me.id, theirs.id)


async def test_delete_single_and_all(db, seed):
    me = await seed.user("me")
    other = await seed.user("other")
    store = SearchHistoryStore(db)
    rows = [await store.record(completed(me, f"q{i}", minutes=i)) for i in range(8)]
    await store.record(completed(other, "keep"))

    await store.delete(me.id, rows[0].id)
    with pytest.raises(NotFoundError):
        await store.get(me.id, rows[0].id)

    assert await store.delete_all(me.id) == 7
    assert (await store.list(me.id, limit=20))[1] == 0
    assert (await store.list(other.id, limit=20))[1] == 1
