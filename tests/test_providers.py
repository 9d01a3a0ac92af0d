"""Provider queries against a throwaway SQLite database."""

from datetime import timedelta

from conftest import NOW, actor_of

from socialsearch.schemas.search import SearchSort
from socialsearch.services.providers import (
    ConversationSearchProvider,
    PostSearchProvider,
    SearchCriteria,
    UserSearchProvider,
)
from socialsearch.services.providers.posts import preview


# ── Users ────────────────────────────────────────────────────────────────────


class TestUserSearch:
    async def test_matches_name_username_and_bio_case_insensitively(self, seed, session_factory):
        me = await seed.user("me", name="Alex Searcher")
        await seed.user("alice", name="Alice Doe")
        await seed.user("bob", name="Bob", bio="Friend of ALICE")
        await seed.user("malice99", name="Carol")
        await seed.user("dave", name="Dave")

        result = await UserSearchProvider(session_factory).search(SearchCriteria(query="alice"), actor_of(me))

        assert sorted(u.username for u in result.items) == ["alice", "bob", "malice99"]
        assert result.matched_count == 3

    async def test_excludes_actor(self, seed, session_factory):
        me = await seed.user("alice_me")
        await seed.user("alice_other")

        result = await UserSearchProvider(session_factory).search(SearchCriteria(query="alice"), actor_of(me))

        assert [u.username for u in result.items] == ["alice_other"]

    async def test_verified_only(self, seed, session_factory):
        me = await seed.user("me")
        await seed.user("sam_a", verified=True)
        await seed.user("sam_b")

        result = await UserSearchProvider(session_factory).search(
            SearchCriteria(query="sam", verified_only=True), actor_of(me)
        )

        assert [u.username for u in result.items] == ["sam_a"]
        assert result.items[0].is_verified is True

    async def test_relevance_puts_verified_then_followers_first(self, seed, session_factory):
        me = await seed.user("me")
        plain = await seed.user("kim_plain")
        popular = await seed.user("kim_popular")
        verified = await seed.user("kim_verified", verified=True)
        for i in range(3):
            fan = await seed.user(f"fan{i}")
            await seed.follow(fan, popular)

        provider = UserSearchProvider(session_factory)
        relevance = await provider.search(SearchCriteria(query="kim"), actor_of(me))
        popularity = await provider.search(SearchCriteria(query="kim", sort=SearchSort.POPULARITY), actor_of(me))
        newest = await provider.search(SearchCriteria(query="kim", sort=SearchSort.DATE), actor_of(me))

        assert [u.id for u in relevance.items] == [verified.id, popular.id, plain.id]
        assert popularity.items[0].id == popular.id
        assert [u.id for u in newest.items] == [verified.id, popular.id, plain.id]

    async def test_stats_and_following_flag(self, seed, session_factory):
        me = await seed.user("me")
        jo = await seed.user("jo")
        other = await seed.user("other")
        await seed.follow(me, jo)
        await seed.follow(jo, other)
        await seed.post(jo, "first")
        await seed.post(jo, "second")

        result = await UserSearchProvider(session_factory).search(SearchCriteria(query="jo"), actor_of(me))

        hit = result.items[0]
        assert hit.stats.followers == 1
        assert hit.stats.following == 1
        assert hit.stats.posts == 2
        assert hit.is_following is True

    async def test_date_cutoff(self, seed, session_factory):
        me = await seed.user("me")
        await seed.user("old_lee", created_at=NOW - timedelta(days=40))
        await seed.user("new_lee", created_at=NOW - timedelta(days=2))

        result = await UserSearchProvider(session_factory).search(
            SearchCriteria(query="lee", created_after=NOW - timedelta(days=7)), actor_of(me)
        )

        assert [u.username for u in result.items] == ["new_lee"]

    async def test_wildcards_are_literal(self, seed, session_factory):
        me = await seed.user("me")
        await seed.user("deal", name="100% deal")
        await seed.user("plain", name="100 deal")

        result = await UserSearchProvider(session_factory).search(SearchCriteria(query="0%"), actor_of(me))

        assert [u.username for u in result.items] == ["deal"]

    async def test_paging_and_count(self, seed, session_factory):
        me = await seed.user("me")
        for i in range(5):
            await seed.user(f"pat{i}")

        result = await UserSearchProvider(session_factory).search(
            SearchCriteria(query="pat", sort=SearchSort.DATE, limit=2, offset=2), actor_of(me)
        )

        assert [u.username for u in result.items] == ["pat2", "pat1"]
        assert result.matched_count == 5


# ── Posts ────────────────────────────────────────────────────────────────────


class TestPostSearch:
    async def test_privacy_rules(self, seed, session_factory):
        me = await seed.user("me")
        followed = await seed.user("followed")
        stranger = await seed.user("stranger")
        await seed.follow(me, followed)

        await seed.post(stranger, "garden public", privacy="public")
        await seed.post(stranger, "garden followers", privacy="followers")
        await seed.post(stranger, "garden private", privacy="private")
        await seed.post(followed, "garden for fans", privacy="followers")
        await seed.post(followed, "garden secret", privacy="private")
        await seed.post(me, "garden mine", privacy="private")

        result = await PostSearchProvider(session_factory).search(
            SearchCriteria(query="garden", sort=SearchSort.DATE), actor_of(me)
        )

        assert [p.content for p in result.items] == ["garden mine", "garden for fans", "garden public"]
        assert result.matched_count == 3

    async def test_matches_title(self, seed, session_factory):
        me = await seed.user("me")
        author = await seed.user("author")
        await seed.post(author, "body text", title="Weekend Hiking")

        result = await PostSearchProvider(session_factory).search(SearchCriteria(query="hiking"), actor_of(me))

        assert result.items[0].title == "Weekend Hiking"
        assert result.items[0].author.username == "author"

    async def test_content_preview(self, seed, session_factory):
        me = await seed.user("me")
        await seed.post(me, "needle " + "x" * 300)

        result = await PostSearchProvider(session_factory).search(SearchCriteria(query="needle"), actor_of(me))

        content = result.items[0].content
        assert len(content) == 203
        assert content.endswith("...")

    def test_preview_keeps_short_content(self):
        assert preview("short", max_chars=10) == "short"
        assert preview("abcdefghijk", max_chars=10) == "abcdefghij..."

    async def test_relevance_orders_by_likes_then_comments(self, seed, session_factory):
        me = await seed.user("me")
        fans = [await seed.user(f"fan{i}") for i in range(3)]
        quiet = await seed.post(me, "topic quiet")
        chatty = await seed.post(me, "topic chatty")
        liked = await seed.post(me, "topic liked")
        for fan in fans[:2]:
            await seed.like(liked, fan)
        await seed.like(chatty, fans[0])
        await seed.comment(chatty, fans[1])
        await seed.like(quiet, fans[2])
        await seed.like(quiet, me)
        await seed.comment(quiet, fans[0])

        result = await PostSearchProvider(session_factory).search(SearchCriteria(query="topic"), actor_of(me))

        assert [p.id for p in result.items] == [quiet.id, liked.id, chatty.id]
        assert result.items[0].is_liked is True
        assert result.items[0].stats.likes == 2
        assert result.items[2].stats.comments == 1
        assert result.items[2].is_liked is False


# ── Conversations ────────────────────────────────────────────────────────────


class TestConversationSearch:
    async def test_only_member_conversations_matching_title_or_participant(self, seed, session_factory):
        me = await seed.user("me")
        zoe = await seed.user("zoe", name="Zoe Park")
        other = await seed.user("other")
        by_title = await seed.conversation([me, other], title="Park cleanup")
        by_member = await seed.conversation([me, zoe], kind="direct")
        await seed.conversation([zoe, other], title="Park plans")

        result = await ConversationSearchProvider(session_factory).search(
            SearchCriteria(query="park"), actor_of(me)
        )

        assert [c.id for c in result.items] == [by_member.id, by_title.id]
        assert result.matched_count == 2
        assert {p.username for p in result.items[0].participants} == {"me", "zoe"}

    async def test_message_and_unread_counts(self, seed, session_factory):
        me = await seed.user("me")
        ann = await seed.user("ann")
        read_at = NOW - timedelta(hours=1)
        conv = await seed.conversation([me, ann], title="Book club", last_read_at=read_at)
        await seed.message(conv, ann, created_at=read_at - timedelta(minutes=5))
        await seed.message(conv, ann, created_at=read_at + timedelta(minutes=5))
        await seed.message(conv, ann, created_at=read_at + timedelta(minutes=10))
        await seed.message(conv, me, created_at=read_at + timedelta(minutes=15))

        result = await ConversationSearchProvider(session_factory).search(
            SearchCriteria(query="book"), actor_of(me)
        )

        hit = result.items[0]
        assert hit.message_count == 4
        assert hit.unread_count == 2

    async def test_sort_is_ignored(self, seed, session_factory):
        me = await seed.user("me")
        older = await seed.conversation([me], title="team a", updated_at=NOW - timedelta(days=3))
        newer = await seed.conversation([me], title="team b", updated_at=NOW - timedelta(days=1))

        provider = ConversationSearchProvider(session_factory)
        for sort in SearchSort:
            result = await provider.search(SearchCriteria(query="team", sort=sort), actor_of(me))
            assert [c.id for c in result.items] == [newer.id, older.id]
