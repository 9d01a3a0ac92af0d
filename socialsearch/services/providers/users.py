from __future__ import annotations

from sqlalchemy import ColumnElement, and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.models.common import as_iso
from socialsearch.models.social import Post
from socialsearch.models.user import Follow, User
from socialsearch.schemas.search import SearchSort, UserHit, UserStats
from socialsearch.services.auth import Actor
from socialsearch.services.providers.base import SearchCriteria, SearchProvider


def _followers_count():
    return select(func.count(Follow.id)).where(Follow.following_id == User.id).correlate(User).scalar_subquery()


def _following_count():
    return select(func.count(Follow.id)).where(Follow.follower_id == User.id).correlate(User).scalar_subquery()


def _posts_count():
    return select(func.count(Post.id)).where(Post.author_id == User.id).correlate(User).scalar_subquery()


class UserSearchProvider(SearchProvider[UserHit]):
    name = "users"

    def build_filter(self, criteria: SearchCriteria, actor: Actor) -> ColumnElement[bool]:
        clauses: list[ColumnElement[bool]] = [
            or_(
                criteria.contains(User.name),
                criteria.contains(User.username),
                criteria.contains(User.bio),
            ),
            User.id != actor.id,
        ]
        if criteria.verified_only:
            clauses.append(User.is_verified.is_(True))
        if criteria.created_after is not None:
            clauses.append(User.created_at >= criteria.created_after)
        return and_(*clauses)

    @staticmethod
    def _ordering(sort: SearchSort, followers) -> list:
        if sort is SearchSort.DATE:
            return [User.created_at.desc(), User.id.desc()]
        if sort is SearchSort.POPULARITY:
            return [followers.desc(), User.created_at.desc(), User.id.desc()]
        return [User.is_verified.desc(), followers.desc(), User.created_at.desc(), User.id.desc()]

    async def _fetch(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> list[UserHit]:
        followers = _followers_count()
        is_following = exists().where(and_(Follow.follower_id == actor.id, Follow.following_id == User.id))
        stmt = (
            select(
                User,
                followers.label("followers"),
                _following_count().label("following"),
                _posts_count().label("posts"),
                is_following.label("is_following"),
            )
            .where(self.build_filter(criteria, actor))
            .order_by(*self._ordering(criteria.sort, followers))
            .limit(criteria.limit)
            .offset(criteria.offset)
        )
        rows = (await db.execute(stmt)).all()
        return [
            UserHit(
                id=row.User.id,
                name=row.User.name,
                username=row.User.username,
                image=row.User.image,
                bio=row.User.bio,
                is_verified=bool(row.User.is_verified),
                created_at=as_iso(row.User.created_at),
                stats=UserStats(
                    followers=int(row.followers or 0),
                    following=int(row.following or 0),
                    posts=int(row.posts or 0),
                ),
                is_following=bool(row.is_following),
            )
            for row in rows
        ]

    async def _count(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> int:
        stmt = select(func.count(User.id)).where(self.build_filter(criteria, actor))
        return int((await db.execute(stmt)).scalar_one())
