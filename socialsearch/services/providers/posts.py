from __future__ import annotations

from sqlalchemy import ColumnElement, and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.core.config import settings
from socialsearch.models.common import as_iso
from socialsearch.models.social import (
    POST_PRIVACY_FOLLOWERS,
    POST_PRIVACY_PUBLIC,
    Post,
    PostComment,
    PostLike,
    PostShare,
)
from socialsearch.models.user import Follow, User
from socialsearch.schemas.search import AuthorSummary, PostHit, PostStats, SearchSort
from socialsearch.services.auth import Actor
from socialsearch.services.providers.base import SearchCriteria, SearchProvider

ELLIPSIS = "..."


def preview(content: str, max_chars: int | None = None) -> str:
    limit = max_chars if max_chars is not None else settings.search_content_preview_chars
    if len(content) <= limit:
        return content
    return content[:limit] + ELLIPSIS


def _count_of(model) -> ColumnElement[int]:
    return select(func.count(model.id)).where(model.post_id == Post.id).correlate(Post).scalar_subquery()


class PostSearchProvider(SearchProvider[PostHit]):
    name = "posts"

    def build_filter(self, criteria: SearchCriteria, actor: Actor) -> ColumnElement[bool]:
        follows_author = exists().where(and_(Follow.follower_id == actor.id, Follow.following_id == Post.author_id))
        clauses: list[ColumnElement[bool]] = [
            or_(criteria.contains(Post.content), criteria.contains(Post.title)),
            or_(
                Post.privacy == POST_PRIVACY_PUBLIC,
                and_(Post.privacy == POST_PRIVACY_FOLLOWERS, follows_author),
                Post.author_id == actor.id,
            ),
        ]
        if criteria.created_after is not None:
            clauses.append(Post.created_at >= criteria.created_after)
        return and_(*clauses)

    @staticmethod
    def _ordering(sort: SearchSort, likes, comments) -> list:
        if sort is SearchSort.DATE:
            return [Post.created_at.desc(), Post.id.desc()]
        if sort is SearchSort.POPULARITY:
            return [likes.desc(), Post.created_at.desc(), Post.id.desc()]
        return [likes.desc(), comments.desc(), Post.created_at.desc(), Post.id.desc()]

    async def _fetch(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> list[PostHit]:
        likes = _count_of(PostLike)
        comments = _count_of(PostComment)
        is_liked = exists().where(and_(PostLike.post_id == Post.id, PostLike.user_id == actor.id))
        stmt = (
            select(
                Post,
                User,
                likes.label("likes"),
                comments.label("comments"),
                _count_of(PostShare).label("shares"),
                is_liked.label("is_liked"),
            )
            .join(User, User.id == Post.author_id)
            .where(self.build_filter(criteria, actor))
            .order_by(*self._ordering(criteria.sort, likes, comments))
            .limit(criteria.limit)
            .offset(criteria.offset)
        )
        rows = (await db.execute(stmt)).all()
        return [
            PostHit(
                id=row.Post.id,
                title=row.Post.title,
                content=preview(row.Post.content),
                created_at=as_iso(row.Post.created_at),
                privacy=row.Post.privacy,
                author=AuthorSummary(
                    id=row.User.id,
                    name=row.User.name,
                    username=row.User.username,
                    image=row.User.image,
                    is_verified=bool(row.User.is_verified),
                ),
                stats=PostStats(
                    likes=int(row.likes or 0),
                    comments=int(row.comments or 0),
                    shares=int(row.shares or 0),
                ),
                is_liked=bool(row.is_liked),
            )
            for row in rows
        ]

    async def _count(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> int:
        stmt = select(func.count(Post.id)).where(self.build_filter(criteria, actor))
        return int((await db.execute(stmt)).scalar_one())
