from __future__ import annotations

from collections import defaultdict

from sqlalchemy import ColumnElement, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.models.chat import Conversation, ConversationParticipant, Message
from socialsearch.models.common import as_iso
from socialsearch.models.user import User
from socialsearch.schemas.search import ConversationHit, ParticipantSummary
from socialsearch.services.auth import Actor
from socialsearch.services.providers.base import SearchCriteria, SearchProvider


class ConversationSearchProvider(SearchProvider[ConversationHit]):
    """Conversations the actor takes part in, newest activity first.

    The sort policy of the request is ignored here.
    """

    name = "conversations"

    def build_filter(self, criteria: SearchCriteria, actor: Actor) -> ColumnElement[bool]:
        is_member = (
            select(ConversationParticipant.id)
            .where(
                and_(
                    ConversationParticipant.conversation_id == Conversation.id,
                    ConversationParticipant.user_id == actor.id,
                )
            )
            .exists()
        )
        participant_matches = (
            select(ConversationParticipant.id)
            .join(User, User.id == ConversationParticipant.user_id)
            .where(
                and_(
                    ConversationParticipant.conversation_id == Conversation.id,
                    or_(criteria.contains(User.name), criteria.contains(User.username)),
                )
            )
            .exists()
        )
        clauses: list[ColumnElement[bool]] = [
            is_member,
            or_(criteria.contains(Conversation.title), participant_matches),
        ]
        if criteria.created_after is not None:
            clauses.append(Conversation.created_at >= criteria.created_after)
        return and_(*clauses)

    async def _fetch(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> list[ConversationHit]:
        stmt = (
            select(Conversation)
            .where(self.build_filter(criteria, actor))
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .limit(criteria.limit)
            .offset(criteria.offset)
        )
        conversations = (await db.execute(stmt)).scalars().all()
        if not conversations:
            return []

        ids = [c.id for c in conversations]
        participants = await self._participants(db, ids)
        message_counts = await self._message_counts(db, ids)
        unread_counts = await self._unread_counts(db, ids, actor)

        return [
            ConversationHit(
                id=c.id,
                title=c.title,
                conversation_type=c.conversation_type,
                created_at=as_iso(c.created_at),
                updated_at=as_iso(c.updated_at),
                participants=participants.get(c.id, []),
                message_count=message_counts.get(c.id, 0),
                unread_count=unread_counts.get(c.id, 0),
            )
            for c in conversations
        ]

    async def _count(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> int:
        stmt = select(func.count(Conversation.id)).where(self.build_filter(criteria, actor))
        return int((await db.execute(stmt)).scalar_one())

    @staticmethod
    async def _participants(db: AsyncSession, ids: list[int]) -> dict[int, list[ParticipantSummary]]:
        rows = (
            await db.execute(
                select(ConversationParticipant.conversation_id, User)
                .join(User, User.id == ConversationParticipant.user_id)
                .where(ConversationParticipant.conversation_id.in_(ids))
                .order_by(ConversationParticipant.id)
            )
        ).all()
        out: dict[int, list[ParticipantSummary]] = defaultdict(list)
        for conversation_id, user in rows:
            out[conversation_id].append(
                ParticipantSummary(id=user.id, name=user.name, username=user.username, image=user.image)
            )
        return out

    @staticmethod
    async def _message_counts(db: AsyncSession, ids: list[int]) -> dict[int, int]:
        rows = (
            await db.execute(
                select(Message.conversation_id, func.count(Message.id))
                .where(Message.conversation_id.in_(ids))
                .group_by(Message.conversation_id)
            )
        ).all()
        return {conversation_id: int(count) for conversation_id, count in rows}

    @staticmethod
    async def _unread_counts(db: AsyncSession, ids: list[int], actor: Actor) -> dict[int, int]:
        # Messages from others newer than the actor's read marker.
        rows = (
            await db.execute(
                select(Message.conversation_id, func.count(Message.id))
                .join(
                    ConversationParticipant,
                    and_(
                        ConversationParticipant.conversation_id == Message.conversation_id,
                        ConversationParticipant.user_id == actor.id,
                    ),
                )
                .where(
                    and_(
                        Message.conversation_id.in_(ids),
                        Message.sender_id != actor.id,
                        or_(
                            ConversationParticipant.last_read_at.is_(None),
                            Message.created_at > ConversationParticipant.last_read_at,
                        ),
                    )
                )
                .group_by(Message.conversation_id)
            )
        ).all()
        return {conversation_id: int(count) for conversation_id, count in rows}
