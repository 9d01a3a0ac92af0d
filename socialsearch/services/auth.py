from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.core.config import settings
from socialsearch.core.errors import AuthenticationError
from socialsearch.db.session import get_db
from socialsearch.models.user import User

bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True, frozen=True)
class Actor:
    id: int
    username: str
    name: str


def create_access_token(user_id: int, *, expires_minutes: int = 60, **claims: Any) -> str:
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
        **claims,
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode_token(token: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "algorithms": [settings.jwt_algorithm],
        "leeway": settings.jwt_exp_leeway_seconds,
    }

    if settings.jwt_audience:
        kwargs["audience"] = settings.jwt_audience
    else:
        kwargs["options"] = {"verify_aud": False}

    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer

    try:
        payload = jwt.decode(token, settings.jwt_secret, **kwargs)
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    return payload


def _parse_user_id(payload: dict[str, Any]) -> int:
    raw_id = payload.get("user_id") or payload.get("sub")
    try:
        return int(raw_id)
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid user id claim") from exc


async def resolve_actor(db: AsyncSession, user_id: int) -> Actor:
    row = (await db.execute(select(User.id, User.username, User.name).where(User.id == user_id))).one_or_none()
    if row is None:
        raise AuthenticationError("Unknown user")
    return Actor(id=row.id, username=row.username, name=row.name)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    payload = _decode_token(credentials.credentials)
    return await resolve_actor(db, _parse_user_id(payload))
