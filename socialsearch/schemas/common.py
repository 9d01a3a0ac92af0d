from __future__ import annotations

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool

    @classmethod
    def build(cls, *, limit: int, offset: int, total: int) -> "Pagination":
        return cls(limit=limit, offset=offset, total=total, has_more=offset + limit < total)
