"""Events emitted after the response path, consumed by background writers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from socialsearch.models.common import utcnow
from socialsearch.schemas.search import SearchRequest, SearchResponse


@dataclass(slots=True, frozen=True)
class SearchCompleted:
    actor_id: int
    query: str
    scope: str
    filters: dict[str, Any]
    results_count: int
    occurred_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_search(cls, request: SearchRequest, response: SearchResponse) -> "SearchCompleted":
        return cls(
            actor_id=request.actor_id,
            query=request.query,
            scope=request.scope.value,
            filters=request.filters().snapshot(),
            results_count=response.pagination.total,
        )

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["occurred_at"] = self.occurred_at.isoformat()
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SearchCompleted":
        data = dict(payload)
        data["occurred_at"] = datetime.fromisoformat(data["occurred_at"])
        return cls(**data)


@dataclass(slots=True, frozen=True)
class SavedSearchUsed:
    actor_id: int
    saved_search_id: int
    occurred_at: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "saved_search_id": self.saved_search_id,
            "occurred_at": self.occurred_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SavedSearchUsed":
        return cls(
            actor_id=int(payload["actor_id"]),
            saved_search_id=int(payload["saved_search_id"]),
            occurred_at=datetime.fromisoformat(payload["occurred_at"]),
        )
