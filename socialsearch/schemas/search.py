from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from socialsearch.core.config import settings
from socialsearch.schemas.common import Pagination

DEFAULT_LIMIT = settings.search_default_limit
MAX_LIMIT = settings.search_max_limit
QUERY_MAX_LENGTH = settings.search_query_max_length


class SearchScope(str, Enum):
    ALL = "all"
    USERS = "users"
    POSTS = "posts"
    CONVERSATIONS = "conversations"


class SearchSort(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    POPULARITY = "popularity"


class DateRange(str, Enum):
    ALL = "all"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SearchFilters(BaseModel):
    """Filter snapshot stored with history entries and saved searches."""

    sort_by: SearchSort | None = None
    date_range: DateRange | None = None
    verified: bool | None = None

    def snapshot(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


_TRUTHY = {"true", "1", "yes", "on"}


def _blank_to_default(value: Any, default: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value


class SearchRequest(BaseModel):
    """A validated search. Build it from raw query params with ``normalize_search_request``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query: str = Field(alias="q", min_length=1, max_length=QUERY_MAX_LENGTH)
    scope: SearchScope = Field(default=SearchScope.ALL, alias="type")
    sort: SearchSort = Field(default=SearchSort.RELEVANCE, alias="sortBy")
    date_range: DateRange = Field(default=DateRange.ALL, alias="dateRange")
    verified_only: bool = Field(default=False, alias="verified")
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    offset: int = Field(default=0, ge=0)
    actor_id: int

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("scope", "sort", "date_range", mode="before")
    @classmethod
    def _lower_enum(cls, value: Any, info: ValidationInfo) -> Any:
        value = _blank_to_default(value, cls.model_fields[info.field_name].default)
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("verified_only", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return bool(value)

    @field_validator("limit", mode="before")
    @classmethod
    def _default_limit(cls, value: Any) -> Any:
        return _blank_to_default(value, DEFAULT_LIMIT)

    @field_validator("offset", mode="before")
    @classmethod
    def _default_offset(cls, value: Any) -> Any:
        return _blank_to_default(value, 0)

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, value: int) -> int:
        # Oversized pages are clamped, not rejected.
        return min(value, MAX_LIMIT)

    def filters(self) -> SearchFilters:
        return SearchFilters(sort_by=self.sort, date_range=self.date_range, verified=self.verified_only)


class UserStats(BaseModel):
    followers: int = 0
    following: int = 0
    posts: int = 0


class UserHit(BaseModel):
    type: Literal["user"] = "user"
    id: int
    name: str
    username: str
    image: str | None = None
    bio: str | None = None
    is_verified: bool = False
    created_at: str
    stats: UserStats = Field(default_factory=UserStats)
    is_following: bool = False


class AuthorSummary(BaseModel):
    id: int
    name: str
    username: str
    image: str | None = None
    is_verified: bool = False


class PostStats(BaseModel):
    likes: int = 0
    comments: int = 0
    shares: int = 0


class PostHit(BaseModel):
    type: Literal["post"] = "post"
    id: int
    title: str | None = None
    content: str
    created_at: str
    privacy: str
    author: AuthorSummary
    stats: PostStats = Field(default_factory=PostStats)
    is_liked: bool = False


class ParticipantSummary(BaseModel):
    id: int
    name: str
    username: str
    image: str | None = None


class ConversationHit(BaseModel):
    type: Literal["conversation"] = "conversation"
    id: int
    title: str | None = None
    conversation_type: str
    created_at: str
    updated_at: str
    participants: list[ParticipantSummary] = Field(default_factory=list)
    message_count: int = 0
    unread_count: int = 0


SearchHit = Annotated[Union[UserHit, PostHit, ConversationHit], Field(discriminator="type")]


class SearchBundle(BaseModel):
    users: list[UserHit] = Field(default_factory=list)
    posts: list[PostHit] = Field(default_factory=list)
    conversations: list[ConversationHit] = Field(default_factory=list)

    def size(self) -> int:
        return len(self.users) + len(self.posts) + len(self.conversations)


class SearchResponse(BaseModel):
    query: str
    type: SearchScope
    sort_by: SearchSort
    date_range: DateRange
    verified: bool = False
    results: SearchBundle | list[SearchHit]
    pagination: Pagination
