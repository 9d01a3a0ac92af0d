"""Turns a raw query-parameter bag into a validated ``SearchRequest``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from socialsearch.core.errors import ValidationError, validation_errors_from_pydantic
from socialsearch.schemas.search import SearchRequest

# Query-string keys understood by GET /search.
SEARCH_PARAM_KEYS = ("q", "type", "limit", "offset", "sortBy", "dateRange", "verified")


def normalize_search_request(raw: Mapping[str, Any], actor_id: int) -> SearchRequest:
    """Validate and default raw search parameters.

    Oversized ``limit`` values are clamped to the maximum page size; a
    missing/blank query, non-numeric paging values and unknown enum values
    raise ``ValidationError`` listing every offending field.
    """
    data = {key: raw[key] for key in SEARCH_PARAM_KEYS if key in raw}
    data["actor_id"] = actor_id
    try:
        return SearchRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(errors=validation_errors_from_pydantic(exc.errors())) from exc
