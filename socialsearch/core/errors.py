"""Error taxonomy shared by the search endpoints and their JSON rendering."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

logger = logging.getLogger(__name__)


class SearchServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, *, errors: list[dict[str, Any]] | None = None) -> None:
        self.detail = detail or self.default_detail
        self.errors = errors or []
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.detail}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(SearchServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid parameters"

    @property
    def fields(self) -> list[str]:
        return [str(e.get("field")) for e in self.errors]


class AuthenticationError(SearchServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class NotFoundError(SearchServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(SearchServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A saved search with this name already exists"


class QuotaExceededError(SearchServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Maximum number of saved searches reached"


class ProviderError(SearchServiceError):
    default_detail = "Failed to perform search"


class AggregateProviderError(ProviderError):
    default_detail = "Failed to perform search across all entity types"


class PersistenceWarning(UserWarning):
    """Background history/usage write failed; logged, never surfaced."""


def _loc_to_field(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("query", "body", "path", "header")]
    return ".".join(parts) or "request"


def validation_errors_from_pydantic(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{"field": _loc_to_field(tuple(e.get("loc") or ())), "message": str(e.get("msg") or "")} for e in errors]


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SearchServiceError)
    async def search_error_handler(request: Request, exc: SearchServiceError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
        err = ValidationError(errors=validation_errors_from_pydantic(list(exc.errors())))
        return ORJSONResponse(status_code=err.status_code, content=err.to_dict())
