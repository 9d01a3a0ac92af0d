from __future__ import annotations

from typing import Any

import httpx

from socialsearch.schemas.history import HistoryListResponse, HistoryUpdateResponse
from socialsearch.schemas.saved import SavedSearchListResponse, SavedSearchResponse
from socialsearch.schemas.search import SearchResponse


class SearchClientError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


def _drop_none(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class SearchApiClient:
    """Thin async client for the /search, /search/history and /search/saved endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 20,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json", "User-Agent": "SocialSearchClient/1.0"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._client.headers.update(headers)
        self._base_url = base_url.rstrip("/")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        res = await self._client.request(method, f"{self._base_url}{path}", **kwargs)
        if res.status_code >= 400:
            detail = res.reason_phrase
            try:
                body = res.json()
                if isinstance(body, dict) and body.get("detail"):
                    detail = str(body["detail"])
            except ValueError:
                pass
            raise SearchClientError(res.status_code, detail)
        return res.json()

    async def search(self, params: dict[str, Any]) -> SearchResponse:
        data = await self._request("GET", "/search", params=_drop_none(params))
        return SearchResponse.model_validate(data)

    async def list_history(self, *, limit: int = 20, offset: int = 0, scope: str | None = None) -> HistoryListResponse:
        params = _drop_none({"limit": limit, "offset": offset, "type": scope})
        return HistoryListResponse.model_validate(await self._request("GET", "/search/history", params=params))

    async def set_history_favorite(self, entry_id: int, favorite: bool) -> HistoryUpdateResponse:
        data = await self._request("PUT", "/search/history", json={"id": entry_id, "favorite": favorite})
        return HistoryUpdateResponse.model_validate(data)

    async def delete_history(self, entry_id: int | None = None, *, all: bool = False) -> int:
        params = {"all": "true"} if all else {"id": entry_id}
        data = await self._request("DELETE", "/search/history", params=params)
        return int(data.get("deleted_count", 0))

    async def list_saved(
        self, *, limit: int = 20, offset: int = 0, active: bool | None = None
    ) -> SavedSearchListResponse:
        params = _drop_none({"limit": limit, "offset": offset, "active": None if active is None else str(active).lower()})
        return SavedSearchListResponse.model_validate(await self._request("GET", "/search/saved", params=params))

    async def create_saved(self, body: dict[str, Any]) -> SavedSearchResponse:
        return SavedSearchResponse.model_validate(await self._request("POST", "/search/saved", json=body))

    async def update_saved(self, saved_id: int, **fields: Any) -> SavedSearchResponse:
        body = {"id": saved_id, **_drop_none(fields)}
        return SavedSearchResponse.model_validate(await self._request("PUT", "/search/saved", json=body))

    async def delete_saved(self, saved_id: int) -> None:
        await self._request("DELETE", "/search/saved", params={"id": saved_id})

    async def record_saved_use(self, saved_id: int) -> None:
        await self._request("POST", "/search/saved/use", json={"id": saved_id})
