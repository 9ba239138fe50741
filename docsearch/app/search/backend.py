from __future__ import annotations

import json
from typing import Any, Protocol

import httpx

from docsearch.app.search.contracts import BackendError, SearchCommand
from docsearch.app.search.errors import REQUEST_TIMEOUT_STATUS


class SearchBackend(Protocol):
    @property
    def request_timeout(self) -> float: ...

    async def search(self, command: SearchCommand) -> dict[str, Any]: ...


class ElasticsearchBackend:
    def __init__(
        self,
        base_url: str,
        request_timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._client = client

    @property
    def request_timeout(self) -> float:
        return self._request_timeout

    def _search_url(self, index: str) -> str:
        return f"{self._base_url}/{index}/_search"

    async def search(self, command: SearchCommand) -> dict[str, Any]:
        if self._client is not None:
            return await self._post(self._client, command)
        async with httpx.AsyncClient(timeout=self._request_timeout) as client:
            return await self._post(client, command)

    async def _post(
        self, client: httpx.AsyncClient, command: SearchCommand
    ) -> dict[str, Any]:
        try:
            response = await client.post(
                self._search_url(command.index),
                params=command.to_params(),
                headers={"Content-Type": "application/json"},
                content=json.dumps(command.body),
                timeout=self._request_timeout,
            )
        except httpx.TimeoutException as exc:
            raise BackendError(
                f"Request Timeout after {int(self._request_timeout * 1000)}ms",
                status=REQUEST_TIMEOUT_STATUS,
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"backend unavailable: {exc}") from exc

        if response.status_code >= 400:
            raise BackendError(
                _error_reason(response), status=response.status_code
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendError(
                "backend returned a non-JSON body", status=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise BackendError(
                "backend returned an unexpected body", status=response.status_code
            )
        return payload


def _error_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            reason = error.get("reason") or error.get("type")
            if isinstance(reason, str) and reason:
                return reason
        if isinstance(error, str) and error:
            return error
    return f"backend responded with status {response.status_code}"


async def execute_search(
    backend: SearchBackend, command: SearchCommand
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    payload = await backend.search(command)
    documents: list[dict[str, Any]] = []
    meta: dict[str, Any] = {"scores": []}
    for hit in _hits(payload):
        source = hit.get("_source")
        document = dict(source) if isinstance(source, dict) else {}
        document["_id"] = hit.get("_id")
        document["_type"] = hit.get("_type")
        document["_score"] = hit.get("_score")
        document["_matched_queries"] = hit.get("matched_queries")
        meta["scores"].append(hit.get("_score"))
        documents.append(document)
    return documents, meta


def _hits(payload: dict[str, Any]) -> list[dict[str, Any]]:
    hits = payload.get("hits")
    if not isinstance(hits, dict):
        return []
    rows = hits.get("hits")
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]
