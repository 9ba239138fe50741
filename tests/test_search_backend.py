import json

import httpx
import pytest

from docsearch.app.search.backend import ElasticsearchBackend, execute_search
from docsearch.app.observability.service import CollectingSearchObserver
from docsearch.app.search.contracts import (
    BackendError,
    FailureKind,
    RenderedQuery,
    RequestContext,
    SearchCommand,
)
from docsearch.app.search.controller import SearchController
from docsearch.app.search.retry import RetryPolicy
from tests.search_fakes import ScriptedBackend, hits_payload

COMMAND = SearchCommand(index="documents", body={"query": {"match_all": {}}})


def _backend(handler) -> ElasticsearchBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ElasticsearchBackend(
        base_url="http://search.local:9200/", request_timeout=2.0, client=client
    )


@pytest.mark.asyncio
async def test_search_posts_dfs_query_to_index() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=hits_payload({"name": "a"}))

    payload = await _backend(handler).search(COMMAND)

    assert payload["hits"]["hits"][0]["_source"] == {"name": "a"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/documents/_search"
    assert request.url.params["search_type"] == "dfs_query_then_fetch"
    assert json.loads(request.content) == {"query": {"match_all": {}}}


@pytest.mark.asyncio
async def test_search_maps_transport_timeout_to_request_timeout_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(BackendError) as exc_info:
        await _backend(handler).search(COMMAND)

    assert exc_info.value.status == 408
    assert exc_info.value.message == "Request Timeout after 2000ms"


@pytest.mark.asyncio
async def test_search_maps_connection_failure_without_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendError) as exc_info:
        await _backend(handler).search(COMMAND)

    assert exc_info.value.status is None
    assert "connection refused" in exc_info.value.message


@pytest.mark.asyncio
async def test_search_surfaces_backend_error_reason() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "error": {"type": "parsing_exception", "reason": "unknown query"},
                "status": 400,
            },
        )

    with pytest.raises(BackendError) as exc_info:
        await _backend(handler).search(COMMAND)

    assert exc_info.value.status == 400
    assert exc_info.value.message == "unknown query"


@pytest.mark.asyncio
async def test_execute_search_maps_hits_to_documents_and_scores() -> None:
    payload = hits_payload({"name": "a"}, {"name": "b"})
    payload["hits"]["hits"][0]["matched_queries"] = ["text"]
    backend = ScriptedBackend(payload)

    documents, meta = await execute_search(backend, COMMAND)

    assert documents[0] == {
        "name": "a",
        "_id": "doc-0",
        "_type": "_doc",
        "_score": 2.0,
        "_matched_queries": ["text"],
    }
    assert documents[1]["_matched_queries"] is None
    assert meta == {"scores": [2.0, 1.0]}


@pytest.mark.asyncio
async def test_execute_search_returns_empty_documents_without_hits() -> None:
    backend = ScriptedBackend({"took": 3, "timed_out": False})

    documents, meta = await execute_search(backend, COMMAND)

    assert documents == []
    assert meta == {"scores": []}


def _controller(backend: ElasticsearchBackend, sleeps: list[float]) -> SearchController:
    async def _fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    return SearchController(
        index_name="documents",
        backend=backend,
        renderer=lambda clean, context: RenderedQuery(
            body={"query": {"match_all": {}}}, type="search_text"
        ),
        policy=RetryPolicy(max_attempts=3, min_delay=backend.request_timeout),
        observer=CollectingSearchObserver(),
        sleep=_fake_sleep,
    )


@pytest.mark.asyncio
async def test_controller_retries_request_timeout_response_from_backend() -> None:
    responses = [
        httpx.Response(
            408,
            json={"error": {"type": "timeout", "reason": "request timed out"}},
        ),
        httpx.Response(200, json=hits_payload({"name": "after timeout"})),
    ]
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses.pop(0)

    sleeps: list[float] = []
    context = RequestContext()

    await _controller(_backend(handler), sleeps).run(context)

    assert len(seen) == 2
    assert sleeps == [2.0]
    assert context.errors == []
    assert context.data and context.data[0]["name"] == "after timeout"
    assert context.meta["query_type"] == "search_text"


@pytest.mark.asyncio
async def test_controller_records_stream_error_from_backend() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.StreamConsumed()

    context = RequestContext()

    await _controller(_backend(handler), []).run(context)

    assert len(context.errors) == 1
    assert context.failures[0].kind == FailureKind.ERROR
    assert context.data is None
