from __future__ import annotations

from uuid import uuid4

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from docsearch.app.observability.service import (
    CollectingSearchObserver,
    CompositeSearchObserver,
    LoggingSearchObserver,
)
from docsearch.app.search.backend import ElasticsearchBackend, SearchBackend
from docsearch.app.search.contracts import FailureKind, RequestContext
from docsearch.app.search.controller import SearchController
from docsearch.app.search.render import DEFAULT_SIZE, MAX_SIZE, render_text_query
from docsearch.app.search.retry import RetryPolicy
from docsearch.core.config import AppConfig, load_app_config

app = FastAPI(title="docsearch", version="0.1.0")


class SearchParams(BaseModel):
    text: str | None = None
    size: int = Field(default=DEFAULT_SIZE, ge=1, le=MAX_SIZE)

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped if stripped else None


def get_app_config() -> AppConfig:
    return load_app_config()


def get_search_backend(
    config: AppConfig = Depends(get_app_config),
) -> SearchBackend:
    return ElasticsearchBackend(
        base_url=config.search_backend_url,
        request_timeout=config.request_timeout_seconds,
    )


def get_search_params(
    text: str | None = Query(default=None),
    size: int = Query(default=DEFAULT_SIZE, ge=1, le=MAX_SIZE),
) -> SearchParams:
    return SearchParams(text=text, size=size)


def _status_code(context: RequestContext) -> int:
    if context.data or not context.failures:
        return 200
    if all(
        failure.kind == FailureKind.TIMEOUT_EXHAUSTED for failure in context.failures
    ):
        return 504
    return 502


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/v1/search")
async def search(
    params: SearchParams = Depends(get_search_params),
    debug: bool = Query(default=False),
    config: AppConfig = Depends(get_app_config),
    backend: SearchBackend = Depends(get_search_backend),
) -> JSONResponse:
    context = RequestContext(
        clean=params.model_dump(),
        request_id=uuid4().hex,
        path="/v1/search",
    )
    collector = CollectingSearchObserver()
    controller = SearchController(
        index_name=config.search_index_name,
        backend=backend,
        renderer=render_text_query,
        policy=RetryPolicy.from_config(config, backend),
        observer=CompositeSearchObserver(LoggingSearchObserver(), collector),
    )
    await controller.run(context)

    content: dict[str, object] = {
        "data": context.data or [],
        "meta": context.meta,
        "errors": context.errors,
    }
    if debug or config.search_debug:
        content["debug"] = collector.debug_payload()
    return JSONResponse(content=content, status_code=_status_code(context))
