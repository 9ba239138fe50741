from __future__ import annotations

from typing import Any

from docsearch.app.search.contracts import RenderedQuery, RequestContext

DEFAULT_SIZE = 10
MAX_SIZE = 40
SEARCH_FIELDS = ("name^3", "title^2", "content")


def render_text_query(
    clean: dict[str, Any], context: RequestContext
) -> RenderedQuery | None:
    _ = context
    text = clean.get("text")
    if not isinstance(text, str) or not text.strip():
        return None

    body: dict[str, Any] = {
        "query": {
            "multi_match": {
                "query": text.strip(),
                "fields": list(SEARCH_FIELDS),
                "type": "best_fields",
                "_name": "text",
            }
        },
        "size": _size(clean.get("size")),
        "track_scores": True,
    }
    return RenderedQuery(body=body, type="search_text")


def _size(value: Any) -> int:
    if isinstance(value, int) and value > 0:
        return min(value, MAX_SIZE)
    return DEFAULT_SIZE
