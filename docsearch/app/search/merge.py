from __future__ import annotations

from docsearch.app.search.contracts import (
    AttemptOutcome,
    FailureKind,
    RenderedQuery,
    RequestContext,
    SearchFailure,
)
from docsearch.app.search.errors import error_message


def merge_success(
    context: RequestContext,
    outcome: AttemptOutcome,
    rendered: RenderedQuery,
) -> int:
    """Fold a successful attempt into the context and return its hit count.

    An empty hit list leaves ``context.data`` as an earlier stage left it.
    """
    documents = list(outcome.documents)
    if documents:
        context.data = documents
    if outcome.metadata:
        context.meta.update(outcome.metadata)
    context.meta["query_type"] = rendered.type
    return len(documents)


def record_failure(
    context: RequestContext,
    outcome: AttemptOutcome,
    *,
    exhausted: bool,
) -> SearchFailure:
    error = outcome.error
    message = error_message(error) if error is not None else "unknown search error"
    failure = SearchFailure(
        kind=FailureKind.TIMEOUT_EXHAUSTED if exhausted else FailureKind.ERROR,
        message=message,
        status=getattr(error, "status", None),
        attempts=outcome.attempt,
    )
    context.errors.append(message)
    context.failures.append(failure)
    return failure
