from __future__ import annotations

import logging
import time

from docsearch.app.search.backend import SearchBackend, execute_search
from docsearch.app.search.contracts import (
    AttemptOutcome,
    BackendError,
    OutcomeKind,
    SearchCommand,
)
from docsearch.app.search.errors import ErrorClass, classify_error

LOGGER = logging.getLogger(__name__)


def _failure_kind(error: BaseException) -> OutcomeKind:
    if classify_error(error) == ErrorClass.TIMEOUT:
        return OutcomeKind.TIMEOUT
    return OutcomeKind.ERROR


def _elapsed_ms(started_at: float) -> int:
    return max(int((time.perf_counter() - started_at) * 1000), 0)


async def execute_attempt(
    backend: SearchBackend,
    command: SearchCommand,
    attempt: int,
) -> AttemptOutcome:
    started_at = time.perf_counter()
    try:
        documents, metadata = await execute_search(backend, command)
    except BackendError as exc:
        return AttemptOutcome(
            kind=_failure_kind(exc),
            attempt=attempt,
            error=exc,
            latency_ms=_elapsed_ms(started_at),
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning(
            "Search backend raised an unexpected error on attempt %s",
            attempt,
            extra={"index": command.index},
            exc_info=exc,
        )
        return AttemptOutcome(
            kind=_failure_kind(exc),
            attempt=attempt,
            error=exc,
            latency_ms=_elapsed_ms(started_at),
        )
    return AttemptOutcome(
        kind=OutcomeKind.SUCCESS,
        attempt=attempt,
        documents=tuple(documents),
        metadata=metadata,
        latency_ms=_elapsed_ms(started_at),
    )
