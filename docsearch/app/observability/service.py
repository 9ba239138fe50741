from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any, Protocol

from docsearch.app.observability.contracts import AttemptTrace, SearchSummary
from docsearch.app.search.contracts import AttemptOutcome, OutcomeKind
from docsearch.app.search.errors import error_message


class SearchObserver(Protocol):
    def record_attempt(self, trace: AttemptTrace) -> None: ...

    def record_summary(self, summary: SearchSummary) -> None: ...


def attempt_trace(
    request_id: str,
    outcome: AttemptOutcome,
    *,
    retried: bool,
) -> AttemptTrace:
    return AttemptTrace(
        request_id=request_id,
        attempt=outcome.attempt,
        latency_ms=max(outcome.latency_ms, 0),
        status=outcome.kind.value,
        retried=retried,
        error_message=(
            error_message(outcome.error)
            if outcome.kind != OutcomeKind.SUCCESS and outcome.error is not None
            else None
        ),
    )


class LoggingSearchObserver:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def record_attempt(self, trace: AttemptTrace) -> None:
        self._emit("search_attempt", asdict(trace))

    def record_summary(self, summary: SearchSummary) -> None:
        self._emit("search_summary", asdict(summary))

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        self._logger.info("%s %s", event, json.dumps(payload, sort_keys=True))


class CollectingSearchObserver:
    def __init__(self) -> None:
        self.attempts: list[AttemptTrace] = []
        self.summaries: list[SearchSummary] = []

    def record_attempt(self, trace: AttemptTrace) -> None:
        self.attempts.append(trace)

    def record_summary(self, summary: SearchSummary) -> None:
        self.summaries.append(summary)

    def debug_payload(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = [
            {"event": "attempt", **asdict(trace)} for trace in self.attempts
        ]
        rows.extend(
            {"event": "summary", **asdict(summary)} for summary in self.summaries
        )
        return rows


class CompositeSearchObserver:
    def __init__(self, *observers: SearchObserver) -> None:
        self._observers = observers

    def record_attempt(self, trace: AttemptTrace) -> None:
        for observer in self._observers:
            observer.record_attempt(trace)

    def record_summary(self, summary: SearchSummary) -> None:
        for observer in self._observers:
            observer.record_summary(summary)
