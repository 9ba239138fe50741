from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from docsearch.app.observability.contracts import SearchSummary
from docsearch.app.observability.service import SearchObserver, attempt_trace
from docsearch.app.search.backend import SearchBackend
from docsearch.app.search.contracts import (
    AttemptOutcome,
    OutcomeKind,
    RenderedQuery,
    RequestContext,
    SearchCommand,
)
from docsearch.app.search.errors import classify_error
from docsearch.app.search.executor import execute_attempt
from docsearch.app.search.merge import merge_success, record_failure
from docsearch.app.search.retry import RetryPolicy

LOGGER = logging.getLogger(__name__)

QueryRenderer = Callable[[dict[str, Any], RequestContext], RenderedQuery | None]
ContextPredicate = Callable[[RequestContext], bool]


def has_response_data(context: RequestContext) -> bool:
    return bool(context.data)


def has_request_errors(context: RequestContext) -> bool:
    return bool(context.errors)


def has_response_data_or_request_errors(context: RequestContext) -> bool:
    return has_response_data(context) or has_request_errors(context)


def negate(predicate: ContextPredicate) -> ContextPredicate:
    def _negated(context: RequestContext) -> bool:
        return not predicate(context)

    return _negated


def _always(context: RequestContext) -> bool:
    _ = context
    return True


class SearchController:
    """Runs one logical search per call, retrying backend request timeouts.

    Attempts within a call are strictly sequential. ``run`` returns once on
    every path and never raises for backend failures; those end up in
    ``context.errors`` and ``context.failures``.
    """

    def __init__(
        self,
        *,
        index_name: str,
        backend: SearchBackend,
        renderer: QueryRenderer,
        policy: RetryPolicy,
        observer: SearchObserver,
        should_execute: ContextPredicate | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._index_name = index_name
        self._backend = backend
        self._renderer = renderer
        self._policy = policy
        self._observer = observer
        self._should_execute = should_execute or _always
        self._sleep = sleep

    async def run(self, context: RequestContext) -> RequestContext:
        if not self._should_execute(context):
            LOGGER.debug(
                "search skipped by predicate request_id=%s", context.request_id
            )
            self._record_skip(context)
            return context

        LOGGER.info(
            "[req] endpoint=%s %s",
            context.path,
            json.dumps(context.clean, sort_keys=True, default=str),
        )

        rendered = self._renderer(context.clean, context)
        if rendered is None:
            LOGGER.debug(
                "no query to call the backend with, skipping request_id=%s",
                context.request_id,
            )
            self._record_skip(context)
            return context

        command = SearchCommand(index=self._index_name, body=rendered.body)
        LOGGER.debug(
            "[ES req] index=%s search_type=%s max_attempts=%s "
            "worst_case_delay=%.3fs body=%s",
            command.index,
            command.search_type,
            self._policy.max_attempts,
            self._policy.worst_case_delay(),
            json.dumps(command.body, sort_keys=True, default=str),
        )

        outcome = await self._attempt_until_settled(context, command)
        self._settle(context, rendered, outcome)
        return context

    async def _attempt_until_settled(
        self, context: RequestContext, command: SearchCommand
    ) -> AttemptOutcome:
        session = self._policy.start()
        while True:
            attempt = session.begin_attempt()
            outcome = await execute_attempt(self._backend, command, attempt)
            retrying = session.should_retry(classify_error(outcome.error))
            self._observer.record_attempt(
                attempt_trace(context.request_id, outcome, retried=retrying)
            )
            if not retrying:
                return outcome
            LOGGER.info("request timed out on attempt %s, retrying", attempt)
            await self._sleep(session.delay)

    def _settle(
        self,
        context: RequestContext,
        rendered: RenderedQuery,
        outcome: AttemptOutcome,
    ) -> None:
        if outcome.kind == OutcomeKind.SUCCESS:
            if outcome.attempt > 1:
                LOGGER.info("succeeded on retry %s", outcome.attempt - 1)
            result_count = merge_success(context, outcome, rendered)
            LOGGER.info(
                "[controller:search] [queryType:%s] [es_result_count:%s]",
                rendered.type,
                result_count,
            )
            status = OutcomeKind.SUCCESS.value
        else:
            failure = record_failure(
                context, outcome, exhausted=outcome.kind == OutcomeKind.TIMEOUT
            )
            LOGGER.warning(
                "search failed request_id=%s kind=%s attempts=%s: %s",
                context.request_id,
                failure.kind.value,
                failure.attempts,
                failure.message,
            )
            result_count = 0
            status = failure.kind.value

        LOGGER.debug(
            "[ES response] %s", json.dumps(list(outcome.documents), default=str)
        )
        self._observer.record_summary(
            SearchSummary(
                request_id=context.request_id,
                query_type=rendered.type,
                result_count=result_count,
                attempts=outcome.attempt,
                status=status,
            )
        )

    def _record_skip(self, context: RequestContext) -> None:
        self._observer.record_summary(
            SearchSummary(
                request_id=context.request_id,
                query_type=None,
                result_count=0,
                attempts=0,
                status="skipped",
                skipped=True,
            )
        )
