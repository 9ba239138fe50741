from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AttemptTrace:
    request_id: str
    attempt: int
    latency_ms: int
    status: str
    retried: bool
    error_message: str | None = None


@dataclass(frozen=True)
class SearchSummary:
    request_id: str
    query_type: str | None
    result_count: int
    attempts: int
    status: str
    skipped: bool = False
