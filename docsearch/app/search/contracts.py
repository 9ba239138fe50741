from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DFS_QUERY_THEN_FETCH = "dfs_query_then_fetch"


class BackendError(Exception):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass(frozen=True)
class RenderedQuery:
    body: dict[str, Any]
    type: str


@dataclass(frozen=True)
class SearchCommand:
    index: str
    body: dict[str, Any]
    search_type: str = DFS_QUERY_THEN_FETCH

    def to_params(self) -> dict[str, str]:
        return {"search_type": self.search_type}


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class AttemptOutcome:
    kind: OutcomeKind
    attempt: int
    documents: tuple[dict[str, Any], ...] = tuple()
    metadata: dict[str, Any] | None = None
    error: BaseException | None = None
    latency_ms: int = 0


class FailureKind(str, Enum):
    TIMEOUT_EXHAUSTED = "timeout_exhausted"
    ERROR = "error"


@dataclass(frozen=True)
class SearchFailure:
    kind: FailureKind
    message: str
    status: int | None
    attempts: int


@dataclass
class RequestContext:
    """State of one logical request, owned by a single in-flight caller.

    Earlier pipeline stages may populate ``data`` and ``meta`` before the
    controller runs; the controller only ever adds to ``errors`` and
    ``failures``.
    """

    clean: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    failures: list[SearchFailure] = field(default_factory=list)
    data: list[dict[str, Any]] | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    request_id: str = "unknown"
    path: str = "/v1/search"
