from __future__ import annotations

from dataclasses import dataclass

from docsearch.app.search.backend import SearchBackend
from docsearch.app.search.errors import ErrorClass
from docsearch.core.config import DEFAULT_REQUEST_RETRIES, AppConfig


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempt budget with a constant delay between attempts.

    Every retry waits the same ``min_delay``; there is no backoff factor, so
    the total wait of a session never exceeds ``max_attempts * min_delay``.
    Only request timeouts are retried.
    """

    max_attempts: int = DEFAULT_REQUEST_RETRIES
    min_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.min_delay < 0:
            raise ValueError("min_delay must not be negative")

    @classmethod
    def from_config(cls, config: AppConfig, backend: SearchBackend) -> RetryPolicy:
        return cls(
            max_attempts=config.request_retries,
            min_delay=backend.request_timeout,
        )

    def should_retry(self, error_class: ErrorClass, attempts_so_far: int) -> bool:
        return (
            error_class == ErrorClass.TIMEOUT and attempts_so_far < self.max_attempts
        )

    def worst_case_delay(self) -> float:
        return self.max_attempts * self.min_delay

    def start(self) -> RetrySession:
        return RetrySession(self)


class RetrySession:
    def __init__(self, policy: RetryPolicy) -> None:
        self._policy = policy
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def max_attempts(self) -> int:
        return self._policy.max_attempts

    @property
    def delay(self) -> float:
        return self._policy.min_delay

    def begin_attempt(self) -> int:
        if self._attempts >= self._policy.max_attempts:
            raise RuntimeError(
                f"attempt budget of {self._policy.max_attempts} already spent"
            )
        self._attempts += 1
        return self._attempts

    def should_retry(self, error_class: ErrorClass) -> bool:
        return self._policy.should_retry(error_class, self._attempts)
