from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeVar

from .errors import ExhaustedRetriesError, TransientApiError

if TYPE_CHECKING:
    from .graph_client import GraphResponse, Transport

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-interval retry policy for Graph calls.

    - max_retries counts retries after the first attempt (max_retries=3 => 4 attempts).
    - backoff_seconds is the wait before every retry.
    """

    max_retries: int = 3
    backoff_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")

    @property
    def max_attempts(self) -> int:
        return int(self.max_retries) + 1


@dataclass(frozen=True)
class RetryEvent:
    operation: str
    failure_attempt: int
    next_attempt: int
    max_attempts: int

    delay_seconds: float

    error_type: str
    error_code: str | None
    error_message: str

    context_url: str | None


IsRetryableFn = Callable[[BaseException], bool]
OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], None]


def is_retryable_graph_exception(exc: BaseException) -> bool:
    # Every error the API reports is retried; the read is idempotent.
    return isinstance(exc, TransientApiError)


def call_with_retries(
    fn: Callable[[], T],
    *,
    policy: RetryPolicy,
    is_retryable: IsRetryableFn,
    operation: str,
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
    context_url: str | None = None,
) -> T:
    """
    Call fn() and retry it while it raises a retryable exception.

    The last exception is re-raised once policy.max_attempts calls have failed.
    """
    op = (operation or "").strip() or "operation"
    sleeper = sleep_fn or time.sleep
    delay = max(0.0, float(policy.backoff_seconds))

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= policy.max_attempts:
                raise

            if on_retry is not None:
                on_retry(
                    RetryEvent(
                        operation=op,
                        failure_attempt=int(attempt),
                        next_attempt=int(attempt) + 1,
                        max_attempts=policy.max_attempts,
                        delay_seconds=delay,
                        error_type=type(exc).__name__,
                        error_code=getattr(exc, "code", None),
                        error_message=(str(exc) or "").strip(),
                        context_url=context_url,
                    )
                )

            if delay > 0:
                sleeper(delay)

    # Unreachable, but keeps typing happy.
    raise RuntimeError(f"Retry loop exited unexpectedly for operation={op}")


def fetch_with_retries(
    transport: "Transport",
    url: str,
    *,
    token: str,
    api_version: str | None = None,
    policy: RetryPolicy | None = None,
    operation: str = "graph.get",
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
    log_url: str | None = None,
) -> "GraphResponse":
    """
    Fetch one Graph URL, retrying while the response carries an error indicator.

    Raises ExhaustedRetriesError with the API's own last error message once the
    retry budget is spent. The whole request is abandoned; nothing partial is returned.
    """
    pol = policy or RetryPolicy()

    def _do_call() -> "GraphResponse":
        response = transport.invoke(url, token, api_version)
        response.raise_for_error()
        return response

    try:
        return call_with_retries(
            _do_call,
            policy=pol,
            is_retryable=is_retryable_graph_exception,
            operation=operation,
            on_retry=on_retry,
            sleep_fn=sleep_fn,
            context_url=log_url,
        )
    except TransientApiError as e:
        raise ExhaustedRetriesError(
            e.message,
            code=e.code,
            attempts=pol.max_attempts,
            url=log_url,
        ) from e
