"""Retry policy for document store calls.

Connection failures, timeouts and 5xx answers from Qdrant are retried
with exponential backoff; a 4xx means the request itself is wrong and
fails immediately.
"""

from __future__ import annotations

import logging

import httpx
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

STORE_RETRY_ATTEMPTS = 3


def is_transient_store_error(exc: BaseException) -> bool:
    """True for store failures worth retrying."""
    if isinstance(exc, UnexpectedResponse):
        return exc.status_code is not None and exc.status_code >= 500
    if isinstance(exc, ResponseHandlingException):
        # Wraps the underlying transport error
        return isinstance(exc.source, (httpx.ConnectError, httpx.TimeoutException))
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "Store call %s failed (attempt %d/%d), retrying: %s",
        retry_state.fn.__name__ if retry_state.fn else "unknown",
        retry_state.attempt_number,
        STORE_RETRY_ATTEMPTS,
        outcome.exception() if outcome else None,
    )


qdrant_retry = retry(
    stop=stop_after_attempt(STORE_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(is_transient_store_error),
    before_sleep=_log_retry,
    reraise=True,
)
