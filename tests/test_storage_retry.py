"""Tests for the document store retry policy."""

import httpx
import pytest
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from tenacity import wait_none

from fairlx.storage.retry import STORE_RETRY_ATTEMPTS, is_transient_store_error, qdrant_retry


def _unexpected(status: int) -> UnexpectedResponse:
    return UnexpectedResponse(
        status_code=status,
        reason_phrase="error",
        content=b"{}",
        headers=httpx.Headers(),
    )


class TestIsTransient:
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            _unexpected(500),
            _unexpected(503),
            ResponseHandlingException(httpx.ConnectError("refused")),
        ],
    )
    def test_transient(self, exc):
        assert is_transient_store_error(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            _unexpected(400),
            _unexpected(404),
            ResponseHandlingException(ValueError("bad json")),
            ValueError("bug"),
        ],
    )
    def test_permanent(self, exc):
        assert not is_transient_store_error(exc)


class TestQdrantRetry:
    async def test_recovers_from_transient_errors(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < STORE_RETRY_ATTEMPTS:
                raise httpx.ConnectError("refused")
            return "ok"

        wrapped = qdrant_retry(flaky).retry_with(wait=wait_none())

        assert await wrapped() == "ok"
        assert len(calls) == STORE_RETRY_ATTEMPTS

    async def test_gives_up_after_attempts(self):
        calls = []

        async def down():
            calls.append(1)
            raise _unexpected(503)

        wrapped = qdrant_retry(down).retry_with(wait=wait_none())

        with pytest.raises(UnexpectedResponse):
            await wrapped()
        assert len(calls) == STORE_RETRY_ATTEMPTS

    async def test_client_error_not_retried(self):
        calls = []

        async def bad_request():
            calls.append(1)
            raise _unexpected(400)

        wrapped = qdrant_retry(bad_request).retry_with(wait=wait_none())

        with pytest.raises(UnexpectedResponse):
            await wrapped()
        assert calls == [1]
