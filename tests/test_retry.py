import httpx
import pytest

from tradein.retry import RetryPolicy, get_with_retry


FAST = RetryPolicy(max_attempts=3, initial_delay=0.0, max_delay=0.0)


def test_backoff_is_exponential_and_capped():
    policy = RetryPolicy(initial_delay=1.0, max_delay=8.0, backoff_multiplier=2.0)
    assert [policy.delay_for(a) for a in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 8.0]


@pytest.mark.asyncio
async def test_retries_retryable_status_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        resp = await get_with_retry(client, "https://example.test/x", policy=FAST)
    assert resp.status_code == 200
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_returns_last_response_when_attempts_exhausted():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        resp = await get_with_retry(client, "https://example.test/x", policy=FAST)
    assert resp.status_code == 502
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_does_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        resp = await get_with_retry(client, "https://example.test/x", policy=FAST)
    assert resp.status_code == 404
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_reraises_transport_error_after_last_attempt():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.ConnectError):
            await get_with_retry(client, "https://example.test/x", policy=FAST)
    assert len(calls) == 3
