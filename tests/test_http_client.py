import pytest
import requests

from conftest import DummyResponse
from wbgt_pipeline.common.http import RetryPolicy, ThrottledClient
from wbgt_pipeline.common.telemetry import TelemetryService


def build_client(queue, responses, sleeps):
    telemetry = TelemetryService()
    telemetry.add_sink(queue.append)

    policy = RetryPolicy(
        min_delay=1.0,
        step=0.5,
        max_delay=2.0,
        max_retries=3,
        backoff_cap=5.0,
        retryable_status=frozenset({429, 500, 502, 503, 504}),
    )

    response_iter = iter(responses)

    def fake_request(url, headers, timeout):
        outcome = next(response_iter)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client = ThrottledClient(
        default_headers={"User-Agent": "test"},
        retry_policy=policy,
        telemetry=telemetry,
        request_func=fake_request,
        sleep_func=sleeps.append,
    )
    return client


def test_send_success_without_retry():
    queue, sleeps = [], []
    client = build_client(queue, [DummyResponse(status_code=200)], sleeps)

    resp = client.send("http://example.com")

    assert resp.status_code == 200
    assert [e.kind for e in queue] == ["http.start", "http.success"]
    assert sleeps == []


def test_send_retries_retryable_status():
    queue, sleeps = [], []
    client = build_client(queue, [DummyResponse(status_code=429), DummyResponse(status_code=200)], sleeps)

    resp = client.send("http://example.com")

    assert resp.status_code == 200
    assert [e.kind for e in queue] == ["http.start", "http.retry", "http.start", "http.success"]
    # リトライ時のバックオフのみ（初回リクエストは待機なし）
    assert sleeps == [pytest.approx(1.0)]


def test_send_retries_network_error():
    queue, sleeps = [], []
    client = build_client(queue, [requests.ConnectionError("reset"), DummyResponse(status_code=200)], sleeps)

    assert client.send("http://example.com").status_code == 200
    assert [e.kind for e in queue] == ["http.start", "http.retry", "http.start", "http.success"]


# 404 は再試行しても変わらないので1回で失敗させる
def test_send_does_not_retry_not_found():
    queue, sleeps = [], []
    client = build_client(queue, [DummyResponse(status_code=404)], sleeps)

    with pytest.raises(requests.HTTPError):
        client.send("http://example.com/missing.csv")

    assert [e.kind for e in queue] == ["http.start", "http.failure"]
    assert sleeps == []


def test_send_raises_after_exhausting_retries():
    queue, sleeps = [], []
    errors = [requests.ConnectionError("down") for _ in range(3)]
    client = build_client(queue, errors, sleeps)

    with pytest.raises(requests.ConnectionError):
        client.send("http://example.com")

    assert [e.kind for e in queue] == [
        "http.start", "http.retry",
        "http.start", "http.retry",
        "http.start", "http.failure",
    ]
    assert sleeps == [pytest.approx(1.0), pytest.approx(2.0)]


def test_request_index_increments_between_calls():
    queue, sleeps = [], []
    client = build_client(queue, [DummyResponse(status_code=200), DummyResponse(status_code=200)], sleeps)

    client.send("http://example.com")
    client.send("http://example.com/next")

    # 2回目の呼び出し前にインターバル待機が発生する
    assert sleeps == [pytest.approx(1.0)]
