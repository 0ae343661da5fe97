from dataclasses import dataclass
from datetime import datetime

import pytest
import requests

from wbgt_pipeline.common.http import RetryPolicy, ThrottledClient
from wbgt_pipeline.common.telemetry import TelemetryService
from wbgt_pipeline.domain.models import Station
from wbgt_pipeline.utils.config_loader import FeedSettings
from wbgt_pipeline.utils.date_utils import JST


@dataclass
class DummyResponse:
    """requests.Response 代替として minimum API を提供するテスト用レスポンス"""

    text: str = ""
    status_code: int = 200

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class UrlMapClient(ThrottledClient):
    """URLごとに決めたレスポンス（または例外）を返すクライアント"""

    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []
        telemetry = TelemetryService()
        telemetry.add_sink(lambda e: None)
        policy = RetryPolicy(0, 0, 0, 1, 0)
        super().__init__(default_headers=None, retry_policy=policy, telemetry=telemetry,
                         request_func=self._request, sleep_func=lambda x: None)

    def _request(self, url, headers, timeout):
        self.calls.append(url)
        outcome = self.responses.get(url)
        if outcome is None:
            raise AssertionError(f"unexpected url: {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def feed_settings():
    return FeedSettings(
        base_url="https://wbgt.example.test",
        retry_policy=RetryPolicy(0, 0, 0, 1, 0),
    )


@pytest.fixture()
def fixed_now():
    return datetime(2025, 9, 10, 12, 0, tzinfo=JST)


@pytest.fixture()
def stations():
    return [
        Station(id="11001", name="稚内", lat="45.4", lng="141.7"),
        Station(id="11016", name="宗谷岬", lat="45.5", lng="141.9"),
    ]
