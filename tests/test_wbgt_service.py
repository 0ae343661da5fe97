from datetime import datetime

import pytest

from wbgt_pipeline.common.telemetry import TelemetryService
from wbgt_pipeline.domain.errors import NoValidHeaderError
from wbgt_pipeline.service.wbgt_service import WbgtDataService
from wbgt_pipeline.utils.date_utils import JST

NOW = datetime(2025, 9, 2, 12, 0, tzinfo=JST)

EMPTY_RESULT = {
    "geojson": {"type": "FeatureCollection", "features": []},
    "timePoints": [],
    "hourlyTimePoints": [],
    "dailyTimePoints": [],
}


class FakeFeeds:
    def __init__(self, actuals="", forecast="", error=None):
        self.actuals = actuals
        self.forecast = forecast
        self.error = error
        self.forecast_calls = 0

    def combine(self):
        if self.error:
            raise self.error
        return self.actuals

    def fetch_forecast(self):
        self.forecast_calls += 1
        return self.forecast


def _service(feeds, stations, feed_settings, events=None, station_loader=None):
    telemetry = TelemetryService()
    if events is not None:
        telemetry.add_sink(events.append)
    return WbgtDataService(
        feed_source=feeds,
        station_loader=station_loader or (lambda: stations),
        settings=feed_settings,
        telemetry=telemetry,
        clock=lambda: NOW,
    )


ACTUALS = "Date,Time,11001\n2025/8/1,9:00,250\n2025/9/1,9:00,285"
FORECAST = ",,2025090209\n11001,2025090200,300"


def test_fetch_merges_actuals_and_forecast(stations, feed_settings):
    events = []
    service = _service(FakeFeeds(ACTUALS, FORECAST), stations, feed_settings, events)

    result = service.fetch_wbgt_data()

    # 8/1 の行は14日の期間外
    assert result.hourly_time_points == ["2025-09-01T00:00:00.000Z", "2025-09-02T00:00:00.000Z"]
    assert result.features[0].value_by_date_time == [28.5, 30.0]
    assert [e.kind for e in events] == ["run.start", "run.success"]


def test_fetch_without_forecast(stations, feed_settings):
    feeds = FakeFeeds(ACTUALS, FORECAST)
    service = _service(feeds, stations, feed_settings)

    result = service.fetch_wbgt_data(include_forecast=False)

    assert result.hourly_time_points == ["2025-09-01T00:00:00.000Z"]
    assert feeds.forecast_calls == 0


def test_fetch_days_back_override(stations, feed_settings):
    service = _service(FakeFeeds(ACTUALS), stations, feed_settings)

    result = service.fetch_wbgt_data(days_back=40, include_forecast=False)

    assert len(result.hourly_time_points) == 2


@pytest.mark.parametrize(
    "feeds",
    [
        FakeFeeds(error=NoValidHeaderError("no header")),
        FakeFeeds("Date,Time,11001"),
        FakeFeeds("invalid csv data"),
    ],
)
def test_fetch_failures_degrade_to_empty_result(feeds, stations, feed_settings):
    events = []
    service = _service(feeds, stations, feed_settings, events)

    result = service.fetch_wbgt_data()

    assert result.to_dict() == EMPTY_RESULT
    assert events[-1].kind == "run.failure"


def test_fetch_unexpected_error_degrades_to_empty_result(stations, feed_settings):
    def broken_loader():
        raise RuntimeError("stations unavailable")

    service = _service(FakeFeeds(ACTUALS), stations, feed_settings, station_loader=broken_loader)

    assert service.fetch_wbgt_data().is_empty()
