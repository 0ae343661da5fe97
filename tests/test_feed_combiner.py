from datetime import date, datetime

import pytest
import requests

from conftest import DummyResponse, UrlMapClient
from wbgt_pipeline.domain.errors import NoValidHeaderError
from wbgt_pipeline.fetcher.feed_combiner import FeedCombiner, combine_csv_texts, filter_by_date_range
from wbgt_pipeline.utils.date_utils import JST

PREV_URL = "https://wbgt.example.test/est15WG/dl/wbgt_all_202508.csv"
CURR_URL = "https://wbgt.example.test/est15WG/dl/wbgt_all_202509.csv"
FORECAST_URL = "https://wbgt.example.test/prev15WG/dl/yohou_all.csv"

PREV_CSV = "Date,Time,11001,11016\r\n2025/8/31,23:00,285,280\r\n"
CURR_CSV = "Date,Time,11001,11016\n2025/9/1,0:00,279,\n\n2025/9/1,1:00,27.5,27.0\n"


def _combiner(responses, feed_settings, fixed_now):
    client = UrlMapClient(responses)
    return FeedCombiner(client, feed_settings, clock=lambda: fixed_now), client


def test_actuals_urls_are_previous_then_current(feed_settings, fixed_now):
    combiner, _ = _combiner({}, feed_settings, fixed_now)

    assert combiner.actuals_urls() == [PREV_URL, CURR_URL]


def test_actuals_urls_cross_year_boundary(feed_settings):
    january = datetime(2025, 1, 3, 8, 0, tzinfo=JST)
    combiner = FeedCombiner(UrlMapClient({}), feed_settings, clock=lambda: january)

    urls = combiner.actuals_urls()

    assert urls[0].endswith("wbgt_all_202412.csv")
    assert urls[1].endswith("wbgt_all_202501.csv")


def test_combine_concatenates_previous_then_current(feed_settings, fixed_now):
    combiner, client = _combiner(
        {PREV_URL: DummyResponse(PREV_CSV), CURR_URL: DummyResponse(CURR_CSV)},
        feed_settings,
        fixed_now,
    )

    result = combiner.combine()

    assert result.split("\n") == [
        "Date,Time,11001,11016",
        "2025/8/31,23:00,285,280",
        "2025/9/1,0:00,279,",
        "2025/9/1,1:00,27.5,27.0",
    ]
    assert sorted(client.calls) == sorted([PREV_URL, CURR_URL])


# 今月分が 404 でも先月分だけで結果を返す
def test_combine_survives_http_error(feed_settings, fixed_now):
    combiner, _ = _combiner(
        {PREV_URL: DummyResponse(PREV_CSV), CURR_URL: DummyResponse("not found", status_code=404)},
        feed_settings,
        fixed_now,
    )

    assert combiner.combine() == "Date,Time,11001,11016\n2025/8/31,23:00,285,280"


def test_combine_survives_network_error(feed_settings, fixed_now):
    combiner, _ = _combiner(
        {PREV_URL: requests.ConnectionError("boom"), CURR_URL: DummyResponse(CURR_CSV)},
        feed_settings,
        fixed_now,
    )

    lines = combiner.combine().split("\n")

    assert lines[0] == "Date,Time,11001,11016"
    assert lines[1:] == ["2025/9/1,0:00,279,", "2025/9/1,1:00,27.5,27.0"]


def test_combine_without_any_source_raises(feed_settings, fixed_now):
    combiner, _ = _combiner(
        {PREV_URL: requests.ConnectionError("boom"), CURR_URL: DummyResponse("", status_code=500)},
        feed_settings,
        fixed_now,
    )

    with pytest.raises(NoValidHeaderError):
        combiner.combine()


def test_fetch_forecast_failure_returns_empty_string(feed_settings, fixed_now):
    combiner, _ = _combiner({FORECAST_URL: requests.Timeout("slow")}, feed_settings, fixed_now)

    assert combiner.fetch_forecast() == ""


def test_fetch_forecast_returns_body(feed_settings, fixed_now):
    combiner, _ = _combiner({FORECAST_URL: DummyResponse(",,2025090109\n11001,x,300")}, feed_settings, fixed_now)

    assert combiner.fetch_forecast().startswith(",,2025090109")


def test_combine_csv_texts_takes_header_from_first_non_empty_source():
    result = combine_csv_texts([None, "", "Date,Time,A\n2025/9/1,9:00,25"])

    assert result == "Date,Time,A\n2025/9/1,9:00,25"


FILTER_NOW = datetime(2025, 9, 15, 10, 0, tzinfo=JST)


def test_filter_keeps_rows_inside_window():
    csv_text = "\n".join([
        "Date,Time,11001",
        "2025/8/31,23:00,25.0",
        "2025/9/1,0:00,25.5",
        "2025/9/15,23:00,26.0",
        "2025/9/16,0:00,26.5",
    ])

    result = filter_by_date_range(csv_text, 14, now=FILTER_NOW)

    assert result.split("\n") == ["Date,Time,11001", "2025/9/1,0:00,25.5", "2025/9/15,23:00,26.0"]


def test_filter_returns_input_when_everything_is_in_range():
    csv_text = "Date,Time,11001\n2025/9/10,10:00,25.0\n2025/9/15,17:00,28.5"

    assert filter_by_date_range(csv_text, 14, now=FILTER_NOW) == csv_text


def test_filter_drops_rows_with_unparseable_or_empty_dates():
    csv_text = "\n".join([
        "Date,Time,11001",
        "invalid-date,10:00,25.0",
        "2025/9/15,17:00,28.5",
        ",15:00,26.0",
    ])

    result = filter_by_date_range(csv_text, 14, now=FILTER_NOW)

    assert result.split("\n") == ["Date,Time,11001", "2025/9/15,17:00,28.5"]


@pytest.mark.parametrize("csv_text", ["", "Date,Time,11001"])
def test_filter_returns_header_only_or_empty_input_unchanged(csv_text):
    assert filter_by_date_range(csv_text, 14, now=FILTER_NOW) == csv_text


def test_filter_with_explicit_range():
    csv_text = "Date,Time,A\n2025-09-01,9:00,1\n2025-09-02,9:00,2\n2025-09-03,9:00,3"

    result = filter_by_date_range(csv_text, start_date=date(2025, 9, 2), end_date=date(2025, 9, 3))

    assert result.split("\n")[1:] == ["2025-09-02,9:00,2", "2025-09-03,9:00,3"]


def test_filter_requires_a_window():
    with pytest.raises(ValueError):
        filter_by_date_range("Date,Time,A\n2025/9/1,9:00,1")
