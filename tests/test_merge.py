from wbgt_pipeline.service.merge import merge_actuals_and_forecast


ACTUALS = "Date,Time,11001,11016\n2025/9/1,9:00,285,280"


def test_merge_realigns_forecast_columns_to_actuals_header():
    forecast = "Date,Time,11016,47401\n2025/9/2,6:00,25,30"

    result = merge_actuals_and_forecast(ACTUALS, forecast)

    assert result.split("\n") == [
        "Date,Time,11001,11016",
        "2025/9/1,9:00,285,280",
        "2025/9/2,6:00,,25",
    ]


def test_merge_without_forecast_rows_returns_actuals():
    assert merge_actuals_and_forecast(ACTUALS, "") == ACTUALS
    assert merge_actuals_and_forecast(ACTUALS, "Date,Time,11001") == ACTUALS
