"""ワイド形式CSVと地点マスタから地図表示用の GeoJSON を組み立てる。"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

from ..aggregation.daily import daily_daytime_average, daily_max_by_date
from ..domain.errors import StationNotFoundError
from ..domain.models import (
    Station,
    StationFeature,
    TimeSeriesSample,
    WbgtDataResult,
    WideCsvFrame,
)
from ..fetcher.station_directory import StationDirectory
from ..logger.app_logger import get_logger
from ..parser.csv_frame import FIRST_VALUE_COLUMN, parse, read_value
from ..parser.time_normalizer import CANONICAL_FORMAT

logger = get_logger(__name__)

SOURCE_TIMEZONE = "Asia/Tokyo"
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"
DATE_FORMAT = "%Y/%m/%d"
MISSING_VALUE = 0.0


def to_utc_iso(values: Sequence[str], fmt: str = CANONICAL_FORMAT) -> List[str]:
    """JSTの壁時計文字列をUTCのISO文字列 (2025-09-04T17:00:00.000Z) に変換する。"""
    if not values:
        return []
    local = pd.to_datetime(pd.Series(list(values)), format=fmt)
    utc = local.dt.tz_localize(SOURCE_TIMEZONE).dt.tz_convert("UTC")
    return utc.dt.strftime(ISO_FORMAT).tolist()


def collect_series(frame: WideCsvFrame, column: int) -> List[TimeSeriesSample]:
    """1列分（1地点分）の有効値を行順に集める。同じ時刻の2件目以降は捨てる。"""
    series: List[TimeSeriesSample] = []
    seen = set()
    for row, row_time in zip(frame.rows, frame.row_times):
        if not row_time.normalized or column >= len(row):
            continue
        value = read_value(row[column])
        if value is None or row_time.value in seen:
            continue
        seen.add(row_time.value)
        series.append(TimeSeriesSample(time=row_time.value, wbgt=value))
    return series


def build_feature(
    station: Station,
    series: Sequence[TimeSeriesSample],
    hourly_times: Sequence[str],
    dates: Sequence[str],
) -> StationFeature:
    """時別値・日最大・日中平均をマスター時刻/日付に位置合わせして格納する。"""
    by_time = {sample.time: sample.wbgt for sample in series}
    value_by_date = daily_max_by_date(series)
    max_lookup = {item["date"]: item["wbgt"] for item in value_by_date}

    return StationFeature(
        station=station,
        value_by_date_time=[by_time.get(t, MISSING_VALUE) for t in hourly_times],
        value_by_date=value_by_date,
        max_by_date=[max_lookup.get(d, MISSING_VALUE) for d in dates],
        value_by_date_average=[daily_daytime_average(series, d) for d in dates],
    )


def build(wide_csv_text: str, stations: Iterable[Station]) -> WbgtDataResult:
    """ワイド形式CSVから地点ごとのフィーチャーと時刻配列を作成する。

    地点マスタにない地点や有効値のない地点は出力から除外する（全体は失敗させない）。

    Raises:
        EmptyOrMalformedError: CSVがヘッダー行とデータ行を揃えていない場合
    """
    frame = parse(wide_csv_text)
    directory = StationDirectory(stations)

    hourly_times = list(frame.master_times)
    dates = sorted({t.split(" ")[0] for t in hourly_times})

    features: List[StationFeature] = []
    emitted = set()
    for column, station_id in enumerate(frame.station_ids, start=FIRST_VALUE_COLUMN):
        if station_id in emitted:
            logger.warning(f"地点ID {station_id} がヘッダーに重複しています")
            continue
        try:
            station = directory.get(station_id)
        except StationNotFoundError as exc:
            logger.info(str(exc))
            continue

        series = collect_series(frame, column)
        if not series:
            logger.info(f"地点ID {station_id} にWBGTデータがありません")
            continue

        features.append(build_feature(station, series, hourly_times, dates))
        emitted.add(station_id)

    logger.info(f"GeoJSONフィーチャー作成完了: {len(features)}地点")

    return WbgtDataResult(
        features=features,
        hourly_time_points=to_utc_iso(hourly_times),
        daily_time_points=to_utc_iso(dates, DATE_FORMAT),
    )
