"""
WBGTデータ取得サービス

責務: 取得 → 期間抽出 → 予測値の変換・結合 → GeoJSON作成 の一連の流れを実行し、
どの段で失敗しても呼び出し側には空の結果を返す。
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Protocol

from ..common.telemetry import TelemetryService
from ..domain.errors import WbgtPipelineError
from ..domain.models import Station, WbgtDataResult
from ..fetcher.feed_combiner import filter_by_date_range
from ..geojson.builder import build
from ..logger.app_logger import get_logger
from ..parser.forecast_transcoder import transcode
from ..utils.config_loader import FeedSettings
from ..utils.date_utils import now_jst
from .merge import merge_actuals_and_forecast

logger = get_logger(__name__)


class FeedSource(Protocol):
    def combine(self) -> str:
        ...

    def fetch_forecast(self) -> str:
        ...


class WbgtDataService:
    """地図表示用のWBGTデータを組み立てるサービス"""

    def __init__(
        self,
        feed_source: FeedSource,
        station_loader: Callable[[], List[Station]],
        settings: FeedSettings,
        telemetry: TelemetryService,
        *,
        clock: Callable[[], datetime] = now_jst,
    ) -> None:
        self._feeds = feed_source
        self._load_stations = station_loader
        self._settings = settings
        self._telemetry = telemetry
        self._clock = clock

    def fetch_wbgt_data(
        self,
        *,
        days_back: Optional[int] = None,
        include_forecast: Optional[bool] = None,
    ) -> WbgtDataResult:
        """WBGTデータを取得する。失敗時は空の結果を返し、例外は投げない。"""
        days = self._settings.days_back if days_back is None else days_back
        with_forecast = self._settings.include_forecast if include_forecast is None else include_forecast
        self._telemetry.emit_event("run.start", days_back=days, include_forecast=with_forecast)

        try:
            result = self._run(days, with_forecast)
        except WbgtPipelineError as exc:
            logger.error(f"WBGTデータの取得に失敗: {exc}")
            self._telemetry.emit_event("run.failure", error=str(exc))
            return WbgtDataResult.empty()
        except Exception as exc:
            logger.exception(f"WBGTデータの処理中に予期しないエラー: {exc}")
            self._telemetry.emit_event("run.failure", error=str(exc))
            return WbgtDataResult.empty()

        self._telemetry.emit_event(
            "run.success",
            features=len(result.features),
            hourly=len(result.hourly_time_points),
            daily=len(result.daily_time_points),
        )
        return result

    def _run(self, days_back: int, include_forecast: bool) -> WbgtDataResult:
        stations = self._load_stations()

        measured_csv = self._feeds.combine()
        combined_csv = filter_by_date_range(measured_csv, days_back, now=self._clock())

        if include_forecast:
            forecast_csv = self._feeds.fetch_forecast()
            if forecast_csv.strip():
                combined_csv = merge_actuals_and_forecast(combined_csv, transcode(forecast_csv))

        return build(combined_csv, stations)
