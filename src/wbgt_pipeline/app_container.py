"""依存性注入コンテナ

`WbgtDataService` を組み立てるためのヘルパー関数を定義します。
API と CLI から共通のサービスを利用できるようにします。
"""

from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import Callable, Optional

from wbgt_pipeline.common.http import DEFAULT_HEADERS, ThrottledClient
from wbgt_pipeline.common.telemetry import TelemetryService, logging_sink
from wbgt_pipeline.fetcher.feed_combiner import FeedCombiner
from wbgt_pipeline.fetcher.station_directory import load_stations
from wbgt_pipeline.logger.app_logger import get_logger
from wbgt_pipeline.service.wbgt_service import WbgtDataService
from wbgt_pipeline.utils.config_loader import FeedSettings, get_feed_settings
from wbgt_pipeline.utils.date_utils import now_jst


def build_telemetry() -> TelemetryService:
    """ログ出力シンク付きの TelemetryService を返す"""

    telemetry = TelemetryService()
    telemetry.add_sink(logging_sink(get_logger("wbgt_pipeline.telemetry")))
    return telemetry


def build_client(
    settings: FeedSettings,
    telemetry: TelemetryService,
    *,
    request_func: Optional[Callable] = None,
    sleep_func: Optional[Callable[[float], None]] = None,
) -> ThrottledClient:
    """上流CSV取得用の `ThrottledClient` を構築して返す"""

    return ThrottledClient(
        default_headers=DEFAULT_HEADERS,
        retry_policy=settings.retry_policy,
        telemetry=telemetry,
        request_timeout=settings.request_timeout,
        request_func=request_func,
        sleep_func=sleep_func,
    )


def build_wbgt_service(
    *,
    settings: Optional[FeedSettings] = None,
    request_func: Optional[Callable] = None,
    sleep_func: Optional[Callable[[float], None]] = None,
    clock: Callable[[], datetime] = now_jst,
) -> WbgtDataService:
    """`WbgtDataService` を構築して返す"""

    settings = settings or get_feed_settings()
    telemetry = build_telemetry()
    client = build_client(settings, telemetry, request_func=request_func, sleep_func=sleep_func)
    combiner = FeedCombiner(client, settings, clock=clock)
    return WbgtDataService(
        feed_source=combiner,
        station_loader=partial(load_stations, settings.stations_file),
        settings=settings,
        telemetry=telemetry,
        clock=clock,
    )
