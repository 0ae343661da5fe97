"""設定ファイル読み込みユーティリティ"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from ..common.http import RetryPolicy
from ..logger.app_logger import get_logger
from .path_utils import resolve_path


logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://www.wbgt.env.go.jp"
DEFAULT_ACTUALS_PATH = "/est15WG/dl/wbgt_all_{yyyymm}.csv"
DEFAULT_FORECAST_PATH = "/prev15WG/dl/yohou_all.csv"
DEFAULT_DAYS_BACK = 14
DEFAULT_STATIONS_FILE = "data/stations.json"


@dataclass(frozen=True)
class FeedSettings:
    """上流CSVの取得先と取得範囲の設定。"""

    base_url: str = DEFAULT_BASE_URL
    actuals_path: str = DEFAULT_ACTUALS_PATH
    forecast_path: str = DEFAULT_FORECAST_PATH
    days_back: int = DEFAULT_DAYS_BACK
    include_forecast: bool = True
    stations_file: Path = Path(DEFAULT_STATIONS_FILE)
    request_timeout: int = 30
    retry_policy: RetryPolicy = RetryPolicy(
        min_delay=0.5,
        step=0.0,
        max_delay=0.5,
        max_retries=3,
        backoff_cap=10.0,
        retryable_status=frozenset({429, 500, 502, 503, 504}),
    )

    def actuals_url(self, yyyymm: str) -> str:
        return self.base_url.rstrip("/") + self.actuals_path.format(yyyymm=yyyymm)

    @property
    def forecast_url(self) -> str:
        return self.base_url.rstrip("/") + self.forecast_path


def get_default_config_path() -> Path:
    """Return the canonical config file location."""

    return Path(__file__).parent.parent / "config.yml"


def load_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    """Load configuration data, tolerating missing files."""

    if config_path is None:
        config_path = get_default_config_path()
    else:
        config_path = Path(config_path)

    try:
        with config_path.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}
        logger.info("設定ファイルを読み込みました: %s", config_path)
        return config
    except FileNotFoundError:
        logger.warning("設定ファイルが見つかりません。デフォルト設定を使用します: %s", config_path)
        return {}
    except yaml.YAMLError as exc:
        logger.error("設定ファイルの解析エラー: %s", exc)
        raise


def get_feed_settings(config: Dict[str, Any] | None = None) -> FeedSettings:
    """設定辞書から FeedSettings を組み立てる。欠けている項目は既定値。"""

    if config is None:
        config = load_config()
    if not isinstance(config, dict):
        config = {}

    feeds = config.get("feeds", {}) or {}
    stations = config.get("stations", {}) or {}
    http = config.get("http", {}) or {}
    defaults = FeedSettings()
    default_policy = defaults.retry_policy

    policy = RetryPolicy(
        min_delay=float(http.get("min_delay", default_policy.min_delay)),
        step=float(http.get("step", default_policy.step)),
        max_delay=float(http.get("max_delay", default_policy.max_delay)),
        max_retries=int(http.get("max_retries", default_policy.max_retries)),
        backoff_cap=float(http.get("backoff_cap", default_policy.backoff_cap)),
        retryable_status=frozenset(http.get("retryable_status", default_policy.retryable_status)),
    )

    return FeedSettings(
        base_url=str(feeds.get("base_url", defaults.base_url)),
        actuals_path=str(feeds.get("actuals_path", defaults.actuals_path)),
        forecast_path=str(feeds.get("forecast_path", defaults.forecast_path)),
        days_back=int(feeds.get("days_back", defaults.days_back)),
        include_forecast=bool(feeds.get("include_forecast", defaults.include_forecast)),
        stations_file=resolve_path(stations.get("file", DEFAULT_STATIONS_FILE)),
        request_timeout=int(http.get("timeout", defaults.request_timeout)),
        retry_policy=policy,
    )
