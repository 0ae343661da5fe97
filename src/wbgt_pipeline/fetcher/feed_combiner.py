"""環境省 暑さ指数サイトの月次実況値CSVと予測値CSVの取得・結合"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

import requests

from ..common.http import ThrottledClient
from ..domain.errors import FetchFailureError, NoValidHeaderError, UnparseableTimestampError
from ..logger.app_logger import get_logger
from ..parser.time_normalizer import parse_date
from ..utils.config_loader import FeedSettings
from ..utils.date_utils import days_back_window, month_floor, now_jst, shift_month, year_month_key

logger = get_logger(__name__)


def _split_lines(csv_text: str) -> List[str]:
    return csv_text.strip().splitlines()


def combine_csv_texts(csv_texts: Sequence[Optional[str]]) -> str:
    """複数のワイド形式CSVを与えられた順に連結する。

    ヘッダーは最初にデータを返したソースのものを使い、データ行は並べ替えない。

    Raises:
        NoValidHeaderError: どのソースにもヘッダーがない場合
    """
    sources = [_split_lines(text) for text in csv_texts if text]
    sources = [lines for lines in sources if lines and lines[0].strip()]
    if not sources:
        raise NoValidHeaderError("有効なCSVヘッダーが見つかりませんでした")

    header = sources[0][0]
    data_rows = [
        line
        for lines in sources
        for line in lines[1:]
        if line.strip()
    ]
    return "\n".join([header, *data_rows])


def filter_by_date_range(
    csv_text: str,
    days_back: Optional[int] = None,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> str:
    """日付列が期間内（両端含む）の行とヘッダーだけを残す。

    days_back を指定した場合は days_back 日前の0時〜今日の終わりが期間になる。
    日付を解釈できない行、日付が空の行は黙って捨てる。
    """
    lines = _split_lines(csv_text)
    if len(lines) < 2:
        return csv_text

    if days_back is not None:
        window_start, window_end = days_back_window(now or now_jst(), days_back)
        start_date = start_date or window_start
        end_date = end_date or window_end
    if start_date is None or end_date is None:
        raise ValueError("days_back または start_date/end_date を指定してください")

    header, data_rows = lines[0], lines[1:]
    kept = []
    for row in data_rows:
        columns = row.split(",")
        if len(columns) < 2:
            continue
        try:
            row_date = parse_date(columns[0])
        except UnparseableTimestampError:
            continue
        if start_date <= row_date <= end_date:
            kept.append(row)

    logger.info(f"期間 {start_date}〜{end_date} で {len(data_rows)} 行中 {len(kept)} 行を抽出しました")
    return "\n".join([header, *kept])


class FeedCombiner:
    """先月・今月の実況値CSVを並行取得し、1つのワイド形式CSVにまとめる。"""

    def __init__(
        self,
        client: ThrottledClient,
        settings: FeedSettings,
        *,
        clock: Callable[[], datetime] = now_jst,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clock = clock

    def actuals_urls(self) -> List[str]:
        """先月、今月の順のURL"""
        current = month_floor(self._clock())
        previous = shift_month(current, -1)
        return [
            self._settings.actuals_url(year_month_key(previous)),
            self._settings.actuals_url(year_month_key(current)),
        ]

    def _fetch_text(self, url: str) -> str:
        logger.info(f"データ取得を試行: {url}")
        try:
            response = self._client.send(url)
        except (requests.RequestException, RuntimeError) as exc:
            raise FetchFailureError(url, str(exc)) from exc
        logger.info(f"データ取得成功: {url}")
        return response.text

    def _fetch_or_none(self, url: str) -> Optional[str]:
        try:
            return self._fetch_text(url)
        except FetchFailureError as exc:
            logger.warning(str(exc))
            return None

    def combine(self) -> str:
        """実況値CSVを取得・結合する。

        片方の取得に失敗してもその月の行が無くなるだけで、処理は続ける。

        Raises:
            NoValidHeaderError: どちらの月からもデータが得られなかった場合
        """
        urls = self.actuals_urls()
        with ThreadPoolExecutor(max_workers=len(urls)) as executor:
            texts = list(executor.map(self._fetch_or_none, urls))

        fetched = sum(1 for text in texts if text is not None)
        logger.info(f"{fetched}つのCSVデータを取得しました")
        return combine_csv_texts(texts)

    def fetch_forecast(self) -> str:
        """予測値CSVを取得する。失敗時は空文字列。"""
        text = self._fetch_or_none(self._settings.forecast_url)
        return text or ""
