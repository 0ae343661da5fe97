"""地点マスタ(JSON)の読み込み"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List

from ..domain.errors import StationNotFoundError
from ..domain.models import Station
from ..logger.app_logger import get_logger

logger = get_logger(__name__)


def load_stations(path: str | Path) -> List[Station]:
    """[{id, name, lat, lng}, ...] 形式のJSONを読み込む。失敗時は空リスト。"""
    try:
        with Path(path).open("r", encoding="utf-8") as file:
            payload = json.load(file)
        stations = [Station.from_dict(item) for item in payload]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.error(f"地点マスタデータの取得に失敗: {exc}")
        return []
    logger.info(f"地点マスタデータを取得: {len(stations)}地点")
    return stations


class StationDirectory:
    """地点IDから地点情報を引く索引。リクエストごとに1度だけ構築する。"""

    def __init__(self, stations: Iterable[Station]) -> None:
        self._by_id: Dict[str, Station] = {}
        for station in stations:
            # 同一IDが重複した場合は先勝ち
            self._by_id.setdefault(station.id.strip(), station)

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, station_id: str) -> Station:
        try:
            return self._by_id[station_id.strip()]
        except KeyError:
            raise StationNotFoundError(station_id.strip()) from None
