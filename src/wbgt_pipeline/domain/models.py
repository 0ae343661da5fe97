"""
WBGTパイプラインのドメインモデル

責務: 地点・時系列サンプル・ワイドCSVフレーム・GeoJSON出力の表現
すべてリクエスト毎に作り直され、パイプラインの各段で変更されない。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Station:
    """地点マスタの1件。lat/lng は元データどおり文字列で保持する。"""
    id: str
    name: str
    lat: str
    lng: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Station":
        return cls(
            id=str(data["id"]).strip(),
            name=str(data.get("name", "")),
            lat=str(data.get("lat", "")),
            lng=str(data.get("lng", "")),
        )

    def coordinates(self) -> Tuple[float, float]:
        """GeoJSON順 (lng, lat)。数値でない場合は NaN。"""
        return (_to_float(self.lng), _to_float(self.lat))


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True)
class TimeSeriesSample:
    """1地点・1時刻の観測値。time は "YYYY/MM/DD HH:mm"。"""
    time: str
    wbgt: float

    @property
    def date(self) -> str:
        return self.time.split(" ")[0]


@dataclass(frozen=True)
class NormalizedTime:
    """時刻正規化の結果

    normalized=False の場合 value は "{date} {time}" をそのまま連結した文字列。
    """
    value: str
    normalized: bool

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class WideCsvFrame:
    """ヘッダー行=地点ID、データ行=時刻ごとのワイド形式CSV"""
    header: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    row_times: Tuple[NormalizedTime, ...]
    row_has_any: Tuple[bool, ...]
    master_times: Tuple[str, ...]

    @property
    def station_ids(self) -> Tuple[str, ...]:
        return tuple(cell.strip() for cell in self.header[2:])


@dataclass
class StationFeature:
    """1地点分の GeoJSON Point フィーチャー"""
    station: Station
    value_by_date_time: List[float]
    value_by_date: List[Dict[str, Any]]
    max_by_date: List[float]
    value_by_date_average: List[float]

    def to_geojson(self) -> Dict[str, Any]:
        lng, lat = self.station.coordinates()
        return {
            "type": "Feature",
            "id": self.station.id,
            "properties": {
                "id": self.station.id,
                "name": self.station.name,
                "valueByDateTime": list(self.value_by_date_time),
                "valueByDate": [dict(item) for item in self.value_by_date],
                "maxByDate": list(self.max_by_date),
                "valueByDateAverage": list(self.value_by_date_average),
            },
            "geometry": {
                "type": "Point",
                "coordinates": [lng, lat],
            },
        }


@dataclass
class WbgtDataResult:
    """地図表示用の出力。各フィーチャーの配列は time points と位置で対応する。"""
    features: List[StationFeature] = field(default_factory=list)
    hourly_time_points: List[str] = field(default_factory=list)
    daily_time_points: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "WbgtDataResult":
        return cls()

    def is_empty(self) -> bool:
        return not self.features

    @property
    def time_points(self) -> List[str]:
        return self.hourly_time_points

    def to_dict(self) -> Dict[str, Any]:
        """結果全体を JSON 化可能な辞書に変換"""
        return {
            "geojson": {
                "type": "FeatureCollection",
                "features": [feature.to_geojson() for feature in self.features],
            },
            "timePoints": list(self.hourly_time_points),
            "hourlyTimePoints": list(self.hourly_time_points),
            "dailyTimePoints": list(self.daily_time_points),
        }

    def to_dataframe(self, station_id: Optional[str] = None) -> "pd.DataFrame":
        """時別値を縦持ちの DataFrame (station_id, name, time, wbgt) に変換"""
        import pandas as pd  # 局所インポートで循環依存を回避

        rows = []
        for feature in self.features:
            if station_id is not None and feature.station.id != station_id:
                continue
            for time_point, value in zip(self.hourly_time_points, feature.value_by_date_time):
                rows.append({
                    "station_id": feature.station.id,
                    "name": feature.station.name,
                    "time": time_point,
                    "wbgt": value,
                })
        return pd.DataFrame(rows, columns=["station_id", "name", "time", "wbgt"])
