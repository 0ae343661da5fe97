# wbgt_pipeline/parser/forecast_transcoder.py
"""予測値CSV（地点=行、予測時刻=列）を実況値と同じワイド形式に組み替える。"""

import csv
import io
import re
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from ..domain.errors import UnparseableTimestampError
from ..logger.app_logger import get_logger
from .csv_frame import parse_number

logger = get_logger(__name__)

# 予測値は大きさに関係なく常に10倍で記録されている
FORECAST_SCALE_FACTOR = 10
FIRST_FORECAST_COLUMN = 2

_COMPACT_TIMESTAMP = re.compile(r"^\d{10}$")


def parse_compact_timestamp(text: str) -> datetime:
    """YYYYMMDDHH 形式を厳密に解釈する。

    予測値CSVの時刻は 0〜23 時で表されるため、実況値の 24:00 のような
    翌日への繰り上げは行わず、時が 24 の列は不正な時刻として読み飛ばす。
    """
    candidate = text.strip()
    if not _COMPACT_TIMESTAMP.match(candidate):
        raise UnparseableTimestampError(f"予測時刻を解釈できません: {text!r}")
    try:
        return datetime.strptime(candidate, "%Y%m%d%H")
    except ValueError as exc:
        raise UnparseableTimestampError(f"予測時刻を解釈できません: {text!r}") from exc


def format_date_cell(dt: datetime) -> str:
    """実況値CSVと同じゼロ埋めなしの日付 (YYYY/M/D)"""
    return f"{dt.year}/{dt.month}/{dt.day}"


def format_time_cell(dt: datetime) -> str:
    """実況値CSVと同じゼロ埋めなしの時刻 (H:mm)"""
    return f"{dt.hour}:{dt.minute:02d}"


def format_value(value: float) -> str:
    return f"{value:g}"


def _read_rows(csv_text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(csv_text))
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def _column_times(header: List[str]) -> Dict[int, datetime]:
    times: Dict[int, datetime] = {}
    for index in range(FIRST_FORECAST_COLUMN, len(header)):
        try:
            times[index] = parse_compact_timestamp(header[index])
        except UnparseableTimestampError:
            logger.debug(f"予測時刻列をスキップしました: {header[index]!r}")
    return times


def transcode(forecast_csv_text: str) -> str:
    """予測値CSVをワイド形式CSV文字列に変換する。

    ヘッダーの地点IDは昇順、データ行は時刻の昇順。値を持たないセルは空文字。
    使えるデータがなければ空文字列を返す。
    """
    if not forecast_csv_text or not forecast_csv_text.strip():
        return ""

    rows = _read_rows(forecast_csv_text)
    if len(rows) < 2:
        return ""

    column_times = _column_times(rows[0])
    if not column_times:
        logger.warning("予測値CSVに有効な予測時刻がありません")
        return ""

    records = []
    for row in rows[1:]:
        station_id = row[0] if row else ""
        if not station_id:
            continue
        for index, forecast_time in column_times.items():
            if index >= len(row):
                continue
            value = parse_number(row[index])
            if value is None:
                continue
            records.append({
                "station_id": station_id,
                "time": forecast_time,
                "wbgt": value / FORECAST_SCALE_FACTOR,
            })

    if not records:
        return ""

    df = pd.DataFrame(records)
    wide = df.pivot_table(index="time", columns="station_id", values="wbgt", aggfunc="first")
    wide = wide.sort_index()
    station_ids = sorted(str(column) for column in wide.columns)
    wide = wide[station_ids]

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["Date", "Time", *station_ids])
    for timestamp, values in wide.iterrows():
        dt = timestamp.to_pydatetime()
        writer.writerow([
            format_date_cell(dt),
            format_time_cell(dt),
            *(_cell(values[station_id]) for station_id in station_ids),
        ])

    logger.info(f"予測値CSVを変換しました: {len(station_ids)}地点, {len(wide)}時刻")
    return output.getvalue().rstrip("\n")


def _cell(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return ""
    return format_value(float(value))
