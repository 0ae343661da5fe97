# wbgt_pipeline/parser/csv_frame.py
import csv
import io
import math
from typing import List, Optional

from ..domain.errors import EmptyOrMalformedError
from ..domain.models import NormalizedTime, WideCsvFrame
from ..logger.app_logger import get_logger
from .time_normalizer import normalize_datetime

logger = get_logger(__name__)

# 実況値CSVは 28.5 を 285 のように10倍で記録していることがある
SCALED_VALUE_THRESHOLD = 100
SCALE_FACTOR = 10

FIRST_VALUE_COLUMN = 2


def parse_number(cell: Optional[str]) -> Optional[float]:
    """トリム後に有限の数値として解釈できればその値、できなければ None"""
    if cell is None:
        return None
    text = cell.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def read_value(cell: Optional[str]) -> Optional[float]:
    """実況値セルを読み取り、100 を超える値は10倍表記とみなして 1/10 にする。"""
    value = parse_number(cell)
    if value is None:
        return None
    if value > SCALED_VALUE_THRESHOLD:
        return value / SCALE_FACTOR
    return value


def _read_records(csv_text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(csv_text))
    records = []
    for row in reader:
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        records.append(cells)
    return records


def parse(csv_text: str) -> WideCsvFrame:
    """ワイド形式CSVをパースし、行ごとの正規化時刻と有効値フラグを事前計算する。

    マスター時刻は有効値を1つでも持つ行の正規化時刻を出現順に重複なく並べたもの。
    正規化できなかった行は絶対時刻に変換できないため、マスター時刻には含めない。

    Args:
        csv_text: ヘッダー行 "Date,Time,<地点ID>..." を持つCSV文字列

    Returns:
        WideCsvFrame: パース結果

    Raises:
        EmptyOrMalformedError: ヘッダー行とデータ行が揃っていない場合
    """
    records = _read_records(csv_text or "")
    logger.info(f"CSVレコード数: {len(records)}")

    if len(records) < 2:
        raise EmptyOrMalformedError("CSVデータが空または不正です")

    header = tuple(records[0])
    rows = tuple(tuple(record) for record in records[1:])

    row_times: List[NormalizedTime] = []
    row_has_any: List[bool] = []
    master_times: List[str] = []
    seen = set()
    fallback_rows = 0

    for row in rows:
        date_text = row[0] if len(row) > 0 else ""
        time_text = row[1] if len(row) > 1 else ""
        normalized = normalize_datetime(date_text, time_text)
        row_times.append(normalized)

        has_any = any(parse_number(cell) is not None for cell in row[FIRST_VALUE_COLUMN:])
        row_has_any.append(has_any)

        if not normalized.normalized:
            fallback_rows += 1
            continue
        if has_any and normalized.value not in seen:
            seen.add(normalized.value)
            master_times.append(normalized.value)

    if fallback_rows:
        logger.warning(f"日時を正規化できない行が {fallback_rows} 行ありました")

    logger.info(
        f"ヘッダーから地点ID数: {max(len(header) - FIRST_VALUE_COLUMN, 0)}個, "
        f"有効時刻数: {len(master_times)}"
    )

    return WideCsvFrame(
        header=header,
        rows=rows,
        row_times=tuple(row_times),
        row_has_any=tuple(row_has_any),
        master_times=tuple(master_times),
    )
