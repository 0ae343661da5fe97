"""実況値CSVと変換済み予測値CSVの結合"""

from __future__ import annotations

import csv
import io
from typing import Dict, List

from ..logger.app_logger import get_logger

logger = get_logger(__name__)


def _read(csv_text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(csv_text.strip()))
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def merge_actuals_and_forecast(actuals_csv: str, forecast_wide_csv: str) -> str:
    """実況値CSVの末尾に予測値の行を追加した1つのワイド形式CSVを返す。

    ヘッダーは実況値のものを使い、予測値の列は地点IDで実況値の列順に並べ直す。
    実況値のヘッダーにない地点の予測値は捨てる。
    """
    actual_lines = actuals_csv.strip().splitlines()
    forecast_rows = _read(forecast_wide_csv) if forecast_wide_csv else []
    if not actual_lines or len(forecast_rows) < 2:
        return actuals_csv

    actual_ids = [cell.strip() for cell in next(csv.reader([actual_lines[0]]))[2:]]
    forecast_index: Dict[str, int] = {
        station_id: index
        for index, station_id in enumerate(forecast_rows[0])
        if index >= 2 and station_id
    }
    dropped = set(forecast_index) - set(actual_ids)
    if dropped:
        logger.info(f"実況値にない地点の予測値を除外しました: {len(dropped)}地点")

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    for row in forecast_rows[1:]:
        cells = []
        for station_id in actual_ids:
            index = forecast_index.get(station_id)
            cells.append(row[index] if index is not None and index < len(row) else "")
        writer.writerow([row[0], row[1] if len(row) > 1 else "", *cells])

    forecast_lines = output.getvalue().rstrip("\n").splitlines()
    logger.info(f"予測データ {len(forecast_lines)} 行を結合しました")
    return "\n".join([*actual_lines, *forecast_lines])
