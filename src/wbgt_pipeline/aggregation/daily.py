"""日別集計（日中平均・日最大）"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd

from ..domain.models import TimeSeriesSample

# 屋外活動の目安として 9:00〜17:00（両端含む）を日中とする
DAYTIME_START_MINUTES = 9 * 60
DAYTIME_END_MINUTES = 17 * 60


def _minutes_of_day(time_string: str) -> Optional[int]:
    """時刻文字列 (YYYY/MM/DD HH:mm) の時刻部分を0時からの分数に変換する。"""
    parts = time_string.split(" ")
    if len(parts) < 2:
        return None
    clock = parts[1].split(":")
    try:
        hour = int(clock[0])
        minute = int(clock[1]) if len(clock) > 1 else 0
    except ValueError:
        return None
    return hour * 60 + minute


def is_daytime(time_string: str) -> bool:
    minutes = _minutes_of_day(time_string)
    if minutes is None:
        return False
    return DAYTIME_START_MINUTES <= minutes <= DAYTIME_END_MINUTES


def daily_daytime_average(series: Sequence[TimeSeriesSample], date: str) -> float:
    """指定日の日中平均WBGTを小数1桁で返す。

    日付は時刻文字列の先頭トークンとの完全一致で判定する。0以下の値は欠測として扱い、
    対象データがなければ 0 を返す。
    """
    day_samples = [sample for sample in series if sample.date == date]
    if not day_samples:
        return 0

    valid = [
        sample.wbgt
        for sample in day_samples
        if is_daytime(sample.time) and sample.wbgt > 0
    ]
    if not valid:
        return 0

    return round(sum(valid) / len(valid), 1)


def daily_max_by_date(series: Sequence[TimeSeriesSample]) -> List[Dict[str, object]]:
    """日付ごとの最大値を、日付が最初に現れた順で返す。"""
    if not series:
        return []
    df = pd.DataFrame(
        {"date": [sample.date for sample in series], "wbgt": [sample.wbgt for sample in series]}
    )
    maxima = df.groupby("date", sort=False)["wbgt"].max()
    return [{"date": date, "wbgt": float(value)} for date, value in maxima.items()]
