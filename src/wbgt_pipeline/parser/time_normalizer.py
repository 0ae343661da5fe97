# wbgt_pipeline/parser/time_normalizer.py
import re
from datetime import date, datetime, time, timedelta

from ..domain.errors import UnparseableTimestampError
from ..domain.models import NormalizedTime

CANONICAL_FORMAT = "%Y/%m/%d %H:%M"

# strptime の %m/%d/%H はゼロ埋めなし（2025/9/1 9:00）も受け付ける
_DATETIME_FORMATS = (
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y-%m-%d",
)
_DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d")

# 1:00〜24:00 で1日を表すフィードの 24:00 は翌日 0:00 として扱う。
# 24:30 や 25:00 は実在しない時刻なので正規化しない
_END_OF_DAY = re.compile(r"^(?P<date>\S+)\s+24:00(?::00)?$")


def parse_wall_clock(text: str) -> datetime:
    """日時文字列をタイムゾーンなしの datetime に変換する。

    Raises:
        UnparseableTimestampError: どの形式にも一致しない場合
    """
    candidate = text.strip()
    end_of_day = _END_OF_DAY.match(candidate)
    if end_of_day:
        return datetime.combine(parse_date(end_of_day.group("date")), time()) + timedelta(days=1)
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    raise UnparseableTimestampError(f"日時を解釈できません: {text!r}")


def parse_date(text: str) -> date:
    """日付セル（YYYY/M/D または YYYY-MM-DD）を date に変換する。"""
    candidate = text.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    raise UnparseableTimestampError(f"日付を解釈できません: {text!r}")


def normalize_datetime(date_text: str, time_text: str) -> NormalizedTime:
    """日付と時刻のセルを正規化し、どちらの経路を通ったかを返す。"""
    raw = f"{date_text} {time_text}"
    try:
        parsed = parse_wall_clock(raw)
    except UnparseableTimestampError:
        return NormalizedTime(value=raw, normalized=False)
    return NormalizedTime(value=parsed.strftime(CANONICAL_FORMAT), normalized=True)


def normalize(date_text: str, time_text: str) -> str:
    """日時を YYYY/MM/DD HH:mm 形式に正規化した文字列を返す。

    解釈できない行で取り込み全体を止めないため例外は投げず、
    失敗時は "{date} {time}" をそのまま返す。

    >>> normalize("2025/9/1", "9:00")
    '2025/09/01 09:00'
    """
    return normalize_datetime(date_text, time_text).value
