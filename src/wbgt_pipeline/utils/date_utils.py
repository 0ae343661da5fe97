"""Date helpers (JST 基準)."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

# 対象は日本国内のみのため固定オフセットで扱う
JST = timezone(timedelta(hours=9), name="JST")


def now_jst() -> datetime:
    return datetime.now(JST)


def month_floor(dt: datetime) -> datetime:
    """その月の月初(00:00)"""
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def shift_month(dt: datetime, n: int) -> datetime:
    """月初を基準に n ヶ月シフトした月初"""
    y = dt.year + (dt.month - 1 + n) // 12
    m = (dt.month - 1 + n) % 12 + 1
    return month_floor(dt).replace(year=y, month=m)


def year_month_key(dt: datetime) -> str:
    return dt.strftime("%Y%m")


def days_back_window(now: datetime, days_back: int) -> tuple[date, date]:
    """now から days_back 日前の日付〜now の日付（両端含む）"""
    today = now.date()
    return today - timedelta(days=days_back), today
