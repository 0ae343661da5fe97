"""暑さ指数(WBGT)の危険度レベルと凡例の定義"""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class WbgtLevel:
    threshold: float
    level: str
    color: str
    description: str


# 閾値の降順に並べる
WBGT_LEVELS: List[WbgtLevel] = [
    WbgtLevel(35, "disaster", "#800080", "災害級の危険"),
    WbgtLevel(33, "extreme", "#FF0000", "極めて危険"),
    WbgtLevel(31, "danger", "#FF4500", "危険"),
    WbgtLevel(28, "caution", "#FFA500", "厳重警戒"),
    WbgtLevel(25, "warning", "#FFFF00", "警戒"),
    WbgtLevel(21, "attention", "#00FFFF", "注意"),
    WbgtLevel(0, "safe", "#0000FF", "ほぼ安全"),
]

# 値が 0（欠測を 0 で埋めた箇所）の色
NO_DATA_COLOR = "#808080"
NO_DATA_LEVEL = WbgtLevel(0, "safe", NO_DATA_COLOR, "データなし")


def get_wbgt_level_info(wbgt: float) -> WbgtLevel:
    """WBGT値に対応するレベル情報を返す"""
    if wbgt == 0:
        return NO_DATA_LEVEL

    for level in WBGT_LEVELS:
        if wbgt >= level.threshold:
            return level

    # 負値は最も安全なレベル扱い
    return WBGT_LEVELS[-1]


def legend_items() -> List[Dict[str, str]]:
    """凡例用のアイテムを生成する"""
    return [{"color": level.color, "level": level.level} for level in WBGT_LEVELS]
