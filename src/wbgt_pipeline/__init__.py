"""暑さ指数(WBGT)の実況・予測CSVを地点別時系列とGeoJSONへ変換するパイプライン。"""

from .version import __version__

__all__ = ["__version__"]
