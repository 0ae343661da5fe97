"""バージョン情報管理モジュール"""

# バージョン情報
__version__ = "0.2.1"
__version_info__ = (0, 2, 1)

# アプリケーション情報
__app_name__ = "WBGT Map Pipeline"
__description__ = "環境省 暑さ指数(WBGT)の実況・予測CSVを地図表示用GeoJSONへ変換するツール"
__copyright__ = "2025"


def get_app_info():
    """アプリケーション情報を取得する"""
    return {
        "name": __app_name__,
        "version": __version__,
        "description": __description__,
        "copyright": __copyright__,
    }
