"""WBGTパイプラインの例外定義

致命的なもの（NoValidHeaderError, EmptyOrMalformedError）は最上位のサービスで
空の結果に変換される。それ以外は発生箇所で回復される。
"""


class WbgtPipelineError(Exception):
    """パイプライン共通の基底例外"""


class FetchFailureError(WbgtPipelineError):
    """1つのURLの取得失敗（通信エラーまたは非2xx）"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url} の取得に失敗しました: {reason}")
        self.url = url
        self.reason = reason


class NoValidHeaderError(WbgtPipelineError):
    """どの月次CSVからも有効なヘッダーが得られなかった"""


class EmptyOrMalformedError(WbgtPipelineError):
    """CSVがヘッダー行とデータ行を揃えていない"""


class StationNotFoundError(WbgtPipelineError):
    """地点マスタに存在しない地点ID"""

    def __init__(self, station_id: str):
        super().__init__(f"地点ID {station_id} が地点マスタに見つかりません")
        self.station_id = station_id


class UnparseableTimestampError(WbgtPipelineError, ValueError):
    """日時文字列を解釈できない"""
