"""
WBGTパイプラインのログ設定

config.yml の logging セクションを使い、初回の get_logger 呼び出し時に
ルートロガーを構成する。CLI からは setup_logging を直接呼んで
コンソールの出力レベルを上書きできる。
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..utils.path_utils import resolve_path

PACKAGED_CONFIG = Path(__file__).resolve().parents[1] / 'config.yml'

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'outputs/wbgt/wbgt_app.log'

# 取得処理の詳細は TelemetryService 側で記録するので urllib3 の接続ログは抑える
QUIET_LOGGERS = ('urllib3', 'requests')

_initialized = False


def _read_packaged_config() -> Dict[str, Any]:
    # utils.config_loader はロガーを使うため、ここでは直接読む
    if not PACKAGED_CONFIG.exists():
        return {}
    with PACKAGED_CONFIG.open('r', encoding='utf-8') as file:
        return yaml.safe_load(file) or {}


def _level(name: Any, default: int) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else default


def setup_logging(config: Optional[Dict[str, Any]] = None, *, console_level: Optional[str] = None) -> None:
    """
    ルートロガーにコンソール出力とローテーション付きファイル出力を設定する

    Args:
        config: 設定辞書（省略時はパッケージ同梱の config.yml）
        console_level: コンソールの出力レベル（省略時は logging.console_level、既定 WARNING）
    """
    global _initialized

    if config is None:
        config = _read_packaged_config()
    section = (config.get('logging') if isinstance(config, dict) else None) or {}

    file_level = _level(section.get('level', 'INFO'), logging.INFO)
    console = _level(console_level or section.get('console_level', 'WARNING'), logging.WARNING)
    log_file = resolve_path(section.get('file', DEFAULT_LOG_FILE))
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(section.get('format', DEFAULT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_level, console))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(section.get('max_size_mb', 10)) * 1024 * 1024,
        backupCount=int(section.get('backup_count', 5)),
        encoding='utf-8',
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(file_level)
    root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """名前付きロガーを取得（初回のみログ設定を初期化）"""
    global _initialized
    if not _initialized:
        try:
            setup_logging()
        except (OSError, yaml.YAMLError) as exc:
            logging.basicConfig(level=logging.INFO)
            _initialized = True
            print(f"警告: ログ設定の初期化に失敗しました: {exc}", file=sys.stderr)
    return logging.getLogger(name)
