import argparse
import json
import sys
from pathlib import Path
from typing import Iterable, Optional

from wbgt_pipeline.app_container import build_wbgt_service
from wbgt_pipeline.logger.app_logger import get_logger, setup_logging
from wbgt_pipeline.utils.config_loader import load_config

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='暑さ指数(WBGT)データ変換ツール (CLI)')
    parser.add_argument('--days', type=int, default=None, help='何日前までの実況値を含めるか')
    parser.add_argument('--no-forecast', action='store_true', help='予測値を結合しない')
    parser.add_argument('--format', choices=['json', 'csv'], default='json',
                        help='出力形式 (json: GeoJSON と時刻配列, csv: 時別値の縦持ち表)')
    parser.add_argument('--output', type=Path, default=None, help='出力ファイル（省略時は標準出力）')
    parser.add_argument('--verbose', action='store_true', help='処理の経過をコンソールにも表示する')
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    """CLI entry point for `python -m wbgt_pipeline`."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.days is not None and args.days < 0:
        parser.error('--days は0以上で指定してください')
    if args.verbose:
        setup_logging(load_config(), console_level='INFO')

    service = build_wbgt_service()
    result = service.fetch_wbgt_data(
        days_back=args.days,
        include_forecast=False if args.no_forecast else None,
    )

    if args.format == 'csv':
        text = result.to_dataframe().to_csv(index=False)
    else:
        text = json.dumps(result.to_dict(), ensure_ascii=False)

    if args.output is None:
        sys.stdout.write(text)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding='utf-8')
        print(f'出力ファイル: {args.output}')

    if result.is_empty():
        logger.warning('WBGTデータが取得できませんでした')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
