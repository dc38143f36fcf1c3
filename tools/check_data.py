"""
tools/check_data.py
===========================

data/ 配下のカタログ JSON を検証するスクリプト。
CI やデータ更新時に手元で実行する想定。

主な役割:
- 必須データ（animals / categories）が読み込めるか確認する
- 読み込めなかった任意データ（劣化した機能）を一覧表示する
- 参照切れの id（related_animals, examples, runners_up など）を一覧表示する
- 現在のデータで出題可能なクイズの問題ファミリーを表示する

終了コード:
- 0: 問題なし（--strict 指定時は劣化・参照切れも無いこと）
- 1: 必須データが読めない / --strict で警告あり
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wildpedia.catalog import CatalogStore
from wildpedia.config import AppConfig, setup_logging
from wildpedia.errors import FatalInitError
from wildpedia.quiz import default_families, eligible_families
from wildpedia.sources import FileDataSource

logger = logging.getLogger(__name__)


# -------------------------------------------------------------
#  検証本体
# -------------------------------------------------------------
def check_catalog(store: CatalogStore) -> List[str]:
    """ロード済みストアを調べて、警告メッセージの一覧を返す（表示もする）。"""
    warnings: List[str] = []

    print(f"動物: {len(store.all_animals())} 種")
    print(f"カテゴリ: {len(store.categories())} 件")
    print(f"生息地: {len(store.habitats())} 件")
    print(f"記録: {len(store.records())} 件")
    print(f"保全ステータス: {len(store.conservation_statuses())} 件")

    for name in store.degraded_sources:
        warnings.append(f"任意データを読み込めませんでした: {name}")

    for owner, missing in store.stale_references().items():
        warnings.append(f"参照切れ {owner}: {', '.join(missing)}")

    keys = eligible_families(store)
    skipped = [f.key for f in default_families() if f.key not in keys]
    print(f"出題可能な問題ファミリー: {len(keys)} 件 ({', '.join(keys) or 'なし'})")
    if skipped:
        print(f"出題できない問題ファミリー: {', '.join(skipped)}")

    for w in warnings:
        print(f"[WARN] {w}")
    return warnings


def run(data_dir: Path, strict: bool = False) -> int:
    logger.info(f"Checking catalog data in {data_dir}")
    try:
        store = asyncio.run(CatalogStore.open(FileDataSource(data_dir)))
    except FatalInitError as e:
        print(f"[ERROR] {e}")
        return 1

    warnings = check_catalog(store)
    if strict and warnings:
        return 1
    return 0


# -------------------------------------------------------------
#  CLI エントリーポイント
# -------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    cfg = AppConfig.load()

    parser = argparse.ArgumentParser(
        description="Wildpedia のカタログデータ検証スクリプト",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=cfg.data_dir,
        help=f"JSON を格納したディレクトリ（デフォルト: {cfg.data_dir}）",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="劣化したデータや参照切れがあれば終了コード 1 を返す",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=cfg.log_level,
        help="ログレベル（デフォルト: config.toml / WILDPEDIA_LOG_LEVEL）",
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    return run(args.data_dir, strict=args.strict)


if __name__ == "__main__":
    sys.exit(main())
