"""
config.py
=========

アプリ全体で利用する設定値を一元管理する。
データの取得元、クイズの問題数、ログレベルなど
すべてこのクラスを通じて取得する。

本ファイルは app.py と tools/check_data.py の共通設定でもある。

優先順位:
    環境変数 > config.toml > デフォルト値
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml

# ------------------------------------------------------------
# 基本パス定義
# ------------------------------------------------------------

ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
CONFIG_PATH = ROOT_DIR / "config.toml"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# AppConfig
# ------------------------------------------------------------

@dataclass
class AppConfig:
    """
    アプリ設定クラス。

    - データ取得元（ローカルディレクトリ or ベース URL）
    - クイズ 1 セッションあたりの問題数
    - ログレベル
    """

    # ---------- データ ----------
    data_dir: Path = field(default_factory=lambda: DATA_DIR)
    data_base_url: str = ""
    http_timeout: float = 10.0

    # ---------- クイズ ----------
    quiz_length: int = 10

    # ---------- アプリ ----------
    app_name: str = "Wildpedia"
    language: str = "ja"
    log_level: str = "INFO"

    # ============================================================
    # 読み込み
    # ============================================================

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AppConfig":
        """
        config.toml（あれば）と環境変数から設定を組み立てる。
        TOML が壊れている場合は警告を出してデフォルト値で続行する。
        """
        path = Path(path) if path is not None else CONFIG_PATH
        raw: Dict[str, Any] = {}
        if path.exists():
            try:
                raw = toml.load(path)
            except (OSError, toml.TomlDecodeError) as e:
                logger.warning(f"Ignoring unreadable config file {path}: {e}")

        cfg = cls.from_dict(raw)
        cfg.apply_env(os.environ)
        return cfg

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AppConfig":
        """[data] / [quiz] / [app] / [logging] テーブルを読む。未知のキーは無視。"""
        cfg = cls()

        data = raw.get("data")
        if isinstance(data, dict):
            if data.get("dir"):
                cfg.data_dir = _resolve_dir(data["dir"])
            if isinstance(data.get("base_url"), str):
                cfg.data_base_url = data["base_url"]
            if isinstance(data.get("timeout"), (int, float)):
                cfg.http_timeout = float(data["timeout"])

        quiz = raw.get("quiz")
        if isinstance(quiz, dict):
            length = quiz.get("length")
            if isinstance(length, int) and length > 0:
                cfg.quiz_length = length

        app = raw.get("app")
        if isinstance(app, dict):
            cfg.app_name = app.get("name", cfg.app_name)
            cfg.language = app.get("language", cfg.language)

        log_cfg = raw.get("logging")
        if isinstance(log_cfg, dict) and log_cfg.get("level"):
            cfg.log_level = str(log_cfg["level"]).upper()

        return cfg

    def apply_env(self, environ: Dict[str, str]) -> None:
        """WILDPEDIA_* 環境変数で上書きする。"""
        url = environ.get("WILDPEDIA_DATA_URL")
        if url:
            self.data_base_url = url

        data_dir = environ.get("WILDPEDIA_DATA_DIR")
        if data_dir:
            self.data_dir = _resolve_dir(data_dir)

        level = environ.get("WILDPEDIA_LOG_LEVEL")
        if level:
            self.log_level = level.upper()


def _resolve_dir(value: str) -> Path:
    p = Path(value)
    return p if p.is_absolute() else ROOT_DIR / p


# ============================================================
# ログ設定
# ============================================================

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
