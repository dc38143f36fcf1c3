"""
errors.py
======================

カタログ / クイズで使う例外クラス。

分類:
- FatalInitError        : 必須データ（animals / categories）が読めない。セッション全体が使えない
- DataSourceError       : データソース単体の取得失敗（呼び出し側で致命 / 劣化を判断）
- DegradedFeatureWarning: 任意データが読めず、その機能だけ空になったことを示す警告カテゴリ
- CatalogNotLoadedError : load() 前のストアでクイズを作ろうとした
- QuizStateError        : 状態機械で受け付けられないイベント

NotFound と StaleReference は例外にしない（None / 空リスト / 黙って除外）。
"""

from __future__ import annotations

from typing import Optional


class WildpediaError(Exception):
    """パッケージ共通の基底例外。"""


class DataSourceError(WildpediaError):
    """1つのデータソースの取得・パースに失敗した。"""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class FatalInitError(WildpediaError):
    """必須データソースの読み込みに失敗した。自動リトライはしない。"""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        message = f"必須データを読み込めませんでした: {source}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.source = source


class DegradedFeatureWarning(UserWarning):
    """任意データソースが読めず、対応する機能が空になった。"""


class CatalogNotLoadedError(WildpediaError):
    """CatalogStore.load() が完了していない。"""


class QuizStateError(WildpediaError):
    """現在のフェーズでは受け付けないイベント。"""
