"""
wildpedia パッケージ
======================

このパッケージは、動物図鑑 Wildpedia の内部ロジックを提供する。

主な役割:
- 設定管理（config）
- データソースからの一括読み込み（sources）
- 動物カタログの検索・絞り込み・ランキング（catalog）
- スコア計算・表示用ラベル（scoring）
- 四択クイズの生成と進行管理（quiz）
- UI コンポーネント（ui）

app.py は Streamlit UI のみを担当し、内部ロジックはすべて本パッケージから呼ぶ。
ui は streamlit を import するため、ここでは再エクスポートしない。
"""

from .config import AppConfig, setup_logging
from .errors import (
    CatalogNotLoadedError,
    DataSourceError,
    DegradedFeatureWarning,
    FatalInitError,
    QuizStateError,
    WildpediaError,
)
from .models import Animal, HumanRelation, Senses, Stats
from .sources import FileDataSource, HttpDataSource, StaticDataSource, source_from_config
from .catalog import CatalogStore
from .scoring import overall_sense_score, sense_score, stat_score
from .quiz import (
    Question,
    QuestionFamily,
    QuizPhase,
    QuizSession,
    QuizState,
    generate_questions,
)

__all__ = [
    "AppConfig",
    "setup_logging",
    "CatalogNotLoadedError",
    "DataSourceError",
    "DegradedFeatureWarning",
    "FatalInitError",
    "QuizStateError",
    "WildpediaError",
    "Animal",
    "HumanRelation",
    "Senses",
    "Stats",
    "FileDataSource",
    "HttpDataSource",
    "StaticDataSource",
    "source_from_config",
    "CatalogStore",
    "overall_sense_score",
    "sense_score",
    "stat_score",
    "Question",
    "QuestionFamily",
    "QuizPhase",
    "QuizSession",
    "QuizState",
    "generate_questions",
]
