"""
catalog.py
===========================

動物カタログ（animals.json + 参照テーブル群）を一度だけ読み込み、
検索・絞り込み・ランキングのための読み取り専用クエリを提供するモジュール。

目的:
- 必須データ（animals / categories）が読めなければ FatalInitError で初期化失敗
- 任意データ（habitats, senses, records, conservation, human_relations, ecosystem_roles）は
  読めなくても警告ログを出して空として扱う
- load() は何度呼んでもよい（I/O は最初の 1 回だけ）
- ロード後のコレクションは不変。クエリは副作用なしの射影のみ
- 参照切れの id（related_animals, examples, runners_up など）は黙って除外する

モジュールグローバルのキャッシュは持たず、CatalogStore インスタンスを
アプリ起動時に 1 つ作って各画面・クイズに渡す。
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import DataSourceError, DegradedFeatureWarning, FatalInitError
from .models import Animal
from .reference import (
    Category,
    ConservationData,
    ConservationStatus,
    ConservationThreat,
    EcosystemRole,
    Habitat,
    HumanRelationType,
    RecordEntry,
    SenseType,
    SuccessStory,
    parse_table,
)
from .sources import REQUIRED_SOURCES, SOURCE_FILES, DataSource

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10

# 任意ソースのパーサ
_OPTIONAL_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "habitats": lambda raw: parse_table(raw, Habitat, "habitats"),
    "senses": lambda raw: parse_table(raw, SenseType, "senses"),
    "records": lambda raw: parse_table(raw, RecordEntry, "records"),
    "conservation": ConservationData.from_dict,
    "human_relations": lambda raw: parse_table(raw, HumanRelationType, "human-relations"),
    "ecosystem_roles": lambda raw: parse_table(raw, EcosystemRole, "ecosystem-roles"),
}

_PARSE_ERRORS = (ValueError, TypeError, AttributeError, KeyError)


def _index(items: Iterable[Any]) -> Dict[str, Any]:
    """id → エントリ。重複 id は先勝ち。"""
    out: Dict[str, Any] = {}
    for item in items:
        out.setdefault(item.id, item)
    return out


class CatalogStore:
    """
    カタログ全体を保持するコンテキストオブジェクト。

    使い方:
        store = await CatalogStore.open(FileDataSource(DATA_DIR))
        store.top_by_speed(5)

    load() 完了前のクエリは空のコレクションに対して評価される
    （呼び出し順の保証は呼び出し側の責任）。
    """

    def __init__(self, source: DataSource):
        self._source = source
        self._loaded = False
        self._pending: Optional["asyncio.Future[None]"] = None
        self._degraded: Dict[str, DegradedFeatureWarning] = {}

        self._animals: Tuple[Animal, ...] = ()
        self._by_id: Dict[str, Animal] = {}
        self._categories: Tuple[Category, ...] = ()
        self._habitats: Tuple[Habitat, ...] = ()
        self._senses: Tuple[SenseType, ...] = ()
        self._records: Tuple[RecordEntry, ...] = ()
        self._conservation = ConservationData()
        self._human_relations: Tuple[HumanRelationType, ...] = ()
        self._ecosystem_roles: Tuple[EcosystemRole, ...] = ()

    @classmethod
    async def open(cls, source: DataSource) -> "CatalogStore":
        store = cls(source)
        await store.load()
        return store

    # ------------------------------------------------------------------
    # ロード
    # ------------------------------------------------------------------
    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def degraded_sources(self) -> Tuple[str, ...]:
        """読み込みに失敗した任意ソース名。"""
        return tuple(self._degraded)

    @property
    def degraded_warnings(self) -> Tuple[DegradedFeatureWarning, ...]:
        return tuple(self._degraded.values())

    async def load(self) -> None:
        """
        全データソースを並行に取得して格納する。

        - 2 回目以降の呼び出しは何もしない
        - 必須ソースの失敗は FatalInitError（原因を __cause__ に保持）
        - 任意ソースの失敗は WARNING ログ + degraded_sources に記録
        - 同時に呼ばれた場合は最初の取得の完了を待つ
        """
        if self._loaded:
            return
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load_all())
        pending = self._pending
        try:
            await pending
        finally:
            if self._pending is pending and pending.done():
                self._pending = None

    async def _load_all(self) -> None:
        names = list(SOURCE_FILES)
        results = await asyncio.gather(
            *(self._source.fetch(name) for name in names),
            return_exceptions=True,
        )
        fetched = dict(zip(names, results))

        for name in REQUIRED_SOURCES:
            result = fetched[name]
            if isinstance(result, BaseException):
                logger.error(f"Required data source '{name}' failed: {result}")
                raise FatalInitError(name, result) from result

        try:
            animals = self._parse_animals(fetched["animals"])
        except _PARSE_ERRORS as e:
            raise FatalInitError("animals", e) from e
        try:
            categories = tuple(parse_table(fetched["categories"], Category, "categories"))
        except _PARSE_ERRORS as e:
            raise FatalInitError("categories", e) from e

        degraded: Dict[str, DegradedFeatureWarning] = {}
        optional: Dict[str, Any] = {}
        for name, parser in _OPTIONAL_PARSERS.items():
            result = fetched[name]
            if isinstance(result, DataSourceError):
                degraded[name] = DegradedFeatureWarning(str(result))
                continue
            if isinstance(result, Exception):
                degraded[name] = DegradedFeatureWarning(
                    f"{name}: {type(result).__name__}: {result}"
                )
                continue
            if isinstance(result, BaseException):
                # キャンセルなどは握りつぶさない
                raise result
            try:
                optional[name] = parser(result)
            except _PARSE_ERRORS as e:
                degraded[name] = DegradedFeatureWarning(f"{name}: {e}")

        for name, warning in degraded.items():
            logger.warning(f"Optional data not loaded ({name}); feature disabled: {warning}")

        # ここまで来たら一括で反映する
        self._animals = animals
        self._by_id = {a.id: a for a in animals}
        self._categories = categories
        self._habitats = tuple(optional.get("habitats", ()))
        self._senses = tuple(optional.get("senses", ()))
        self._records = tuple(optional.get("records", ()))
        self._conservation = optional.get("conservation", ConservationData())
        self._human_relations = tuple(optional.get("human_relations", ()))
        self._ecosystem_roles = tuple(optional.get("ecosystem_roles", ()))
        self._degraded = degraded
        self._loaded = True

        logger.info(
            f"Catalog loaded: {len(self._animals)} animals, "
            f"{len(self._categories)} categories, {len(degraded)} degraded sources"
        )

    @staticmethod
    def _parse_animals(raw: Any) -> Tuple[Animal, ...]:
        if not isinstance(raw, list):
            raise ValueError("animals.json はリストである必要があります")
        animals: List[Animal] = []
        seen = set()
        for item in raw:
            animal = Animal.from_dict(item)
            if animal.id in seen:
                logger.warning(f"Duplicate animal id dropped: {animal.id}")
                continue
            seen.add(animal.id)
            animals.append(animal)
        return tuple(animals)

    # ------------------------------------------------------------------
    # 動物: 基本
    # ------------------------------------------------------------------
    def all_animals(self) -> List[Animal]:
        return list(self._animals)

    def get_animal(self, animal_id: str) -> Optional[Animal]:
        """id で 1 体取得。見つからなければ None。"""
        return self._by_id.get(animal_id)

    def resolve_ids(self, ids: Iterable[str]) -> List[Animal]:
        """id の並びを Animal に解決する。参照切れは除外。"""
        return [self._by_id[i] for i in ids if i in self._by_id]

    def related_animals(self, animal_id: str) -> List[Animal]:
        animal = self.get_animal(animal_id)
        if animal is None:
            return []
        return self.resolve_ids(animal.related_animals)

    def _filter(self, predicate: Callable[[Animal], bool]) -> List[Animal]:
        return [a for a in self._animals if predicate(a)]

    # ------------------------------------------------------------------
    # 動物: 完全一致フィルタ
    # ------------------------------------------------------------------
    def animals_by_class(self, animal_class: str) -> List[Animal]:
        return self._filter(lambda a: a.animal_class == animal_class)

    def animals_by_diet(self, diet: str) -> List[Animal]:
        return self._filter(lambda a: a.diet == diet)

    def animals_by_conservation_status(self, status: str) -> List[Animal]:
        return self._filter(lambda a: a.conservation_status == status)

    def animals_by_human_relation_type(self, relation_type: str) -> List[Animal]:
        return self._filter(lambda a: a.relation_type == relation_type)

    def animals_by_ecosystem_role(self, role: str) -> List[Animal]:
        return self._filter(lambda a: a.ecosystem_role == role)

    # ------------------------------------------------------------------
    # 動物: 包含フィルタ
    # ------------------------------------------------------------------
    def animals_by_habitat(self, habitat: str) -> List[Animal]:
        return self._filter(lambda a: habitat in a.habitat)

    def animals_by_continent(self, continent: str) -> List[Animal]:
        return self._filter(lambda a: continent in a.continent)

    def animals_by_tag(self, tag: str) -> List[Animal]:
        return self._filter(lambda a: tag in a.tags)

    def animals_by_special_sense(self, ability: str) -> List[Animal]:
        return self._filter(lambda a: a.has_special_sense(ability))

    # ------------------------------------------------------------------
    # 動物: 範囲フィルタ
    # ------------------------------------------------------------------
    def animals_by_danger_level(self, min_level: int, max_level: int) -> List[Animal]:
        """危険度が min〜max（両端含む）の動物。危険度不明は含めない。"""
        return self._filter(
            lambda a: a.danger_level is not None and min_level <= a.danger_level <= max_level
        )

    # ------------------------------------------------------------------
    # 動物: ランキング
    # ------------------------------------------------------------------
    def top_by_stat(self, key: str, limit: int = DEFAULT_TOP_N) -> List[Animal]:
        """
        ステータス値が正の動物だけを降順に並べ、上位 limit 件を返す。
        未計測（None）の動物は最下位ではなく対象外。同値は収録順を維持する。
        """
        ranked = sorted(
            (a for a in self._animals if a.stats.get(key) > 0),
            key=lambda a: a.stats.get(key),
            reverse=True,
        )
        return ranked[: max(limit, 0)]

    def top_by_speed(self, limit: int = DEFAULT_TOP_N) -> List[Animal]:
        return self.top_by_stat("speed_kmh", limit)

    def top_by_weight(self, limit: int = DEFAULT_TOP_N) -> List[Animal]:
        return self.top_by_stat("weight_kg", limit)

    def top_by_lifespan(self, limit: int = DEFAULT_TOP_N) -> List[Animal]:
        return self.top_by_stat("lifespan_years", limit)

    # ------------------------------------------------------------------
    # 動物: 一覧・検索・比較
    # ------------------------------------------------------------------
    def sorted_by_name(self) -> List[Animal]:
        return sorted(self._animals, key=lambda a: a.name.lower())

    def search(self, keyword: str) -> List[Animal]:
        """
        名前・学名・id を対象とする簡易検索（大文字小文字は無視）。
        """
        keyword = keyword.strip().lower()
        if not keyword:
            return []
        return self._filter(
            lambda a: any(
                keyword in part.lower() for part in (a.name, a.scientific_name, a.id)
            )
        )

    def map_animals(self, continent: str, limit: int = 5) -> List[Animal]:
        """大陸ごとの代表動物。毎回同じ結果になるよう id 順。"""
        return sorted(self.animals_by_continent(continent), key=lambda a: a.id)[:limit]

    def compare(self, ids: Iterable[str], limit: int = 3) -> List[Animal]:
        """比較対象の id を解決する。空文字・重複・参照切れは除外。"""
        unique: List[str] = []
        for i in ids:
            if i and i not in unique:
                unique.append(i)
        return self.resolve_ids(unique)[:limit]

    def random_fun_facts(
        self, rng: Optional[random.Random] = None, limit: int = 6
    ) -> List[Tuple[Animal, str]]:
        """豆知識を持つ動物をランダムに選び、各 1 件ずつ返す。"""
        rng = rng or random.Random()
        candidates = [a for a in self._animals if a.fun_facts]
        rng.shuffle(candidates)
        return [(a, rng.choice(a.fun_facts)) for a in candidates[:limit]]

    # ------------------------------------------------------------------
    # 参照テーブル: カテゴリ・生息地
    # ------------------------------------------------------------------
    def categories(self) -> List[Category]:
        return list(self._categories)

    def get_category(self, category_id: str) -> Optional[Category]:
        return _index(self._categories).get(category_id)

    def habitats(self) -> List[Habitat]:
        return list(self._habitats)

    def get_habitat(self, habitat_id: str) -> Optional[Habitat]:
        return _index(self._habitats).get(habitat_id)

    # ------------------------------------------------------------------
    # 参照テーブル: 感覚
    # ------------------------------------------------------------------
    def senses(self) -> List[SenseType]:
        return list(self._senses)

    def get_sense(self, sense_id: str) -> Optional[SenseType]:
        return _index(self._senses).get(sense_id)

    def sense_animals(self, sense_id: str) -> List[Animal]:
        sense = self.get_sense(sense_id)
        return self.resolve_ids(sense.animals) if sense else []

    # ------------------------------------------------------------------
    # 参照テーブル: 記録
    # ------------------------------------------------------------------
    def records(self) -> List[RecordEntry]:
        return list(self._records)

    def get_record(self, record_id: str) -> Optional[RecordEntry]:
        return _index(self._records).get(record_id)

    def records_by_category(self, category: str) -> List[RecordEntry]:
        return [r for r in self._records if r.category == category]

    def record_categories(self) -> List[str]:
        """記録カテゴリを初出順に。"""
        out: List[str] = []
        for r in self._records:
            if r.category and r.category not in out:
                out.append(r.category)
        return out

    def record_holder(self, record: RecordEntry) -> Optional[Animal]:
        return self.get_animal(record.animal_id) if record.animal_id else None

    def record_runners_up(self, record: RecordEntry) -> List[Animal]:
        return self.resolve_ids(record.runners_up)

    # ------------------------------------------------------------------
    # 参照テーブル: 保全
    # ------------------------------------------------------------------
    def conservation_statuses(self) -> List[ConservationStatus]:
        return list(self._conservation.statuses)

    def get_conservation_status(self, status_id: str) -> Optional[ConservationStatus]:
        return _index(self._conservation.statuses).get(status_id)

    def conservation_threats(self) -> List[ConservationThreat]:
        return list(self._conservation.threats)

    def threat_animals(self, threat: ConservationThreat) -> List[Animal]:
        return self.resolve_ids(threat.affected_animals)

    def success_stories(self) -> List[SuccessStory]:
        return list(self._conservation.success_stories)

    def conservation_view(self, status_id: str) -> List[Animal]:
        """
        ディープリンク（?status=EN など）用の絞り込み。
        該当なし・未知の id でも例外にせず空リストを返す。
        """
        return self.animals_by_conservation_status(status_id)

    def conservation_status_counts(self) -> List[Tuple[ConservationStatus, int]]:
        """ステータス表の順に (ステータス, 頭数)。0 件のステータスは除く。"""
        counts: Dict[Optional[str], int] = {}
        for a in self._animals:
            counts[a.conservation_status] = counts.get(a.conservation_status, 0) + 1
        return [
            (s, counts[s.id]) for s in self._conservation.statuses if counts.get(s.id, 0) > 0
        ]

    # ------------------------------------------------------------------
    # 参照テーブル: 人との関係・生態系での役割
    # ------------------------------------------------------------------
    def human_relations(self) -> List[HumanRelationType]:
        return list(self._human_relations)

    def get_human_relation(self, relation_id: str) -> Optional[HumanRelationType]:
        return _index(self._human_relations).get(relation_id)

    def relation_examples(self, relation_id: str) -> List[Animal]:
        rel = self.get_human_relation(relation_id)
        return self.resolve_ids(rel.examples) if rel else []

    def ecosystem_roles(self) -> List[EcosystemRole]:
        return list(self._ecosystem_roles)

    def get_ecosystem_role(self, role_id: str) -> Optional[EcosystemRole]:
        return _index(self._ecosystem_roles).get(role_id)

    def role_examples(self, role_id: str) -> List[Animal]:
        role = self.get_ecosystem_role(role_id)
        return self.resolve_ids(role.examples) if role else []

    # ------------------------------------------------------------------
    # 診断
    # ------------------------------------------------------------------
    def stale_references(self) -> Dict[str, Tuple[str, ...]]:
        """
        参照切れの一覧（tools/check_data.py 用）。
        キーは "テーブル/エントリ id"、値は解決できなかった動物 id。
        """
        owners: List[Tuple[str, Iterable[str]]] = []
        owners += [(f"animals/{a.id}", a.related_animals) for a in self._animals]
        owners += [(f"senses/{s.id}", s.animals) for s in self._senses]
        owners += [
            (f"records/{r.id}", ((r.animal_id,) if r.animal_id else ()) + r.runners_up)
            for r in self._records
        ]
        owners += [
            (f"conservation.threats/{t.id}", t.affected_animals)
            for t in self._conservation.threats
        ]
        owners += [
            (f"conservation.success_stories/{s.animal_id}", (s.animal_id,))
            for s in self._conservation.success_stories
        ]
        owners += [(f"human_relations/{r.id}", r.examples) for r in self._human_relations]
        owners += [(f"ecosystem_roles/{r.id}", r.examples) for r in self._ecosystem_roles]

        stale: Dict[str, Tuple[str, ...]] = {}
        for owner, ids in owners:
            missing = tuple(i for i in ids if i not in self._by_id)
            if missing:
                stale[owner] = missing
        return stale
