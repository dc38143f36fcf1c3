"""
reference.py
======================

参照テーブル（カテゴリ・生息地・感覚・記録・保全状況・人との関係・生態系での役割）のモデル。

どのテーブルも id をキーとする小さなレコードの平たいリスト。
animals.json 側の id を examples / animals / runners_up などで参照するが、
参照切れ（存在しない id）はストア側で黙って除外する。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .models import _str_tuple


def _require_id(data: Dict[str, Any], table: str) -> str:
    ref_id = data.get("id") if isinstance(data, dict) else None
    if not isinstance(ref_id, str) or not ref_id:
        raise ValueError(f"{table}: id のないエントリです: {data!r}")
    return ref_id


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class Category:
    id: str
    name_key: str = ""
    desc_key: str = ""
    link_key: str = ""
    icon: str = ""
    color: str = ""
    page: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=_require_id(data, "categories"),
            name_key=_text(data, "name_key"),
            desc_key=_text(data, "desc_key"),
            link_key=_text(data, "link_key"),
            icon=_text(data, "icon"),
            color=_text(data, "color"),
            page=_text(data, "page"),
        )


@dataclass(frozen=True)
class Habitat:
    id: str
    name_key: str = ""
    icon: str = ""
    color: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habitat":
        return cls(
            id=_require_id(data, "habitats"),
            name_key=_text(data, "name_key"),
            icon=_text(data, "icon"),
            color=_text(data, "color"),
        )


@dataclass(frozen=True)
class SenseType:
    """特殊感覚（例: echolocation）と、それを持つ動物 id の一覧。"""

    id: str
    name_key: str = ""
    icon: str = ""
    color: str = ""
    how_it_works_key: str = ""
    human_equivalent: str = ""
    range: str = ""
    animals: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SenseType":
        return cls(
            id=_require_id(data, "senses"),
            name_key=_text(data, "name_key"),
            icon=_text(data, "icon"),
            color=_text(data, "color"),
            how_it_works_key=_text(data, "how_it_works_key"),
            human_equivalent=_text(data, "human_equivalent"),
            range=_text(data, "range"),
            animals=_str_tuple(data.get("animals")),
        )


@dataclass(frozen=True)
class RecordEntry:
    """「最速」「最重」などの記録。保持者 1 体と次点の一覧。"""

    id: str
    category: str = ""
    name_key: str = ""
    description_key: str = ""
    icon: str = ""
    value: str = ""
    animal_id: Optional[str] = None
    runners_up: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordEntry":
        animal_id = data.get("animal_id")
        value = data.get("value")
        return cls(
            id=_require_id(data, "records"),
            category=_text(data, "category"),
            name_key=_text(data, "name_key"),
            description_key=_text(data, "description_key"),
            icon=_text(data, "icon"),
            value="" if value is None else str(value),
            animal_id=animal_id if isinstance(animal_id, str) and animal_id else None,
            runners_up=_str_tuple(data.get("runners_up")),
        )


@dataclass(frozen=True)
class ConservationStatus:
    id: str
    name_key: str = ""
    color: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConservationStatus":
        return cls(
            id=_require_id(data, "conservation.statuses"),
            name_key=_text(data, "name_key"),
            color=_text(data, "color"),
        )


@dataclass(frozen=True)
class ConservationThreat:
    id: str
    name_key: str = ""
    icon: str = ""
    affected_animals: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConservationThreat":
        return cls(
            id=_require_id(data, "conservation.threats"),
            name_key=_text(data, "name_key"),
            icon=_text(data, "icon"),
            affected_animals=_str_tuple(data.get("affected_animals")),
        )


@dataclass(frozen=True)
class SuccessStory:
    animal_id: str
    from_status: str = ""
    to_status: str = ""
    year: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SuccessStory":
        animal_id = data.get("animal_id") if isinstance(data, dict) else None
        if not isinstance(animal_id, str) or not animal_id:
            raise ValueError(f"conservation.success_stories: animal_id がありません: {data!r}")
        year = data.get("year")
        return cls(
            animal_id=animal_id,
            from_status=_text(data, "from_status"),
            to_status=_text(data, "to_status"),
            year=year if isinstance(year, int) and not isinstance(year, bool) else None,
        )


@dataclass(frozen=True)
class ConservationData:
    """conservation.json はリストではなく 3 つの表を持つオブジェクト。"""

    statuses: Tuple[ConservationStatus, ...] = ()
    threats: Tuple[ConservationThreat, ...] = ()
    success_stories: Tuple[SuccessStory, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConservationData":
        if not isinstance(data, dict):
            raise ValueError("conservation.json はオブジェクトである必要があります")
        return cls(
            statuses=tuple(ConservationStatus.from_dict(d) for d in data.get("statuses") or []),
            threats=tuple(ConservationThreat.from_dict(d) for d in data.get("threats") or []),
            success_stories=tuple(
                SuccessStory.from_dict(d) for d in data.get("success_stories") or []
            ),
        )


@dataclass(frozen=True)
class HumanRelationType:
    id: str
    name_key: str = ""
    icon: str = ""
    color: str = ""
    description_key: str = ""
    examples: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HumanRelationType":
        return cls(
            id=_require_id(data, "human-relations"),
            name_key=_text(data, "name_key"),
            icon=_text(data, "icon"),
            color=_text(data, "color"),
            description_key=_text(data, "description_key"),
            examples=_str_tuple(data.get("examples")),
        )


@dataclass(frozen=True)
class EcosystemRole:
    id: str
    name_key: str = ""
    icon: str = ""
    color: str = ""
    description_key: str = ""
    importance_key: str = ""
    examples: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EcosystemRole":
        return cls(
            id=_require_id(data, "ecosystem-roles"),
            name_key=_text(data, "name_key"),
            icon=_text(data, "icon"),
            color=_text(data, "color"),
            description_key=_text(data, "description_key"),
            importance_key=_text(data, "importance_key"),
            examples=_str_tuple(data.get("examples")),
        )


def parse_table(items: Any, model: Any, table: str) -> List[Any]:
    """リスト形式の参照テーブルを model.from_dict で変換する。"""
    if not isinstance(items, list):
        raise ValueError(f"{table} はリストである必要があります")
    return [model.from_dict(item) for item in items]
