"""
models.py
======================

animals.json の 1 レコード（動物）を表すデータモデル。

要件:
- JSON の「あるかもしれない」ネストを明示的な Optional フィールドで表現する
- 数値ステータスは 0・負数・欠損をすべて None（＝未計測）として扱う
- 感覚値は 0〜5、危険度は 1〜5 の範囲に収める
- タグ類は重複を除いた tuple（元の順序を維持）で保持し、ロード後は変更しない
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

STAT_KEYS: Tuple[str, ...] = ("speed_kmh", "weight_kg", "lifespan_years", "height_cm")
SENSE_KEYS: Tuple[str, ...] = ("vision", "hearing", "smell", "taste", "touch")

MAX_SENSE = 5
MIN_DANGER = 1
MAX_DANGER = 5


# ----------------------------------------------------------------------
#  変換ヘルパー
# ----------------------------------------------------------------------
def _positive_number(value: Any) -> Optional[float]:
    """正の数値だけを採用する。0 や欠損は「未計測」なので None。"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0:
        return None
    return value


def _str_tuple(value: Any) -> Tuple[str, ...]:
    """文字列 or 文字列リストを、重複なしの tuple に揃える。"""
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    items = []
    for v in value:
        if isinstance(v, str) and v and v not in items:
            items.append(v)
    return tuple(items)


def _clamp_int(value: Any, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return low
    return int(min(max(round(value), low), high))


# ----------------------------------------------------------------------
#  サブオブジェクト
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Stats:
    speed_kmh: Optional[float] = None
    weight_kg: Optional[float] = None
    lifespan_years: Optional[float] = None
    height_cm: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Stats":
        data = data or {}
        return cls(**{key: _positive_number(data.get(key)) for key in STAT_KEYS})

    def get(self, key: str) -> float:
        """未計測なら 0 を返すアクセサ。"""
        if key not in STAT_KEYS:
            return 0
        return getattr(self, key) or 0


@dataclass(frozen=True)
class Senses:
    vision: int = 0
    hearing: int = 0
    smell: int = 0
    taste: int = 0
    touch: int = 0
    special: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Senses":
        data = data or {}
        ratings = {
            key: _clamp_int(data.get(key, 0), 0, MAX_SENSE) for key in SENSE_KEYS
        }
        return cls(special=_str_tuple(data.get("special")), **ratings)

    def get(self, key: str) -> int:
        if key not in SENSE_KEYS:
            return 0
        return getattr(self, key)

    def has_special(self, ability: str) -> bool:
        return ability in self.special


@dataclass(frozen=True)
class HumanRelation:
    type: Optional[str] = None
    danger_level: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["HumanRelation"]:
        if not isinstance(data, dict):
            return None
        level = data.get("danger_level")
        if isinstance(level, bool) or not isinstance(level, int):
            level = None
        elif not MIN_DANGER <= level <= MAX_DANGER:
            level = None
        rel_type = data.get("type")
        return cls(type=rel_type if isinstance(rel_type, str) else None, danger_level=level)


# ----------------------------------------------------------------------
#  Animal
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Animal:
    """
    カタログの 1 エントリ。

    id はすべての参照（related_animals, 参照テーブルの examples など）の外部キー。
    JSON 上のキー "class" は予約語なので animal_class として保持する。
    """

    id: str
    name: str = ""
    emoji: str = ""
    animal_class: Optional[str] = None
    diet: Optional[str] = None
    conservation_status: Optional[str] = None
    scientific_name: str = ""
    ecosystem_role: Optional[str] = None
    stats: Stats = field(default_factory=Stats)
    senses: Optional[Senses] = None
    human_relation: Optional[HumanRelation] = None
    fun_facts: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    habitat: Tuple[str, ...] = ()
    continent: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    related_animals: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Animal":
        """
        animals.json の 1 要素から Animal を作る。
        id が無い / 空のレコードは ValueError。
        """
        animal_id = data.get("id")
        if not isinstance(animal_id, str) or not animal_id:
            raise ValueError(f"id のないレコードです: {data!r}")

        senses = data.get("senses")
        return cls(
            id=animal_id,
            name=data.get("name") or animal_id,
            emoji=data.get("emoji") or "",
            animal_class=data.get("class"),
            diet=data.get("diet"),
            conservation_status=data.get("conservation_status"),
            scientific_name=data.get("scientific_name") or "",
            ecosystem_role=data.get("ecosystem_role"),
            stats=Stats.from_dict(data.get("stats")),
            senses=Senses.from_dict(senses) if isinstance(senses, dict) else None,
            human_relation=HumanRelation.from_dict(data.get("human_relation")),
            fun_facts=_str_tuple(data.get("fun_facts")),
            strengths=_str_tuple(data.get("strengths")),
            weaknesses=_str_tuple(data.get("weaknesses")),
            habitat=_str_tuple(data.get("habitat")),
            continent=_str_tuple(data.get("continent")),
            tags=_str_tuple(data.get("tags")),
            related_animals=_str_tuple(data.get("related_animals")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON 互換の dict に戻す（未計測の値は出力しない）。"""
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "class": self.animal_class,
            "diet": self.diet,
            "conservation_status": self.conservation_status,
            "scientific_name": self.scientific_name,
            "ecosystem_role": self.ecosystem_role,
            "stats": {
                key: getattr(self.stats, key)
                for key in STAT_KEYS
                if getattr(self.stats, key) is not None
            },
            "fun_facts": list(self.fun_facts),
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "habitat": list(self.habitat),
            "continent": list(self.continent),
            "tags": list(self.tags),
            "related_animals": list(self.related_animals),
        }
        if self.senses is not None:
            out["senses"] = {key: self.senses.get(key) for key in SENSE_KEYS}
            out["senses"]["special"] = list(self.senses.special)
        if self.human_relation is not None:
            out["human_relation"] = {
                "type": self.human_relation.type,
                "danger_level": self.human_relation.danger_level,
            }
        return out

    # ------------------------------------------------------------
    # 便利プロパティ
    # ------------------------------------------------------------
    @property
    def danger_level(self) -> Optional[int]:
        return self.human_relation.danger_level if self.human_relation else None

    @property
    def relation_type(self) -> Optional[str]:
        return self.human_relation.type if self.human_relation else None

    def has_special_sense(self, ability: str) -> bool:
        return self.senses is not None and self.senses.has_special(ability)

