"""
scoring.py
======================

ステータス / 感覚のスコア計算と、危険度・IUCN ステータスの表示用ラベル・色。

overall_sense_score は
    round((5 感覚の合計 / 25) * 100 + 10 * 特殊能力の数)
で、特殊能力の加点に上限が無いため 100 を超えうる。呼び出し側で丸めないこと。
"""

from __future__ import annotations

from typing import Dict, Optional

from .models import SENSE_KEYS, MAX_SENSE, Animal

SPECIAL_ABILITY_BONUS = 10

DANGER_LABELS: Dict[int, str] = {
    1: "harmless",
    2: "low",
    3: "moderate",
    4: "dangerous",
    5: "extreme",
}

DANGER_COLORS: Dict[int, str] = {
    1: "#4CAF50",
    2: "#8BC34A",
    3: "#FFC107",
    4: "#FF5722",
    5: "#D32F2F",
}

IUCN_COLORS: Dict[str, str] = {
    "LC": "#006400",
    "NT": "#8B8000",
    "VU": "#CC6600",
    "EN": "#CC0000",
    "CR": "#8B0000",
    "EW": "#4B0082",
    "EX": "#000000",
}

UNKNOWN_COLOR = "#999"


def stat_score(animal: Optional[Animal], key: str) -> float:
    """ステータス値。動物やフィールドが無ければ 0。"""
    if animal is None:
        return 0
    return animal.stats.get(key)


def sense_score(animal: Optional[Animal], key: str) -> int:
    """感覚値 (0〜5)。動物や senses が無ければ 0。"""
    if animal is None or animal.senses is None:
        return 0
    return animal.senses.get(key)


def overall_sense_score(animal: Optional[Animal]) -> int:
    if animal is None or animal.senses is None:
        return 0
    total = sum(animal.senses.get(key) for key in SENSE_KEYS)
    ratio = total / (len(SENSE_KEYS) * MAX_SENSE)
    return round(ratio * 100 + len(animal.senses.special) * SPECIAL_ABILITY_BONUS)


def danger_label(level: Optional[int]) -> str:
    return DANGER_LABELS.get(level, "unknown")


def danger_color(level: Optional[int]) -> str:
    return DANGER_COLORS.get(level, UNKNOWN_COLOR)


def iucn_color(status: Optional[str]) -> str:
    return IUCN_COLORS.get(status, UNKNOWN_COLOR)
