"""scoring のテスト。"""

from wildpedia.models import Animal
from wildpedia.scoring import (
    UNKNOWN_COLOR,
    danger_color,
    danger_label,
    iucn_color,
    overall_sense_score,
    sense_score,
    stat_score,
)


def _animal(senses=None, stats=None) -> Animal:
    data = {"id": "test_animal", "stats": stats or {}}
    if senses is not None:
        data["senses"] = senses
    return Animal.from_dict(data)


class TestScores:
    """ステータス / 感覚スコア。"""

    def test_missing_animal_or_field_scores_zero(self):
        assert stat_score(None, "speed_kmh") == 0
        assert sense_score(None, "vision") == 0
        assert overall_sense_score(None) == 0

        bare = _animal()
        assert stat_score(bare, "speed_kmh") == 0
        assert sense_score(bare, "vision") == 0
        assert overall_sense_score(bare) == 0

    def test_stat_and_sense_values(self):
        animal = _animal(senses={"vision": 4}, stats={"speed_kmh": 70})

        assert stat_score(animal, "speed_kmh") == 70
        assert sense_score(animal, "vision") == 4
        assert sense_score(animal, "hearing") == 0

    def test_overall_sense_score_formula(self):
        animal = _animal(
            senses={"vision": 5, "hearing": 5, "smell": 3, "taste": 2, "touch": 3, "special": ["echolocation"]}
        )

        # 18 / 25 * 100 + 10
        assert overall_sense_score(animal) == 82

    def test_overall_sense_score_can_exceed_100(self):
        animal = _animal(
            senses={
                "vision": 5,
                "hearing": 5,
                "smell": 5,
                "taste": 5,
                "touch": 5,
                "special": ["echolocation", "uv_vision"],
            }
        )

        assert overall_sense_score(animal) == 120

    def test_overall_sense_score_ignores_special_order(self):
        a = _animal(senses={"vision": 3, "special": ["a", "b", "c"]})
        b = _animal(senses={"vision": 3, "special": ["c", "a", "b"]})

        assert overall_sense_score(a) == overall_sense_score(b)

    def test_overall_sense_score_ignores_rating_key_order(self):
        ratings = {"vision": 5, "hearing": 1, "smell": 2, "taste": 3, "touch": 4}
        reversed_ratings = dict(reversed(list(ratings.items())))

        a = _animal(senses=ratings)
        b = _animal(senses=reversed_ratings)

        assert list(reversed_ratings) != list(ratings)
        assert overall_sense_score(a) == overall_sense_score(b) == 60

    def test_each_special_ability_adds_ten(self):
        base = {"vision": 2, "hearing": 3, "smell": 1, "taste": 4, "touch": 2}
        scores = [
            overall_sense_score(_animal(senses=dict(base, special=[f"s{i}" for i in range(n)])))
            for n in range(4)
        ]

        assert [b - a for a, b in zip(scores, scores[1:])] == [10, 10, 10]


class TestLabels:
    """危険度 / IUCN の表示用ラベル・色。"""

    def test_danger_labels(self):
        assert danger_label(1) == "harmless"
        assert danger_label(5) == "extreme"
        assert danger_label(None) == "unknown"
        assert danger_label(7) == "unknown"

    def test_danger_colors(self):
        assert danger_color(3) == "#FFC107"
        assert danger_color(None) == UNKNOWN_COLOR

    def test_iucn_colors(self):
        assert iucn_color("CR") == "#8B0000"
        assert iucn_color("LC") == "#006400"
        assert iucn_color("XX") == UNKNOWN_COLOR
        assert iucn_color(None) == UNKNOWN_COLOR
