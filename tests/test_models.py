"""models / reference のパースに関するテスト。"""

import pytest

from wildpedia.models import Animal, HumanRelation, Senses, Stats
from wildpedia.reference import ConservationData, Habitat, RecordEntry, SuccessStory, parse_table


class TestStats:
    """Stats のパース。"""

    def test_non_positive_and_missing_values_are_unknown(self):
        stats = Stats.from_dict({"speed_kmh": 0, "weight_kg": -3, "lifespan_years": "12"})

        assert stats.speed_kmh is None
        assert stats.weight_kg is None
        assert stats.lifespan_years is None
        assert stats.height_cm is None

    def test_get_returns_zero_for_unknown(self):
        stats = Stats.from_dict({"speed_kmh": 60})

        assert stats.get("speed_kmh") == 60
        assert stats.get("weight_kg") == 0
        assert stats.get("no_such_stat") == 0

    def test_booleans_are_not_numbers(self):
        assert Stats.from_dict({"speed_kmh": True}).speed_kmh is None


class TestSenses:
    """Senses のパース。"""

    def test_ratings_are_clamped(self):
        senses = Senses.from_dict({"vision": 9, "hearing": -2, "smell": 3.4})

        assert senses.vision == 5
        assert senses.hearing == 0
        assert senses.smell == 3
        assert senses.taste == 0

    def test_special_abilities_are_deduplicated(self):
        senses = Senses.from_dict({"special": ["echolocation", "echolocation", "uv_vision"]})

        assert senses.special == ("echolocation", "uv_vision")
        assert senses.has_special("uv_vision")
        assert not senses.has_special("electroreception")


class TestHumanRelation:
    """HumanRelation のパース。"""

    def test_out_of_range_danger_level_is_dropped(self):
        assert HumanRelation.from_dict({"type": "wild", "danger_level": 9}).danger_level is None
        assert HumanRelation.from_dict({"type": "wild", "danger_level": 0}).danger_level is None
        assert HumanRelation.from_dict({"danger_level": 5}).danger_level == 5

    def test_non_dict_is_none(self):
        assert HumanRelation.from_dict(None) is None
        assert HumanRelation.from_dict("dangerous") is None


class TestAnimal:
    """Animal.from_dict / to_dict。"""

    def test_from_dict_maps_class_key(self, make_animal):
        animal = Animal.from_dict(make_animal("tortoise", **{"class": "reptile"}))

        assert animal.animal_class == "reptile"
        assert animal.name == "Tortoise"

    def test_missing_id_raises(self):
        with pytest.raises(ValueError):
            Animal.from_dict({"name": "名無し"})

    def test_name_defaults_to_id(self):
        assert Animal.from_dict({"id": "okapi"}).name == "okapi"

    def test_optional_subobjects(self):
        animal = Animal.from_dict({"id": "okapi"})

        assert animal.senses is None
        assert animal.human_relation is None
        assert animal.danger_level is None
        assert animal.relation_type is None
        assert not animal.has_special_sense("echolocation")

    def test_tag_lists_keep_order_without_duplicates(self, make_animal):
        animal = Animal.from_dict(
            make_animal("fox", habitat=["forest", "urban", "forest"], related_animals="wolf")
        )

        assert animal.habitat == ("forest", "urban")
        assert animal.related_animals == ("wolf",)

    def test_to_dict_omits_unknown_stats(self, make_animal):
        animal = Animal.from_dict(make_animal("fox", stats={"speed_kmh": 50, "weight_kg": 0}))
        data = animal.to_dict()

        assert data["class"] == "mammal"
        assert data["stats"] == {"speed_kmh": 50}
        assert data["human_relation"] == {"type": "wild", "danger_level": 1}
        assert Animal.from_dict(data) == animal


class TestReferenceTables:
    """参照テーブルのパース。"""

    def test_parse_table_requires_list(self):
        with pytest.raises(ValueError):
            parse_table({"id": "forest"}, Habitat, "habitats")

    def test_entry_without_id_raises(self):
        with pytest.raises(ValueError):
            parse_table([{"name_key": "森"}], Habitat, "habitats")

    def test_record_value_is_text(self):
        record = RecordEntry.from_dict({"id": "oldest", "value": 177, "runners_up": ["a", "a"]})

        assert record.value == "177"
        assert record.animal_id is None
        assert record.runners_up == ("a",)

    def test_conservation_requires_object(self):
        with pytest.raises(ValueError):
            ConservationData.from_dict([])

    def test_success_story_requires_animal(self):
        with pytest.raises(ValueError):
            SuccessStory.from_dict({"from_status": "EN", "to_status": "VU"})

    def test_conservation_parses_all_tables(self):
        data = ConservationData.from_dict(
            {
                "statuses": [{"id": "LC", "color": "#006400"}],
                "threats": [{"id": "poaching", "affected_animals": ["lion"]}],
                "success_stories": [{"animal_id": "panda", "year": 2016}],
            }
        )

        assert data.statuses[0].color == "#006400"
        assert data.threats[0].affected_animals == ("lion",)
        assert data.success_stories[0].year == 2016
