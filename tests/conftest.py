"""テスト共通のフィクスチャとデータビルダー。"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from wildpedia.catalog import CatalogStore
from wildpedia.sources import StaticDataSource

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _make_animal(animal_id: str, **overrides: Any) -> Dict[str, Any]:
    """animals.json の 1 レコードを組み立てる。"""
    record: Dict[str, Any] = {
        "id": animal_id,
        "name": animal_id.replace("_", " ").title(),
        "emoji": "🐾",
        "class": "mammal",
        "diet": "omnivore",
        "conservation_status": "LC",
        "stats": {},
        "senses": {"vision": 3, "hearing": 3, "smell": 3, "taste": 3, "touch": 3, "special": []},
        "human_relation": {"type": "wild", "danger_level": 1},
        "fun_facts": [],
        "habitat": ["forest"],
        "continent": ["asia"],
        "tags": [],
        "related_animals": [],
    }
    record.update(overrides)
    return record


def _make_payloads(
    animals: Optional[List[Dict[str, Any]]] = None,
    **tables: Any,
) -> Dict[str, Any]:
    """StaticDataSource 用のドキュメント一式。未指定の任意テーブルは空。"""
    payloads: Dict[str, Any] = {
        "animals": animals if animals is not None else [],
        "categories": [{"id": "records", "name_key": "records", "page": "records"}],
        "habitats": [{"id": "forest"}, {"id": "ocean"}],
        "senses": [],
        "records": [],
        "conservation": {
            "statuses": [{"id": s} for s in ("LC", "NT", "VU", "EN", "CR")],
            "threats": [],
            "success_stories": [],
        },
        "human_relations": [],
        "ecosystem_roles": [],
    }
    payloads.update(tables)
    return payloads


def sample_animals() -> List[Dict[str, Any]]:
    """一通りのクエリを試せる小さなカタログ。"""
    return [
        _make_animal(
            "cheetah",
            conservation_status="VU",
            stats={"speed_kmh": 112, "weight_kg": 72, "lifespan_years": 14},
            human_relation={"type": "wild", "danger_level": 3},
            habitat=["savanna"],
            continent=["africa"],
            fun_facts=["fast"],
            related_animals=["lion", "ghost_animal"],
        ),
        _make_animal(
            "lion",
            conservation_status="VU",
            stats={"speed_kmh": 80, "weight_kg": 190, "lifespan_years": 15},
            human_relation={"type": "dangerous", "danger_level": 4},
            habitat=["savanna"],
            continent=["africa"],
        ),
        _make_animal(
            "dolphin",
            stats={"speed_kmh": 35, "weight_kg": 300, "lifespan_years": 45},
            senses={"vision": 3, "hearing": 5, "special": ["echolocation"]},
            habitat=["ocean"],
            continent=["oceans"],
        ),
        _make_animal(
            "tortoise",
            **{"class": "reptile"},
            stats={"speed_kmh": 0, "weight_kg": 417, "lifespan_years": 177},
            habitat=["island"],
            continent=["south_america"],
        ),
        _make_animal(
            "falcon",
            **{"class": "bird"},
            stats={"weight_kg": 1.5},
            human_relation=None,
            continent=["asia", "europe"],
        ),
    ]


@pytest.fixture
def payloads() -> Dict[str, Any]:
    return _make_payloads(sample_animals())


@pytest_asyncio.fixture
async def store(payloads) -> CatalogStore:
    """ロード済みの CatalogStore。"""
    return await CatalogStore.open(StaticDataSource(copy.deepcopy(payloads)))


@pytest.fixture
def make_animal():
    """animals.json レコードのビルダー。"""
    return _make_animal


@pytest.fixture
def make_payloads():
    """StaticDataSource 用ドキュメント一式のビルダー。"""
    return _make_payloads


@pytest.fixture
def data_dir() -> Path:
    """リポジトリ同梱の data/ ディレクトリ。"""
    return DATA_DIR
