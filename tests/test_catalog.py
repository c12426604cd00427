import copy
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from islecore.building_catalog import (
    DEFAULT_BUILDING_DATA,
    load_catalog,
    load_catalog_file,
    load_default_catalog,
)
from islecore.building_models import BuildingType, Footprint
from islecore.errors import CatalogLoadError, UnknownBuildingType
from islecore.resources import ResourceAmount


def test_default_catalog_lists_every_building_type():
    catalog = load_default_catalog()

    assert len(catalog) == 7
    assert {info.type for info in catalog} == set(BuildingType)


def test_lookup_accepts_loose_identifiers():
    catalog = load_default_catalog()

    info = catalog.lookup(" Steam-Generator ")

    assert info.type is BuildingType.STEAM_GENERATOR
    assert info.cost == ResourceAmount(steam=0, ore=50, aether=0)
    assert info.production == ResourceAmount(steam=10)
    assert info.size == Footprint(1, 1)
    assert info.build_time == pytest.approx(60)


def test_lookup_unknown_type_fails():
    catalog = load_default_catalog()

    with pytest.raises(UnknownBuildingType):
        catalog.lookup("airship_hangar")
    with pytest.raises(UnknownBuildingType):
        catalog.lookup(None)
    assert "airship_hangar" not in catalog
    assert "sky_dock" in catalog


def test_buildings_without_production_yield_nothing():
    catalog = load_default_catalog()
    workshop = catalog.lookup(BuildingType.WORKSHOP)

    assert workshop.production is None
    assert workshop.production_at(3).is_zero()
    assert workshop.size == Footprint(2, 2)


def test_upgrade_cost_scales_with_target_level():
    info = load_default_catalog().lookup(BuildingType.SKY_FORGE)

    assert info.upgrade_cost(2) == ResourceAmount(steam=400, ore=600, aether=40)
    assert info.upgrade_cost(5) == ResourceAmount(steam=1000, ore=1500, aether=100)


def test_render_descriptor_comes_from_catalog_entry():
    payload = load_default_catalog().lookup("aether_collector").to_payload()

    assert payload["render"] == {"geometry": "sphere", "color": "#a67de8", "dimensions": [0.8]}
    assert payload["cost"] == {"steam": 200.0, "ore": 100.0, "aether": 0.0}


def test_catalog_missing_a_type_fails_to_load():
    data = copy.deepcopy(DEFAULT_BUILDING_DATA)
    data["building_types"] = [
        entry for entry in data["building_types"] if entry["id"] != "barracks"
    ]

    with pytest.raises(CatalogLoadError, match="barracks"):
        load_catalog(data)


def test_catalog_with_bad_footprint_fails_to_load():
    data = copy.deepcopy(DEFAULT_BUILDING_DATA)
    data["building_types"][0]["size"] = {"width": 0, "height": 1}

    with pytest.raises(CatalogLoadError):
        load_catalog(data)


def test_catalog_with_duplicate_entry_fails_to_load():
    data = copy.deepcopy(DEFAULT_BUILDING_DATA)
    data["building_types"].append(copy.deepcopy(data["building_types"][0]))

    with pytest.raises(CatalogLoadError):
        load_catalog(data)


def test_catalog_file_round_trip(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(DEFAULT_BUILDING_DATA), encoding="utf-8")

    catalog = load_catalog_file(path)

    assert catalog.lookup("sky_dock").size == Footprint(2, 1)


def test_unreadable_catalog_file_fails(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CatalogLoadError):
        load_catalog_file(path)
    with pytest.raises(CatalogLoadError):
        load_catalog_file(tmp_path / "missing.json")
