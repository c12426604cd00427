import random
import sys
from itertools import combinations
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from islecore.building_catalog import load_default_catalog
from islecore.building_models import BuildingType, IslandGrid, Position
from islecore.errors import GameError, InsufficientResources, NotAdjacent, NotFound
from islecore.placement import PlacementValidator, footprints_adjacent, footprints_overlap
from islecore.registry import BuildingRegistry
from islecore.resource_ledger import EconomyLedger, affordable, apply
from islecore.resources import Resource, ResourceAmount


GRID = IslandGrid(10, 10)
ORIGIN = Position(5, 5)


@pytest.fixture
def catalog():
    return load_default_catalog()


@pytest.fixture
def registry(catalog):
    return BuildingRegistry(catalog)


@pytest.fixture
def validator(catalog):
    return PlacementValidator(catalog)


def _rich_ledger():
    return EconomyLedger(ResourceAmount(steam=1000, ore=1000, aether=1000))


def test_affordable_requires_every_field():
    balance = ResourceAmount(steam=100, ore=50, aether=0)

    assert affordable(balance, ResourceAmount(steam=100, ore=50))
    assert not affordable(balance, ResourceAmount(aether=1))


def test_apply_refuses_negative_results():
    balance = ResourceAmount(steam=10, ore=10, aether=10)

    assert apply(balance, ResourceAmount(steam=-10)) == ResourceAmount(steam=0, ore=10, aether=10)
    with pytest.raises(InsufficientResources) as excinfo:
        apply(balance, ResourceAmount(ore=-11))
    assert excinfo.value.missing == {Resource.ORE: 1.0}


def test_ledger_spend_is_all_or_nothing():
    ledger = EconomyLedger(ResourceAmount(steam=100, ore=10, aether=0))

    with pytest.raises(InsufficientResources):
        ledger.spend(ResourceAmount(steam=50, ore=20))

    assert ledger.balance == ResourceAmount(steam=100, ore=10, aether=0)


def test_construct_deducts_catalog_cost(registry, validator, catalog):
    ledger = EconomyLedger(ResourceAmount(steam=500, ore=250, aether=50))

    building = registry.construct(ledger, validator, GRID, "steam_generator", ORIGIN)

    assert building.level == 1
    assert building.size == catalog.lookup("steam_generator").size
    assert ledger.balance == ResourceAmount(steam=500, ore=200, aether=50)
    assert registry.get(building.id) is building


def test_construct_checks_resources_before_placement(registry, validator):
    ledger = EconomyLedger()

    with pytest.raises(InsufficientResources):
        registry.construct(ledger, validator, GRID, "ore_mine", Position(0, 0))

    assert len(registry) == 0
    assert ledger.balance.is_zero()


def test_rejected_placement_leaves_ledger_untouched(registry, validator):
    ledger = _rich_ledger()

    with pytest.raises(NotAdjacent):
        registry.construct(ledger, validator, GRID, "ore_mine", Position(0, 0))

    assert len(registry) == 0
    assert ledger.balance == ResourceAmount(steam=1000, ore=1000, aether=1000)


def test_upgrade_cost_is_base_cost_times_target_level(registry, validator):
    ledger = _rich_ledger()
    building = registry.construct(ledger, validator, GRID, "steam_generator", ORIGIN)

    expected_ore = 950.0
    for target in (2, 3, 4):
        assert registry.upgrade_cost(building.id) == ResourceAmount(ore=50 * target)
        upgraded = registry.upgrade(ledger, building.id)
        expected_ore -= 50 * target
        assert upgraded.level == target
        assert ledger.balance.ore == pytest.approx(expected_ore)

    assert ledger.balance == ResourceAmount(steam=1000, ore=500, aether=1000)


def test_unaffordable_upgrade_keeps_level(registry, validator):
    ledger = EconomyLedger(ResourceAmount(steam=0, ore=100, aether=0))
    building = registry.construct(ledger, validator, GRID, "steam_generator", ORIGIN)

    with pytest.raises(InsufficientResources):
        registry.upgrade(ledger, building.id)

    assert building.level == 1
    assert ledger.balance.ore == pytest.approx(50)


def test_missing_building_is_not_found(registry):
    ledger = _rich_ledger()

    with pytest.raises(NotFound):
        registry.upgrade(ledger, "nope")
    with pytest.raises(NotFound):
        registry.demolish("nope")
    with pytest.raises(NotFound):
        registry.upgrade_cost("nope")


def test_demolish_frees_cells_without_refund(registry, validator):
    ledger = _rich_ledger()
    registry.construct(ledger, validator, GRID, "steam_generator", ORIGIN)
    mine = registry.construct(ledger, validator, GRID, "ore_mine", Position(6, 5))
    before = ledger.balance

    removed = registry.demolish(mine.id)

    assert removed.id == mine.id
    assert mine.id not in registry
    assert ledger.balance == before

    rebuilt = registry.construct(ledger, validator, GRID, "ore_mine", Position(6, 5))
    assert rebuilt.position == Position(6, 5)


def test_production_total_scales_with_level(registry, validator):
    ledger = _rich_ledger()
    generator = registry.construct(ledger, validator, GRID, "steam_generator", ORIGIN)
    registry.upgrade(ledger, generator.id)
    registry.construct(ledger, validator, GRID, "ore_mine", Position(6, 5))
    registry.construct(ledger, validator, GRID, "workshop", Position(5, 6))

    assert registry.production_total() == ResourceAmount(steam=20, ore=8, aether=0)


def test_empty_registry_produces_nothing(registry):
    assert registry.production_total().is_zero()


def test_random_construction_sequences_keep_invariants(catalog, validator):
    rng = random.Random(1234)
    types = list(BuildingType)

    for _ in range(20):
        registry = BuildingRegistry(catalog)
        ledger = EconomyLedger(ResourceAmount(steam=3000, ore=3000, aether=200))
        placed = []
        for _ in range(150):
            building_type = rng.choice(types)
            position = Position(rng.randint(-1, 10), rng.randint(-1, 10))
            existing = list(registry)
            before = ledger.balance
            try:
                building = registry.construct(ledger, validator, GRID, building_type, position)
            except GameError:
                assert ledger.balance == before
                assert len(registry) == len(existing)
                continue
            cost = catalog.lookup(building_type).cost
            assert ledger.balance == before - cost
            assert not ledger.balance.is_negative()
            if existing:
                assert any(
                    footprints_adjacent(building.position, building.size, other) for other in existing
                )
            else:
                assert building.position == ORIGIN
            placed.append(building)

        for first, second in combinations(placed, 2):
            assert not footprints_overlap(first.position, first.size, second)
        for building in placed:
            assert GRID.contains(building.position, building.size)
