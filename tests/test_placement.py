import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from islecore.building_catalog import load_default_catalog
from islecore.building_models import Building, BuildingType, Footprint, IslandGrid, Position
from islecore.errors import NotAdjacent, OutOfBounds
from islecore.placement import PlacementValidator, footprints_adjacent, footprints_overlap


GRID = IslandGrid(10, 10)


@pytest.fixture
def validator():
    return PlacementValidator(load_default_catalog())


def _building(building_id, x, y, width=1, height=1, building_type=BuildingType.STEAM_GENERATOR):
    return Building(
        id=building_id,
        type=building_type,
        position=Position(x, y),
        size=Footprint(width, height),
    )


def test_origin_is_grid_center():
    assert GRID.origin == Position(5, 5)
    assert IslandGrid(7, 4).origin == Position(3, 2)


def test_first_building_must_sit_on_origin(validator):
    assert validator.validate(GRID, [], "steam_generator", Position(5, 5)).ok

    result = validator.validate(GRID, [], "steam_generator", Position(0, 0))
    assert not result.ok
    assert result.reason == "not_adjacent"


def test_unknown_type_is_reported_before_anything_else(validator):
    result = validator.validate(GRID, [], "cloud_castle", Position(-3, 40))

    assert result.reason == "unknown_building_type"


@pytest.mark.parametrize(
    "building_type, position",
    [
        ("workshop", Position(9, 9)),
        ("workshop", Position(9, 0)),
        ("sky_dock", Position(9, 5)),
        ("steam_generator", Position(-1, 0)),
        ("steam_generator", Position(0, 10)),
    ],
)
def test_footprint_must_stay_inside_grid(validator, building_type, position):
    result = validator.validate(GRID, [], building_type, position)

    assert result.reason == "out_of_bounds"


def test_footprint_touching_far_edge_is_inside(validator):
    existing = [_building("a", 7, 8)]

    assert validator.validate(GRID, existing, "workshop", Position(8, 8)).ok


def test_overlap_is_rejected(validator):
    existing = [_building("a", 5, 5)]

    result = validator.validate(GRID, existing, "workshop", Position(4, 4))

    assert result.reason == "overlaps"
    assert result.error.building_id == "a"


def test_bounds_are_checked_before_overlap(validator):
    existing = [_building("a", 9, 9)]

    result = validator.validate(GRID, existing, "workshop", Position(9, 9))

    assert result.reason == "out_of_bounds"


def test_edge_neighbours_are_adjacent(validator):
    existing = [_building("a", 5, 5)]

    for position in (Position(6, 5), Position(4, 5), Position(5, 6), Position(5, 4)):
        assert validator.validate(GRID, existing, "ore_mine", position).ok, position


def test_diagonal_neighbour_is_not_adjacent(validator):
    existing = [_building("a", 5, 5)]

    result = validator.validate(GRID, existing, "ore_mine", Position(6, 6))

    assert result.reason == "not_adjacent"


def test_distant_position_is_not_adjacent(validator):
    existing = [_building("a", 5, 5)]

    assert validator.validate(GRID, existing, "ore_mine", Position(0, 0)).reason == "not_adjacent"


def test_multi_cell_footprints_use_edge_contact(validator):
    existing = [_building("w", 5, 5, 2, 2, BuildingType.WORKSHOP)]

    assert validator.validate(GRID, existing, "ore_mine", Position(7, 6)).ok
    assert validator.validate(GRID, existing, "sky_dock", Position(4, 7)).ok
    assert validator.validate(GRID, existing, "ore_mine", Position(7, 7)).reason == "not_adjacent"
    assert validator.validate(GRID, existing, "sky_dock", Position(3, 7)).reason == "not_adjacent"


def test_check_raises_rejection_reason(validator):
    with pytest.raises(NotAdjacent):
        validator.check(GRID, [], "steam_generator", Position(1, 1))
    with pytest.raises(OutOfBounds):
        validator.check(GRID, [], "workshop", Position(9, 9))

    info = validator.check(GRID, [], "steam_generator", Position(5, 5))
    assert info.type is BuildingType.STEAM_GENERATOR


def test_rectangle_helpers():
    other = _building("a", 2, 2, 2, 2)

    assert footprints_overlap(Position(3, 3), Footprint(1, 1), other)
    assert not footprints_overlap(Position(4, 2), Footprint(1, 1), other)
    assert footprints_adjacent(Position(4, 2), Footprint(1, 1), other)
    assert footprints_adjacent(Position(2, 1), Footprint(1, 1), other)
    assert not footprints_adjacent(Position(4, 4), Footprint(1, 1), other)
    assert not footprints_adjacent(Position(1, 1), Footprint(1, 1), other)
