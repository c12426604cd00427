"""Building placement rules for the island grid.

A proposed building is checked in a fixed order and the first failing rule is
reported:

1. the building type exists in the catalogue;
2. its footprint lies inside the grid;
3. its footprint does not overlap another building (touching edges is fine);
4. it shares an edge with an existing building, or, on an empty island, it
   sits on the island origin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .building_catalog import BuildingCatalog
from .building_models import Building, BuildingType, BuildingTypeInfo, Footprint, IslandGrid, Position
from .errors import GameError, NotAdjacent, OutOfBounds, Overlaps


def _spans_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def footprints_overlap(position: Position, size: Footprint, other: Building) -> bool:
    return _spans_overlap(
        position.x, position.x + size.width, other.position.x, other.right
    ) and _spans_overlap(
        position.y, position.y + size.height, other.position.y, other.bottom
    )


def footprints_adjacent(position: Position, size: Footprint, other: Building) -> bool:
    """Return ``True`` when the two rectangles share part of an edge.

    Corner contact alone does not count.
    """

    right = position.x + size.width
    bottom = position.y + size.height
    if right == other.position.x or other.right == position.x:
        return _spans_overlap(position.y, bottom, other.position.y, other.bottom)
    if bottom == other.position.y or other.bottom == position.y:
        return _spans_overlap(position.x, right, other.position.x, other.right)
    return False


@dataclass(frozen=True, slots=True)
class PlacementResult:
    """Outcome of a placement check; ``error`` is ``None`` when accepted."""

    error: Optional[GameError] = None
    info: Optional[BuildingTypeInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> Optional[str]:
        return None if self.error is None else self.error.code

    def raise_for_rejection(self) -> BuildingTypeInfo:
        if self.error is not None:
            raise self.error
        assert self.info is not None
        return self.info

    def to_payload(self) -> dict:
        return {
            "ok": self.ok,
            "reason": self.reason,
            "message": None if self.error is None else self.error.message,
        }


class PlacementValidator:
    """Single source of truth for "can this building go here"."""

    def __init__(self, catalog: BuildingCatalog) -> None:
        self.catalog = catalog

    def validate(
        self,
        grid: IslandGrid,
        buildings: Iterable[Building],
        building_type: BuildingType | str,
        position: Position,
    ) -> PlacementResult:
        try:
            info = self.catalog.lookup(building_type)
        except GameError as exc:
            return PlacementResult(error=exc)

        if not grid.contains(position, info.size):
            return PlacementResult(error=OutOfBounds(), info=info)

        existing = list(buildings)
        for building in existing:
            if footprints_overlap(position, info.size, building):
                return PlacementResult(error=Overlaps(building.id), info=info)

        if not existing:
            if position != grid.origin:
                origin = grid.origin
                return PlacementResult(
                    error=NotAdjacent(
                        f"The first building must be placed at ({origin.x}, {origin.y})"
                    ),
                    info=info,
                )
        elif not any(footprints_adjacent(position, info.size, b) for b in existing):
            return PlacementResult(error=NotAdjacent(), info=info)

        return PlacementResult(info=info)

    def check(
        self,
        grid: IslandGrid,
        buildings: Iterable[Building],
        building_type: BuildingType | str,
        position: Position,
    ) -> BuildingTypeInfo:
        """Like :meth:`validate` but raise the rejection reason."""

        return self.validate(grid, buildings, building_type, position).raise_for_rejection()
