"""Data models for buildings and the island grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .resources import ResourceAmount


class BuildingType(str, Enum):
    """Closed set of buildings that can be raised on an island."""

    STEAM_GENERATOR = "steam_generator"
    ORE_MINE = "ore_mine"
    AETHER_COLLECTOR = "aether_collector"
    WORKSHOP = "workshop"
    BARRACKS = "barracks"
    SKY_FORGE = "sky_forge"
    SKY_DOCK = "sky_dock"


@dataclass(frozen=True, slots=True)
class Position:
    x: int
    y: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True, slots=True)
class Footprint:
    """Width and height of a building in grid cells."""

    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class IslandGrid:
    """Fixed build area of an island."""

    width: int
    height: int

    @property
    def origin(self) -> Position:
        """Cell where the first building of an island must be placed."""

        return Position(self.width // 2, self.height // 2)

    def contains(self, position: Position, size: Footprint) -> bool:
        return (
            position.x >= 0
            and position.y >= 0
            and position.x + size.width <= self.width
            and position.y + size.height <= self.height
        )

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class RenderDescriptor:
    """How a renderer should draw a placeholder for a building type."""

    geometry: str
    color: str
    dimensions: Tuple[float, ...]

    def to_payload(self) -> Dict[str, object]:
        return {
            "geometry": self.geometry,
            "color": self.color,
            "dimensions": list(self.dimensions),
        }


@dataclass(frozen=True, slots=True)
class BuildingTypeInfo:
    """Catalogue entry describing a building type."""

    type: BuildingType
    name: str
    description: str
    cost: ResourceAmount
    size: Footprint
    build_time: float
    icon: str
    render: RenderDescriptor
    production: Optional[ResourceAmount] = None

    def production_at(self, level: int) -> ResourceAmount:
        if self.production is None:
            return ResourceAmount.zero()
        return self.production.scaled(level)

    def upgrade_cost(self, target_level: int) -> ResourceAmount:
        """Cost of reaching ``target_level``; grows linearly with the target."""

        return self.cost.scaled(target_level)

    def to_payload(self) -> Dict[str, object]:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "cost": self.cost.to_dict(),
            "production": None if self.production is None else self.production.to_dict(),
            "size": self.size.to_dict(),
            "build_time": self.build_time,
            "icon": self.icon,
            "render": self.render.to_payload(),
        }


@dataclass(slots=True)
class Building:
    """Single building standing on an island."""

    id: str
    type: BuildingType
    position: Position
    size: Footprint
    level: int = 1

    @property
    def right(self) -> int:
        return self.position.x + self.size.width

    @property
    def bottom(self) -> int:
        return self.position.y + self.size.height

    def clone(self) -> "Building":
        return Building(
            id=self.id,
            type=self.type,
            position=self.position,
            size=self.size,
            level=self.level,
        )

    def to_payload(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "type": self.type.value,
            "level": self.level,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
        }
