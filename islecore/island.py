"""The island aggregate: grid, buildings and resources of one player."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .building_catalog import BuildingCatalog
from .building_models import IslandGrid
from .registry import BuildingRegistry
from .resource_ledger import EconomyLedger


@dataclass
class Island:
    id: str
    name: str
    grid: IslandGrid
    registry: BuildingRegistry
    ledger: EconomyLedger = field(default_factory=EconomyLedger)
    level: int = 1

    @classmethod
    def empty(cls, island_id: str, name: str, grid: IslandGrid, catalog: BuildingCatalog, *, level: int = 1) -> "Island":
        return cls(
            id=island_id,
            name=name,
            grid=grid,
            registry=BuildingRegistry(catalog),
            level=level,
        )

    def snapshot(self) -> Dict[str, object]:
        origin = self.grid.origin
        return {
            "island_id": self.id,
            "island_name": self.name,
            "island_level": self.level,
            "grid_size": self.grid.to_dict(),
            "origin": origin.to_dict(),
            "buildings": self.registry.to_payload(),
            "resources": self.ledger.snapshot(),
            "production": self.registry.production_total().to_dict(),
        }
