"""Authoritative set of buildings standing on one island."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterator, Optional

from .building_catalog import BuildingCatalog
from .building_models import Building, BuildingType, IslandGrid, Position
from .errors import InsufficientResources, NotFound
from .placement import PlacementValidator
from .resource_ledger import EconomyLedger
from .resources import ResourceAmount, sum_amounts


logger = logging.getLogger(__name__)


class BuildingRegistry:
    """Buildings of an island keyed by id.

    Every mutating method checks all of its preconditions before touching the
    ledger or the registry, so a rejected call leaves both untouched.
    """

    def __init__(self, catalog: BuildingCatalog) -> None:
        self.catalog = catalog
        self._buildings: Dict[str, Building] = {}

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Building]:
        return iter(list(self._buildings.values()))

    def __len__(self) -> int:
        return len(self._buildings)

    def __contains__(self, building_id: object) -> bool:
        return building_id in self._buildings

    def get(self, building_id: str) -> Optional[Building]:
        return self._buildings.get(building_id)

    def require(self, building_id: str) -> Building:
        building = self._buildings.get(building_id)
        if building is None:
            raise NotFound(building_id)
        return building

    def restore(self, building: Building) -> None:
        """Insert an already persisted building without any rule checks."""

        self._buildings[building.id] = building

    # ------------------------------------------------------------------
    def construct(
        self,
        ledger: EconomyLedger,
        validator: PlacementValidator,
        grid: IslandGrid,
        building_type: BuildingType | str,
        position: Position,
        *,
        building_id: Optional[str] = None,
    ) -> Building:
        info = self.catalog.lookup(building_type)
        if not ledger.affordable(info.cost):
            raise InsufficientResources(ledger.balance.shortfall(info.cost))
        validator.check(grid, self, info.type, position)

        ledger.spend(info.cost)
        building = Building(
            id=building_id or uuid.uuid4().hex,
            type=info.type,
            position=position,
            size=info.size,
            level=1,
        )
        self._buildings[building.id] = building
        logger.info(
            "Constructed %s id=%s at (%s, %s)",
            info.type.value,
            building.id,
            position.x,
            position.y,
        )
        return building

    def upgrade_cost(self, building_id: str) -> ResourceAmount:
        building = self.require(building_id)
        return self.catalog.lookup(building.type).upgrade_cost(building.level + 1)

    def upgrade(self, ledger: EconomyLedger, building_id: str) -> Building:
        cost = self.upgrade_cost(building_id)
        if not ledger.affordable(cost):
            raise InsufficientResources(ledger.balance.shortfall(cost))
        ledger.spend(cost)
        building = self._buildings[building_id]
        building.level += 1
        logger.info("Upgraded %s id=%s to level %s", building.type.value, building.id, building.level)
        return building

    def demolish(self, building_id: str) -> Building:
        building = self._buildings.pop(building_id, None)
        if building is None:
            raise NotFound(building_id)
        logger.info("Demolished %s id=%s", building.type.value, building.id)
        return building

    # ------------------------------------------------------------------
    def production_total(self) -> ResourceAmount:
        return sum_amounts(
            self.catalog.lookup(building.type).production_at(building.level)
            for building in self._buildings.values()
        )

    def to_payload(self) -> list:
        return [building.to_payload() for building in self._buildings.values()]
