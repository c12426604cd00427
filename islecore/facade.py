"""Entry point used by the UI and the scheduler to drive one island."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Sequence

from . import config
from .building_catalog import BuildingCatalog, load_default_catalog
from .building_models import Building, BuildingType, Footprint, IslandGrid, Position
from .errors import GameError, InvalidName, PersistenceFailed, UnknownBuildingType
from .island import Island
from .persistence import (
    BuildingRecord,
    InMemoryIslandStore,
    IslandRecord,
    IslandStore,
    StoreError,
    default_island_record,
)
from .placement import PlacementResult, PlacementValidator, footprints_overlap
from .resource_ledger import EconomyLedger
from .resources import ResourceAmount


logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, object]], None]
StoreWrite = Callable[[], None]


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an accepted mutation.

    ``persistence_error`` is set when the in-memory change stands but the
    store could not be updated; :meth:`GameFacade.reconcile` restores the
    store's view of the island.
    """

    snapshot: Dict[str, object]
    building: Optional[Building] = None
    persistence_error: Optional[PersistenceFailed] = None

    @property
    def persisted(self) -> bool:
        return self.persistence_error is None


def _coerce_position(position: Position | Sequence[int]) -> Position:
    if isinstance(position, Position):
        return position
    x, y = position
    return Position(int(x), int(y))


class GameFacade:
    """Owns the state of one island and serialises every change to it.

    User operations and production ticks all run under the same re-entrant
    lock, so a cost check and its deduction can never interleave with another
    writer.
    """

    def __init__(
        self,
        store: Optional[IslandStore] = None,
        catalog: Optional[BuildingCatalog] = None,
    ) -> None:
        self._lock = threading.RLock()
        self.catalog = catalog if catalog is not None else load_default_catalog()
        self.validator = PlacementValidator(self.catalog)
        self.store: IslandStore = store if store is not None else InMemoryIslandStore()
        self.notifications: Deque[str] = deque(maxlen=config.NOTIFICATION_QUEUE_LIMIT)
        self.last_persistence_error: Optional[PersistenceFailed] = None
        self._listeners: List[Listener] = []
        self._state_version = 0
        self._tick_count = 0
        try:
            self.island = self._fetch_island()
        except PersistenceFailed as exc:
            logger.warning("Starting with a local island: %s", exc)
            self._record_persistence_error(exc)
            self.island = self._island_from_records(default_island_record(), [])

    # ------------------------------------------------------------------
    # Loading

    def _fetch_island(self) -> Island:
        try:
            record = self.store.fetch_or_create_island()
            buildings = self.store.fetch_buildings(record.id)
        except (StoreError, OSError) as exc:
            raise PersistenceFailed("island", exc) from exc
        return self._island_from_records(record, buildings)

    def _island_from_records(
        self, record: IslandRecord, buildings: Sequence[BuildingRecord]
    ) -> Island:
        island = Island.empty(
            record.id,
            record.name,
            IslandGrid(int(record.grid_width), int(record.grid_height)),
            self.catalog,
            level=int(record.level),
        )
        island.ledger = EconomyLedger(record.resources)
        for entry in buildings:
            try:
                info = self.catalog.lookup(entry.type)
            except UnknownBuildingType:
                logger.warning("Skipping stored building %s of unknown type %s", entry.id, entry.type)
                continue
            size = info.size
            if entry.width and entry.height and min(entry.width, entry.height) > 0:
                size = Footprint(int(entry.width), int(entry.height))
            position = Position(int(entry.position_x), int(entry.position_y))
            if not island.grid.contains(position, size):
                logger.warning("Skipping stored building %s outside the island", entry.id)
                continue
            clash = next(
                (other for other in island.registry if footprints_overlap(position, size, other)),
                None,
            )
            if clash is not None:
                logger.warning("Skipping stored building %s overlapping %s", entry.id, clash.id)
                continue
            island.registry.restore(
                Building(
                    id=entry.id,
                    type=info.type,
                    position=position,
                    size=size,
                    level=max(1, int(entry.level)),
                )
            )
        return island

    # ------------------------------------------------------------------
    # Notifications and listeners

    def add_notification(self, message: str) -> None:
        self.notifications.append(message)

    def consume_notification(self) -> Optional[str]:
        if not self.notifications:
            return None
        return self.notifications.popleft()

    def list_notifications(self) -> List[str]:
        return list(self.notifications)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new snapshot after every change."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, snapshot: Dict[str, object]) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)

    # ------------------------------------------------------------------
    # Reads

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            data = self.island.snapshot()
            data["version"] = int(self._state_version)
            return data

    def catalog_payload(self) -> List[Dict[str, object]]:
        return self.catalog.to_payload()

    def can_place(
        self, building_type: BuildingType | str, position: Position | Sequence[int]
    ) -> PlacementResult:
        with self._lock:
            return self.validator.validate(
                self.island.grid,
                self.island.registry,
                building_type,
                _coerce_position(position),
            )

    def upgrade_cost(self, building_id: str) -> ResourceAmount:
        with self._lock:
            return self.island.registry.upgrade_cost(building_id)

    # ------------------------------------------------------------------
    # Mutations

    def construct(
        self, building_type: BuildingType | str, position: Position | Sequence[int]
    ) -> MutationResult:
        target = _coerce_position(position)
        with self._lock:
            island = self.island
            try:
                building = island.registry.construct(
                    island.ledger, self.validator, island.grid, building_type, target
                )
            except GameError as exc:
                self._reject("construct", exc)
                raise
            info = self.catalog.lookup(building.type)
            self.add_notification(f"{info.name} constructed")
            error = self._persist(
                "construct",
                lambda: self.store.insert_building(self._record_for(building)),
                self._resource_write(),
            )
            return self._commit(building=building.clone(), persistence_error=error)

    def upgrade(self, building_id: str) -> MutationResult:
        with self._lock:
            island = self.island
            try:
                building = island.registry.upgrade(island.ledger, building_id)
            except GameError as exc:
                self._reject("upgrade", exc)
                raise
            info = self.catalog.lookup(building.type)
            self.add_notification(f"{info.name} upgraded to level {building.level}")
            level = building.level
            error = self._persist(
                "upgrade",
                lambda: self.store.update_building_level(building_id, level),
                self._resource_write(),
            )
            return self._commit(building=building.clone(), persistence_error=error)

    def demolish(self, building_id: str) -> MutationResult:
        with self._lock:
            try:
                building = self.island.registry.demolish(building_id)
            except GameError as exc:
                self._reject("demolish", exc)
                raise
            info = self.catalog.lookup(building.type)
            self.add_notification(f"{info.name} demolished")
            error = self._persist(
                "demolish", lambda: self.store.delete_building(building_id)
            )
            return self._commit(building=building, persistence_error=error)

    def rename_island(self, name: str) -> MutationResult:
        with self._lock:
            try:
                cleaned = self._validate_name(name)
            except GameError as exc:
                self._reject("rename", exc)
                raise
            island = self.island
            island.name = cleaned
            logger.info("Renamed island %s to %r", island.id, cleaned)
            self.add_notification(f"Island renamed to {cleaned}")
            error = self._persist(
                "rename", lambda: self.store.update_island_name(island.id, cleaned)
            )
            return self._commit(persistence_error=error)

    def tick(self) -> MutationResult:
        """Apply one round of production to the ledger."""

        with self._lock:
            island = self.island
            production = island.registry.production_total()
            island.ledger.apply(production)
            self._tick_count += 1
            logger.debug(
                "Tick %s produced %s; balance %s",
                self._tick_count,
                production.to_dict(),
                island.ledger.snapshot(),
            )
            error = None
            if not production.is_zero():
                error = self._persist("tick", self._resource_write())
            return self._commit(persistence_error=error)

    def reconcile(self) -> Dict[str, object]:
        """Replace in-memory state with the store's authoritative copy."""

        with self._lock:
            island = self._fetch_island()
            self.island = island
            self.last_persistence_error = None
            logger.info("Reconciled island %s from store", island.id)
            return self._commit().snapshot

    # ------------------------------------------------------------------
    # Helpers

    def _validate_name(self, name: object) -> str:
        if not isinstance(name, str):
            raise InvalidName("Island name must be text")
        cleaned = name.strip()
        if not cleaned:
            raise InvalidName("Island name cannot be empty")
        if len(cleaned) > config.ISLAND_NAME_MAX_LENGTH:
            raise InvalidName(
                f"Island name cannot exceed {config.ISLAND_NAME_MAX_LENGTH} characters"
            )
        return cleaned

    def _record_for(self, building: Building) -> BuildingRecord:
        return BuildingRecord(
            id=building.id,
            island_id=self.island.id,
            type=building.type.value,
            level=building.level,
            position_x=building.position.x,
            position_y=building.position.y,
            width=building.size.width,
            height=building.size.height,
        )

    def _resource_write(self) -> StoreWrite:
        island_id = self.island.id
        balance = self.island.ledger.balance
        return lambda: self.store.update_island_resources(island_id, balance)

    def _persist(self, operation: str, *writes: StoreWrite) -> Optional[PersistenceFailed]:
        for write in writes:
            try:
                write()
            except (StoreError, OSError) as exc:
                error = PersistenceFailed(operation, exc)
                self._record_persistence_error(error)
                return error
        return None

    def _record_persistence_error(self, error: PersistenceFailed) -> None:
        logger.warning("Persistence failed during %s: %s", error.operation, error.cause)
        self.last_persistence_error = error
        self.add_notification(error.message)

    def _reject(self, operation: str, error: GameError) -> None:
        logger.info("Rejected %s: %s (%s)", operation, error.message, error.code)
        self.add_notification(error.message)

    def _commit(
        self,
        *,
        building: Optional[Building] = None,
        persistence_error: Optional[PersistenceFailed] = None,
    ) -> MutationResult:
        self._state_version += 1
        snapshot = self.snapshot()
        self._emit(snapshot)
        return MutationResult(
            snapshot=snapshot, building=building, persistence_error=persistence_error
        )
