"""Persistence collaborators that store islands and their buildings.

The core only talks to the :class:`IslandStore` protocol. Two adapters ship
with the game: an in-memory store for tests and single sessions, and a JSON
save file.
"""
from __future__ import annotations

import json
import threading
import uuid
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from . import config
from .resources import ResourceAmount


class StoreError(Exception):
    """Raised by a store when a read or write cannot be completed."""


@dataclass(frozen=True)
class IslandRecord:
    id: str
    name: str
    level: int
    grid_width: int
    grid_height: int
    steam: float
    ore: float
    aether: float

    @property
    def resources(self) -> ResourceAmount:
        return ResourceAmount(steam=self.steam, ore=self.ore, aether=self.aether)


@dataclass(frozen=True)
class BuildingRecord:
    id: str
    island_id: str
    type: str
    level: int
    position_x: int
    position_y: int
    width: Optional[int] = None
    height: Optional[int] = None


class IslandStore(Protocol):
    """Operations the core calls after each accepted mutation."""

    def fetch_or_create_island(self) -> IslandRecord:
        """Return the player's island, creating it with defaults if needed."""

    def fetch_buildings(self, island_id: str) -> List[BuildingRecord]:
        """Return every building stored for ``island_id``."""

    def insert_building(self, record: BuildingRecord) -> None:
        """Store a newly constructed building."""

    def delete_building(self, building_id: str) -> None:
        """Remove a demolished building."""

    def update_building_level(self, building_id: str, level: int) -> None:
        """Persist the new level of an upgraded building."""

    def update_island_resources(self, island_id: str, resources: ResourceAmount) -> None:
        """Persist the island's resource balance."""

    def update_island_name(self, island_id: str, name: str) -> None:
        """Persist a renamed island."""


def default_island_record() -> IslandRecord:
    start = ResourceAmount.from_mapping(config.STARTING_RESOURCES)
    return IslandRecord(
        id=uuid.uuid4().hex,
        name=config.DEFAULT_ISLAND_NAME,
        level=config.DEFAULT_ISLAND_LEVEL,
        grid_width=config.GRID_WIDTH,
        grid_height=config.GRID_HEIGHT,
        steam=start.steam,
        ore=start.ore,
        aether=start.aether,
    )


class InMemoryIslandStore:
    """Keeps a single island in process memory."""

    def __init__(self, island: Optional[IslandRecord] = None) -> None:
        self._lock = threading.Lock()
        self.island: Optional[IslandRecord] = island
        self.buildings: Dict[str, BuildingRecord] = {}

    # ------------------------------------------------------------------
    def fetch_or_create_island(self) -> IslandRecord:
        with self._lock:
            if self.island is None:
                self.island = default_island_record()
            return self.island

    def fetch_buildings(self, island_id: str) -> List[BuildingRecord]:
        with self._lock:
            return [record for record in self.buildings.values() if record.island_id == island_id]

    def insert_building(self, record: BuildingRecord) -> None:
        with self._lock:
            self.buildings[record.id] = record

    def delete_building(self, building_id: str) -> None:
        with self._lock:
            self.buildings.pop(building_id, None)

    def update_building_level(self, building_id: str, level: int) -> None:
        with self._lock:
            record = self.buildings.get(building_id)
            if record is None:
                raise StoreError(f"Building {building_id} is not stored")
            self.buildings[building_id] = replace(record, level=int(level))

    def update_island_resources(self, island_id: str, resources: ResourceAmount) -> None:
        with self._lock:
            island = self._require_island(island_id)
            self.island = replace(
                island, steam=resources.steam, ore=resources.ore, aether=resources.aether
            )

    def update_island_name(self, island_id: str, name: str) -> None:
        with self._lock:
            island = self._require_island(island_id)
            self.island = replace(island, name=name)

    def _require_island(self, island_id: str) -> IslandRecord:
        if self.island is None or self.island.id != island_id:
            raise StoreError(f"Island {island_id} is not stored")
        return self.island


class JsonFileIslandStore(InMemoryIslandStore):
    """In-memory store that rewrites a JSON save file after every change."""

    def __init__(self, path: Path | str = config.DEFAULT_SAVE_PATH) -> None:
        super().__init__()
        self.path = Path(path)
        self._loaded = False
        self._load_failed = False

    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self.path.exists():
            try:
                self._load()
            except StoreError:
                self._load_failed = True
                raise
        self._load_failed = False
        self._loaded = True

    def _check_writable(self) -> None:
        # an unreadable save file must survive until it is fixed or replaced
        if self._load_failed or self.island is None:
            raise StoreError(f"Save file {self.path} is not loaded; refusing to overwrite it")

    @staticmethod
    def _island_from_dict(entry: Dict[str, Any]) -> IslandRecord:
        return IslandRecord(
            id=str(entry["id"]),
            name=str(entry["name"]),
            level=int(entry["level"]),
            grid_width=int(entry["grid_width"]),
            grid_height=int(entry["grid_height"]),
            steam=float(entry["steam"]),
            ore=float(entry["ore"]),
            aether=float(entry["aether"]),
        )

    @staticmethod
    def _building_from_dict(entry: Dict[str, Any]) -> BuildingRecord:
        width, height = entry.get("width"), entry.get("height")
        return BuildingRecord(
            id=str(entry["id"]),
            island_id=str(entry["island_id"]),
            type=str(entry["type"]),
            level=int(entry["level"]),
            position_x=int(entry["position_x"]),
            position_y=int(entry["position_y"]),
            width=None if width is None else int(width),
            height=None if height is None else int(height),
        )

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Could not read save file {self.path}: {exc}") from exc
        if not isinstance(data, dict) or data.get("version") != config.SAVE_VERSION:
            raise StoreError("Incompatible save file version")
        try:
            island = data.get("island")
            records = [self._building_from_dict(entry) for entry in data.get("buildings", [])]
            self.island = self._island_from_dict(island) if island else None
            self.buildings = {record.id: record for record in records}
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Corrupt save file {self.path}: {exc}") from exc

    def _save(self) -> None:
        data: Dict[str, Any] = {
            "version": config.SAVE_VERSION,
            "island": None if self.island is None else asdict(self.island),
            "buildings": [asdict(record) for record in self.buildings.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
        except OSError as exc:
            raise StoreError(f"Could not write save file {self.path}: {exc}") from exc

    # ------------------------------------------------------------------
    def fetch_or_create_island(self) -> IslandRecord:
        # the save file is authoritative; re-read it on every fetch
        self._loaded = False
        self._ensure_loaded()
        created = self.island is None
        island = super().fetch_or_create_island()
        if created:
            self._save()
        return island

    def fetch_buildings(self, island_id: str) -> List[BuildingRecord]:
        self._ensure_loaded()
        return super().fetch_buildings(island_id)

    def insert_building(self, record: BuildingRecord) -> None:
        self._check_writable()
        super().insert_building(record)
        self._save()

    def delete_building(self, building_id: str) -> None:
        self._check_writable()
        super().delete_building(building_id)
        self._save()

    def update_building_level(self, building_id: str, level: int) -> None:
        self._check_writable()
        super().update_building_level(building_id, level)
        self._save()

    def update_island_resources(self, island_id: str, resources: ResourceAmount) -> None:
        self._check_writable()
        super().update_island_resources(island_id, resources)
        self._save()

    def update_island_name(self, island_id: str, name: str) -> None:
        self._check_writable()
        super().update_island_name(island_id, name)
        self._save()


__all__ = [
    "BuildingRecord",
    "InMemoryIslandStore",
    "IslandRecord",
    "IslandStore",
    "JsonFileIslandStore",
    "StoreError",
    "default_island_record",
]
