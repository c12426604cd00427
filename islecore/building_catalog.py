"""Catalogue of the buildings available on a sky island."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, Mapping

from .building_models import (
    BuildingType,
    BuildingTypeInfo,
    Footprint,
    RenderDescriptor,
)
from .errors import CatalogLoadError, UnknownBuildingType
from .resources import ResourceAmount


logger = logging.getLogger(__name__)


DEFAULT_BUILDING_DATA = {
    "building_types": [
        {
            "id": "steam_generator",
            "name": "Steam Generator",
            "description": "Produces steam power for your island and airships.",
            "cost": {"steam": 0, "ore": 50, "aether": 0},
            "production": {"steam": 10},
            "size": {"width": 1, "height": 1},
            "build_time": 60,
            "icon": "steam",
            "render": {"geometry": "cylinder", "color": "#d6a757", "dimensions": [0.7, 0.8, 1.5]},
        },
        {
            "id": "ore_mine",
            "name": "Ore Mine",
            "description": "Extracts valuable ore from your floating island.",
            "cost": {"steam": 100, "ore": 0, "aether": 0},
            "production": {"ore": 8},
            "size": {"width": 1, "height": 1},
            "build_time": 120,
            "icon": "pick",
            "render": {"geometry": "box", "color": "#8b4513", "dimensions": [1.2, 1.0, 1.2]},
        },
        {
            "id": "aether_collector",
            "name": "Aether Collector",
            "description": "Collects rare aether energy from the sky.",
            "cost": {"steam": 200, "ore": 100, "aether": 0},
            "production": {"aether": 3},
            "size": {"width": 1, "height": 1},
            "build_time": 300,
            "icon": "flask",
            "render": {"geometry": "sphere", "color": "#a67de8", "dimensions": [0.8]},
        },
        {
            "id": "workshop",
            "name": "Workshop",
            "description": "Build and upgrade airships.",
            "cost": {"steam": 150, "ore": 200, "aether": 10},
            "size": {"width": 2, "height": 2},
            "build_time": 300,
            "icon": "wrench",
            "render": {"geometry": "box", "color": "#c87f51", "dimensions": [1.5, 1.2, 1.5]},
        },
        {
            "id": "barracks",
            "name": "Barracks",
            "description": "Train crew for your airships.",
            "cost": {"steam": 100, "ore": 150, "aether": 5},
            "size": {"width": 2, "height": 1},
            "build_time": 240,
            "icon": "users",
            "render": {"geometry": "box", "color": "#7d7d7d", "dimensions": [1.5, 1.0, 1.2]},
        },
        {
            "id": "sky_forge",
            "name": "Sky Forge",
            "description": "Craft defenses for your island.",
            "cost": {"steam": 200, "ore": 300, "aether": 20},
            "size": {"width": 2, "height": 2},
            "build_time": 600,
            "icon": "shield",
            "render": {"geometry": "box", "color": "#ff5555", "dimensions": [1.5, 1.4, 1.5]},
        },
        {
            "id": "sky_dock",
            "name": "Sky Dock",
            "description": "Store and launch airships.",
            "cost": {"steam": 300, "ore": 250, "aether": 15},
            "size": {"width": 2, "height": 1},
            "build_time": 480,
            "icon": "anchor",
            "render": {"geometry": "box", "color": "#5da5e8", "dimensions": [1.8, 0.7, 1.2]},
        },
    ]
}


def normalise_building_key(value: object) -> str:
    if not isinstance(value, str):
        raise UnknownBuildingType(value)
    key = value.strip().lower().replace("-", "_")
    if not key:
        raise UnknownBuildingType(value)
    return key


def resolve_building_type(value: BuildingType | str) -> BuildingType:
    """Return the :class:`BuildingType` named by ``value``."""

    if isinstance(value, BuildingType):
        return value
    key = normalise_building_key(value)
    try:
        return BuildingType(key)
    except ValueError as exc:
        raise UnknownBuildingType(value) from exc


class BuildingCatalog:
    """Read-only lookup table from building type to its catalogue entry."""

    def __init__(self, entries: Mapping[BuildingType, BuildingTypeInfo]) -> None:
        self._entries: Dict[BuildingType, BuildingTypeInfo] = dict(entries)

    def lookup(self, building_type: BuildingType | str) -> BuildingTypeInfo:
        resolved = resolve_building_type(building_type)
        try:
            return self._entries[resolved]
        except KeyError as exc:
            raise UnknownBuildingType(building_type) from exc

    def __contains__(self, building_type: object) -> bool:
        try:
            self.lookup(building_type)  # type: ignore[arg-type]
        except UnknownBuildingType:
            return False
        return True

    def __iter__(self) -> Iterator[BuildingTypeInfo]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def to_payload(self) -> list:
        return [info.to_payload() for info in self._entries.values()]


def _parse_entry(entry: Mapping[str, object]) -> BuildingTypeInfo:
    building_type = BuildingType(str(entry["id"]))
    size_data = entry.get("size") or {}
    size = Footprint(width=int(size_data["width"]), height=int(size_data["height"]))
    if size.width < 1 or size.height < 1:
        raise ValueError(f"Footprint of {building_type.value} must be at least 1x1")
    production_data = entry.get("production")
    render_data = entry.get("render") or {}
    return BuildingTypeInfo(
        type=building_type,
        name=str(entry.get("name", building_type.value)),
        description=str(entry.get("description", "")),
        cost=ResourceAmount.from_mapping(entry.get("cost") or {}),
        production=None if not production_data else ResourceAmount.from_mapping(production_data),
        size=size,
        build_time=float(entry.get("build_time", 0.0)),
        icon=str(entry.get("icon", "")),
        render=RenderDescriptor(
            geometry=str(render_data.get("geometry", "box")),
            color=str(render_data.get("color", "#ffffff")),
            dimensions=tuple(float(v) for v in render_data.get("dimensions", (1.0, 1.0, 1.0))),
        ),
    )


def load_catalog(data: Mapping[str, object]) -> BuildingCatalog:
    """Build a catalogue from a table shaped like :data:`DEFAULT_BUILDING_DATA`.

    Every :class:`BuildingType` must be present exactly once. Any problem with
    the table raises :class:`CatalogLoadError`.
    """

    entries: Dict[BuildingType, BuildingTypeInfo] = {}
    try:
        for entry in data["building_types"]:
            info = _parse_entry(entry)
            if info.type in entries:
                raise ValueError(f"Duplicate catalogue entry: {info.type.value}")
            entries[info.type] = info
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogLoadError(f"Invalid building catalogue: {exc}") from exc

    missing = [building_type.value for building_type in BuildingType if building_type not in entries]
    if missing:
        raise CatalogLoadError(f"Building catalogue is missing: {', '.join(missing)}")
    logger.debug("Loaded building catalogue with %s entries", len(entries))
    return BuildingCatalog(entries)


def load_default_catalog() -> BuildingCatalog:
    """Return the catalogue built from the bundled table."""

    return load_catalog(DEFAULT_BUILDING_DATA)


def load_catalog_file(path: Path | str) -> BuildingCatalog:
    try:
        with open(Path(path), "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Could not read building catalogue {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogLoadError("Building catalogue file must contain an object")
    return load_catalog(data)


__all__ = [
    "BuildingCatalog",
    "DEFAULT_BUILDING_DATA",
    "load_catalog",
    "load_catalog_file",
    "load_default_catalog",
    "resolve_building_type",
]
