"""Typed failures raised by the island economy core."""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from .resources import Resource


class GameError(Exception):
    """Base class for recoverable rule violations.

    ``code`` is a stable machine readable identifier used by the UI bridge.
    """

    code = "game_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnknownBuildingType(GameError):
    code = "unknown_building_type"

    def __init__(self, building_type: object) -> None:
        self.building_type = building_type
        super().__init__(f"Unknown building type: {building_type}")


class PlacementError(GameError):
    """Base class for rejected building positions."""

    code = "placement_rejected"


class OutOfBounds(PlacementError):
    code = "out_of_bounds"

    def __init__(self) -> None:
        super().__init__("Building is outside the island")


class Overlaps(PlacementError):
    code = "overlaps"

    def __init__(self, building_id: str) -> None:
        self.building_id = building_id
        super().__init__("Building collides with another structure")


class NotAdjacent(PlacementError):
    code = "not_adjacent"

    def __init__(self, message: str = "Building must touch an existing structure") -> None:
        super().__init__(message)


class InsufficientResources(GameError):
    """Raised when an action cannot be performed due to missing resources."""

    code = "insufficient_resources"

    def __init__(self, missing: Mapping[Resource, float]):
        self.missing: Dict[Resource, float] = dict(missing)
        super().__init__("Not enough resources")


class NotFound(GameError):
    code = "not_found"

    def __init__(self, building_id: str) -> None:
        self.building_id = building_id
        super().__init__(f"Building not found: {building_id}")


class InvalidName(GameError):
    code = "invalid_name"


class PersistenceFailed(GameError):
    """Write-back to the store failed after the in-memory mutation was applied."""

    code = "persistence_failed"

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Could not save {operation}{detail}")


class CatalogLoadError(Exception):
    """The building catalog could not be loaded; fatal at startup."""


__all__ = [
    "CatalogLoadError",
    "GameError",
    "InsufficientResources",
    "InvalidName",
    "NotAdjacent",
    "NotFound",
    "OutOfBounds",
    "Overlaps",
    "PersistenceFailed",
    "PlacementError",
    "UnknownBuildingType",
]
