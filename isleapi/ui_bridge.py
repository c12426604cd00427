"""Public API between the UI layer and the island facade.

Every function returns a plain dict. Successful calls carry ``"ok": True``;
rejected calls carry ``"ok": False`` with ``error_code``, ``error_message``
and the HTTP status the web layer should use.
"""
from __future__ import annotations

from typing import Dict, Optional

from islecore.building_models import Position
from islecore.errors import (
    GameError,
    InsufficientResources,
    NotFound,
    PersistenceFailed,
    PlacementError,
    UnknownBuildingType,
)
from islecore.facade import GameFacade, MutationResult


def _success_response(**payload: object) -> Dict[str, object]:
    response: Dict[str, object] = {"ok": True}
    response.update(payload)
    return response


def _error_response(
    code: str, message: str, *, http_status: int | None = None
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "ok": False,
        "error_code": code,
        "error_message": message,
        "error": message,
    }
    if http_status is not None:
        payload["http_status"] = int(http_status)
    return payload


def _status_for(error: GameError) -> int:
    if isinstance(error, (NotFound, UnknownBuildingType)):
        return 404
    if isinstance(error, PlacementError):
        return 409
    if isinstance(error, PersistenceFailed):
        return 503
    return 400


def _game_error_response(facade: GameFacade, error: GameError) -> Dict[str, object]:
    payload = _error_response(error.code, error.message, http_status=_status_for(error))
    if isinstance(error, InsufficientResources):
        payload["requires"] = {
            resource.value: float(amount) for resource, amount in error.missing.items()
        }
    payload["state"] = facade.snapshot()
    return payload


def _mutation_payload(facade: GameFacade, result: MutationResult, **extra: object) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "state": result.snapshot,
        "persisted": result.persisted,
        "notifications": facade.list_notifications(),
        "http_status": 200,
    }
    if result.building is not None:
        payload["building"] = result.building.to_payload()
    if result.persistence_error is not None:
        payload["warning"] = {
            "error_code": result.persistence_error.code,
            "error_message": result.persistence_error.message,
        }
    payload.update(extra)
    return _success_response(**payload)


def _parse_cell(value: object) -> int:
    if isinstance(value, bool):
        raise TypeError("booleans are not cells")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not a whole cell")
        return int(value)
    # int("1.7") raises, so fractional strings are rejected too
    return int(value)  # type: ignore[call-overload]


def _parse_position(x: object, y: object) -> Optional[Position]:
    try:
        return Position(_parse_cell(x), _parse_cell(y))
    except (TypeError, ValueError):
        return None


def _invalid_position() -> Dict[str, object]:
    return _error_response(
        "invalid_position", "Position must have integer x and y", http_status=400
    )


# ---------------------------------------------------------------------------
# Reads


def get_state(facade: GameFacade) -> Dict[str, object]:
    """Return a snapshot of the island together with pending notifications."""

    return _success_response(
        state=facade.snapshot(),
        notifications=facade.list_notifications(),
    )


def get_catalog(facade: GameFacade) -> Dict[str, object]:
    return _success_response(buildings=facade.catalog_payload())


def preview_placement(facade: GameFacade, building_type: str, x: object, y: object) -> Dict[str, object]:
    position = _parse_position(x, y)
    if position is None:
        return _invalid_position()
    result = facade.can_place(building_type, position)
    return _success_response(placement=result.to_payload())


def get_upgrade_cost(facade: GameFacade, building_id: str) -> Dict[str, object]:
    try:
        cost = facade.upgrade_cost(building_id)
    except GameError as exc:
        return _game_error_response(facade, exc)
    return _success_response(cost=cost.to_dict())


# ---------------------------------------------------------------------------
# Building interactions


def construct_building(facade: GameFacade, building_type: str, x: object, y: object) -> Dict[str, object]:
    position = _parse_position(x, y)
    if position is None:
        return _invalid_position()
    try:
        result = facade.construct(building_type, position)
    except GameError as exc:
        return _game_error_response(facade, exc)
    return _mutation_payload(facade, result)


def upgrade_building(facade: GameFacade, building_id: str) -> Dict[str, object]:
    try:
        result = facade.upgrade(building_id)
    except GameError as exc:
        return _game_error_response(facade, exc)
    return _mutation_payload(facade, result)


def demolish_building(facade: GameFacade, building_id: str) -> Dict[str, object]:
    try:
        result = facade.demolish(building_id)
    except GameError as exc:
        return _game_error_response(facade, exc)
    return _mutation_payload(facade, result)


def rename_island(facade: GameFacade, name: object) -> Dict[str, object]:
    try:
        result = facade.rename_island(name)  # type: ignore[arg-type]
    except GameError as exc:
        return _game_error_response(facade, exc)
    return _mutation_payload(facade, result)


# ---------------------------------------------------------------------------
# Simulation


def tick(facade: GameFacade) -> Dict[str, object]:
    """Run one production tick immediately."""

    return _mutation_payload(facade, facade.tick())


def reconcile(facade: GameFacade) -> Dict[str, object]:
    """Reload the island from the store after a failed write-back."""

    try:
        snapshot = facade.reconcile()
    except PersistenceFailed as exc:
        return _game_error_response(facade, exc)
    return _success_response(state=snapshot, http_status=200)
