import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, current_app, jsonify, request

from isleapi import ui_bridge
from islecore.facade import GameFacade
from islecore.persistence import JsonFileIslandStore
from islecore.scheduler import ProductionScheduler

logger = logging.getLogger(__name__)

FACADE_KEY = "isles_facade"
SCHEDULER_KEY = "isles_scheduler"


def _generate_request_metadata() -> tuple[str, str]:
    request_id = str(uuid.uuid4())
    server_time = datetime.now(timezone.utc).isoformat()
    return request_id, server_time


def _enrich_payload(payload: dict, request_id: str, server_time: str) -> dict:
    body = dict(payload or {})
    body["request_id"] = request_id
    body["server_time"] = server_time
    return body


def _json_response(payload: dict):
    request_id, server_time = _generate_request_metadata()
    body = _enrich_payload(payload, request_id, server_time)
    status = int(body.pop("http_status", 200))
    response = jsonify(body)
    response.status_code = status
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _facade() -> GameFacade:
    return current_app.extensions[FACADE_KEY]


def _building_payload() -> tuple[object, object, object]:
    payload = request.get_json(silent=True) or {}
    position = payload.get("position")
    if not isinstance(position, dict):
        position = {}
    x = payload.get("x", position.get("x"))
    y = payload.get("y", position.get("y"))
    return payload.get("type"), x, y


def create_app(facade: Optional[GameFacade] = None, **overrides) -> Flask:
    """Build the web app around ``facade``.

    Without a facade, one is created on top of a JSON save file
    (``GAME_STORE_PATH``). The production tick loop starts unless
    ``START_SCHEDULER`` is false or the app is in testing mode.
    """

    app = Flask(__name__)
    app.config.update(GAME_STORE_PATH=None, START_SCHEDULER=True)
    app.config.update(overrides)

    if facade is None:
        store_path = app.config["GAME_STORE_PATH"]
        store = JsonFileIslandStore(store_path) if store_path else JsonFileIslandStore()
        facade = GameFacade(store)
    scheduler = ProductionScheduler(facade)
    app.extensions[FACADE_KEY] = facade
    app.extensions[SCHEDULER_KEY] = scheduler
    if app.config["START_SCHEDULER"] and not app.config.get("TESTING"):
        scheduler.start()

    @app.get("/api/state")
    def api_state():
        """Return the current snapshot of the island."""

        return _json_response(ui_bridge.get_state(_facade()))

    @app.get("/api/catalog")
    def api_catalog():
        return _json_response(ui_bridge.get_catalog(_facade()))

    @app.post("/api/buildings")
    def api_construct():
        """Construct a building at the requested cell."""

        building_type, x, y = _building_payload()
        start = time.perf_counter()
        response = ui_bridge.construct_building(_facade(), building_type, x, y)
        logger.info(
            "Construct type=%s x=%s y=%s ok=%s error_code=%s duration_ms=%.2f",
            building_type,
            x,
            y,
            response.get("ok"),
            response.get("error_code"),
            (time.perf_counter() - start) * 1000.0,
        )
        return _json_response(response)

    @app.post("/api/buildings/preview")
    def api_preview():
        building_type, x, y = _building_payload()
        return _json_response(ui_bridge.preview_placement(_facade(), building_type, x, y))

    @app.get("/api/buildings/<building_id>/upgrade-cost")
    def api_upgrade_cost(building_id: str):
        return _json_response(ui_bridge.get_upgrade_cost(_facade(), building_id))

    @app.post("/api/buildings/<building_id>/upgrade")
    def api_upgrade(building_id: str):
        response = ui_bridge.upgrade_building(_facade(), building_id)
        logger.info(
            "Upgrade id=%s ok=%s error_code=%s",
            building_id,
            response.get("ok"),
            response.get("error_code"),
        )
        return _json_response(response)

    @app.delete("/api/buildings/<building_id>")
    def api_demolish(building_id: str):
        response = ui_bridge.demolish_building(_facade(), building_id)
        logger.info(
            "Demolish id=%s ok=%s error_code=%s",
            building_id,
            response.get("ok"),
            response.get("error_code"),
        )
        return _json_response(response)

    @app.post("/api/island/name")
    def api_rename():
        payload = request.get_json(silent=True) or {}
        return _json_response(ui_bridge.rename_island(_facade(), payload.get("name")))

    @app.post("/api/tick")
    def api_tick():
        """Run one production tick immediately."""

        return _json_response(ui_bridge.tick(_facade()))

    @app.post("/api/reconcile")
    def api_reconcile():
        return _json_response(ui_bridge.reconcile(_facade()))

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
