"""Centralised configuration for the sky island backend."""
from __future__ import annotations

from pathlib import Path
from typing import Dict

from .resources import Resource

# ---------------------------------------------------------------------------
# Island defaults

DEFAULT_ISLAND_NAME = "Novice Isle"
DEFAULT_ISLAND_LEVEL = 1

GRID_WIDTH = 10
GRID_HEIGHT = 10

STARTING_RESOURCES: Dict[Resource, float] = {
    Resource.STEAM: 500.0,
    Resource.ORE: 250.0,
    Resource.AETHER: 50.0,
}

# ---------------------------------------------------------------------------
# Simulation

# Seconds between two production ticks.
PRODUCTION_INTERVAL_SEC = 10.0

ISLAND_NAME_MAX_LENGTH = 40

NOTIFICATION_QUEUE_LIMIT = 50

# ---------------------------------------------------------------------------
# Persistence

SAVE_VERSION = 1
DEFAULT_SAVE_PATH = Path(__file__).resolve().parent.parent / "data" / "island.json"
