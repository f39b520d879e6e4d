"""
Built-in map repository

Maps are plain dicts parsed through parse_map_config, so the same validation
applies to built-in and externally loaded maps.
"""
from typing import Any, Dict, List
import logging

from tdcore.models import MapConfig, parse_map_config

logger = logging.getLogger(__name__)

MAP_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    # Serpentine corridor
    "classic_s": {
        "id": "classic_s",
        "name": "Classic S-Path",
        "walkable_areas": [
            [0, 2, 18, 1],    # row 2, x=0..17
            [17, 2, 1, 5],    # col 17, y=2..6
            [2, 6, 16, 1],    # row 6, x=2..17
            [2, 6, 1, 5],     # col 2, y=6..10
            [2, 10, 16, 1],   # row 10, x=2..17
            [17, 10, 1, 4],   # col 17, y=10..13
            [0, 13, 18, 1],   # row 13, x=0..17
        ],
        "spawn_points": {"spawn": [0, 2]},
        "exit_points": {"exit": [0, 13]},
    },
    "straight": {
        "id": "straight",
        "name": "Straight Path",
        "walkable_areas": [[0, 7, 20, 1]],
        "spawn_points": {"spawn": [0, 7]},
        "exit_points": {"exit": [19, 7]},
    },
    # Open field, towers force detours
    "maze_test": {
        "id": "maze_test",
        "name": "Maze Test",
        "walkable_areas": [
            [0, 7, 20, 1],
            [2, 1, 15, 13],
        ],
        "spawn_points": {"spawn": [0, 7]},
        "exit_points": {"exit": [19, 7]},
    },
    # Two independent lanes joined by a connector, rocks on the connector's flanks
    "two_lanes": {
        "id": "two_lanes",
        "name": "Two Lanes",
        "walkable_areas": [
            [0, 3, 20, 1],
            [0, 11, 20, 1],
            [10, 3, 1, 9],
        ],
        "rock_areas": [
            [9, 6, 1, 3],
            [11, 6, 1, 3],
        ],
        "spawn_points": {"spawn_a": [0, 3], "spawn_b": [0, 11]},
        "exit_points": {"exit_a": [19, 3], "exit_b": [19, 11]},
    },
}


def available_maps() -> List[str]:
    return list(MAP_DEFINITIONS.keys())


def get_map(map_id: str) -> MapConfig:
    """Validated MapConfig for a built-in map id"""
    if map_id not in MAP_DEFINITIONS:
        raise ValueError(f"Unknown map ID: {map_id} (available: {', '.join(available_maps())})")
    config = parse_map_config(MAP_DEFINITIONS[map_id])
    logger.debug(f"🗺️  Loaded map '{config.name}' {config.columns}x{config.rows}, {len(config.lanes)} lane(s)")
    return config
