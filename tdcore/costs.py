"""
Traversal cost model

Two pure cost functions read the current tile state:
- agent_cost: what an enemy pays to enter a tile. Occupied walkable tiles are
  expensive but finite, so placing obstacles can never sever a lane.
- relocation_cost: what a walking tower pays. Agents are ignored; other
  obstacles are passable but discouraged.
"""
from enum import Enum
from typing import Callable, Dict

from tdcore.models import Position, TileType, TILE_STATS, UNREACHABLE
from tdcore.grid import Grid, Tile
from tdcore.config import (
    RELOCATION_PATH_COST, RELOCATION_HIGH_GROUND_COST, RELOCATION_OCCUPIED_COST
)

CostFunction = Callable[[Position], float]


class CostPerspective(Enum):
    """Who is moving"""
    AGENT = "agent"
    RELOCATION = "relocation"


RELOCATION_TERRAIN_COSTS: Dict[TileType, float] = {
    TileType.PATH: RELOCATION_PATH_COST,
    TileType.HIGH_GROUND: RELOCATION_HIGH_GROUND_COST,
    TileType.HIGH_GROUND_VARIANT: RELOCATION_HIGH_GROUND_COST,
    TileType.ROCK: UNREACHABLE,
}

# Cheapest possible relocation step; scales the A* heuristic
MIN_RELOCATION_STEP_COST: float = min(
    [c for c in RELOCATION_TERRAIN_COSTS.values() if c != UNREACHABLE] + [RELOCATION_OCCUPIED_COST]
)


def agent_cost(tile: Tile) -> float:
    """Cost for an agent to enter tile"""
    base_cost = TILE_STATS[tile.type].movement_cost
    if base_cost == UNREACHABLE:
        return UNREACHABLE

    if tile.occupant is not None:
        return max(base_cost, tile.occupant.stats.movement_penalty)

    return base_cost


def relocation_cost(tile: Tile) -> float:
    """Cost for a walking tower to enter tile"""
    base_cost = RELOCATION_TERRAIN_COSTS[tile.type]
    if base_cost == UNREACHABLE:
        return UNREACHABLE

    if tile.occupant is not None:
        return RELOCATION_OCCUPIED_COST

    return base_cost


_COST_TABLE: Dict[CostPerspective, Callable[[Tile], float]] = {
    CostPerspective.AGENT: agent_cost,
    CostPerspective.RELOCATION: relocation_cost,
}


def cost_function(grid: Grid, perspective: CostPerspective) -> CostFunction:
    """Bind a perspective's cost to the grid's current state"""
    tile_cost = _COST_TABLE[perspective]

    def cost(pos: Position) -> float:
        return tile_cost(grid.tiles[pos.x][pos.y])

    return cost
