"""
PlacementManager: obstacle placement, removal, relocation and wall building

Every mutating call returns a TopologyChange listing the touched cells and
the lanes whose heat maps are now stale. Nothing is recomputed here; the
simulation feeds dirty lanes to the LaneRouter in the same tick.

Relocation uses two tile references:
- origin tile is cleared as soon as the move starts (ghost)
- destination tile is reserved until arrival, then occupied
"""
from typing import Dict, Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass, field
import itertools
import logging

from tdcore.models import (
    Position, Obstacle, ObstacleKind, ObstacleState, TileType, TILE_STATS, UNREACHABLE
)
from tdcore.grid import Grid
from tdcore.costs import RELOCATION_TERRAIN_COSTS
from tdcore.pathfinding import find_path
from tdcore.wall_network import WallNetwork, is_adjacent_to_set, valid_wall_prefix_length

logger = logging.getLogger(__name__)


@dataclass
class TopologyChange:
    """Result of a grid mutation"""
    cells: List[Position] = field(default_factory=list)
    dirty_lanes: Set[str] = field(default_factory=set)
    obstacle: Optional[Obstacle] = None  # placed / moved / removed obstacle
    placed: int = 0  # wall segments placed by a path

    @property
    def changed(self) -> bool:
        return bool(self.cells)

    def merge(self, other: 'TopologyChange') -> 'TopologyChange':
        self.cells.extend(other.cells)
        self.dirty_lanes |= other.dirty_lanes
        self.placed += other.placed
        return self


class PlacementManager:
    """Owns the obstacle roster and keeps tile references consistent"""

    def __init__(self, grid: Grid, network: WallNetwork, lane_names: Iterable[str]):
        self.grid = grid
        self.network = network
        self.lane_names: List[str] = list(lane_names)
        self.obstacles: Dict[str, Obstacle] = {}
        self._ids = itertools.count(1)

    # ---- queries ----

    def get_obstacle_at(self, pos: Position) -> Optional[Obstacle]:
        return self.grid.occupant_at(pos)

    def anchors(self) -> List[Obstacle]:
        return [o for o in self.obstacles.values() if o.kind.is_wall_anchor()]

    def attackers(self) -> List[Obstacle]:
        """Attack-capable obstacles that are not walking"""
        return [
            o for o in self.obstacles.values()
            if o.stats.can_attack and o.state is not ObstacleState.MOVING and not o.is_dead
        ]

    def moving(self) -> List[Obstacle]:
        return [o for o in self.obstacles.values() if o.state is ObstacleState.MOVING]

    def _change(self, cells: List[Position], obstacle: Optional[Obstacle] = None) -> TopologyChange:
        """Lanes go stale only when a cell agents can walk on changed"""
        dirty = set()
        for pos in cells:
            tile = self.grid.tiles[pos.x][pos.y]
            if TILE_STATS[tile.type].movement_cost != UNREACHABLE:
                dirty = set(self.lane_names)
                break
        return TopologyChange(cells=list(cells), dirty_lanes=dirty, obstacle=obstacle)

    def _next_id(self, kind: ObstacleKind) -> str:
        return f"{kind.value}_{next(self._ids)}"

    # ---- placement ----

    def can_place(self, kind: ObstacleKind, pos: Position) -> bool:
        """Buildable, unclaimed and at most one champion of each kind"""
        if not self.grid.can_build(pos):
            return False
        if kind.is_champion() and any(o.kind is kind for o in self.obstacles.values()):
            return False
        return True

    def place_obstacle(self, kind: ObstacleKind, pos: Position) -> TopologyChange:
        """Place a new obstacle. Empty change if the tile is not available."""
        self.grid.require_in_bounds(pos)

        if not self.can_place(kind, pos):
            logger.debug(f"⏸️  Cannot place {kind.value} at {pos.to_tuple()}")
            return TopologyChange()

        obstacle = Obstacle.create(self._next_id(kind), kind, pos)
        self.obstacles[obstacle.id] = obstacle
        self.grid.tiles[pos.x][pos.y].occupant = obstacle

        logger.info(f"🏗️  Placed {obstacle.id} at {pos.to_tuple()}")
        return self._change([pos], obstacle)

    def remove_obstacle(self, obstacle: Obstacle) -> TopologyChange:
        """Take an obstacle off the grid, releasing its reservation if it was walking"""
        if obstacle.id not in self.obstacles:
            return TopologyChange()

        cells = []
        if self.grid.in_bounds(obstacle.pos):
            tile = self.grid.tiles[obstacle.pos.x][obstacle.pos.y]
            if tile.occupant is obstacle:
                tile.occupant = None
                cells.append(obstacle.pos)

        if obstacle.state is ObstacleState.MOVING:
            reserved = self.grid.find_reservation(obstacle)
            if reserved is not None:
                reserved.reserved_by = None
                logger.debug(f"🔓 {obstacle.id}: released reservation {reserved.pos.to_tuple()}")

        del self.obstacles[obstacle.id]
        logger.info(f"💥 Removed {obstacle.id} at {obstacle.pos.to_tuple()}")
        return self._change(cells, obstacle)

    def remove_dead(self) -> Tuple[List[Obstacle], TopologyChange]:
        """Sweep obstacles at zero health"""
        change = TopologyChange()
        dead = [o for o in self.obstacles.values() if o.is_dead]
        for obstacle in dead:
            change.merge(self.remove_obstacle(obstacle))
        return dead, change

    # ---- relocation ----

    def preview_move(self, obstacle: Obstacle, destination: Position) -> Optional[List[Position]]:
        """Relocation path if the move would be accepted, else None"""
        self.grid.require_in_bounds(destination)

        if not obstacle.stats.can_walk or obstacle.state is not ObstacleState.ACTIVE:
            return None
        if not self.grid.can_build(destination):
            return None

        path = find_path(obstacle.pos, destination, self.grid)
        if path is None or len(path) <= 1:
            return None
        return path

    def start_move(self, obstacle: Obstacle, destination: Position) -> TopologyChange:
        """Ghost the origin, reserve the destination and start walking"""
        path = self.preview_move(obstacle, destination)
        if path is None:
            return TopologyChange()

        origin = obstacle.pos
        origin_tile = self.grid.tiles[origin.x][origin.y]
        if origin_tile.occupant is obstacle:
            origin_tile.occupant = None

        self.grid.tiles[destination.x][destination.y].reserved_by = obstacle
        obstacle.start_moving(path)

        logger.info(f"🚶 {obstacle.id}: {origin.to_tuple()} -> {destination.to_tuple()} ({len(path) - 1} steps)")
        return self._change([origin], obstacle)

    def complete_move(self, obstacle: Obstacle) -> TopologyChange:
        """Occupy the reserved destination"""
        destination = obstacle.destination or obstacle.pos
        tile = self.grid.tiles[destination.x][destination.y]
        if tile.reserved_by is obstacle:
            tile.reserved_by = None
        tile.occupant = obstacle
        obstacle.pos = destination
        obstacle.destination = None

        logger.info(f"📍 {obstacle.id}: arrived at {destination.to_tuple()}")
        return self._change([destination], obstacle)

    def update_moves(self, dt: float) -> TopologyChange:
        """Advance walking obstacles and tick cooldowns"""
        change = TopologyChange()
        for obstacle in list(self.obstacles.values()):
            if obstacle.state is ObstacleState.MOVING:
                if obstacle.advance_move(dt):
                    change.merge(self.complete_move(obstacle))
            else:
                obstacle.update_cooldown(dt)
        return change

    # ---- terrain ----

    def set_terrain(self, pos: Position, tile_type: TileType) -> TopologyChange:
        """
        Edit terrain, refusing edits that would strand an obstacle.

        Rejected when the tile is occupied or reserved and the new type is
        unbuildable, or when a walking obstacle's remaining path crosses the
        tile and the new type blocks relocation.

        Every lane is dirty afterwards: terrain may open or close a lane.
        """
        self.grid.require_in_bounds(pos)

        if RELOCATION_TERRAIN_COSTS[tile_type] == UNREACHABLE:
            for obstacle in self.moving():
                if pos in obstacle.move_path:
                    raise ValueError(
                        f"Cannot turn {pos.to_tuple()} into {tile_type.value}: "
                        f"{obstacle.id} is walking through it"
                    )

        self.grid.set_terrain(pos, tile_type)
        return TopologyChange(cells=[pos], dirty_lanes=set(self.lane_names))

    # ---- walls ----

    def _require_anchor(self, anchor: Obstacle):
        if not anchor.kind.is_wall_anchor():
            raise ValueError(f"{anchor.id} ({anchor.kind.value}) cannot anchor walls")

    def _place_wall_segment(self, pos: Position) -> Obstacle:
        wall = Obstacle.create(self._next_id(ObstacleKind.WALL_SEGMENT), ObstacleKind.WALL_SEGMENT, pos)
        self.obstacles[wall.id] = wall
        self.grid.tiles[pos.x][pos.y].occupant = wall
        return wall

    def try_place_wall(self, pos: Position, anchor: Obstacle) -> TopologyChange:
        """Single wall segment orthogonally touching the anchor's network"""
        self._require_anchor(anchor)
        self.grid.require_in_bounds(pos)

        if not self.grid.can_build(pos):
            return TopologyChange()
        if not self.network.is_adjacent_to_network(pos, anchor):
            return TopologyChange()

        wall = self._place_wall_segment(pos)
        self.network.connected_sets[anchor.id] = set(self.network.connected_set_for(anchor)) | {pos}

        logger.debug(f"🧱 {anchor.id}: wall {wall.id} at {pos.to_tuple()}")
        change = self._change([pos], wall)
        change.placed = 1
        return change

    def try_place_wall_path(self, path: List[Position], anchor: Obstacle) -> TopologyChange:
        """
        Place walls along path in order, stopping at the first invalid cell.

        Returns:
            TopologyChange with placed = number of segments built
        """
        self._require_anchor(anchor)
        for pos in path:
            self.grid.require_in_bounds(pos)

        connected = set(self.network.connected_set_for(anchor))
        placed_cells = []

        for pos in path:
            if not self.grid.can_build(pos):
                break
            if not is_adjacent_to_set(pos, connected):
                break
            self._place_wall_segment(pos)
            connected.add(pos)
            placed_cells.append(pos)

        self.network.connected_sets[anchor.id] = connected

        if placed_cells:
            logger.info(f"🧱 {anchor.id}: placed {len(placed_cells)}/{len(path)} wall segments")

        change = self._change(placed_cells)
        change.placed = len(placed_cells)
        return change

    def valid_wall_prefix_length(self, path: List[Position], anchor: Obstacle) -> int:
        """How many cells of path try_place_wall_path would build"""
        self._require_anchor(anchor)
        return valid_wall_prefix_length(self.grid, path, self.network.connected_set_for(anchor))
