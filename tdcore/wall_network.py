"""
Wall network analysis: BFS connectivity, attack zones, orphan decay

Each walling anchor owns the wall segments reachable from its cell through
orthogonally adjacent wall tiles. Sets are rebuilt from scratch every tick,
one BFS per anchor, and are never merged across anchors.

Orphaned segments (in no anchor's set) lose WALL_DECAY_PER_SIDE HP per
second for every exposed side. Out-of-bounds neighbors count as exposed.
"""
from typing import Dict, Iterable, List, Set, Tuple
from collections import deque
import logging

from tdcore.models import Position, Obstacle
from tdcore.grid import Grid
from tdcore.config import WALL_DECAY_PER_SIDE

logger = logging.getLogger(__name__)


def connected_set(grid: Grid, anchor: Position) -> Set[Position]:
    """
    BFS from anchor across wall segment tiles.

    Returns:
        Every cell reachable from anchor, anchor itself always included
    """
    grid.require_in_bounds(anchor)

    connected: Set[Position] = {anchor}
    queue = deque([anchor])

    while queue:
        current = queue.popleft()
        for neighbor in grid.neighbors4(current):
            if neighbor in connected:
                continue
            if grid.is_wall(neighbor):
                connected.add(neighbor)
                queue.append(neighbor)

    return connected


def attack_zone(grid: Grid, connected: Set[Position]) -> Set[Position]:
    """In-bounds 8-directional neighbors of the set that are not members"""
    zone: Set[Position] = set()
    for pos in connected:
        for neighbor in grid.neighbors8(pos):
            if neighbor not in connected:
                zone.add(neighbor)
    return zone


def is_adjacent_to_set(pos: Position, connected: Set[Position]) -> bool:
    """Orthogonally touches a member of connected"""
    return any(n in connected for n in pos.neighbors4())


def exposed_sides(grid: Grid, pos: Position) -> int:
    """Orthogonal sides not sheltered by another wall segment"""
    exposed = 0
    for neighbor in pos.neighbors4():
        if not grid.is_wall(neighbor):
            exposed += 1
    return exposed


def valid_wall_prefix_length(grid: Grid, path: List[Position], connected: Set[Position]) -> int:
    """
    Dry run of sequential wall placement along path.

    Each cell must be buildable and touch the network grown so far.
    Stops at the first invalid cell. The grid is not modified.
    """
    grown = set(connected)
    valid = 0
    for pos in path:
        if not grid.can_build(pos):
            break
        if not is_adjacent_to_set(pos, grown):
            break
        grown.add(pos)
        valid += 1
    return valid


def _straight_segment(start: Position, end: Position, include_start: bool) -> List[Position]:
    if start.x != end.x and start.y != end.y:
        return []

    step_x = (end.x > start.x) - (end.x < start.x)
    step_y = (end.y > start.y) - (end.y < start.y)

    if not include_start and step_x == 0 and step_y == 0:
        return []

    cells = []
    x, y = start.x, start.y
    if not include_start:
        x += step_x
        y += step_y

    while True:
        cells.append(Position(x, y))
        if x == end.x and y == end.y:
            break
        x += step_x
        y += step_y

    return cells


def build_l_path(start: Position, corner: Position, end: Position) -> List[Position]:
    """start -> corner -> end along two straight segments"""
    path = _straight_segment(start, corner, include_start=True)
    path.extend(_straight_segment(corner, end, include_start=False))
    return path or [start]


def build_l_candidates(start: Position, end: Position) -> Tuple[List[Position], List[Position]]:
    """
    Returns:
        (horizontal-then-vertical, vertical-then-horizontal)
    """
    horizontal_first = build_l_path(start, Position(end.x, start.y), end)
    vertical_first = build_l_path(start, Position(start.x, end.y), end)
    return horizontal_first, vertical_first


def choose_wall_drag_path(
    grid: Grid,
    start: Position,
    end: Position,
    connected: Set[Position]
) -> Tuple[List[Position], int]:
    """
    Pick the L-shaped drag path that can place the most walls.

    Ties go to the shorter path, then to horizontal-first.

    Returns:
        (chosen path, its valid prefix length)
    """
    candidate_a, candidate_b = build_l_candidates(start, end)
    prefix_a = valid_wall_prefix_length(grid, candidate_a, connected)
    prefix_b = valid_wall_prefix_length(grid, candidate_b, connected)

    if prefix_a != prefix_b:
        choose_a = prefix_a > prefix_b
    elif len(candidate_a) != len(candidate_b):
        choose_a = len(candidate_a) < len(candidate_b)
    else:
        choose_a = True

    return (candidate_a, prefix_a) if choose_a else (candidate_b, prefix_b)


class WallNetwork:
    """
    Per-tick wall connectivity for every anchor.

    rebuild() must run before targeting and decay in the same tick.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self.connected_sets: Dict[str, Set[Position]] = {}  # anchor id -> set

    def rebuild(self, anchors: Iterable[Obstacle]) -> Dict[str, Set[Position]]:
        """Fresh BFS per anchor, discarding last tick's sets"""
        self.connected_sets = {}
        for anchor in anchors:
            if anchor.is_dead or not anchor.kind.is_wall_anchor():
                continue
            self.connected_sets[anchor.id] = connected_set(self.grid, anchor.pos)
        return self.connected_sets

    def connected_set_for(self, anchor: Obstacle) -> Set[Position]:
        """This tick's set for anchor, or a fresh BFS if rebuild hasn't seen it"""
        cached = self.connected_sets.get(anchor.id)
        if cached is not None:
            return cached
        return connected_set(self.grid, anchor.pos)

    def attack_zone_for(self, anchor: Obstacle) -> Set[Position]:
        return attack_zone(self.grid, self.connected_set_for(anchor))

    def union(self) -> Set[Position]:
        protected: Set[Position] = set()
        for cells in self.connected_sets.values():
            protected |= cells
        return protected

    def is_adjacent_to_network(self, pos: Position, anchor: Obstacle) -> bool:
        return is_adjacent_to_set(pos, self.connected_set_for(anchor))

    def wall_segments(self) -> List[Obstacle]:
        walls = []
        for pos in self.grid.positions():
            tile = self.grid.tiles[pos.x][pos.y]
            if tile.has_wall:
                walls.append(tile.occupant)
        return walls

    def orphaned_walls(self) -> List[Obstacle]:
        protected = self.union()
        return [w for w in self.wall_segments() if w.pos not in protected]

    def apply_decay(self, dt: float) -> List[Obstacle]:
        """
        Damage orphaned walls by exposed sides * dt, keeping the fractional
        remainder on each wall.

        Returns:
            Orphaned walls that decayed (fully enclosed orphans are skipped)
        """
        decayed = []
        for wall in self.orphaned_walls():
            sides = exposed_sides(self.grid, wall.pos)
            if sides == 0:
                continue

            damage = wall.apply_decay_damage(WALL_DECAY_PER_SIDE * sides * dt)
            decayed.append(wall)
            if damage > 0:
                logger.info(f"🧱 Orphaned wall {wall.id} at {wall.pos.to_tuple()}: "
                            f"-{damage} HP ({sides} exposed), {wall.health}/{wall.max_health}")

        return decayed
