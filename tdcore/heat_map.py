"""
Heat-map routing: reverse Dijkstra flood fill + steepest-descent extraction

compute_heat_map fills cost-to-goal for every cell reachable from the goal.
A cell's value is the sum of the entry costs of every cell on the cheapest
route to the goal, the goal itself excluded:

    value(goal) = 0
    value(c) = cost(c) + min(value(n) for n in orthogonal neighbors of c)

extract_path walks downhill from any start cell, taking the strictly smallest
neighbor with a fixed up/down/left/right tie-break.
"""
from typing import List, Optional
from dataclasses import dataclass
import heapq
import logging

from tdcore.models import Position, ORTHOGONAL, UNREACHABLE
from tdcore.costs import CostFunction

logger = logging.getLogger(__name__)


@dataclass
class HeatMap:
    """Cost-to-goal field, column-major (values[x][y])"""
    goal: Position
    columns: int
    rows: int
    values: List[List[float]]

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.columns and 0 <= pos.y < self.rows

    def value(self, pos: Position) -> float:
        return self.values[pos.x][pos.y]

    def is_reachable(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.values[pos.x][pos.y] != UNREACHABLE

    def reachable_count(self) -> int:
        return sum(1 for column in self.values for v in column if v != UNREACHABLE)


def compute_heat_map(goal: Position, columns: int, rows: int, cost: CostFunction) -> HeatMap:
    """
    Dijkstra flood fill outward from goal.

    Args:
        goal: Exit cell, gets value 0
        columns: Grid width
        rows: Grid height
        cost: Cost to enter a cell; UNREACHABLE = impassable

    Returns:
        HeatMap; cells that cannot reach the goal keep UNREACHABLE
    """
    values: List[List[float]] = [[UNREACHABLE] * rows for _ in range(columns)]
    values[goal.x][goal.y] = 0

    frontier = [(0, goal.x, goal.y)]

    while frontier:
        current_cost, cx, cy = heapq.heappop(frontier)

        # Stale entry, a cheaper route was already settled
        if current_cost > values[cx][cy]:
            continue

        for dx, dy in ORTHOGONAL:
            nx, ny = cx + dx, cy + dy
            if nx < 0 or nx >= columns or ny < 0 or ny >= rows:
                continue

            tile_cost = cost(Position(nx, ny))
            if tile_cost == UNREACHABLE:
                continue

            new_cost = current_cost + tile_cost
            if new_cost < values[nx][ny]:
                values[nx][ny] = new_cost
                heapq.heappush(frontier, (new_cost, nx, ny))

    return HeatMap(goal=goal, columns=columns, rows=rows, values=values)


def extract_path(start: Position, heat_map: HeatMap) -> Optional[List[Position]]:
    """
    Follow steepest descent from start to the heat map's goal.

    Returns:
        Path from start to goal inclusive, or None if start cannot reach the goal
    """
    if not heat_map.is_reachable(start):
        return None

    path = [start]
    current = start
    max_steps = heat_map.columns * heat_map.rows  # safety cap

    while heat_map.value(current) > 0 and max_steps > 0:
        max_steps -= 1
        best = current
        best_cost = heat_map.value(current)

        for dx, dy in ORTHOGONAL:
            neighbor = Position(current.x + dx, current.y + dy)
            if not heat_map.in_bounds(neighbor):
                continue
            if heat_map.value(neighbor) < best_cost:
                best_cost = heat_map.value(neighbor)
                best = neighbor

        if best == current:
            # Not possible on a correctly relaxed heat map
            logger.error(f"❌ Heat map descent stalled at {current.to_tuple()} (goal {heat_map.goal.to_tuple()})")
            return None

        path.append(best)
        current = best

    if current != heat_map.goal:
        logger.error(f"❌ Heat map descent did not reach goal {heat_map.goal.to_tuple()} from {start.to_tuple()}")
        return None

    return path
