"""
Pathfinding: A* for tower relocation

Handles:
- Rock as blocked
- Other obstacles as passable but discouraged
- Agents ignored entirely

Step costs vary (path 1, high ground 2, occupied 10), so the Manhattan
heuristic is scaled by the cheapest step cost to stay admissible.
"""
from typing import Dict, List, Optional, Tuple
import heapq
import itertools
import logging

from tdcore.models import Position, ORTHOGONAL, UNREACHABLE
from tdcore.grid import Grid
from tdcore.costs import CostPerspective, CostFunction, cost_function, MIN_RELOCATION_STEP_COST

logger = logging.getLogger(__name__)


def heuristic(a: Position, b: Position, step_cost: float = MIN_RELOCATION_STEP_COST) -> float:
    """Manhattan distance times the cheapest possible step"""
    return a.manhattan_distance(b) * step_cost


def reconstruct_path(came_from: Dict[Position, Position], current: Position) -> List[Position]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def find_path(
    start: Position,
    goal: Position,
    grid: Grid,
    cost: Optional[CostFunction] = None,
    min_step_cost: float = MIN_RELOCATION_STEP_COST
) -> Optional[List[Position]]:
    """
    Find cheapest relocation path using A*.

    Args:
        start: Obstacle's current cell
        goal: Destination cell
        grid: Grid to search
        cost: Override cost function (defaults to the relocation perspective)
        min_step_cost: Cheapest step the cost function can return. Scales the heuristic;
            must not exceed any finite step or paths may not be optimal.

    Returns:
        List of positions from start to goal inclusive, or None if no path
    """
    grid.require_in_bounds(start)
    grid.require_in_bounds(goal)

    if cost is None:
        cost = cost_function(grid, CostPerspective.RELOCATION)

    # Both ends must be traversable, otherwise don't bother searching
    if cost(start) == UNREACHABLE or cost(goal) == UNREACHABLE:
        logger.debug(f"🚫 Relocation {start.to_tuple()} -> {goal.to_tuple()}: endpoint not traversable")
        return None

    if start == goal:
        return [start]

    counter = itertools.count()  # FIFO among equal f-scores
    open_heap: List[Tuple[float, int, Position]] = [(heuristic(start, goal, min_step_cost), next(counter), start)]
    came_from: Dict[Position, Position] = {}
    g_score: Dict[Position, float] = {start: 0}
    closed = set()

    while open_heap:
        _, _, current = heapq.heappop(open_heap)

        if current == goal:
            return reconstruct_path(came_from, current)

        if current in closed:
            continue
        closed.add(current)

        for dx, dy in ORTHOGONAL:
            neighbor = Position(current.x + dx, current.y + dy)
            if not grid.in_bounds(neighbor) or neighbor in closed:
                continue

            step = cost(neighbor)
            if step == UNREACHABLE:
                continue

            tentative = g_score[current] + step
            if tentative < g_score.get(neighbor, UNREACHABLE):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                priority = tentative + heuristic(neighbor, goal, min_step_cost)
                heapq.heappush(open_heap, (priority, next(counter), neighbor))

    logger.debug(f"🚫 Relocation {start.to_tuple()} -> {goal.to_tuple()}: no path")
    return None


def path_cost(path: List[Position], grid: Grid) -> float:
    """Total relocation cost of entering every cell after the first"""
    cost = cost_function(grid, CostPerspective.RELOCATION)
    return sum(cost(p) for p in path[1:])
