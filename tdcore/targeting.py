"""
Target selection strategies

All strategies are pure: they read agent positions/health and return one
agent (or None). Filtering by circular range or attack zone happens in
select_target before the strategy runs.
"""
from typing import Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass
import logging

from tdcore.models import Agent, Position, TargetingStrategy, world_distance

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass
class TargetingParams:
    """Spatial predicate and extra inputs for a selection"""
    range: float = 0.0  # pixels, 0 = no circular range filter
    splash_radius: float = 0.0  # MOST_GROUPED neighborhood
    attack_zone: Optional[Set[Position]] = None  # WALL_NETWORK cells
    all_agents: Optional[List[Agent]] = None  # MOST_GROUPED population (defaults to candidates)


def in_range(candidates: List[Agent], origin: Point, radius: float) -> List[Agent]:
    return [a for a in candidates if world_distance(origin, a.position) <= radius]


def in_zone(candidates: List[Agent], zone: Set[Position]) -> List[Agent]:
    return [a for a in candidates if a.cell in zone]


def agents_in_zone(agents: List[Agent], zone: Set[Position]) -> List[Agent]:
    """Every in-play agent standing in zone (frenzy hits all of them)"""
    return [a for a in agents if a.in_play and a.cell in zone]


def select_closest(candidates: List[Agent], origin: Point) -> Optional[Agent]:
    best = None
    best_distance = float("inf")
    for agent in candidates:
        distance = world_distance(origin, agent.position)
        if distance < best_distance:
            best_distance = distance
            best = agent
    return best


def select_weakest(candidates: List[Agent]) -> Optional[Agent]:
    best = None
    for agent in candidates:
        if best is None or agent.health < best.health:
            best = agent
    return best


def cluster_size(agent: Agent, population: List[Agent], splash_radius: float) -> int:
    """How many other agents stand within splash_radius of agent"""
    return sum(
        1 for other in population
        if other is not agent and world_distance(agent.position, other.position) <= splash_radius
    )


def select_most_clustered(candidates: List[Agent], population: List[Agent],
                          splash_radius: float) -> Optional[Agent]:
    """
    Candidate with the most neighbors inside the splash radius.

    Tie-break: lowest health. O(candidates * population).
    """
    best = None
    best_count = -1
    for agent in candidates:
        count = cluster_size(agent, population, splash_radius)
        if count > best_count or (count == best_count and agent.health < best.health):
            best_count = count
            best = agent
    return best


def select_network_adjacent(candidates: List[Agent], origin: Point) -> Optional[Agent]:
    """
    Closest un-slowed candidate, else the closest slowed one.

    Candidates must already be restricted to the attack zone.
    """
    unslowed = [a for a in candidates if not a.is_slowed]
    if unslowed:
        return select_closest(unslowed, origin)
    return select_closest(candidates, origin)


def _closest(candidates: List[Agent], origin: Point, params: TargetingParams) -> Optional[Agent]:
    return select_closest(candidates, origin)


def _weakest(candidates: List[Agent], origin: Point, params: TargetingParams) -> Optional[Agent]:
    return select_weakest(candidates)


def _most_grouped(candidates: List[Agent], origin: Point, params: TargetingParams) -> Optional[Agent]:
    population = params.all_agents if params.all_agents is not None else candidates
    population = [a for a in population if a.in_play]
    return select_most_clustered(candidates, population, params.splash_radius)


def _wall_network(candidates: List[Agent], origin: Point, params: TargetingParams) -> Optional[Agent]:
    return select_network_adjacent(candidates, origin)


STRATEGIES: Dict[TargetingStrategy, Callable[[List[Agent], Point, TargetingParams], Optional[Agent]]] = {
    TargetingStrategy.CLOSEST: _closest,
    TargetingStrategy.LOWEST_HP: _weakest,
    TargetingStrategy.MOST_GROUPED: _most_grouped,
    TargetingStrategy.WALL_NETWORK: _wall_network,
}


def select_target(
    strategy: TargetingStrategy,
    candidates: List[Agent],
    origin: Point,
    params: TargetingParams
) -> Optional[Agent]:
    """
    Pick one target.

    Args:
        strategy: Selection strategy
        candidates: Agents to consider (dead or finished agents are ignored)
        origin: Attacker position in world pixels
        params: Range / zone / splash inputs

    Returns:
        Selected agent or None
    """
    live = [a for a in candidates if a.in_play]

    if strategy is TargetingStrategy.WALL_NETWORK:
        if params.attack_zone is None:
            return None
        live = in_zone(live, params.attack_zone)
    elif params.range > 0:
        live = in_range(live, origin, params.range)

    if not live:
        return None

    return STRATEGIES[strategy](live, origin, params)
