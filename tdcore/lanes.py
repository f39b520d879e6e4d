"""
LaneRouter: one heat map and one active path per spawn/exit lane
"""
from typing import Dict, Iterable, List, Optional
import logging

from tdcore.models import Position, Lane, Agent, MapConfig
from tdcore.grid import Grid
from tdcore.costs import CostPerspective, cost_function
from tdcore.heat_map import HeatMap, compute_heat_map, extract_path
from tdcore.errors import InvalidLaneError

logger = logging.getLogger(__name__)


class LaneRouter:
    """
    Keeps every lane's heat map in sync with the grid.

    Heat maps are only rebuilt when asked: placement code reports dirty lanes
    and the simulation calls recompute_lanes before agents move.
    """

    def __init__(self, grid: Grid, lanes: List[Lane]):
        self.grid = grid
        self.lanes: Dict[str, Lane] = {}
        for lane in lanes:
            grid.require_in_bounds(lane.spawn)
            grid.require_in_bounds(lane.exit)
            self.lanes[lane.name] = lane

    @classmethod
    def from_config(cls, grid: Grid, config: MapConfig) -> 'LaneRouter':
        lanes = [
            Lane(name=lc.name, spawn=Position.from_list(lc.spawn), exit=Position.from_list(lc.exit))
            for lc in config.lanes
        ]
        return cls(grid, lanes)

    @property
    def names(self) -> List[str]:
        return list(self.lanes.keys())

    def lane(self, name: str) -> Lane:
        if name not in self.lanes:
            raise InvalidLaneError(name)
        return self.lanes[name]

    def recompute(self, name: str) -> HeatMap:
        """Rebuild a lane's heat map and its spawn-to-exit path"""
        lane = self.lane(name)
        cost = cost_function(self.grid, CostPerspective.AGENT)
        lane.heat_map = compute_heat_map(lane.exit, self.grid.columns, self.grid.rows, cost)

        path = extract_path(lane.spawn, lane.heat_map)
        if path is None:
            # Obstacles never block agents, so this is a terrain problem
            logger.warning(f"⚠️  Lane '{name}': no path from spawn {lane.spawn.to_tuple()} "
                           f"to exit {lane.exit.to_tuple()} (check map terrain)")
            lane.active_path = []
        else:
            lane.active_path = path
            logger.debug(f"🗺️  Lane '{name}': path {len(path)} cells, "
                         f"cost {lane.heat_map.value(lane.spawn):.0f}")

        return lane.heat_map

    def recompute_lanes(self, names: Iterable[str]) -> List[str]:
        """
        Recompute several lanes.

        Returns:
            Names of lanes whose spawn cannot reach the exit
        """
        blocked = []
        for name in sorted(set(names)):
            self.recompute(name)
            if not self.lanes[name].active_path:
                blocked.append(name)
        return blocked

    def recompute_all(self) -> List[str]:
        return self.recompute_lanes(self.lanes.keys())

    def extract_path(self, name: str, from_cell: Position) -> Optional[List[Position]]:
        """Path from any cell to the lane's exit, None if unreachable"""
        lane = self.lane(name)
        self.grid.require_in_bounds(from_cell)
        if lane.heat_map is None:
            self.recompute(name)
        return extract_path(from_cell, lane.heat_map)

    def reroute_agent(self, agent: Agent) -> bool:
        """
        Re-derive an agent's path from its current cell.

        Returns False if the cell cannot reach the exit. The agent's path is
        cleared so it holds position until a later reroute succeeds.
        """
        cell = agent.cell
        if not self.grid.in_bounds(cell):
            logger.warning(f"⚠️  Agent {agent.id} is off the grid at {cell.to_tuple()}")
            return False

        path = self.extract_path(agent.lane, cell)
        if path is None:
            if agent.path:
                logger.warning(f"⚠️  Agent {agent.id} on lane '{agent.lane}': no path from {cell.to_tuple()}")
            agent.assign_path([])
            return False

        agent.assign_path(path)
        return True

    def reroute_agents(self, agents: Iterable[Agent], lane_names: Optional[Iterable[str]] = None) -> int:
        """
        Re-derive paths for every in-play agent (optionally only on some lanes).

        Returns:
            Number of agents that received a new path
        """
        wanted = set(lane_names) if lane_names is not None else None
        rerouted = 0
        for agent in agents:
            if not agent.in_play:
                continue
            if wanted is not None and agent.lane not in wanted:
                continue
            if self.reroute_agent(agent):
                rerouted += 1
        return rerouted
