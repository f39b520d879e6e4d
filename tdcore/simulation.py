"""
Simulation: single-threaded tick loop over grid, lanes, walls and targeting

Tick order:
1. apply queued commands (placement, removal, moves, walls, terrain, frenzy)
2. recompute dirty lanes, re-derive paths for their agents
3. reroute agents that left their path, then move agents
4. rebuild every anchor's wall network
5. select targets for non-moving attack-capable obstacles (frenzied anchors
   skip this and hit their whole attack zone instead)
6. decay orphaned walls, sweep destroyed obstacles, recompute their lanes
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import itertools
import logging

from tdcore.models import (
    Position, Agent, ObstacleKind, ObstacleState, TileType, MapConfig, TargetingStrategy
)
from tdcore.grid import Grid
from tdcore.lanes import LaneRouter
from tdcore.placement import PlacementManager, TopologyChange
from tdcore.wall_network import WallNetwork, choose_wall_drag_path
from tdcore.targeting import TargetingParams, select_target, agents_in_zone
from tdcore.errors import OutOfBoundsError, InvalidLaneError
from tdcore.table_logger import log_simulation_table
from tdcore.config import (
    TICK_SECONDS, TABLE_LOG_INTERVAL, WALL_SLOW_DURATION, FRENZY_DURATION,
    DEFAULT_AGENT_HEALTH, DEFAULT_AGENT_SPEED
)

logger = logging.getLogger(__name__)


class CommandType(Enum):
    """Queued grid mutation"""
    PLACE = "place"
    REMOVE = "remove"
    MOVE = "move"
    PLACE_WALL = "place_wall"
    PLACE_WALL_PATH = "place_wall_path"
    DRAG_WALL = "drag_wall"
    SET_TERRAIN = "set_terrain"
    ACTIVATE_FRENZY = "activate_frenzy"


@dataclass
class Command:
    """Request from input handling, applied at the start of the next tick"""
    type: CommandType
    pos: Optional[Position] = None
    kind: Optional[ObstacleKind] = None
    obstacle_id: Optional[str] = None
    path: List[Position] = field(default_factory=list)
    end: Optional[Position] = None  # DRAG_WALL end cell
    tile_type: Optional[TileType] = None
    duration: float = 0.0  # ACTIVATE_FRENZY seconds


@dataclass
class TickReport:
    """What happened during one step"""
    tick: int
    targets: Dict[str, str] = field(default_factory=dict)  # obstacle id -> agent id
    decayed_walls: List[str] = field(default_factory=list)
    removed_obstacles: List[str] = field(default_factory=list)
    lanes_without_path: List[str] = field(default_factory=list)
    frenzy_hits: Dict[str, List[str]] = field(default_factory=dict)  # anchor id -> agent ids
    escaped_agents: List[str] = field(default_factory=list)
    rejected_commands: int = 0


class Simulation:
    """Owns the grid and every per-tick computation over it"""

    def __init__(self, grid: Grid, router: LaneRouter):
        self.grid = grid
        self.router = router
        self.network = WallNetwork(grid)
        self.placement = PlacementManager(grid, self.network, router.names)
        self.agents: List[Agent] = []
        self.commands: List[Command] = []
        self.tick = 0
        self._agent_ids = itertools.count(1)

        blocked = self.router.recompute_all()
        if blocked:
            logger.warning(f"⚠️  Lanes without path at start: {blocked}")

    @classmethod
    def from_map(cls, config: MapConfig) -> 'Simulation':
        grid = Grid.from_config(config)
        return cls(grid, LaneRouter.from_config(grid, config))

    # ---- external requests ----

    def queue(self, command: Command):
        self.commands.append(command)

    def place(self, kind: ObstacleKind, pos: Position):
        self.queue(Command(CommandType.PLACE, pos=pos, kind=kind))

    def remove(self, obstacle_id: str):
        self.queue(Command(CommandType.REMOVE, obstacle_id=obstacle_id))

    def move(self, obstacle_id: str, destination: Position):
        self.queue(Command(CommandType.MOVE, pos=destination, obstacle_id=obstacle_id))

    def place_wall(self, anchor_id: str, pos: Position):
        self.queue(Command(CommandType.PLACE_WALL, pos=pos, obstacle_id=anchor_id))

    def place_wall_path(self, anchor_id: str, path: List[Position]):
        self.queue(Command(CommandType.PLACE_WALL_PATH, path=list(path), obstacle_id=anchor_id))

    def drag_wall(self, anchor_id: str, start: Position, end: Position):
        self.queue(Command(CommandType.DRAG_WALL, pos=start, end=end, obstacle_id=anchor_id))

    def set_terrain(self, pos: Position, tile_type: TileType):
        self.queue(Command(CommandType.SET_TERRAIN, pos=pos, tile_type=tile_type))

    def activate_frenzy(self, anchor_id: str, duration: float = FRENZY_DURATION):
        self.queue(Command(CommandType.ACTIVATE_FRENZY, obstacle_id=anchor_id, duration=duration))

    def spawn_agent(self, lane: str, health: float = DEFAULT_AGENT_HEALTH,
                    speed: float = DEFAULT_AGENT_SPEED) -> Agent:
        """Spawn an agent at a lane's entry, following the lane's current path"""
        lane_state = self.router.lane(lane)
        agent = Agent.spawn(f"agent_{next(self._agent_ids)}", lane, lane_state.spawn, health, speed)
        if lane_state.active_path:
            agent.assign_path(lane_state.active_path)
        else:
            logger.warning(f"⚠️  Agent {agent.id} spawned on lane '{lane}' with no path")
        self.agents.append(agent)
        return agent

    def live_agents(self) -> List[Agent]:
        return [a for a in self.agents if a.in_play]

    # ---- tick ----

    def _apply_command(self, command: Command) -> TopologyChange:
        placement = self.placement

        if command.type is CommandType.PLACE:
            return placement.place_obstacle(command.kind, command.pos)

        if command.type is CommandType.SET_TERRAIN:
            return placement.set_terrain(command.pos, command.tile_type)

        obstacle = placement.obstacles.get(command.obstacle_id)
        if obstacle is None:
            logger.warning(f"⚠️  {command.type.value}: unknown obstacle '{command.obstacle_id}'")
            return TopologyChange()

        if command.type is CommandType.REMOVE:
            return placement.remove_obstacle(obstacle)
        if command.type is CommandType.MOVE:
            return placement.start_move(obstacle, command.pos)
        if command.type is CommandType.PLACE_WALL:
            return placement.try_place_wall(command.pos, obstacle)
        if command.type is CommandType.PLACE_WALL_PATH:
            return placement.try_place_wall_path(command.path, obstacle)
        if command.type is CommandType.DRAG_WALL:
            self.grid.require_in_bounds(command.pos)
            self.grid.require_in_bounds(command.end)
            path, _ = choose_wall_drag_path(
                self.grid, command.pos, command.end, self.network.connected_set_for(obstacle)
            )
            return placement.try_place_wall_path(path, obstacle)
        if command.type is CommandType.ACTIVATE_FRENZY:
            if not obstacle.kind.is_wall_anchor():
                raise ValueError(f"{obstacle.id} ({obstacle.kind.value}) has no wall network to frenzy")
            obstacle.activate_frenzy(command.duration)
            logger.info(f"🔥 {obstacle.id}: frenzy for {command.duration:.1f}s")
            return TopologyChange()

        raise ValueError(f"Unhandled command {command.type}")

    def _apply_commands(self, report: TickReport) -> TopologyChange:
        change = TopologyChange()
        commands, self.commands = self.commands, []
        for command in commands:
            try:
                change.merge(self._apply_command(command))
            except (OutOfBoundsError, InvalidLaneError, ValueError) as e:
                # Bad request from input handling, never fatal for the tick
                report.rejected_commands += 1
                logger.warning(f"⚠️  Rejected {command.type.value}: {e}")
        return change

    def _refresh_lanes(self, change: TopologyChange, report: TickReport):
        if not change.dirty_lanes:
            return
        blocked = self.router.recompute_lanes(change.dirty_lanes)
        for name in blocked:
            if name not in report.lanes_without_path:
                report.lanes_without_path.append(name)
        self.router.reroute_agents(self.agents, change.dirty_lanes)

    def _move_agents(self, dt: float, report: TickReport):
        for agent in self.agents:
            if not agent.in_play:
                continue
            if not agent.is_on_path():
                self.router.reroute_agent(agent)
            if not agent.path:
                continue  # hold position until a path exists
            agent.advance(dt)
            if agent.reached_end:
                report.escaped_agents.append(agent.id)
                logger.info(f"🏁 Agent {agent.id} reached the exit of lane '{agent.lane}'")

    def _select_targets(self, report: TickReport):
        agents = self.live_agents()
        if not agents:
            return

        for obstacle in self.placement.attackers():
            if obstacle.is_frenzied:
                continue  # frenzy already hits the whole zone
            stats = obstacle.stats
            params = TargetingParams(range=stats.range, splash_radius=stats.splash_radius, all_agents=agents)
            if stats.targeting is TargetingStrategy.WALL_NETWORK:
                params.attack_zone = self.network.attack_zone_for(obstacle)

            target = select_target(stats.targeting, agents, obstacle.world_position, params)
            if target is None:
                continue

            report.targets[obstacle.id] = target.id
            if stats.targeting is TargetingStrategy.WALL_NETWORK:
                target.apply_slow(WALL_SLOW_DURATION)

    def _run_frenzies(self, dt: float, report: TickReport):
        """Frenzied anchors hit and slow every agent in their attack zone at their fire rate"""
        agents = self.live_agents()
        for anchor in self.placement.anchors():
            if not anchor.is_frenzied or anchor.is_dead:
                continue

            if anchor.state is not ObstacleState.MOVING and anchor.frenzy_fire_ready(dt):
                hits = agents_in_zone(agents, self.network.attack_zone_for(anchor))
                for agent in hits:
                    agent.take_damage(anchor.stats.damage)
                    agent.apply_slow(WALL_SLOW_DURATION)
                if hits:
                    report.frenzy_hits[anchor.id] = [a.id for a in hits]

            anchor.update_frenzy(dt)
            if not anchor.is_frenzied:
                logger.info(f"🔥 {anchor.id}: frenzy over")

    def step(self, dt: float = TICK_SECONDS) -> TickReport:
        """Advance the simulation by dt seconds"""
        self.tick += 1
        report = TickReport(tick=self.tick)

        change = self._apply_commands(report)
        change.merge(self.placement.update_moves(dt))
        self._refresh_lanes(change, report)

        self._move_agents(dt, report)

        self.network.rebuild(self.placement.anchors())
        self._select_targets(report)
        self._run_frenzies(dt, report)

        report.decayed_walls = [w.id for w in self.network.apply_decay(dt)]
        dead, removal = self.placement.remove_dead()
        report.removed_obstacles = [o.id for o in dead]
        self._refresh_lanes(removal, report)

        self.agents = [a for a in self.agents if a.in_play]

        if TABLE_LOG_INTERVAL > 0 and self.tick % TABLE_LOG_INTERVAL == 0:
            log_simulation_table(self, report)

        return report

    def run(self, ticks: int, dt: float = TICK_SECONDS) -> List[TickReport]:
        return [self.step(dt) for _ in range(ticks)]
