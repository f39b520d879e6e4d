"""
Data models for the routing core

- Position: grid coordinate (column, row)
- TileType / TileStats: terrain categories and their base properties
- ObstacleKind / ObstacleStats: placed towers (including wall segments)
- Obstacle, Agent, Lane: mutable simulation entities
- MapConfig / LaneConfig: validated map description handed over by map loading
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Dict, Any, TYPE_CHECKING
import math

from pydantic import BaseModel, Field, model_validator

from tdcore.config import (
    TILE_SIZE, DEFAULT_COLUMNS, DEFAULT_ROWS, AGENT_PATH_COST,
    GUN_MOVEMENT_PENALTY, CANNON_MOVEMENT_PENALTY, WALLING_MOVEMENT_PENALTY,
    CHAMPION_MOVEMENT_PENALTY, WALL_SEGMENT_MOVEMENT_PENALTY,
    SLOW_FACTOR, DEFAULT_AGENT_SPEED, DEFAULT_AGENT_HEALTH, MOVE_COOLDOWN_SECONDS
)

if TYPE_CHECKING:
    from tdcore.heat_map import HeatMap

# Sentinel for "cannot be entered / cannot reach the goal"
UNREACHABLE: float = math.inf

# Orthogonal directions in tie-break order: up, down, left, right
ORTHOGONAL: List[Tuple[int, int]] = [(0, -1), (0, 1), (-1, 0), (1, 0)]
DIAGONAL: List[Tuple[int, int]] = [(-1, -1), (1, -1), (-1, 1), (1, 1)]


@dataclass(frozen=True)
class Position:
    """2D grid position"""
    x: int
    y: int

    def to_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @classmethod
    def from_list(cls, data: List[int]) -> 'Position':
        return cls(x=int(data[0]), y=int(data[1]))

    def manhattan_distance(self, other: 'Position') -> int:
        """Manhattan distance"""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def neighbors4(self) -> List['Position']:
        """Orthogonal neighbors (up, down, left, right). Not bounds-checked."""
        return [Position(self.x + dx, self.y + dy) for dx, dy in ORTHOGONAL]

    def neighbors8(self) -> List['Position']:
        """Orthogonal then diagonal neighbors. Not bounds-checked."""
        return [Position(self.x + dx, self.y + dy) for dx, dy in ORTHOGONAL + DIAGONAL]

    def is_adjacent(self, other: 'Position') -> bool:
        return self.manhattan_distance(other) == 1


def grid_to_world(pos: Position) -> Tuple[float, float]:
    """Center of a tile in world pixels"""
    return (pos.x * TILE_SIZE + TILE_SIZE / 2, pos.y * TILE_SIZE + TILE_SIZE / 2)


def world_to_grid(x: float, y: float) -> Position:
    """Tile containing a world-pixel point"""
    return Position(int(math.floor(x / TILE_SIZE)), int(math.floor(y / TILE_SIZE)))


def world_distance(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


class TileType(Enum):
    """Terrain category"""
    HIGH_GROUND = "high_ground"  # towers can build, agents cannot walk
    HIGH_GROUND_VARIANT = "high_ground_variant"  # same as HIGH_GROUND, different sprite
    PATH = "path"  # agents walk, towers can build
    ROCK = "rock"  # impassable and unbuildable


@dataclass(frozen=True)
class TileStats:
    """Immutable stats shared by a terrain category"""
    name: str
    movement_cost: float  # agent cost to enter; UNREACHABLE = impassable
    buildable: bool


TILE_STATS: Dict[TileType, TileStats] = {
    TileType.HIGH_GROUND: TileStats("High Ground", UNREACHABLE, True),
    TileType.HIGH_GROUND_VARIANT: TileStats("High Ground Variant", UNREACHABLE, True),
    TileType.PATH: TileStats("Path", AGENT_PATH_COST, True),
    TileType.ROCK: TileStats("Rock", UNREACHABLE, False),
}

# Tiled CSV GIDs (tileset order)
GID_TILE_TYPES: Dict[int, TileType] = {
    0: TileType.HIGH_GROUND,
    1: TileType.HIGH_GROUND,
    2: TileType.PATH,
    3: TileType.ROCK,
}


class TargetingStrategy(Enum):
    """How an attacking obstacle picks its target"""
    CLOSEST = "closest"
    LOWEST_HP = "lowest_hp"
    MOST_GROUPED = "most_grouped"  # tie-break: lowest HP
    WALL_NETWORK = "wall_network"  # attack zone only, prefer un-slowed


class ObstacleKind(Enum):
    """Placed obstacle (tower) type"""
    GUN = "gun"
    CANNON = "cannon"
    WALLING = "walling"
    CHAMPION_GUN = "champion_gun"
    CHAMPION_CANNON = "champion_cannon"
    CHAMPION_WALLING = "champion_walling"
    WALL_SEGMENT = "wall_segment"

    def is_wall_segment(self) -> bool:
        return self is ObstacleKind.WALL_SEGMENT

    def is_wall_anchor(self) -> bool:
        """Walling towers own a wall network"""
        return self in (ObstacleKind.WALLING, ObstacleKind.CHAMPION_WALLING)

    def is_champion(self) -> bool:
        return self in (
            ObstacleKind.CHAMPION_GUN,
            ObstacleKind.CHAMPION_CANNON,
            ObstacleKind.CHAMPION_WALLING,
        )

    @property
    def stats(self) -> 'ObstacleStats':
        return OBSTACLE_STATS[self]


@dataclass(frozen=True)
class ObstacleStats:
    """Immutable stats shared by an obstacle kind"""
    name: str
    range: float  # attack range in pixels (0 = no circular range)
    splash_radius: float  # pixels, 0 if single target
    max_health: int
    movement_penalty: int  # agent cost of a tile this obstacle occupies
    can_walk: bool = False
    move_speed: float = 0.0  # pixels/sec while relocating
    can_attack: bool = True
    targeting: TargetingStrategy = TargetingStrategy.CLOSEST
    damage: float = 0.0  # per hit (frenzy spikes only; other attacks are not simulated)
    fire_rate: float = 0.0  # seconds between frenzy hits


OBSTACLE_STATS: Dict[ObstacleKind, ObstacleStats] = {
    ObstacleKind.GUN: ObstacleStats(
        "Gun Tower", range=120.0, splash_radius=0.0, max_health=100,
        movement_penalty=GUN_MOVEMENT_PENALTY, targeting=TargetingStrategy.LOWEST_HP
    ),
    ObstacleKind.CANNON: ObstacleStats(
        "Cannon Tower", range=100.0, splash_radius=50.0, max_health=150,
        movement_penalty=CANNON_MOVEMENT_PENALTY, targeting=TargetingStrategy.MOST_GROUPED
    ),
    ObstacleKind.WALLING: ObstacleStats(
        "Wall Tower", range=0.0, splash_radius=0.0, max_health=80,
        movement_penalty=WALLING_MOVEMENT_PENALTY, targeting=TargetingStrategy.WALL_NETWORK,
        damage=2.0, fire_rate=1.8
    ),
    ObstacleKind.CHAMPION_GUN: ObstacleStats(
        "Champion Gun", range=150.0, splash_radius=0.0, max_health=80,
        movement_penalty=CHAMPION_MOVEMENT_PENALTY, can_walk=True, move_speed=80.0,
        targeting=TargetingStrategy.LOWEST_HP
    ),
    ObstacleKind.CHAMPION_CANNON: ObstacleStats(
        "Champion Cannon", range=120.0, splash_radius=70.0, max_health=200,
        movement_penalty=CHAMPION_MOVEMENT_PENALTY, can_walk=True, move_speed=80.0,
        targeting=TargetingStrategy.MOST_GROUPED
    ),
    ObstacleKind.CHAMPION_WALLING: ObstacleStats(
        "Champion Wall", range=0.0, splash_radius=0.0, max_health=150,
        movement_penalty=CHAMPION_MOVEMENT_PENALTY, can_walk=True, move_speed=80.0,
        targeting=TargetingStrategy.WALL_NETWORK, damage=3.0, fire_rate=1.5
    ),
    ObstacleKind.WALL_SEGMENT: ObstacleStats(
        "Wall", range=0.0, splash_radius=0.0, max_health=30,
        movement_penalty=WALL_SEGMENT_MOVEMENT_PENALTY, can_attack=False
    ),
}


class ObstacleState(Enum):
    """Obstacle state machine"""
    ACTIVE = "ACTIVE"
    MOVING = "MOVING"  # ghost: occupies no tile, destination reserved
    COOLDOWN = "COOLDOWN"  # just arrived, can attack but not move


@dataclass
class Obstacle:
    """A placed tower or wall segment"""
    id: str
    kind: ObstacleKind
    pos: Position
    health: int
    max_health: int
    state: ObstacleState = ObstacleState.ACTIVE
    destination: Optional[Position] = None
    move_path: List[Position] = field(default_factory=list)
    move_progress: float = 0.0  # pixels travelled toward move_path[0]
    cooldown_remaining: float = 0.0
    decay_accumulator: float = 0.0  # fractional decay carried between ticks
    frenzy_remaining: float = 0.0  # seconds of frenzy left
    frenzy_fire_timer: float = 0.0  # seconds since the last frenzy hit

    @classmethod
    def create(cls, obstacle_id: str, kind: ObstacleKind, pos: Position) -> 'Obstacle':
        stats = kind.stats
        return cls(id=obstacle_id, kind=kind, pos=pos,
                   health=stats.max_health, max_health=stats.max_health)

    @property
    def stats(self) -> ObstacleStats:
        return self.kind.stats

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    @property
    def world_position(self) -> Tuple[float, float]:
        return grid_to_world(self.pos)

    def take_damage(self, amount: int):
        self.health = max(0, self.health - amount)

    def apply_decay_damage(self, amount: float) -> int:
        """
        Accumulate fractional decay and apply only its integer part.

        Returns the integer damage applied this call.
        """
        self.decay_accumulator += amount
        damage = int(self.decay_accumulator)
        if damage > 0:
            self.take_damage(damage)
            self.decay_accumulator -= damage
        return damage

    def start_moving(self, path: List[Position]):
        """Begin walking along path (path[0] is the current cell and is dropped)"""
        self.move_path = list(path[1:])
        self.move_progress = 0.0
        if not self.move_path:
            return
        self.destination = self.move_path[-1]
        self.state = ObstacleState.MOVING

    def advance_move(self, dt: float) -> bool:
        """
        Walk toward the destination one tile at a time.

        Returns True on the call that reaches the destination.
        """
        if self.state is not ObstacleState.MOVING:
            return False

        self.move_progress += self.stats.move_speed * dt
        while self.move_path and self.move_progress >= TILE_SIZE:
            self.move_progress -= TILE_SIZE
            self.pos = self.move_path.pop(0)

        if self.move_path:
            return False

        self.state = ObstacleState.COOLDOWN
        self.cooldown_remaining = MOVE_COOLDOWN_SECONDS
        self.move_progress = 0.0
        return True

    def update_cooldown(self, dt: float):
        if self.state is not ObstacleState.COOLDOWN:
            return
        self.cooldown_remaining -= dt
        if self.cooldown_remaining <= 0:
            self.cooldown_remaining = 0.0
            self.state = ObstacleState.ACTIVE

    @property
    def is_frenzied(self) -> bool:
        return self.frenzy_remaining > 0

    def activate_frenzy(self, duration: float):
        """Hit every agent in the attack zone for duration seconds"""
        self.frenzy_remaining = max(self.frenzy_remaining, duration)

    def frenzy_fire_ready(self, dt: float) -> bool:
        """Advance the frenzy fire timer. True (and reset) once fire_rate has elapsed."""
        self.frenzy_fire_timer += dt
        if self.frenzy_fire_timer < self.stats.fire_rate:
            return False
        self.frenzy_fire_timer = 0.0
        return True

    def update_frenzy(self, dt: float):
        if self.frenzy_remaining <= 0:
            return
        self.frenzy_remaining = max(0.0, self.frenzy_remaining - dt)
        if self.frenzy_remaining == 0:
            self.frenzy_fire_timer = 0.0


@dataclass
class Agent:
    """Mobile enemy walking a lane"""
    id: str
    lane: str
    x: float  # world pixels
    y: float
    health: float
    max_health: float
    speed: float = DEFAULT_AGENT_SPEED  # pixels/sec
    slow_remaining: float = 0.0  # seconds
    reached_end: bool = False
    path: List[Position] = field(default_factory=list)
    path_index: int = 0  # next waypoint

    @classmethod
    def spawn(cls, agent_id: str, lane: str, cell: Position,
              health: float = DEFAULT_AGENT_HEALTH,
              speed: float = DEFAULT_AGENT_SPEED) -> 'Agent':
        x, y = grid_to_world(cell)
        return cls(id=agent_id, lane=lane, x=x, y=y, health=health,
                   max_health=health, speed=speed)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def cell(self) -> Position:
        return world_to_grid(self.x, self.y)

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    @property
    def in_play(self) -> bool:
        """Alive and still on the map"""
        return not self.is_dead and not self.reached_end

    @property
    def is_slowed(self) -> bool:
        return self.slow_remaining > 0

    def take_damage(self, amount: float):
        self.health = max(0.0, self.health - amount)

    def apply_slow(self, duration: float):
        self.slow_remaining = max(self.slow_remaining, duration)

    def assign_path(self, path: List[Position]):
        """Follow a path that starts at the agent's current cell"""
        self.path = list(path)
        # Already standing in path[0]: head for the next cell
        self.path_index = 1 if len(self.path) > 1 else 0

    def is_on_path(self) -> bool:
        """Whether the current cell belongs to the remaining path"""
        if not self.path:
            return False
        remaining = self.path[max(0, self.path_index - 1):]
        return self.cell in remaining

    def advance(self, dt: float):
        """Move toward the next waypoint center"""
        if not self.in_play:
            return

        if self.slow_remaining > 0:
            self.slow_remaining = max(0.0, self.slow_remaining - dt)

        if self.path_index >= len(self.path):
            self.reached_end = True
            return

        speed = self.speed * (SLOW_FACTOR if self.is_slowed else 1.0)
        move_amount = speed * dt

        while move_amount > 0 and self.path_index < len(self.path):
            tx, ty = grid_to_world(self.path[self.path_index])
            distance = math.hypot(tx - self.x, ty - self.y)
            if distance <= move_amount:
                self.x, self.y = tx, ty
                self.path_index += 1
                move_amount -= distance
            else:
                self.x += (tx - self.x) / distance * move_amount
                self.y += (ty - self.y) / distance * move_amount
                move_amount = 0

        if self.path_index >= len(self.path):
            self.reached_end = True


@dataclass
class Lane:
    """One spawn/exit pair with its own heat map and active path"""
    name: str
    spawn: Position
    exit: Position
    heat_map: Optional['HeatMap'] = None  # set by the lane router
    active_path: List[Position] = field(default_factory=list)


class Rect(BaseModel):
    """Axis-aligned tile rectangle"""
    x: int
    y: int
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom


class LaneConfig(BaseModel):
    """Named spawn/exit pair"""
    name: str
    spawn: Tuple[int, int]
    exit: Tuple[int, int]


class MapConfig(BaseModel):
    """
    Map description supplied by map loading.

    Terrain comes either from tile_rows (row-major GIDs, as in Tiled CSV
    layers) or from rectangles: everything starts as HIGH_GROUND, then
    walkable_areas become PATH and rock_areas become ROCK.
    """
    id: str
    name: str = ""
    columns: int = Field(default=DEFAULT_COLUMNS, gt=0)
    rows: int = Field(default=DEFAULT_ROWS, gt=0)
    walkable_areas: List[Rect] = Field(default_factory=list)
    rock_areas: List[Rect] = Field(default_factory=list)
    tile_rows: Optional[List[List[int]]] = None
    lanes: List[LaneConfig] = Field(default_factory=list)

    def tile_type_at(self, x: int, y: int) -> TileType:
        if self.tile_rows is not None:
            return GID_TILE_TYPES.get(self.tile_rows[y][x], TileType.HIGH_GROUND)

        tile_type = TileType.HIGH_GROUND
        if any(area.contains(x, y) for area in self.walkable_areas):
            tile_type = TileType.PATH
        if any(area.contains(x, y) for area in self.rock_areas):
            tile_type = TileType.ROCK
        return tile_type

    def _in_bounds(self, point: Tuple[int, int]) -> bool:
        return 0 <= point[0] < self.columns and 0 <= point[1] < self.rows

    @model_validator(mode="after")
    def _validate_layout(self) -> 'MapConfig':
        label = self.name or self.id

        if self.tile_rows is not None:
            if len(self.tile_rows) != self.rows or any(len(r) != self.columns for r in self.tile_rows):
                raise ValueError(f"Map '{label}': tile_rows must be {self.rows} rows of {self.columns} GIDs")

        for area in self.walkable_areas + self.rock_areas:
            if area.x < 0 or area.y < 0 or area.right > self.columns or area.bottom > self.rows:
                raise ValueError(
                    f"Map '{label}': area ({area.x},{area.y},{area.width},{area.height}) is out of bounds")

        if not self.lanes:
            raise ValueError(f"Map '{label}': at least one lane is required")

        seen = set()
        for lane in self.lanes:
            if lane.name in seen:
                raise ValueError(f"Map '{label}': duplicate lane '{lane.name}'")
            seen.add(lane.name)

            for point_name, point in (("spawn", lane.spawn), ("exit", lane.exit)):
                if not self._in_bounds(point):
                    raise ValueError(f"Map '{label}': lane '{lane.name}' {point_name} {point} is out of bounds")
                if self.tile_type_at(*point) is not TileType.PATH:
                    raise ValueError(f"Map '{label}': lane '{lane.name}' {point_name} {point} is not walkable")

            if tuple(lane.spawn) == tuple(lane.exit):
                raise ValueError(f"Map '{label}': lane '{lane.name}' spawn and exit cannot be the same")

        return self


def lanes_from_points(spawn_points: Dict[str, List[int]],
                      exit_points: Dict[str, List[int]]) -> List[Dict[str, Any]]:
    """
    Pair named spawn points with exits.

    'spawn_a' pairs with 'exit_a', 'spawn' with 'exit'. When only one exit
    exists every spawn uses it. Unpaired spawns are left for validation to
    reject (no lanes) rather than guessed.
    """
    lanes = []
    single_exit = next(iter(exit_points.values())) if len(exit_points) == 1 else None

    for spawn_name, spawn in spawn_points.items():
        suffix = spawn_name[len("spawn"):] if spawn_name.startswith("spawn") else ""
        exit_point = exit_points.get(f"exit{suffix}", single_exit)
        if exit_point is None:
            continue
        lanes.append({"name": spawn_name, "spawn": list(spawn), "exit": list(exit_point)})

    return lanes


def parse_map_config(data: Dict[str, Any]) -> MapConfig:
    """
    Parse a map description dict into a validated MapConfig.

    Accepts either an explicit "lanes" list or "spawn_points"/"exit_points"
    dictionaries:
    {
        "id": "maze_test",
        "columns": 20, "rows": 15,
        "walkable_areas": [[0, 7, 20, 1], ...],
        "rock_areas": [...],
        "spawn_points": {"spawn": [0, 7]},
        "exit_points": {"exit": [19, 7]}
    }
    Raises pydantic.ValidationError on invalid layouts.
    """
    payload = dict(data)

    for key in ("walkable_areas", "rock_areas"):
        payload[key] = [
            dict(zip(("x", "y", "width", "height"), area)) if isinstance(area, (list, tuple)) else area
            for area in payload.get(key, [])
        ]

    if "lanes" not in payload:
        payload["lanes"] = lanes_from_points(
            payload.pop("spawn_points", {}), payload.pop("exit_points", {})
        )

    return MapConfig.model_validate(payload)
