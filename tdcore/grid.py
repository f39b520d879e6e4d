"""
Grid: fixed-size tile lattice with terrain and obstacle back-references

The grid owns no agents. Tiles are stored column-major (tiles[x][y]).
"""
from typing import Dict, Iterator, List, Optional
from dataclasses import dataclass
import logging

from tdcore.models import Position, TileType, TILE_STATS, Obstacle, MapConfig
from tdcore.errors import OutOfBoundsError

logger = logging.getLogger(__name__)

# Legend for text maps (tests, quick prototypes)
ROW_LEGEND: Dict[str, TileType] = {
    ".": TileType.PATH,
    "#": TileType.ROCK,
    "H": TileType.HIGH_GROUND,
    "h": TileType.HIGH_GROUND_VARIANT,
}


@dataclass
class Tile:
    """Information about a map tile"""
    pos: Position
    type: TileType
    occupant: Optional[Obstacle] = None  # obstacle standing here
    reserved_by: Optional[Obstacle] = None  # obstacle walking here, not arrived yet

    @property
    def is_claimed(self) -> bool:
        return self.occupant is not None or self.reserved_by is not None

    @property
    def has_wall(self) -> bool:
        return self.occupant is not None and self.occupant.kind.is_wall_segment()


class Grid:
    """Rectangular tile array shared by every routing computation"""

    def __init__(self, columns: int, rows: int, default: TileType = TileType.HIGH_GROUND):
        if columns <= 0 or rows <= 0:
            raise ValueError(f"Grid size must be positive, got {columns}x{rows}")
        self.columns = columns
        self.rows = rows
        self.tiles: List[List[Tile]] = [
            [Tile(Position(x, y), default) for y in range(rows)]
            for x in range(columns)
        ]

    @classmethod
    def from_config(cls, config: MapConfig) -> 'Grid':
        grid = cls(config.columns, config.rows)
        for x in range(config.columns):
            for y in range(config.rows):
                grid.tiles[x][y].type = config.tile_type_at(x, y)
        return grid

    @classmethod
    def from_rows(cls, rows: List[str]) -> 'Grid':
        """
        Build a grid from text rows ('.' path, '#' rock, 'H'/'h' high ground).
        rows[0] is y=0.
        """
        if not rows or any(len(r) != len(rows[0]) for r in rows):
            raise ValueError("Text map rows must be non-empty and equally long")
        grid = cls(len(rows[0]), len(rows))
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                if char not in ROW_LEGEND:
                    raise ValueError(f"Unknown tile character {char!r} at ({x}, {y})")
                grid.tiles[x][y].type = ROW_LEGEND[char]
        return grid

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.columns and 0 <= pos.y < self.rows

    def require_in_bounds(self, pos: Position):
        """Reject coordinates outside the grid (never clamp)"""
        if not self.in_bounds(pos):
            raise OutOfBoundsError(pos.x, pos.y, self.columns, self.rows)

    def tile(self, pos: Position) -> Tile:
        self.require_in_bounds(pos)
        return self.tiles[pos.x][pos.y]

    def positions(self) -> Iterator[Position]:
        for x in range(self.columns):
            for y in range(self.rows):
                yield Position(x, y)

    def neighbors4(self, pos: Position) -> List[Position]:
        """In-bounds orthogonal neighbors (up, down, left, right)"""
        return [n for n in pos.neighbors4() if self.in_bounds(n)]

    def neighbors8(self, pos: Position) -> List[Position]:
        return [n for n in pos.neighbors8() if self.in_bounds(n)]

    def occupant_at(self, pos: Position) -> Optional[Obstacle]:
        if not self.in_bounds(pos):
            return None
        return self.tiles[pos.x][pos.y].occupant

    def is_wall(self, pos: Position) -> bool:
        """Tile holds a wall segment (out of bounds is never a wall)"""
        return self.in_bounds(pos) and self.tiles[pos.x][pos.y].has_wall

    def can_build(self, pos: Position) -> bool:
        """Buildable terrain, not occupied and not reserved"""
        if not self.in_bounds(pos):
            return False
        tile = self.tiles[pos.x][pos.y]
        return TILE_STATS[tile.type].buildable and not tile.is_claimed

    def set_terrain(self, pos: Position, tile_type: TileType):
        """
        Edit terrain in place. Callers must mark lanes dirty.

        Raises:
            ValueError: tile_type is unbuildable and the tile is occupied or reserved
        """
        tile = self.tile(pos)
        if tile.is_claimed and not TILE_STATS[tile_type].buildable:
            claimant = tile.occupant or tile.reserved_by
            raise ValueError(f"Cannot turn {pos.to_tuple()} into {tile_type.value}: claimed by {claimant.id}")
        if tile.type is not tile_type:
            logger.debug(f"🧱 Terrain {pos.to_tuple()}: {tile.type.value} -> {tile_type.value}")
        tile.type = tile_type

    def find_reservation(self, obstacle: Obstacle) -> Optional[Tile]:
        """Tile reserved by obstacle, if any. O(W*H), only used on rare cleanup."""
        for column in self.tiles:
            for tile in column:
                if tile.reserved_by is obstacle:
                    return tile
        return None
