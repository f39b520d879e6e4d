"""
Tests for wall network connectivity, attack zones, decay and wall drag paths
"""
import pytest

from tdcore.grid import Grid
from tdcore.models import Position, Obstacle, ObstacleKind
from tdcore.wall_network import (
    WallNetwork, connected_set, attack_zone, exposed_sides,
    valid_wall_prefix_length, build_l_candidates, choose_wall_drag_path
)
from tdcore.errors import OutOfBoundsError


def put(grid: Grid, kind: ObstacleKind, x: int, y: int) -> Obstacle:
    obstacle = Obstacle.create(f"{kind.value}_{x}_{y}", kind, Position(x, y))
    grid.tiles[x][y].occupant = obstacle
    return obstacle


def test_connected_set_follows_orthogonal_walls():
    """BFS expands through walls only, never diagonally"""
    grid = Grid.from_rows(["HHHHH"] * 5)
    put(grid, ObstacleKind.WALLING, 0, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 1, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 1, 1)
    put(grid, ObstacleKind.WALL_SEGMENT, 2, 2)  # diagonal only
    put(grid, ObstacleKind.GUN, 1, 2)  # not a wall

    cells = connected_set(grid, Position(0, 0))
    assert cells == {Position(0, 0), Position(1, 0), Position(1, 1)}
    assert connected_set(grid, Position(0, 0)) == cells


def test_anchor_always_member():
    grid = Grid.from_rows(["HHH"])
    assert connected_set(grid, Position(1, 0)) == {Position(1, 0)}
    with pytest.raises(OutOfBoundsError):
        connected_set(grid, Position(3, 0))


def test_separate_anchors_disjoint_with_overlapping_zones():
    """Unlinked networks stay disjoint even when their zones overlap"""
    grid = Grid.from_rows(["HHHHHHH"] * 5)
    put(grid, ObstacleKind.WALLING, 1, 2)
    put(grid, ObstacleKind.WALL_SEGMENT, 2, 2)
    put(grid, ObstacleKind.WALLING, 4, 2)
    put(grid, ObstacleKind.WALL_SEGMENT, 4, 3)

    a = connected_set(grid, Position(1, 2))
    b = connected_set(grid, Position(4, 2))

    assert a.isdisjoint(b)
    assert Position(3, 2) in attack_zone(grid, a) & attack_zone(grid, b)


def test_attack_zone_is_8_neighborhood():
    """Zone: in-bounds 8-neighbors that are not members"""
    grid = Grid.from_rows(["HHH"] * 3)
    assert attack_zone(grid, {Position(1, 1)}) == {
        p for p in grid.positions() if p != Position(1, 1)
    }
    assert attack_zone(grid, {Position(0, 0)}) == {Position(1, 0), Position(0, 1), Position(1, 1)}
    assert attack_zone(grid, {Position(0, 0), Position(1, 0)}) == {
        Position(2, 0), Position(0, 1), Position(1, 1), Position(2, 1)
    }


def test_exposed_sides_counts_edges():
    """Out-of-bounds neighbors are exposed"""
    grid = Grid.from_rows(["HHH"] * 3)
    put(grid, ObstacleKind.WALL_SEGMENT, 0, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 1, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 0, 1)
    put(grid, ObstacleKind.WALLING, 1, 1)

    assert exposed_sides(grid, Position(0, 0)) == 2
    assert exposed_sides(grid, Position(1, 0)) == 3
    assert exposed_sides(grid, Position(2, 2)) == 4


def test_isolated_wall_decays_at_max_rate():
    """An orphan with four exposed sides loses 4 HP per second"""
    grid = Grid.from_rows(["HHHHH"] * 5)
    wall = put(grid, ObstacleKind.WALL_SEGMENT, 2, 2)
    network = WallNetwork(grid)
    network.rebuild([])

    assert network.orphaned_walls() == [wall]
    assert network.apply_decay(1.0) == [wall]
    assert wall.health == 26


def test_decay_carries_fraction_between_ticks():
    """Sub-integer decay is not lost"""
    grid = Grid.from_rows(["HHH"] * 3)
    wall = put(grid, ObstacleKind.WALL_SEGMENT, 1, 1)
    network = WallNetwork(grid)
    network.rebuild([])

    network.apply_decay(0.1)
    network.apply_decay(0.1)
    assert wall.health == 30
    network.apply_decay(0.1)
    assert wall.health == 29


def test_connected_walls_never_decay():
    """Walls reachable from an anchor are protected"""
    grid = Grid.from_rows(["HHHHH"] * 5)
    anchor = put(grid, ObstacleKind.WALLING, 0, 2)
    walls = [put(grid, ObstacleKind.WALL_SEGMENT, x, y) for x in range(1, 4) for y in range(1, 4)]

    network = WallNetwork(grid)
    network.rebuild([anchor])

    assert network.orphaned_walls() == []
    assert network.apply_decay(100.0) == []
    assert all(w.health == w.max_health for w in walls)


def test_enclosed_orphan_does_not_decay():
    """An orphan with 0 exposed sides is skipped, its edges decay"""
    grid = Grid.from_rows(["HHHHH"] * 5)
    walls = {(x, y): put(grid, ObstacleKind.WALL_SEGMENT, x, y) for x in range(1, 4) for y in range(1, 4)}

    network = WallNetwork(grid)
    network.rebuild([])
    decayed = network.apply_decay(5.0)

    center = walls[(2, 2)]
    assert center not in decayed
    assert center.health == center.max_health
    # Corner: 2 exposed sides * 5s
    assert walls[(1, 1)].health == 20
    # Edge middle: 1 exposed side * 5s
    assert walls[(2, 1)].health == 25


def test_rebuild_is_per_anchor():
    """Each anchor keeps its own set, the union protects everything"""
    grid = Grid.from_rows(["HHHHHH"])
    a = put(grid, ObstacleKind.WALLING, 0, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 1, 0)
    b = put(grid, ObstacleKind.CHAMPION_WALLING, 5, 0)
    put(grid, ObstacleKind.WALL_SEGMENT, 4, 0)
    gun = put(grid, ObstacleKind.GUN, 3, 0)

    network = WallNetwork(grid)
    sets = network.rebuild([a, b, gun])

    assert set(sets.keys()) == {a.id, b.id}
    assert sets[a.id] == {Position(0, 0), Position(1, 0)}
    assert sets[b.id] == {Position(5, 0), Position(4, 0)}
    assert network.union() == {Position(0, 0), Position(1, 0), Position(4, 0), Position(5, 0)}
    assert network.is_adjacent_to_network(Position(2, 0), a)
    assert not network.is_adjacent_to_network(Position(2, 0), b)


def test_valid_wall_prefix_length():
    """Dry run stops at the first unbuildable or unconnected cell"""
    grid = Grid.from_rows(["HHH#HH"])
    connected = {Position(0, 0)}

    assert valid_wall_prefix_length(grid, [Position(1, 0), Position(2, 0), Position(3, 0)], connected) == 2
    assert valid_wall_prefix_length(grid, [Position(2, 0), Position(1, 0)], connected) == 0
    assert valid_wall_prefix_length(grid, [Position(1, 0), Position(2, 0)], connected) == 2
    # Dry run leaves the grid untouched
    assert grid.occupant_at(Position(1, 0)) is None


def test_build_l_candidates():
    a, b = build_l_candidates(Position(0, 0), Position(2, 2))
    assert a == [Position(0, 0), Position(1, 0), Position(2, 0), Position(2, 1), Position(2, 2)]
    assert b == [Position(0, 0), Position(0, 1), Position(0, 2), Position(1, 2), Position(2, 2)]

    a, b = build_l_candidates(Position(1, 1), Position(1, 1))
    assert a == b == [Position(1, 1)]

    a, b = build_l_candidates(Position(0, 0), Position(3, 0))
    assert a == b == [Position(0, 0), Position(1, 0), Position(2, 0), Position(3, 0)]


def test_choose_wall_drag_path():
    """Longest valid prefix wins, then horizontal-first"""
    grid = Grid.from_rows([
        "HH#",
        "HHH",
        "HHH",
        "HHH",
    ])
    connected = {Position(0, 0)}

    # Horizontal-first hits rock at (2, 0)
    path, valid = choose_wall_drag_path(grid, Position(1, 0), Position(2, 2), connected)
    assert path == [Position(1, 0), Position(1, 1), Position(1, 2), Position(2, 2)]
    assert valid == 4

    # Both candidates valid and equally long
    path, valid = choose_wall_drag_path(grid, Position(0, 1), Position(1, 2), connected)
    assert path == [Position(0, 1), Position(1, 1), Position(1, 2)]
    assert valid == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
