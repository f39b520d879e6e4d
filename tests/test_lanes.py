"""
Tests for per-lane heat maps and agent rerouting
"""
import logging
import pytest

from tdcore.grid import Grid
from tdcore.lanes import LaneRouter
from tdcore.maps import get_map
from tdcore.models import Position, Lane, Agent, Obstacle, ObstacleKind, TileType
from tdcore.errors import InvalidLaneError, OutOfBoundsError


def make_router(map_id: str = "straight") -> LaneRouter:
    config = get_map(map_id)
    grid = Grid.from_config(config)
    router = LaneRouter.from_config(grid, config)
    router.recompute_all()
    return router


def test_recompute_builds_heat_map_and_path():
    """Straight map: 20-cell path from spawn to exit"""
    router = make_router("straight")
    heat = router.recompute("spawn")
    lane = router.lane("spawn")

    assert heat.goal == Position(19, 7)
    assert heat.value(Position(0, 7)) == 19
    assert len(lane.active_path) == 20
    assert lane.active_path[0] == Position(0, 7)


def test_lanes_are_independent():
    """Each lane routes to its own exit"""
    router = make_router("two_lanes")
    assert sorted(router.names) == ["spawn_a", "spawn_b"]
    assert router.lane("spawn_a").active_path[-1] == Position(19, 3)
    assert router.lane("spawn_b").active_path[-1] == Position(19, 11)

    path = router.extract_path("spawn_b", Position(10, 5))
    assert path[-1] == Position(19, 11)


def test_unknown_lane_raises():
    router = make_router()
    with pytest.raises(InvalidLaneError):
        router.recompute("nope")
    with pytest.raises(KeyError):
        router.extract_path("nope", Position(0, 7))


def test_extract_path_out_of_bounds():
    router = make_router()
    with pytest.raises(OutOfBoundsError):
        router.extract_path("spawn", Position(20, 7))


def test_obstacles_never_block_lane():
    """Filling the corridor with towers raises the cost but keeps the path"""
    router = make_router("straight")
    grid = router.grid
    for x in range(1, 19):
        grid.tiles[x][7].occupant = Obstacle.create(f"g{x}", ObstacleKind.GUN, Position(x, 7))

    assert router.recompute_lanes(["spawn"]) == []
    assert len(router.lane("spawn").active_path) == 20
    assert router.lane("spawn").heat_map.value(Position(0, 7)) == 1 + 18 * 300


def test_terrain_block_is_reported(caplog):
    """Rock across the lane is a NoPath worth a warning"""
    router = make_router("straight")
    router.grid.set_terrain(Position(10, 7), TileType.ROCK)

    with caplog.at_level(logging.WARNING, logger="tdcore.lanes"):
        blocked = router.recompute_lanes(["spawn"])

    assert blocked == ["spawn"]
    assert router.lane("spawn").active_path == []
    assert any("no path" in r.message for r in caplog.records)


def test_reroute_agents_from_current_cell():
    """Agents get a path starting at the cell they stand on"""
    router = make_router("maze_test")
    agent = Agent.spawn("a1", "spawn", Position(5, 3))
    finished = Agent.spawn("a2", "spawn", Position(5, 5))
    finished.reached_end = True

    assert router.reroute_agents([agent, finished]) == 1
    assert agent.path[0] == Position(5, 3)
    assert agent.path[-1] == Position(19, 7)
    assert finished.path == []


def test_reroute_without_path_holds_position():
    """An agent that cannot reach the exit has its path cleared"""
    grid = Grid.from_rows(["..#.."])
    router = LaneRouter(grid, [Lane("main", Position(3, 0), Position(4, 0))])
    agent = Agent.spawn("a1", "main", Position(0, 0))
    agent.assign_path([Position(0, 0), Position(1, 0)])

    assert router.reroute_agent(agent) is False
    assert agent.path == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
