"""
Tests for target selection strategies
"""
import pytest

from tdcore.models import Agent, Position, TargetingStrategy, grid_to_world
from tdcore.targeting import TargetingParams, select_target, cluster_size, agents_in_zone


def agent_at(agent_id: str, x: float, y: float, health: float = 100) -> Agent:
    return Agent(id=agent_id, lane="spawn", x=x, y=y, health=health, max_health=300)


def test_closest():
    origin = (0.0, 0.0)
    near = agent_at("near", 30, 40)
    far = agent_at("far", 100, 0)
    target = select_target(TargetingStrategy.CLOSEST, [far, near], origin, TargetingParams())
    assert target is near


def test_weakest_in_range():
    """Lowest health among candidates inside the range"""
    origin = (0.0, 0.0)
    strong = agent_at("strong", 50, 0, health=200)
    weak = agent_at("weak", 60, 0, health=20)
    weakest_far = agent_at("out", 500, 0, health=1)

    target = select_target(TargetingStrategy.LOWEST_HP, [strong, weak, weakest_far], origin,
                           TargetingParams(range=120))
    assert target is weak


def test_dead_and_finished_agents_ignored():
    origin = (0.0, 0.0)
    dead = agent_at("dead", 10, 0, health=0)
    done = agent_at("done", 20, 0)
    done.reached_end = True
    alive = agent_at("alive", 90, 0)

    assert select_target(TargetingStrategy.CLOSEST, [dead, done, alive], origin, TargetingParams()) is alive
    assert select_target(TargetingStrategy.CLOSEST, [dead, done], origin, TargetingParams()) is None


def test_no_candidates_in_range():
    target = select_target(TargetingStrategy.CLOSEST, [agent_at("a", 300, 0)], (0.0, 0.0),
                           TargetingParams(range=100))
    assert target is None


def test_most_clustered_picks_group():
    """Three stacked agents beat a lone agent; tie-break by lowest health"""
    stacked = [
        agent_at("s1", 200, 200, health=100),
        agent_at("s2", 200, 200, health=50),
        agent_at("s3", 200, 200, health=80),
    ]
    lone = agent_at("lone", 400, 200, health=10)

    params = TargetingParams(range=0, splash_radius=50)
    target = select_target(TargetingStrategy.MOST_GROUPED, stacked + [lone], (300.0, 200.0), params)

    assert target is stacked[1]
    assert cluster_size(stacked[0], stacked + [lone], 50) == 2
    assert cluster_size(lone, stacked + [lone], 50) == 0


def test_most_clustered_counts_out_of_range_neighbors():
    """Neighbors outside the firing range still count toward a cluster"""
    in_range_a = agent_at("a", 100, 0, health=100)
    in_range_b = agent_at("b", 0, 100, health=100)
    outside = [agent_at(f"o{i}", 100 + 20 * i, 20, health=100) for i in range(1, 3)]

    params = TargetingParams(range=110, splash_radius=50, all_agents=[in_range_a, in_range_b] + outside)
    target = select_target(TargetingStrategy.MOST_GROUPED, [in_range_a, in_range_b] + outside, (0.0, 0.0), params)
    assert target is in_range_a


def test_wall_network_prefers_unslowed():
    """Un-slowed agents first, even when a slowed one is closer"""
    zone = {Position(2, 0), Position(3, 0), Position(4, 0)}
    origin = grid_to_world(Position(1, 0))

    slowed_near = agent_at("slowed", *grid_to_world(Position(2, 0)))
    slowed_near.apply_slow(3.0)
    fresh_far = agent_at("fresh", *grid_to_world(Position(4, 0)))
    outside = agent_at("outside", *grid_to_world(Position(1, 1)))

    params = TargetingParams(attack_zone=zone)
    candidates = [slowed_near, fresh_far, outside]
    assert select_target(TargetingStrategy.WALL_NETWORK, candidates, origin, params) is fresh_far

    fresh_far.apply_slow(3.0)
    assert select_target(TargetingStrategy.WALL_NETWORK, candidates, origin, params) is slowed_near


def test_wall_network_needs_zone():
    a = agent_at("a", 20, 20)
    assert select_target(TargetingStrategy.WALL_NETWORK, [a], (0.0, 0.0), TargetingParams()) is None
    assert select_target(TargetingStrategy.WALL_NETWORK, [a], (0.0, 0.0),
                         TargetingParams(attack_zone={Position(5, 5)})) is None



def test_agents_in_zone_returns_everyone_inside():
    zone = {Position(2, 0), Position(3, 0)}
    a = agent_at("a", *grid_to_world(Position(2, 0)))
    b = agent_at("b", *grid_to_world(Position(3, 0)), health=5)
    outside = agent_at("outside", *grid_to_world(Position(5, 0)))
    dead = agent_at("dead", *grid_to_world(Position(3, 0)), health=0)

    assert agents_in_zone([a, b, outside, dead], zone) == [a, b]
    assert agents_in_zone([a, b], set()) == []

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
