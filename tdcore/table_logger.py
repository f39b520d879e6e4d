"""
Table-style logger for simulation state
"""
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)


def format_id(entity_id: str) -> str:
    """Format entity ID to fixed width"""
    if len(entity_id) > 16:
        return entity_id[:16]
    return entity_id.ljust(16)


def format_position(pos: Tuple[int, int]) -> str:
    return f"({pos[0]:3d}, {pos[1]:3d})"


def format_target(target: Optional[Tuple[int, int]]) -> str:
    if target is None:
        return "-"
    return format_position(target)


def log_simulation_table(sim, report=None):
    """
    Print obstacles, agents and lanes as one formatted log record

    Args:
        sim: Simulation
        report: TickReport of the tick just finished (targets column)
    """
    targets = report.targets if report is not None else {}

    header = (f"🎮 TICK {sim.tick} | 🏰 Obstacles {len(sim.placement.obstacles)} | "
              f"👾 Agents {len(sim.live_agents())} | 🧱 Networks {len(sim.network.connected_sets)}")
    separator = "-" * 80

    rows = [f"{'OBSTACLE':<16} | {'STATE':<8} | {'POS':<12} | {'DEST':<12} | {'HP':<9} | TARGET"]
    for obstacle in sim.placement.obstacles.values():
        destination = obstacle.destination.to_tuple() if obstacle.destination else None
        hp = f"{obstacle.health}/{obstacle.max_health}"
        rows.append(
            f"{format_id(obstacle.id)} | {obstacle.state.value:<8} | {format_position(obstacle.pos.to_tuple()):<12} | "
            f"{format_target(destination):<12} | {hp:<9} | {targets.get(obstacle.id, '-')}"
        )

    rows.append(separator)
    rows.append(f"{'AGENT':<16} | {'LANE':<8} | {'CELL':<12} | {'LEFT':<12} | {'HP':<9} | SLOW")
    for agent in sim.live_agents():
        remaining = max(0, len(agent.path) - agent.path_index)
        hp = f"{agent.health:.0f}/{agent.max_health:.0f}"
        slow = f"{agent.slow_remaining:.1f}s" if agent.is_slowed else "-"
        rows.append(
            f"{format_id(agent.id)} | {agent.lane:<8} | {format_position(agent.cell.to_tuple()):<12} | "
            f"{remaining:<12} | {hp:<9} | {slow}"
        )

    rows.append(separator)
    for name, lane in sim.router.lanes.items():
        cost = lane.heat_map.value(lane.spawn) if lane.heat_map is not None else None
        status = f"{len(lane.active_path)} cells, cost {cost:.0f}" if lane.active_path else "NO PATH"
        rows.append(f"🛣️  {name}: {format_position(lane.spawn.to_tuple())} -> "
                    f"{format_position(lane.exit.to_tuple())} {status}")

    table_parts = [separator, header, separator]
    table_parts.extend(rows)
    table_parts.append(separator)

    logger.info("\n".join(table_parts))
