"""
Entry point for the tower-defense routing demo
"""
import os
import sys
import time
import logging

from tdcore.maps import get_map, available_maps
from tdcore.models import Position, ObstacleKind
from tdcore.simulation import Simulation
from tdcore.table_logger import log_simulation_table

# Configure logging and write to file per run
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_DATEFMT = '%H:%M:%S'

log_dir = "logs"
os.makedirs(log_dir, exist_ok=True)
log_file = os.path.join(log_dir, f"sim_{int(time.time())}.log")

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt=LOG_DATEFMT,
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(log_file, encoding="utf-8")
    ]
)
# Per-move and per-wall chatter
logging.getLogger("tdcore.placement").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def setup_demo(sim: Simulation):
    """A few towers on the first lane, a frenzied walling anchor with a short wall, one agent per lane"""
    first_lane = sim.router.lane(sim.router.names[0])
    path = first_lane.active_path

    if len(path) > 6:
        sim.place(ObstacleKind.GUN, path[len(path) // 3])
        sim.place(ObstacleKind.CANNON, path[len(path) // 2])

        anchor_cell = path[2]
        sim.place(ObstacleKind.WALLING, anchor_cell)
        sim.step()

        anchor = sim.placement.get_obstacle_at(anchor_cell)
        if anchor is not None:
            sim.drag_wall(anchor.id, Position(anchor_cell.x, anchor_cell.y + 1),
                          Position(anchor_cell.x + 3, anchor_cell.y + 1))
            sim.activate_frenzy(anchor.id)

    for name in sim.router.names:
        sim.spawn_agent(name)


def main():
    """Main entry point"""
    map_id = os.getenv("MAP_ID", "classic_s")
    ticks = int(os.getenv("TICKS", "600"))

    if map_id not in available_maps():
        logger.error(f"Unknown MAP_ID '{map_id}', available: {', '.join(available_maps())}")
        sys.exit(1)

    logger.info(f"Starting simulation on map '{map_id}' for {ticks} ticks")

    sim = Simulation.from_map(get_map(map_id))
    setup_demo(sim)

    for _ in range(ticks):
        report = sim.step()
        if report.removed_obstacles:
            logger.info(f"💥 Tick {report.tick}: removed {report.removed_obstacles}")
        if not sim.live_agents():
            logger.info(f"🏁 No agents left at tick {report.tick}")
            break

    log_simulation_table(sim)


if __name__ == "__main__":
    main()
