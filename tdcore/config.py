"""
Configuration for the tower-defense routing core

Values come from the game's tuning tables:
- Grid: 40px tiles, 20x15 default map
- Agents walk PATH tiles (cost 1); occupied tiles are passable but penalized
  by the occupying obstacle's movement penalty
- Towers relocate over PATH (1) and HIGH_GROUND (2); other towers cost 10
- Orphaned wall segments decay 1 HP/sec per exposed side (max 4 HP/sec)
- Wall network spike attack slows agents for 5s; frenzy hits the whole attack zone for 10s
"""
import os

# Grid
TILE_SIZE: int = int(os.getenv("TILE_SIZE", "40"))  # pixels per tile
DEFAULT_COLUMNS: int = int(os.getenv("DEFAULT_COLUMNS", "20"))
DEFAULT_ROWS: int = int(os.getenv("DEFAULT_ROWS", "15"))

# Agent traversal costs
AGENT_PATH_COST: int = 1
GUN_MOVEMENT_PENALTY: int = int(os.getenv("GUN_MOVEMENT_PENALTY", "300"))
CANNON_MOVEMENT_PENALTY: int = int(os.getenv("CANNON_MOVEMENT_PENALTY", "500"))
WALLING_MOVEMENT_PENALTY: int = int(os.getenv("WALLING_MOVEMENT_PENALTY", "300"))
CHAMPION_MOVEMENT_PENALTY: int = int(os.getenv("CHAMPION_MOVEMENT_PENALTY", "500"))
WALL_SEGMENT_MOVEMENT_PENALTY: int = int(os.getenv("WALL_SEGMENT_MOVEMENT_PENALTY", "10000"))

# Tower relocation costs (agents are ignored)
RELOCATION_PATH_COST: int = int(os.getenv("RELOCATION_PATH_COST", "1"))
RELOCATION_HIGH_GROUND_COST: int = int(os.getenv("RELOCATION_HIGH_GROUND_COST", "2"))
RELOCATION_OCCUPIED_COST: int = int(os.getenv("RELOCATION_OCCUPIED_COST", "10"))

# Wall network
WALL_DECAY_PER_SIDE: float = float(os.getenv("WALL_DECAY_PER_SIDE", "1.0"))  # HP/sec per exposed side
WALL_SLOW_DURATION: float = float(os.getenv("WALL_SLOW_DURATION", "5.0"))  # seconds
FRENZY_DURATION: float = float(os.getenv("FRENZY_DURATION", "10.0"))  # seconds of wall-network frenzy per activation

# Agents
SLOW_FACTOR: float = float(os.getenv("SLOW_FACTOR", "0.5"))  # speed multiplier while slowed
DEFAULT_AGENT_SPEED: float = float(os.getenv("DEFAULT_AGENT_SPEED", "90"))  # pixels/sec
DEFAULT_AGENT_HEALTH: float = float(os.getenv("DEFAULT_AGENT_HEALTH", "300"))

# Timing / logging
TICK_SECONDS: float = float(os.getenv("TICK_SECONDS", str(1 / 60)))
TABLE_LOG_INTERVAL: int = int(os.getenv("TABLE_LOG_INTERVAL", "60"))  # ticks between table logs
MOVE_COOLDOWN_SECONDS: float = float(os.getenv("MOVE_COOLDOWN_SECONDS", "2.0"))
