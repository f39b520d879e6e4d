"""
Error taxonomy

NoPath is not an exception: routers return None and callers hold position
or retry. The two errors below are caller mistakes rejected at the boundary.
"""


class OutOfBoundsError(ValueError):
    """Coordinate outside the grid"""

    def __init__(self, x: int, y: int, columns: int, rows: int):
        super().__init__(f"({x}, {y}) is outside the {columns}x{rows} grid")
        self.x = x
        self.y = y


class InvalidLaneError(KeyError):
    """Unknown lane name"""

    def __init__(self, lane: str):
        super().__init__(lane)
        self.lane = lane

    def __str__(self) -> str:
        return f"Unknown lane '{self.lane}'"
