"""Client-side copy of the server's tile map."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..common.tiles import EMPTY_TILE


@dataclass
class GameMap:
    """Tile grid indexed ``tiles[y][x]`` with ``y == 0`` the bottom row."""

    width: int
    height: int
    tiles: list[list[str]] = field(default_factory=list)

    @classmethod
    def empty(cls, width: int, height: int) -> GameMap:
        return cls(width, height, [[EMPTY_TILE] * width for _ in range(height)])

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> str:
        """Tile code at a position, empty outside the map."""
        if not self.in_bounds(x, y):
            return EMPTY_TILE
        return self.tiles[y][x]

    def set_row(self, y: int, row: str) -> bool:
        """Replace row ``y``, fitting ``row`` to the map width.

        Returns False (and changes nothing) if ``y`` is outside the map.
        """
        if not 0 <= y < self.height:
            return False
        fitted = row[: self.width].ljust(self.width, EMPTY_TILE)
        self.tiles[y] = list(fitted)
        return True

    def row_string(self, y: int) -> str:
        return "".join(self.tiles[y])
