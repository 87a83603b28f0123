"""Decides which movement request to send for the current tick.

The server has the final say on every move. The client only filters out
requests the map makes pointless (jumping into a ceiling, climbing
without a liana) so they never hit the wire.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..common import tiles as tile_defs
from ..common.protocol import InputMessage
from .game_map import GameMap

JUMP_DX = 2


@dataclass(frozen=True)
class KeyState:
    """Direction keys held this tick, plus whether jump was pressed."""

    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    jump_pressed: bool = False


def horizontal_direction(left: bool, right: bool) -> int:
    """Walking direction for the held keys. Right wins when both are held."""
    if right:
        return 1
    if left:
        return -1
    return 0


def resolve_intent(
    game_map: GameMap, x: int, y: int, game_over: bool, keys: KeyState
) -> tuple[int, int] | None:
    """Return the ``(dx, dy)`` to request, or None if there is nothing to send."""
    if game_over:
        return None

    current = game_map.get_tile(x, y)
    below = game_map.get_tile(x, y - 1)
    above = game_map.get_tile(x, y + 1)

    # Standing on a tile, or on top of one
    supported = tile_defs.is_solid(current) or tile_defs.is_solid(below)
    ceiling_above = tile_defs.is_ceiling(above)
    on_climbable = tile_defs.is_climbable(current)

    if keys.jump_pressed and supported and not ceiling_above:
        if keys.left:
            dx = -JUMP_DX
        elif keys.right:
            dx = JUMP_DX
        else:
            dx = 0
        return dx, 1

    dx = horizontal_direction(keys.left, keys.right)
    dy = 0
    if on_climbable and not ceiling_above and keys.up:
        dy = 1
    elif on_climbable and keys.down:
        dy = -1

    if dx == 0 and dy == 0:
        return None
    return dx, dy


class IntentSequencer:
    """Numbers the intents of one session, starting at 1."""

    def __init__(self) -> None:
        self.seq = 0

    def next_input(
        self, game_map: GameMap, x: int, y: int, game_over: bool, keys: KeyState
    ) -> InputMessage | None:
        intent = resolve_intent(game_map, x, y, game_over, keys)
        if intent is None:
            return None
        self.seq += 1
        dx, dy = intent
        return InputMessage(self.seq, dx, dy)
