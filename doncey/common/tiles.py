"""Tile definitions with visual and gameplay properties."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blessed import Terminal

EMPTY_TILE = "."


@dataclass
class TileDef:
    """Definition for a tile code sent by the server."""

    code: str
    name: str
    color: str  # blessed color name like "green", "blue", "white"
    symbol: str
    solid: bool = False  # can be stood on or hung from
    ceiling: bool = False  # blocks jumping and climbing into it from below
    climbable: bool = False
    # For animated tiles: list of colors to cycle through
    animation_colors: list[str] = field(default_factory=list)


def _load_tiles_from_json() -> tuple[dict[str, TileDef], TileDef]:
    """Load tile definitions from JSON file."""
    json_path = Path(__file__).parent / "tiles.json"

    with open(json_path, encoding="utf-8") as f:
        data = json.load(f)

    tiles: dict[str, TileDef] = {}

    for code, tile_data in data["tiles"].items():
        tiles[code] = TileDef(
            code=code,
            name=tile_data.get("name", ""),
            color=tile_data["color"],
            symbol=tile_data.get("symbol", code),
            solid=tile_data.get("solid", False),
            ceiling=tile_data.get("ceiling", False),
            climbable=tile_data.get("climbable", False),
            animation_colors=tile_data.get("animation_colors") or [],
        )

    default_data = data["default"]
    default_tile = TileDef(
        code=EMPTY_TILE,
        name=default_data.get("name", ""),
        color=default_data["color"],
        symbol=default_data["symbol"],
    )

    return tiles, default_tile


TILES, DEFAULT_TILE = _load_tiles_from_json()


def get_tile(code: str) -> TileDef:
    """Get the tile definition for a code, unknown codes count as empty."""
    return TILES.get(code, DEFAULT_TILE)


def is_solid(code: str) -> bool:
    return get_tile(code).solid


def is_ceiling(code: str) -> bool:
    return get_tile(code).ceiling


def is_climbable(code: str) -> bool:
    return get_tile(code).climbable


def render_tile(code: str, term: "Terminal", anim_frame: int = 0) -> str:
    """Render a tile with its color using blessed Terminal."""
    tile = get_tile(code)

    if tile.animation_colors:
        color_name = tile.animation_colors[anim_frame % len(tile.animation_colors)]
    else:
        color_name = tile.color

    color_fn = getattr(term, color_name, None)

    if color_fn:
        return str(color_fn(tile.symbol))
    return tile.symbol
