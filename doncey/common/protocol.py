"""Line-based wire protocol shared with the game server.

Every message is one newline-terminated line of space-separated tokens.
Inbound lines go through :func:`parse_line`, which returns a typed message
or ``None`` for anything it does not recognise. Unrecognised lines are
never an error: callers skip them and keep reading. Outbound lines are
built by the ``serialize_*`` functions and always carry their terminator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Union

from .constants import MAX_NAME_LENGTH

# Wider than any field the server sends, narrow enough that int() never balks
_INT_RE = re.compile(r"-?\d{1,18}")
_BOOLS = {"true": True, "false": False}


# Server -> client


@dataclass(frozen=True)
class Welcome:
    pass


@dataclass(frozen=True)
class Joined:
    player_id: int


@dataclass(frozen=True)
class SpectateOk:
    player_id: int


@dataclass(frozen=True)
class SpectateWait:
    player_id: int


@dataclass(frozen=True)
class PlayersBegin:
    pass


@dataclass(frozen=True)
class PlayersEnd:
    pass


@dataclass(frozen=True)
class PlayerInfo:
    """One roster entry (``PLAYER <id> <name>``)."""

    player_id: int
    name: str


@dataclass(frozen=True)
class MapSize:
    width: int
    height: int


@dataclass(frozen=True)
class MapRow:
    y: int
    row: str


@dataclass(frozen=True)
class MapEnd:
    pass


@dataclass(frozen=True)
class StateSnapshot:
    """Authoritative state of one player at server tick ``seq``."""

    seq: int
    player_id: int
    x: int
    y: int
    score: int
    level: int
    lives: int
    game_over: bool


@dataclass(frozen=True)
class FruitsBegin:
    player_id: int


@dataclass(frozen=True)
class FruitsEnd:
    player_id: int


@dataclass(frozen=True)
class Fruit:
    x: int
    y: int
    points: int


@dataclass(frozen=True)
class EnemiesBegin:
    player_id: int


@dataclass(frozen=True)
class EnemiesEnd:
    player_id: int


@dataclass(frozen=True)
class Enemy:
    kind: str
    x: int
    y: int


@dataclass(frozen=True)
class SessionEnded:
    """``END <id>``: the observed player's session is over."""

    player_id: int


@dataclass(frozen=True)
class ServerError:
    code: str


@dataclass(frozen=True)
class Pong:
    """Reply to a keepalive PING."""


@dataclass(frozen=True)
class Bye:
    pass


# Client -> server


@dataclass(frozen=True)
class Join:
    name: str


@dataclass(frozen=True)
class Spectate:
    player_id: int


@dataclass(frozen=True)
class ListPlayers:
    pass


@dataclass(frozen=True)
class InputMessage:
    seq: int
    dx: int
    dy: int


@dataclass(frozen=True)
class Ping:
    """Keepalive. The server drops connections that stay silent too long."""


@dataclass(frozen=True)
class Quit:
    pass


Message = Union[
    Welcome,
    Joined,
    SpectateOk,
    SpectateWait,
    PlayersBegin,
    PlayersEnd,
    PlayerInfo,
    MapSize,
    MapRow,
    MapEnd,
    StateSnapshot,
    FruitsBegin,
    FruitsEnd,
    Fruit,
    EnemiesBegin,
    EnemiesEnd,
    Enemy,
    SessionEnded,
    ServerError,
    Pong,
    Bye,
    Join,
    Spectate,
    ListPlayers,
    InputMessage,
    Ping,
    Quit,
]


def _ints(tokens: list[str], count: int) -> list[int] | None:
    """Parse the first ``count`` tokens as integers, or None."""
    if len(tokens) < count:
        return None
    values = []
    for token in tokens[:count]:
        if not _INT_RE.fullmatch(token):
            return None
        values.append(int(token))
    return values


def _one_id(cls: Callable[[int], Message]) -> Callable[[list[str]], Message | None]:
    def parse(args: list[str]) -> Message | None:
        values = _ints(args, 1)
        return cls(values[0]) if values else None

    return parse


def _literal(cls: Callable[[], Message]) -> Callable[[list[str]], Message | None]:
    return lambda args: cls()


def _parse_player(args: list[str]) -> Message | None:
    values = _ints(args, 1)
    if values is None or len(args) < 2:
        return None
    return PlayerInfo(values[0], args[1][:MAX_NAME_LENGTH])


def _parse_map_size(args: list[str]) -> Message | None:
    values = _ints(args, 2)
    return MapSize(*values) if values else None


def _parse_map_row(args: list[str]) -> Message | None:
    values = _ints(args, 1)
    if values is None or len(args) < 2:
        return None
    return MapRow(values[0], args[1])


def _parse_state(args: list[str]) -> Message | None:
    values = _ints(args, 7)
    if values is None or len(args) < 8:
        return None
    game_over = _BOOLS.get(args[7])
    if game_over is None:
        return None
    seq, player_id, x, y, score, level, lives = values
    return StateSnapshot(seq, player_id, x, y, score, level, lives, game_over)


def _parse_fruit(args: list[str]) -> Message | None:
    values = _ints(args, 3)
    return Fruit(*values) if values else None


def _parse_enemy(args: list[str]) -> Message | None:
    if len(args) < 3:
        return None
    values = _ints(args[1:], 2)
    return Enemy(args[0], *values) if values else None


def _parse_error(args: list[str]) -> Message | None:
    return ServerError(args[0] if args else "")


def _parse_join(args: list[str]) -> Message | None:
    return Join(args[0]) if args else None


def _parse_input(args: list[str]) -> Message | None:
    values = _ints(args, 3)
    return InputMessage(*values) if values else None


_PARSERS: dict[str, Callable[[list[str]], Message | None]] = {
    "WELCOME": _literal(Welcome),
    "JOINED": _one_id(Joined),
    "SPECTATE_OK": _one_id(SpectateOk),
    "SPECTATE_WAIT": _one_id(SpectateWait),
    "PLAYERS_BEGIN": _literal(PlayersBegin),
    "PLAYERS_END": _literal(PlayersEnd),
    "PLAYER": _parse_player,
    "MAP_SIZE": _parse_map_size,
    "MAP_ROW": _parse_map_row,
    "MAP_END": _literal(MapEnd),
    "STATE": _parse_state,
    "FRUITS_BEGIN": _one_id(FruitsBegin),
    "FRUITS_END": _one_id(FruitsEnd),
    "FRUIT": _parse_fruit,
    "ENEMIES_BEGIN": _one_id(EnemiesBegin),
    "ENEMIES_END": _one_id(EnemiesEnd),
    "ENEMY": _parse_enemy,
    "END": _one_id(SessionEnded),
    "ERR": _parse_error,
    "PONG": _literal(Pong),
    "BYE": _literal(Bye),
    "JOIN": _parse_join,
    "SPECTATE": _one_id(Spectate),
    "LIST_PLAYERS": _literal(ListPlayers),
    "INPUT": _parse_input,
    "PING": _literal(Ping),
    "QUIT": _literal(Quit),
}


def parse_line(line: str) -> Message | None:
    """Parse one protocol line. Returns None if the line is not recognised."""
    tokens = line.split()
    if not tokens:
        return None
    parser = _PARSERS.get(tokens[0])
    if parser is None:
        return None
    return parser(tokens[1:])


def sanitize_name(name: str) -> str:
    """Make a display name safe to send as a single protocol token."""
    return "_".join(name.split())[:MAX_NAME_LENGTH]


def serialize_join(name: str) -> str:
    return f"JOIN {sanitize_name(name)}\n"


def serialize_spectate(player_id: int) -> str:
    return f"SPECTATE {player_id}\n"


def serialize_list_players() -> str:
    return "LIST_PLAYERS\n"


def serialize_input(seq: int, dx: int, dy: int) -> str:
    return f"INPUT {seq} {dx} {dy}\n"


def serialize_ping() -> str:
    return "PING\n"


def serialize_quit() -> str:
    return "QUIT\n"
