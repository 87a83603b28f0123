"""Fetches the list of players that can be spectated."""

from __future__ import annotations

import logging
from enum import Enum

from ..common.constants import MAX_PLAYERS
from ..common.protocol import (
    PlayerInfo,
    PlayersBegin,
    PlayersEnd,
    parse_line,
    serialize_list_players,
)
from .line_codec import LineTransport

_logger = logging.getLogger(__name__)


class RosterPhase(Enum):
    AWAITING_BEGIN = "awaiting_begin"
    COLLECTING_PLAYERS = "collecting_players"
    DONE = "done"


class RosterFetcher:
    """Collects one ``PLAYERS_BEGIN .. PLAYERS_END`` block.

    A fresh fetcher is used for every fetch, so each roster replaces the
    previous one entirely.
    """

    def __init__(self, max_players: int = MAX_PLAYERS) -> None:
        self.max_players = max_players
        self.phase = RosterPhase.AWAITING_BEGIN
        self.players: list[PlayerInfo] = []
        self.dropped = 0

    @property
    def done(self) -> bool:
        return self.phase == RosterPhase.DONE

    def feed(self, line: str) -> bool:
        """Process one line. Returns True once PLAYERS_END has been seen."""
        if self.phase == RosterPhase.DONE:
            return True

        message = parse_line(line)

        if self.phase == RosterPhase.AWAITING_BEGIN:
            # Anything before the block, a stray PLAYERS_END included, is noise
            if isinstance(message, PlayersBegin):
                self.phase = RosterPhase.COLLECTING_PLAYERS
            return False

        if isinstance(message, PlayersEnd):
            self.phase = RosterPhase.DONE
            if self.dropped:
                _logger.warning(
                    f"Roster capped at {self.max_players}, dropped {self.dropped}"
                )
            return True
        if isinstance(message, PlayerInfo):
            if len(self.players) < self.max_players:
                self.players.append(message)
            else:
                self.dropped += 1
        return False

    async def fetch(self, transport: LineTransport) -> list[PlayerInfo]:
        """Ask the server for the roster and wait for the complete block."""
        await transport.send_line(serialize_list_players())
        while not self.feed(await transport.recv_line()):
            pass
        _logger.info(f"Roster: {len(self.players)} active players")
        return list(self.players)


async def fetch_roster(transport: LineTransport) -> list[PlayerInfo]:
    return await RosterFetcher().fetch(transport)
