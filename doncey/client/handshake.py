"""JOIN and SPECTATE negotiation."""

from __future__ import annotations

import logging

from ..common.protocol import (
    Joined,
    SpectateOk,
    SpectateWait,
    parse_line,
    serialize_join,
    serialize_spectate,
)
from .errors import NegotiationRejected
from .line_codec import LineTransport

_logger = logging.getLogger(__name__)


async def join_game(transport: LineTransport, name: str) -> int:
    """Join as a player and return the id the server assigned.

    Waits for ``JOINED <id>`` with no timeout, skipping everything else
    (the server's WELCOME banner, for one). A disconnect propagates.
    """
    await transport.send_line(serialize_join(name))
    while True:
        message = parse_line(await transport.recv_line())
        if isinstance(message, Joined):
            _logger.info(f"Joined as player {message.player_id}")
            return message.player_id


async def spectate_player(transport: LineTransport, target_id: int) -> int:
    """Ask to observe ``target_id`` and return the id the server confirmed.

    Raises:
        NegotiationRejected: the server answered SPECTATE_WAIT.
    """
    await transport.send_line(serialize_spectate(target_id))
    while True:
        message = parse_line(await transport.recv_line())
        if isinstance(message, SpectateOk):
            _logger.info(f"Spectating player {message.player_id}")
            return message.player_id
        if isinstance(message, SpectateWait):
            raise NegotiationRejected(message.player_id)
