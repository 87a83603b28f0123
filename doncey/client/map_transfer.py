"""Assembles the map the server streams after a successful handshake.

The server sends ``MAP_SIZE``, one ``MAP_ROW`` per row and ``MAP_END``, but
other traffic (STATE ticks, overlay blocks) may be interleaved anywhere.
Only "size before end" is assumed; everything unrecognised is skipped.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..common.constants import MAX_MAP_HEIGHT, MAX_MAP_WIDTH
from ..common.protocol import MapEnd, MapRow, MapSize, parse_line
from .errors import ProtocolOutOfRange
from .game_map import GameMap
from .line_codec import LineTransport

_logger = logging.getLogger(__name__)


class MapTransferPhase(Enum):
    AWAITING_SIZE = "awaiting_size"
    COLLECTING_ROWS = "collecting_rows"
    DONE = "done"


class MapTransferReceiver:
    """Incremental map receiver. Feed it lines until :attr:`done`."""

    def __init__(
        self, max_width: int = MAX_MAP_WIDTH, max_height: int = MAX_MAP_HEIGHT
    ) -> None:
        self.max_width = max_width
        self.max_height = max_height
        self.phase = MapTransferPhase.AWAITING_SIZE
        self._map: GameMap | None = None
        self.rows_received = 0

    @property
    def done(self) -> bool:
        return self.phase == MapTransferPhase.DONE

    @property
    def game_map(self) -> GameMap | None:
        """The map being assembled, None until MAP_SIZE arrives."""
        return self._map

    def feed(self, line: str) -> bool:
        """Process one line. Returns True once the transfer is complete.

        Raises:
            ProtocolOutOfRange: MAP_SIZE declared dimensions we cannot hold.
        """
        if self.phase == MapTransferPhase.DONE:
            return True

        message = parse_line(line)

        if self.phase == MapTransferPhase.AWAITING_SIZE:
            if isinstance(message, MapSize):
                self._start(message)
            return False

        assert self._map is not None
        if isinstance(message, MapEnd):
            self.phase = MapTransferPhase.DONE
            _logger.info(
                f"Map received: {self._map.width}x{self._map.height}, "
                f"{self.rows_received} rows"
            )
            return True
        if isinstance(message, MapRow):
            if self._map.set_row(message.y, message.row):
                self.rows_received += 1
            else:
                _logger.debug(f"Ignoring MAP_ROW outside the map: y={message.y}")
        return False

    def _start(self, size: MapSize) -> None:
        if not (
            1 <= size.width <= self.max_width and 1 <= size.height <= self.max_height
        ):
            raise ProtocolOutOfRange(
                f"Map size {size.width}x{size.height} outside "
                f"1..{self.max_width}x1..{self.max_height}"
            )
        self._map = GameMap.empty(size.width, size.height)
        self.phase = MapTransferPhase.COLLECTING_ROWS

    async def receive(self, transport: LineTransport) -> GameMap:
        """Read lines from ``transport`` until the map is complete."""
        while not self.feed(await transport.recv_line()):
            pass
        assert self._map is not None
        return self._map


async def receive_map(transport: LineTransport) -> GameMap:
    return await MapTransferReceiver().receive(transport)
