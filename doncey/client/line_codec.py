"""Newline-delimited text transport over an asyncio stream."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from asyncio import StreamReader, StreamWriter

from ..common.constants import CONNECT_TIMEOUT, MAX_LINE_LENGTH
from .errors import Disconnected, TransportError

_logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class LineTransport(ABC):
    """What the protocol core needs from a connection."""

    @abstractmethod
    async def recv_line(self) -> str:
        """Return the next line without its terminator.

        Raises:
            Disconnected: the stream ended at a line boundary.
            TransportError: any other I/O failure.
        """

    @abstractmethod
    async def send_line(self, text: str) -> None:
        """Send ``text`` verbatim. The caller supplies the terminator."""

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""


class LineCodec(LineTransport):
    """Frames an asyncio stream into lines.

    Lines longer than ``max_line_length`` bytes are truncated and the rest
    of the line is dropped, so a misbehaving peer cannot grow the buffer
    past one read chunk.
    """

    def __init__(
        self,
        reader: StreamReader,
        writer: StreamWriter | None,
        max_line_length: int = MAX_LINE_LENGTH,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._max_line_length = max_line_length
        self._buffer = bytearray()
        self._eof = False
        self._closed = False

    async def recv_line(self) -> str:
        line = bytearray()
        started = False
        while True:
            newline = self._buffer.find(b"\n")
            end = newline if newline >= 0 else len(self._buffer)
            if end or newline >= 0:
                started = True
            room = self._max_line_length - len(line)
            if room > 0:
                line += self._buffer[: min(end, room)]

            if newline >= 0:
                del self._buffer[: newline + 1]
                return self._decode(line)
            self._buffer.clear()

            if self._eof:
                if started:
                    # Unterminated final line; the next call reports the EOF
                    return self._decode(line)
                raise Disconnected("server closed the connection")

            data = await self._read_chunk()
            if data:
                self._buffer += data
            else:
                self._eof = True

    async def _read_chunk(self) -> bytes:
        try:
            return await self._reader.read(READ_CHUNK_SIZE)
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Read failed: {e}") from e

    @staticmethod
    def _decode(raw: bytearray) -> str:
        text = bytes(raw).decode("utf-8", errors="replace").rstrip("\r")
        _logger.debug(f"<- {text}")
        return text

    async def send_line(self, text: str) -> None:
        if self._writer is None or self._closed:
            raise TransportError("Connection is closed")
        _logger.debug(f"-> {text.rstrip()}")
        try:
            self._writer.write(text.encode("utf-8"))
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Send failed: {e}") from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._writer is None:
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass  # Connection may already be gone


async def open_transport(
    host: str, port: int, timeout: float = CONNECT_TIMEOUT
) -> LineCodec:
    """Open a TCP connection to the game server."""
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except asyncio.TimeoutError as e:
        raise TransportError(
            f"Connection timed out after {timeout:.0f}s (is {host}:{port} reachable?)"
        ) from e
    except ConnectionRefusedError as e:
        raise TransportError(f"Connection refused by {host}:{port}") from e
    except OSError as e:
        raise TransportError(f"Failed to connect: {e}") from e

    _logger.info(f"Connected to {host}:{port}")
    return LineCodec(reader, writer)
