"""Session lifecycle: role selection, negotiation, map transfer, live play.

``GameClient`` is the only place that decides a session is over. The
components it drives raise ``SessionError`` subclasses; it logs them,
leaves a status line for the menu, closes the connection and goes back to
role selection.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, field, fields, replace
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from ..common.constants import (
    CONNECT_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PLAYER_NAME,
    DEFAULT_PORT,
    FRAME_INTERVAL,
    KEEPALIVE_INTERVAL,
    STATE_QUEUE_SIZE,
)
from ..common.protocol import (
    Bye,
    Enemy,
    Fruit,
    Message,
    PlayerInfo,
    Pong,
    ServerError,
    SessionEnded,
    Welcome,
    parse_line,
    sanitize_name,
    serialize_input,
    serialize_ping,
    serialize_quit,
)
from .errors import (
    NegotiationRejected,
    SessionCancelled,
    SessionError,
    TransportError,
)
from .game_map import GameMap
from .handshake import join_game, spectate_player
from .input_handler import InputEvent
from .line_codec import LineTransport, open_transport
from .live_state import LiveStateSync, OverlayTracker, TrackedEntity
from .map_transfer import receive_map
from .movement import IntentSequencer, KeyState
from .roster import fetch_roster

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Connector = Callable[[str, int], Awaitable[LineTransport]]


class Role(Enum):
    NONE = "none"
    PLAYER = "player"
    SPECTATOR = "spectator"


class SessionPhase(Enum):
    ROLE_SELECT = "role_select"
    CONNECTING = "connecting"
    ROSTER_SELECT = "roster_select"
    HANDSHAKING = "handshaking"
    MAP_TRANSFER = "map_transfer"
    LIVE = "live"
    TERMINATED = "terminated"


class SessionOutcome(Enum):
    """What to do after a session ends."""

    MENU = "menu"  # back to role selection
    RETRY = "retry"  # new session with the same role


@dataclass
class ClientConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    name: str = DEFAULT_PLAYER_NAME
    frame_interval: float = FRAME_INTERVAL
    connect_timeout: float = CONNECT_TIMEOUT
    keepalive_interval: float = KEEPALIVE_INTERVAL

    def __post_init__(self) -> None:
        self.name = sanitize_name(self.name) or DEFAULT_PLAYER_NAME


@dataclass
class SessionContext:
    """Everything the renderer may show about the current session."""

    role: Role = Role.NONE
    phase: SessionPhase = SessionPhase.ROLE_SELECT
    connected: bool = False
    player_id: int | None = None
    target_id: int | None = None
    roster: list[PlayerInfo] = field(default_factory=list)
    game_map: GameMap | None = None
    entity: TrackedEntity | None = None
    fruits: list[Fruit] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    inputs_sent: int = 0
    status: str = ""

    def reset(self) -> None:
        """Forget everything about the previous session."""
        for f in fields(self):
            if f.default_factory is not MISSING:
                setattr(self, f.name, f.default_factory())
            else:
                setattr(self, f.name, f.default)


@dataclass(frozen=True)
class ServerLine:
    """One line read by the receiver task, already parsed."""

    text: str
    message: Message | None


@dataclass(frozen=True)
class ConnectionLost:
    error: SessionError


class SessionUI(ABC):
    """The window/terminal the session draws to and reads input from."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """False once the user has asked to exit the program."""

    @abstractmethod
    async def choose_role(self, context: SessionContext) -> Role:
        """Let the user pick a role. Role.NONE means exit."""

    @abstractmethod
    async def choose_target(self, roster: list[PlayerInfo]) -> int | None:
        """Let the user pick a player to watch. None means cancel."""

    @abstractmethod
    def poll_events(self) -> list[InputEvent]:
        """Discrete input events since the last call."""

    @abstractmethod
    def held_keys(self) -> KeyState:
        """Direction keys currently held (``jump_pressed`` is ignored)."""

    @abstractmethod
    def render(self, context: SessionContext) -> None:
        """Draw the current state. Must not modify ``context``."""


class GameClient:
    """Runs sessions until the UI is closed."""

    def __init__(
        self,
        config: ClientConfig,
        ui: SessionUI,
        connect: Connector | None = None,
    ) -> None:
        self.config = config
        self.ui = ui
        self.context = SessionContext()
        self._connect = connect or self._open_connection
        self._transport: LineTransport | None = None
        self._last_sent = 0.0

    async def _open_connection(self, host: str, port: int) -> LineTransport:
        return await open_transport(host, port, timeout=self.config.connect_timeout)

    async def run(self, initial_role: Role = Role.NONE) -> None:
        """Main client loop: role selection, then sessions, until exit."""
        role = initial_role
        while self.ui.is_open:
            if role == Role.NONE:
                self._set_phase(SessionPhase.ROLE_SELECT)
                role = await self.ui.choose_role(self.context)
                if role == Role.NONE:
                    break
            outcome = await self.run_session(role)
            if outcome != SessionOutcome.RETRY:
                role = Role.NONE

    async def run_session(self, role: Role) -> SessionOutcome:
        """Run one session from connect to termination."""
        self.context.reset()
        self.context.role = role
        outcome = SessionOutcome.MENU
        try:
            self._set_phase(SessionPhase.CONNECTING)
            self.context.status = (
                f"Connecting to {self.config.host}:{self.config.port}..."
            )
            self._transport = await self._until_cancelled(
                self._connect(self.config.host, self.config.port)
            )
            self.context.connected = True
            outcome = await self._negotiate_and_play(self._transport, role)
        except SessionCancelled:
            _logger.info("Session cancelled")
            self.context.status = ""
        except NegotiationRejected as e:
            _logger.info(f"Spectate refused: {e}")
            self.context.status = f"Player {e.player_id} is not playing yet"
        except TransportError as e:
            _logger.warning(f"Connection lost: {e}")
            self.context.status = str(e)
        except SessionError as e:
            _logger.error(f"Session failed: {e}")
            self.context.status = str(e)
        finally:
            self._set_phase(SessionPhase.TERMINATED)
            if self._transport is not None:
                await self._transport.close()
                self._transport = None
            self.context.connected = False
        return outcome

    async def _negotiate_and_play(
        self, transport: LineTransport, role: Role
    ) -> SessionOutcome:
        if role == Role.SPECTATOR:
            self._set_phase(SessionPhase.ROSTER_SELECT)
            self.context.roster = await self._until_cancelled(fetch_roster(transport))
            if not self.context.roster:
                self.context.status = "No active players to spectate"
                return SessionOutcome.MENU
            target_id = await self.ui.choose_target(self.context.roster)
            if target_id is None:
                return SessionOutcome.MENU
            self.context.target_id = target_id
            self._set_phase(SessionPhase.HANDSHAKING)
            self.context.status = f"Waiting to spectate player {target_id}..."
            player_id = await self._until_cancelled(
                spectate_player(transport, target_id)
            )
        else:
            self._set_phase(SessionPhase.HANDSHAKING)
            self.context.status = f"Joining as {self.config.name}..."
            player_id = await self._until_cancelled(
                join_game(transport, self.config.name)
            )
        self.context.player_id = player_id
        self.context.entity = TrackedEntity(player_id)

        self._set_phase(SessionPhase.MAP_TRANSFER)
        self.context.status = "Receiving map..."
        self.context.game_map = await self._until_cancelled(receive_map(transport))

        self._set_phase(SessionPhase.LIVE)
        self.context.status = ""
        return await self._live_loop(transport, player_id, role)

    async def _until_cancelled(self, awaitable: Awaitable[T]) -> T:
        """Await a blocking protocol step while keeping the UI responsive.

        Raises:
            SessionCancelled: the user cancelled before the step finished.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            while not task.done():
                if not self.ui.is_open or InputEvent.CANCEL in self.ui.poll_events():
                    raise SessionCancelled("cancelled by user")
                self.ui.render(self.context)
                await asyncio.wait({task}, timeout=self.config.frame_interval)
            return task.result()
        finally:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    async def _live_loop(
        self, transport: LineTransport, player_id: int, role: Role
    ) -> SessionOutcome:
        """Frame loop: input, at most one server update, one intent, render."""
        sync = LiveStateSync(player_id)
        overlays = OverlayTracker(player_id)
        sequencer = IntentSequencer()
        queue: asyncio.Queue[ServerLine | ConnectionLost] = asyncio.Queue(
            maxsize=STATE_QUEUE_SIZE
        )
        receiver_task = asyncio.create_task(self._receive_lines(transport, queue))
        jump_latched = False
        self._last_sent = time.monotonic()

        try:
            while self.ui.is_open:
                events = self.ui.poll_events()
                if InputEvent.CANCEL in events:
                    await self._send_quit(transport)
                    return SessionOutcome.MENU
                if InputEvent.JUMP in events:
                    jump_latched = True
                if sync.entity.game_over:
                    if InputEvent.RETRY in events:
                        return SessionOutcome.RETRY
                    if InputEvent.CONFIRM in events:
                        return SessionOutcome.MENU

                item = self._next_update(queue, receiver_task)
                if isinstance(item, ConnectionLost):
                    raise item.error
                if item is not None:
                    if not self._apply_update(item.message, sync, overlays):
                        return SessionOutcome.MENU
                    if role == Role.PLAYER:
                        keys = replace(self.ui.held_keys(), jump_pressed=jump_latched)
                        jump_latched = False
                        await self._send_intent(transport, sequencer, sync.entity, keys)

                await self._keep_alive(transport)
                self.ui.render(self.context)
                await asyncio.sleep(self.config.frame_interval)
            return SessionOutcome.MENU
        finally:
            receiver_task.cancel()
            try:
                await receiver_task
            except asyncio.CancelledError:
                pass

    @staticmethod
    def _next_update(
        queue: asyncio.Queue[ServerLine | ConnectionLost],
        receiver_task: asyncio.Task[None],
    ) -> ServerLine | ConnectionLost | None:
        try:
            return queue.get_nowait()
        except asyncio.QueueEmpty:
            if receiver_task.done() and not receiver_task.cancelled():
                # Only reached if the receiver died of something unexpected
                error = receiver_task.exception()
                if error is not None:
                    raise error
            return None

    @staticmethod
    async def _receive_lines(
        transport: LineTransport,
        queue: asyncio.Queue[ServerLine | ConnectionLost],
    ) -> None:
        """Receiver task: read, parse and hand lines to the frame loop."""
        try:
            while True:
                line = await transport.recv_line()
                await queue.put(ServerLine(line, parse_line(line)))
        except SessionError as e:
            await queue.put(ConnectionLost(e))

    def _apply_update(
        self,
        message: Message | None,
        sync: LiveStateSync,
        overlays: OverlayTracker,
    ) -> bool:
        """Apply one server message. Returns False if the session is over."""
        if sync.apply(message):
            self.context.entity = sync.entity
        elif overlays.apply(message):
            self.context.fruits = overlays.fruits
            self.context.enemies = overlays.enemies
        elif isinstance(message, Pong):
            _logger.debug("Keepalive answered")
        elif isinstance(message, ServerError):
            _logger.warning(f"Server error: {message.code}")
        elif isinstance(message, Welcome):
            _logger.debug("Server welcome")
        elif isinstance(message, SessionEnded):
            if message.player_id == sync.player_id:
                _logger.info(f"Session of player {message.player_id} ended")
                self.context.status = f"Player {message.player_id} left the game"
                return False
        elif isinstance(message, Bye):
            _logger.info("Server closed the session")
            self.context.status = "Server closed the session"
            return False
        return True

    async def _send_intent(
        self,
        transport: LineTransport,
        sequencer: IntentSequencer,
        entity: TrackedEntity,
        keys: KeyState,
    ) -> None:
        game_map = self.context.game_map
        if game_map is None:
            return
        intent = sequencer.next_input(
            game_map, entity.x, entity.y, entity.game_over, keys
        )
        if intent is None:
            return
        await self._send(transport, serialize_input(intent.seq, intent.dx, intent.dy))
        self.context.inputs_sent = intent.seq

    async def _send(self, transport: LineTransport, text: str) -> None:
        await transport.send_line(text)
        self._last_sent = time.monotonic()

    async def _keep_alive(self, transport: LineTransport) -> None:
        """Send PING if nothing has gone out for a keepalive interval.

        The server closes connections that stay silent too long, and a
        spectator or an idle player has nothing else to send.
        """
        if time.monotonic() - self._last_sent >= self.config.keepalive_interval:
            await self._send(transport, serialize_ping())

    async def _send_quit(self, transport: LineTransport) -> None:
        try:
            await self._send(transport, serialize_quit())
        except TransportError as e:
            _logger.debug(f"QUIT not delivered: {e}")

    def _set_phase(self, phase: SessionPhase) -> None:
        if phase != self.context.phase:
            _logger.debug(f"Phase {self.context.phase.value} -> {phase.value}")
        self.context.phase = phase
