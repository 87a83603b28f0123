"""Shared fakes for exercising the protocol core without a real server."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable

import pytest

from doncey.client.errors import Disconnected
from doncey.client.input_handler import InputEvent
from doncey.client.line_codec import LineTransport
from doncey.client.movement import KeyState
from doncey.client.session import Role, SessionContext, SessionPhase, SessionUI
from doncey.common.protocol import PlayerInfo


class ScriptedTransport(LineTransport):
    """Replays fixed server lines and records what the client sends.

    Once the script runs out it either reports a disconnect or, with
    ``block_at_end``, waits forever like a silent server.
    """

    def __init__(self, lines: Iterable[str], block_at_end: bool = False) -> None:
        self.lines = list(lines)
        self.block_at_end = block_at_end
        self.sent: list[str] = []
        self.closed = False

    async def recv_line(self) -> str:
        if self.lines:
            return self.lines.pop(0)
        if self.block_at_end:
            await asyncio.Event().wait()
        raise Disconnected("script exhausted")

    async def send_line(self, text: str) -> None:
        self.sent.append(text)

    async def close(self) -> None:
        self.closed = True


EventScript = Callable[[SessionContext], list[InputEvent]]


class ScriptedUI(SessionUI):
    """UI double: scripted role/target choices and per-frame events."""

    def __init__(
        self,
        roles: Iterable[Role] = (),
        target: int | None = None,
        held: KeyState = KeyState(),
        on_poll: EventScript | None = None,
    ) -> None:
        self.roles = list(roles)
        self.target = target
        self.held = held
        self.on_poll = on_poll
        self.context: SessionContext | None = None
        self.rosters_shown: list[list[PlayerInfo]] = []
        self.phases: list[SessionPhase] = []
        self.frames = 0
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    async def choose_role(self, context: SessionContext) -> Role:
        self.context = context
        if not self.roles:
            self._open = False
            return Role.NONE
        return self.roles.pop(0)

    async def choose_target(self, roster: list[PlayerInfo]) -> int | None:
        self.rosters_shown.append(list(roster))
        return self.target

    def poll_events(self) -> list[InputEvent]:
        if self.on_poll is None or self.context is None:
            return []
        return self.on_poll(self.context)

    def held_keys(self) -> KeyState:
        return self.held

    def render(self, context: SessionContext) -> None:
        self.context = context
        self.frames += 1
        if not self.phases or self.phases[-1] != context.phase:
            self.phases.append(context.phase)


@pytest.fixture
def make_transport() -> type[ScriptedTransport]:
    return ScriptedTransport


@pytest.fixture
def make_ui() -> type[ScriptedUI]:
    return ScriptedUI
