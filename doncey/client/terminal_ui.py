"""Terminal UI rendering and input with blessed."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from blessed.keyboard import Keystroke

from ..common import tiles as tile_defs
from ..common.protocol import PlayerInfo
from .input_handler import (
    Direction,
    InputEvent,
    KeyTracker,
    get_direction,
    get_event,
    is_player_role_key,
    is_quit_key,
    is_spectator_role_key,
)
from .log_buffer import LogBuffer
from .movement import KeyState
from .session import Role, SessionContext, SessionPhase, SessionUI
from .viewport import Viewport

MENU_POLL_INTERVAL = 0.05
HUD_LINES = 4
ENEMY_STYLES = {"RED": "bold_red", "BLUE": "bold_blue"}

_PHASE_TITLES = {
    SessionPhase.CONNECTING: "Connecting",
    SessionPhase.ROSTER_SELECT: "Fetching players",
    SessionPhase.HANDSHAKING: "Negotiating",
    SessionPhase.MAP_TRANSFER: "Loading map",
}


class TerminalUI(SessionUI):
    def __init__(self, terminal: Any, log_buffer: LogBuffer | None = None) -> None:
        self.term = terminal
        self.log_buffer = log_buffer
        self._open = True
        self._keys = KeyTracker()
        self._last_frame = ""

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._open = False

    def _drain_keys(self) -> list[Keystroke]:
        """Drain all pending input so buffered keys are handled this frame."""
        keys = []
        while True:
            key = self.term.inkey(timeout=0)
            if not key:
                break
            keys.append(key)
        return keys

    def poll_events(self) -> list[InputEvent]:
        now = time.monotonic()
        events = []
        for key in self._drain_keys():
            direction = get_direction(key)
            if direction is not None:
                self._keys.press(direction, now)
                continue
            event = get_event(key)
            if event is not None:
                events.append(event)
        return events

    def held_keys(self) -> KeyState:
        return self._keys.held_keys(time.monotonic())

    async def choose_role(self, context: SessionContext) -> Role:
        self._keys.clear()
        while self._open:
            self._draw(self._role_screen(context))
            for key in self._drain_keys():
                if is_player_role_key(key):
                    return Role.PLAYER
                if is_spectator_role_key(key):
                    return Role.SPECTATOR
                if is_quit_key(key):
                    self._open = False
                    break
            await asyncio.sleep(MENU_POLL_INTERVAL)
        return Role.NONE

    async def choose_target(self, roster: list[PlayerInfo]) -> int | None:
        selected = 0
        while self._open:
            self._draw(self._roster_screen(roster, selected))
            for key in self._drain_keys():
                direction = get_direction(key)
                if direction == Direction.UP:
                    selected = (selected - 1) % len(roster)
                elif direction == Direction.DOWN:
                    selected = (selected + 1) % len(roster)
                elif get_event(key) == InputEvent.CONFIRM:
                    return roster[selected].player_id
                elif get_event(key) == InputEvent.CANCEL:
                    return None
            await asyncio.sleep(MENU_POLL_INTERVAL)
        return None

    def render(self, context: SessionContext) -> None:
        """Render the current session state to the terminal."""
        if context.phase == SessionPhase.LIVE and context.game_map is not None:
            self._draw(self._game_screen(context))
        else:
            self._draw(self._waiting_screen(context))

    def _draw(self, lines: list[str]) -> None:
        frame = "\n".join(lines)
        # Skip identical frames to avoid flicker at the live loop's frame rate
        if frame == self._last_frame:
            return
        self._last_frame = frame
        print(self.term.home + self.term.clear + frame, end="", flush=True)

    def _role_screen(self, context: SessionContext) -> list[str]:
        t = self.term
        output = [
            t.bold("DonCEy Kong Jr - Client"),
            "",
            "Choose a mode:",
            "  [1] Player",
            "  [2] Spectator",
            "",
            "  [Q] Quit",
            "",
        ]
        if context.status:
            output.append(t.yellow(context.status))
        output.extend(self._recent_log_lines(5))
        return output

    def _roster_screen(self, roster: list[PlayerInfo], selected: int) -> list[str]:
        t = self.term
        output = [
            t.bold("Choose a player to spectate"),
            "Up/Down to move, Enter to pick, Esc to go back",
            "",
        ]
        for i, player in enumerate(roster):
            line = f"ID {player.player_id} - {player.name}"
            output.append(t.bold_yellow(f"> {line}") if i == selected else f"  {line}")
        return output

    def _waiting_screen(self, context: SessionContext) -> list[str]:
        title = _PHASE_TITLES.get(context.phase, "DonCEy Kong Jr")
        output = [self.term.bold(title), "", context.status, "", "Esc: cancel"]
        output.extend(self._recent_log_lines(3))
        return output

    def _game_screen(self, context: SessionContext) -> list[str]:
        t = self.term
        game_map = context.game_map
        entity = context.entity
        assert game_map is not None and entity is not None

        viewport = Viewport(
            max(1, min(t.width, game_map.width)),
            max(1, min(t.height - HUD_LINES, game_map.height)),
        )
        cam_x, cam_y = viewport.calculate_camera(
            entity.x, entity.y, game_map.width, game_map.height
        )
        fruits = {(f.x, f.y) for f in context.fruits}
        enemies = {(e.x, e.y): e.kind for e in context.enemies}
        anim_frame = int(time.monotonic() * 2)

        output = []
        for y in viewport.rows_top_down(cam_y):
            row = ""
            for x in range(cam_x, cam_x + viewport.width):
                if (x, y) == (entity.x, entity.y):
                    row += t.bold_red("@")
                elif (x, y) in enemies:
                    style = getattr(t, ENEMY_STYLES.get(enemies[(x, y)], "red"))
                    row += style("C")
                elif (x, y) in fruits:
                    row += t.magenta("*")
                else:
                    row += tile_defs.render_tile(
                        game_map.get_tile(x, y), t, anim_frame
                    )
            output.append(row)

        role = "Spectating" if context.role == Role.SPECTATOR else "Playing"
        hud = (
            f"{role} ID: {entity.player_id}  Level: {entity.level}  "
            f"Lives: {entity.lives}  Score: {entity.score}  "
            f"GameOver: {'YES' if entity.game_over else 'NO'}"
        )
        if context.role == Role.PLAYER:
            hud += f"  Inputs: {context.inputs_sent}"
        output.append("")
        output.append(hud)
        if entity.game_over:
            output.append(t.bold_red("GAME OVER") + "  Enter: menu  R: play again")
        elif context.role == Role.PLAYER:
            output.append("Arrows/WASD=Move, Space=Jump, Esc=Leave")
        else:
            output.append("Esc=Leave")
        return output

    def _recent_log_lines(self, count: int) -> list[str]:
        if not self.log_buffer:
            return []
        entries = self.log_buffer.get_entries(count, min_level=logging.INFO)
        return [self.term.dim(entry.format()) for entry in entries]

    def cleanup(self) -> None:
        """Restore terminal state."""
        print(self.term.normal + self.term.clear, end="")
