"""Keyboard input mapping."""

from __future__ import annotations

from enum import Enum

from blessed.keyboard import Keystroke

from ..common.constants import HOLD_WINDOW, INITIAL_HOLD_WINDOW
from .movement import KeyState


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


class InputEvent(Enum):
    """Discrete events the session reacts to."""

    CANCEL = "cancel"
    JUMP = "jump"
    CONFIRM = "confirm"
    RETRY = "retry"


_DIRECTION_KEYS = {
    "KEY_LEFT": Direction.LEFT,
    "KEY_RIGHT": Direction.RIGHT,
    "KEY_UP": Direction.UP,
    "KEY_DOWN": Direction.DOWN,
}

_DIRECTION_CHARS = {
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
    "w": Direction.UP,
    "s": Direction.DOWN,
}


def get_direction(key: Keystroke) -> Direction | None:
    """Map arrow keys and WASD to a direction."""
    if key.is_sequence:
        return _DIRECTION_KEYS.get(key.name or "")
    return _DIRECTION_CHARS.get(str(key).lower())


def get_event(key: Keystroke) -> InputEvent | None:
    if key.is_sequence:
        if key.name == "KEY_ESCAPE":
            return InputEvent.CANCEL
        if key.name == "KEY_ENTER":
            return InputEvent.CONFIRM
        return None
    char = str(key)
    if char == " ":
        return InputEvent.JUMP
    if char in ("\n", "\r"):
        return InputEvent.CONFIRM
    if char.lower() == "q":
        return InputEvent.CANCEL
    if char.lower() == "r":
        return InputEvent.RETRY
    return None


def is_quit_key(key: Keystroke) -> bool:
    return str(key).lower() == "q" or key.name == "KEY_ESCAPE"


def is_player_role_key(key: Keystroke) -> bool:
    return str(key).lower() in ("1", "p")


def is_spectator_role_key(key: Keystroke) -> bool:
    return str(key).lower() in ("2", "s")


class KeyTracker:
    """Approximates held keys on a terminal.

    Terminals report key presses (with autorepeat) but never releases. A
    fresh press counts as held for ``initial_hold_window`` seconds, long
    enough for autorepeat to kick in. Once repeats arrive, each one keeps
    the key held for the shorter ``hold_window``, so releasing it stops
    movement quickly.
    """

    def __init__(
        self,
        hold_window: float = HOLD_WINDOW,
        initial_hold_window: float = INITIAL_HOLD_WINDOW,
    ) -> None:
        self.hold_window = hold_window
        self.initial_hold_window = initial_hold_window
        # direction -> (time of last press, whether it was an autorepeat)
        self._last_pressed: dict[Direction, tuple[float, bool]] = {}

    def press(self, direction: Direction, now: float) -> None:
        repeating = self.is_held(direction, now)
        self._last_pressed[direction] = (now, repeating)

    def is_held(self, direction: Direction, now: float) -> bool:
        entry = self._last_pressed.get(direction)
        if entry is None:
            return False
        pressed, repeating = entry
        window = self.hold_window if repeating else self.initial_hold_window
        return now - pressed <= window

    def held_keys(self, now: float) -> KeyState:
        return KeyState(
            left=self.is_held(Direction.LEFT, now),
            right=self.is_held(Direction.RIGHT, now),
            up=self.is_held(Direction.UP, now),
            down=self.is_held(Direction.DOWN, now),
        )

    def clear(self) -> None:
        self._last_pressed.clear()
