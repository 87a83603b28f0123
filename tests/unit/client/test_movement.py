"""Tests for movement intent resolution."""

from __future__ import annotations

import itertools

import pytest

from doncey.client.game_map import GameMap
from doncey.client.movement import (
    IntentSequencer,
    KeyState,
    horizontal_direction,
    resolve_intent,
)
from doncey.common.protocol import InputMessage


def _map(*rows_bottom_up: str) -> GameMap:
    """Build a map from rows listed bottom first (y=0 first)."""
    width = max(len(row) for row in rows_bottom_up)
    game_map = GameMap.empty(width, len(rows_bottom_up))
    for y, row in enumerate(rows_bottom_up):
        game_map.set_row(y, row)
    return game_map


FLOOR = _map("T")


def _all_key_states() -> list[KeyState]:
    return [KeyState(*combo) for combo in itertools.product([False, True], repeat=5)]


class TestHorizontalDirection:
    @pytest.mark.parametrize(
        "left, right, expected",
        [(False, False, 0), (True, False, -1), (False, True, 1), (True, True, 1)],
    )
    def test_right_wins(self, left: bool, right: bool, expected: int) -> None:
        assert horizontal_direction(left, right) == expected


class TestResolveIntent:
    def test_walk_right_on_floor(self) -> None:
        assert resolve_intent(FLOOR, 0, 0, False, KeyState(right=True)) == (1, 0)

    def test_walk_both_keys_goes_right(self) -> None:
        assert resolve_intent(FLOOR, 0, 0, False, KeyState(left=True, right=True)) == (1, 0)

    def test_jump_left(self) -> None:
        keys = KeyState(left=True, jump_pressed=True)
        assert resolve_intent(FLOOR, 0, 0, False, keys) == (-2, 1)

    def test_jump_right(self) -> None:
        keys = KeyState(right=True, jump_pressed=True)
        assert resolve_intent(FLOOR, 0, 0, False, keys) == (2, 1)

    def test_vertical_jump(self) -> None:
        assert resolve_intent(FLOOR, 0, 0, False, KeyState(jump_pressed=True)) == (0, 1)

    def test_jump_with_both_keys_goes_left(self) -> None:
        keys = KeyState(left=True, right=True, jump_pressed=True)
        assert resolve_intent(FLOOR, 0, 0, False, keys) == (-2, 1)

    def test_supported_by_tile_below(self) -> None:
        game_map = _map("T", ".")
        assert resolve_intent(game_map, 0, 1, False, KeyState(jump_pressed=True)) == (0, 1)

    def test_no_jump_in_mid_air(self) -> None:
        """Unsupported jump falls through to walking."""
        game_map = _map(".", ".", ".")
        keys = KeyState(right=True, jump_pressed=True)
        assert resolve_intent(game_map, 0, 2, False, keys) == (1, 0)
        assert resolve_intent(game_map, 0, 2, False, KeyState(jump_pressed=True)) is None

    def test_no_jump_under_ceiling(self) -> None:
        game_map = _map("T", "=")
        assert resolve_intent(game_map, 0, 0, False, KeyState(jump_pressed=True)) is None

    def test_climb_up_liana(self) -> None:
        game_map = _map("|", ".")
        assert resolve_intent(game_map, 0, 0, False, KeyState(up=True)) == (0, 1)

    def test_liana_above_is_not_a_ceiling(self) -> None:
        game_map = _map("|", "|")
        assert resolve_intent(game_map, 0, 0, False, KeyState(up=True)) == (0, 1)

    def test_climb_up_blocked_by_ceiling(self) -> None:
        game_map = _map("|", "T")
        assert resolve_intent(game_map, 0, 0, False, KeyState(up=True)) is None

    def test_climb_down_ignores_ceiling(self) -> None:
        game_map = _map(".", "|", "T")
        assert resolve_intent(game_map, 0, 1, False, KeyState(down=True)) == (0, -1)

    def test_up_without_liana_does_nothing(self) -> None:
        assert resolve_intent(FLOOR, 0, 0, False, KeyState(up=True, down=True)) is None

    def test_climb_and_walk_combine(self) -> None:
        game_map = _map("|.", "..")
        assert resolve_intent(game_map, 0, 0, False, KeyState(left=True, up=True)) == (-1, 1)

    def test_outside_map_treated_as_empty(self) -> None:
        assert resolve_intent(FLOOR, -3, 10, False, KeyState(right=True)) == (1, 0)
        assert resolve_intent(FLOOR, -3, 10, False, KeyState(jump_pressed=True)) is None

    def test_no_keys_no_intent(self) -> None:
        assert resolve_intent(FLOOR, 0, 0, False, KeyState()) is None

    @pytest.mark.parametrize("keys", _all_key_states())
    def test_game_over_never_moves(self, keys: KeyState) -> None:
        for game_map, x, y in [(FLOOR, 0, 0), (_map("|", "."), 0, 0)]:
            assert resolve_intent(game_map, x, y, True, keys) is None


class TestIntentSequencer:
    def test_numbers_from_one(self) -> None:
        sequencer = IntentSequencer()
        sent = [
            sequencer.next_input(FLOOR, 0, 0, False, KeyState(right=True))
            for _ in range(3)
        ]
        assert sent == [InputMessage(1, 1, 0), InputMessage(2, 1, 0), InputMessage(3, 1, 0)]

    def test_no_intent_does_not_consume_seq(self) -> None:
        sequencer = IntentSequencer()
        assert sequencer.next_input(FLOOR, 0, 0, False, KeyState()) is None
        assert sequencer.next_input(FLOOR, 0, 0, True, KeyState(right=True)) is None
        message = sequencer.next_input(FLOOR, 0, 0, False, KeyState(left=True))
        assert message == InputMessage(1, -1, 0)
        assert sequencer.seq == 1
