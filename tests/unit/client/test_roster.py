"""Tests for roster fetching."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from doncey.client.errors import Disconnected
from doncey.client.roster import RosterFetcher, RosterPhase, fetch_roster
from doncey.common.protocol import PlayerInfo


class TestRosterFetcher:
    def test_collects_in_order(self) -> None:
        fetcher = RosterFetcher()
        lines = ["PLAYERS_BEGIN", "PLAYER 3 carol", "PLAYER 1 alice", "PLAYER 2 bob", "PLAYERS_END"]
        results = [fetcher.feed(line) for line in lines]

        assert results == [False, False, False, False, True]
        assert fetcher.players == [
            PlayerInfo(3, "carol"),
            PlayerInfo(1, "alice"),
            PlayerInfo(2, "bob"),
        ]

    def test_empty_roster(self) -> None:
        fetcher = RosterFetcher()
        fetcher.feed("PLAYERS_BEGIN")
        assert fetcher.feed("PLAYERS_END") is True
        assert fetcher.players == []

    def test_lines_before_begin_ignored(self) -> None:
        """A stray PLAYER or PLAYERS_END before the block is noise."""
        fetcher = RosterFetcher()
        for line in ["PLAYER 9 ghost", "PLAYERS_END", "STATE 1 1 0 0 0 1 3 false"]:
            assert fetcher.feed(line) is False
        assert fetcher.phase == RosterPhase.AWAITING_BEGIN

        fetcher.feed("PLAYERS_BEGIN")
        fetcher.feed("PLAYER 1 alice")
        assert fetcher.feed("PLAYERS_END") is True
        assert fetcher.players == [PlayerInfo(1, "alice")]

    def test_noise_inside_block_skipped(self) -> None:
        fetcher = RosterFetcher()
        for line in ["PLAYERS_BEGIN", "PLAYER 1 a", "PING", "PLAYER x b", "PLAYER 2 c"]:
            fetcher.feed(line)
        fetcher.feed("PLAYERS_END")
        assert [p.player_id for p in fetcher.players] == [1, 2]

    def test_cap_drops_only_overflow(self) -> None:
        fetcher = RosterFetcher(max_players=3)
        fetcher.feed("PLAYERS_BEGIN")
        for i in range(5):
            fetcher.feed(f"PLAYER {i} p{i}")
        fetcher.feed("PLAYERS_END")

        assert [p.player_id for p in fetcher.players] == [0, 1, 2]
        assert fetcher.dropped == 2


class TestFetchRoster:
    def test_sends_request_and_returns_roster(self, make_transport: Any) -> None:
        transport = make_transport(
            ["WELCOME", "PLAYERS_BEGIN", "PLAYER 4 dk", "PLAYERS_END", "PLAYERS_BEGIN"]
        )
        roster = asyncio.run(fetch_roster(transport))

        assert transport.sent == ["LIST_PLAYERS\n"]
        assert roster == [PlayerInfo(4, "dk")]
        assert transport.lines == ["PLAYERS_BEGIN"]

    def test_each_fetch_replaces_previous(self, make_transport: Any) -> None:
        transport = make_transport(
            [
                "PLAYERS_BEGIN", "PLAYER 1 a", "PLAYER 2 b", "PLAYERS_END",
                "PLAYERS_BEGIN", "PLAYER 3 c", "PLAYERS_END",
            ]
        )

        async def run() -> tuple[list[PlayerInfo], list[PlayerInfo]]:
            return await fetch_roster(transport), await fetch_roster(transport)

        first, second = asyncio.run(run())
        assert [p.player_id for p in first] == [1, 2]
        assert second == [PlayerInfo(3, "c")]

    def test_disconnect_mid_block_is_fatal(self, make_transport: Any) -> None:
        transport = make_transport(["PLAYERS_BEGIN", "PLAYER 1 a"])
        with pytest.raises(Disconnected):
            asyncio.run(fetch_roster(transport))
