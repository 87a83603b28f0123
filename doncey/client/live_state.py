"""Applies authoritative server snapshots to the tracked player."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..common.protocol import (
    EnemiesBegin,
    EnemiesEnd,
    Enemy,
    Fruit,
    FruitsBegin,
    FruitsEnd,
    Message,
    StateSnapshot,
)


@dataclass(frozen=True)
class TrackedEntity:
    """Position and progress of the player we drive or watch.

    Frozen: a new snapshot always replaces the old one whole, so a reader
    never sees fields from two different STATE lines.
    """

    player_id: int
    x: int = 0
    y: int = 0
    score: int = 0
    level: int = 0
    lives: int = 0
    game_over: bool = False
    seq: int = 0
    version: int = 0


class LiveStateSync:
    """Tracks one player id and accepts only STATE lines addressed to it."""

    def __init__(self, player_id: int) -> None:
        self.entity = TrackedEntity(player_id)

    @property
    def player_id(self) -> int:
        return self.entity.player_id

    def apply(self, message: Message | None) -> bool:
        """Apply a parsed message. Returns True if the entity was replaced.

        Snapshots are taken in arrival order; ``seq`` is recorded but never
        used to reorder or reject.
        """
        if not isinstance(message, StateSnapshot):
            return False
        if message.player_id != self.entity.player_id:
            return False
        self.entity = TrackedEntity(
            player_id=message.player_id,
            x=message.x,
            y=message.y,
            score=message.score,
            level=message.level,
            lives=message.lives,
            game_over=message.game_over,
            seq=message.seq,
            version=self.entity.version + 1,
        )
        return True


@dataclass
class OverlayTracker:
    """Collects the fruit and enemy lists the server sends per player.

    Each list arrives as a ``*_BEGIN <id>`` .. ``*_END <id>`` block and is
    published only when the block for our player completes.
    """

    player_id: int
    fruits: list[Fruit] = field(default_factory=list)
    enemies: list[Enemy] = field(default_factory=list)
    _pending_fruits: list[Fruit] | None = None
    _pending_enemies: list[Enemy] | None = None

    def apply(self, message: Message | None) -> bool:
        """Apply a parsed message. Returns True if a list was replaced."""
        if isinstance(message, FruitsBegin):
            if message.player_id == self.player_id:
                self._pending_fruits = []
        elif isinstance(message, Fruit):
            if self._pending_fruits is not None:
                self._pending_fruits.append(message)
        elif isinstance(message, FruitsEnd):
            if message.player_id == self.player_id and self._pending_fruits is not None:
                self.fruits = self._pending_fruits
                self._pending_fruits = None
                return True
        elif isinstance(message, EnemiesBegin):
            if message.player_id == self.player_id:
                self._pending_enemies = []
        elif isinstance(message, Enemy):
            if self._pending_enemies is not None:
                self._pending_enemies.append(message)
        elif isinstance(message, EnemiesEnd):
            if (
                message.player_id == self.player_id
                and self._pending_enemies is not None
            ):
                self.enemies = self._pending_enemies
                self._pending_enemies = None
                return True
        return False
