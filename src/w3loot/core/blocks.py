"""
Typed replay block stream.

The container decoder (w3loot.core.parser) produces these blocks in replay
order; the interpreter in w3loot.analysis consumes them in a single forward
pass. Every block type is a frozen dataclass; tests build streams by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlayerRecord:
    """A player id / name pair from the replay metadata."""

    player_id: int
    name: str


@dataclass(frozen=True)
class SlotRecord:
    """A lobby slot from the game start record."""

    player_id: int
    color: int
    team: int = 0
    slot_status: int = 2  # 0 empty, 1 closed, 2 used
    computer: bool = False
    race_flags: int = 0
    download_percent: int = 100


@dataclass(frozen=True)
class Action:
    """A single player-issued command inside a command block."""

    action_id: int
    ability_flags: int = 0
    # Raw item id bytes for item-related actions, empty otherwise
    payload: tuple[int, ...] = ()


@dataclass(frozen=True)
class CommandBlock:
    """All actions issued by one player within one time slot."""

    player_id: int
    actions: list[Action] = field(default_factory=list)


@dataclass(frozen=True)
class HeaderBlock:
    """Replay header and game metadata. Always the first block of a stream."""

    version: int = 0
    build: int = 0
    length_ms: int = 0
    game_name: str = ""
    map_name: str = ""
    map_creator: str = ""
    map_checksum: str = ""
    map_checksum_sha1: str = ""
    host: PlayerRecord | None = None
    player_records: list[PlayerRecord] = field(default_factory=list)
    slot_records: list[SlotRecord] = field(default_factory=list)
    multiplayer: bool = True


@dataclass(frozen=True)
class TimingBlock:
    """A time slot: advances the game clock and carries command blocks."""

    time_increment: int
    commands: list[CommandBlock] = field(default_factory=list)


@dataclass(frozen=True)
class ChatBlock:
    """A chat message sent by a player."""

    player_id: int
    mode: int
    message: str
    in_game: bool = True


@dataclass(frozen=True)
class LeaveBlock:
    """A player leaving the game."""

    player_id: int
    reason: int = 0
    result: int = 0


ReplayBlock = HeaderBlock | TimingBlock | CommandBlock | ChatBlock | LeaveBlock
