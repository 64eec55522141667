"""
w3loot Data Contracts

Every structure that crosses a module boundary is defined here.
The JSON keys produced by the to_dict() methods are what the browser UI reads.

Producers: core/players.py, analysis/loot.py, analysis/chat.py,
           analysis/metadata.py, analysis/assembler.py
Consumers: api/routes_analysis.py, cli.py, static UI
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ============================================================
# PLAYERS
# ============================================================


@dataclass
class PlayerSlot:
    """A human player in the game with their lobby colour."""

    player_id: int
    player_name: str
    color_id: int
    color_name: str
    hex: str
    rgb: tuple[int, int, int]
    # Set by the "-convert <name>" chat command; outranks player_name once set
    converted_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.converted_name or self.player_name

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match on the raw or converted name."""
        needle = needle.lower()
        if needle in self.player_name.lower():
            return True
        return bool(self.converted_name) and needle in self.converted_name.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "colorId": self.color_id,
            "colorName": self.color_name,
            "hex": self.hex,
            "rgb": list(self.rgb),
            "convertedName": self.converted_name,
        }


# ============================================================
# LOOT
# ============================================================


@dataclass(frozen=True)
class LootEvent:
    """An item taken from a lootable container, before name resolution."""

    elapsed_ms: int
    player_id: int
    item_id: str


@dataclass
class LootLine:
    """A resolved loot event as shown to the user.

    Two lines are duplicates when time, player and item are all equal;
    player_id and color do not take part in the comparison.
    """

    time: str
    player: str
    item: str
    player_id: int = field(default=0, compare=False)
    color: str = field(default="", compare=False)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.time, self.player, self.item)

    @property
    def line(self) -> str:
        return f"{self.time} {self.player}: {self.item}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "player": self.player,
            "item": self.item,
            "color": self.color,
            "line": self.line,
        }


# ============================================================
# CHAT
# ============================================================


@dataclass(frozen=True)
class ChatLine:
    """One chat message, with the speaker's display name at the time it was sent."""

    time: str
    player: str
    color: str
    mode: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "player": self.player,
            "color": self.color,
            "mode": self.mode,
            "message": self.message,
        }


# ============================================================
# GAME METADATA
# ============================================================


@dataclass
class GameMetadata:
    """Replay version, length, map and integrity verdict."""

    version: str = ""
    length: str = "00:00:00"
    map: str = ""
    host: str = ""
    game_name: str = ""
    checksum: str = ""
    checksum_sha1: str = ""
    valid_map: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "length": self.length,
            "map": self.map,
            "host": self.host,
            "gameName": self.game_name,
            "checksum": self.checksum,
            "checksumSha1": self.checksum_sha1,
            "validMap": self.valid_map,
        }


# ============================================================
# RESULT
# ============================================================


@dataclass
class ReplayResult:
    """Everything extracted from one replay."""

    game_data: GameMetadata
    player_data: list[PlayerSlot] = field(default_factory=list)
    chat_data: list[ChatLine] = field(default_factory=list)
    loots: list[LootLine] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameData": self.game_data.to_dict(),
            "playerData": [p.to_dict() for p in self.player_data],
            "chatData": [c.to_dict() for c in self.chat_data],
            "loots": [loot.to_dict() for loot in self.loots],
        }
