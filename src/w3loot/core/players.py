"""
Player colour table and per-game player registry.

The 12 lobby colours are fixed; the registry maps player ids to PlayerSlot
entries built from the replay's player and slot records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from w3loot.core.blocks import PlayerRecord, SlotRecord
from w3loot.core.constants import UNKNOWN_NAME
from w3loot.core.errors import PlayerNotFoundError
from w3loot.core.schemas import PlayerSlot

logger = logging.getLogger(__name__)


@dataclass
class PlayerColor:
    """One of the fixed lobby colours."""

    color_id: int
    name: str
    hex: str
    rgb: tuple[int, int, int]


PLAYER_COLORS: tuple[PlayerColor, ...] = (
    PlayerColor(0, "Red", "#FF0303", (255, 3, 3)),
    PlayerColor(1, "Blue", "#0042FF", (0, 66, 255)),
    PlayerColor(2, "Teal", "#1CE6B9", (28, 230, 185)),
    PlayerColor(3, "Purple", "#540081", (84, 0, 129)),
    PlayerColor(4, "Yellow", "#FFFC00", (255, 252, 0)),
    PlayerColor(5, "Orange", "#FE8A0E", (254, 138, 14)),
    PlayerColor(6, "Green", "#20C000", (32, 192, 0)),
    PlayerColor(7, "Pink", "#E55BB0", (229, 91, 176)),
    PlayerColor(8, "Gray", "#959697", (149, 150, 151)),
    PlayerColor(9, "Light Blue", "#7EBFF1", (126, 191, 241)),
    PlayerColor(10, "Dark Green", "#106246", (16, 98, 70)),
    PlayerColor(11, "Brown", "#4A2A04", (74, 42, 4)),
)

UNKNOWN_COLOR = PlayerColor(-1, UNKNOWN_NAME, "#FFFFFF", (255, 255, 255))


def get_player_color(color_id: int) -> PlayerColor:
    """Look up a lobby colour by index, falling back to the Unknown placeholder."""
    if 0 <= color_id < len(PLAYER_COLORS):
        return PLAYER_COLORS[color_id]
    return UNKNOWN_COLOR


def build_player_slots(
    player_records: list[PlayerRecord], slot_records: list[SlotRecord]
) -> list[PlayerSlot]:
    """
    Build the per-game player table.

    Slots without a human player (player_id 0) are skipped. Output order
    follows the slot records. Never raises: unknown colours and missing
    names get placeholder values.

    Args:
        player_records: Player id / name records
        slot_records: Lobby slots with their colour index

    Returns:
        One PlayerSlot per occupied slot
    """
    names = {record.player_id: record.name for record in player_records}

    slots = []
    for slot in slot_records:
        if slot.player_id == 0:
            continue
        color = get_player_color(slot.color)
        if color is UNKNOWN_COLOR:
            logger.debug(f"Unknown colour index {slot.color} for player {slot.player_id}")
        slots.append(
            PlayerSlot(
                player_id=slot.player_id,
                player_name=names.get(slot.player_id) or UNKNOWN_NAME,
                color_id=color.color_id,
                color_name=color.name,
                hex=color.hex,
                rgb=color.rgb,
            )
        )
    return slots


class PlayerRegistry:
    """Player id -> PlayerSlot lookup for one game."""

    def __init__(self, slots: list[PlayerSlot] | None = None):
        self.slots: list[PlayerSlot] = []
        self._by_id: dict[int, PlayerSlot] = {}
        if slots:
            self.load(slots)

    @classmethod
    def from_records(
        cls, player_records: list[PlayerRecord], slot_records: list[SlotRecord]
    ) -> PlayerRegistry:
        return cls(build_player_slots(player_records, slot_records))

    def load(self, slots: list[PlayerSlot]) -> None:
        self.slots = list(slots)
        self._by_id = {}
        for slot in self.slots:
            # First slot wins if a replay lists the same player twice
            self._by_id.setdefault(slot.player_id, slot)

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, player_id: int) -> bool:
        return player_id in self._by_id

    def get(self, player_id: int) -> PlayerSlot | None:
        return self._by_id.get(player_id)

    def require(self, player_id: int) -> PlayerSlot:
        """Like get(), but raises PlayerNotFoundError for unknown ids."""
        slot = self._by_id.get(player_id)
        if slot is None:
            raise PlayerNotFoundError(player_id)
        return slot

    def display_name(self, player_id: int) -> str:
        slot = self._by_id.get(player_id)
        return slot.display_name if slot else UNKNOWN_NAME

    def color_hex(self, player_id: int) -> str:
        slot = self._by_id.get(player_id)
        return slot.hex if slot else UNKNOWN_COLOR.hex
