"""
Container loot extraction.

A pickup from a lootable container is an item-use action (id 16) with
ability flags 64 whose payload is the 4-byte item id, stored reversed.
Names are not resolved here: player aliases can still change later in the
replay, so resolution happens once the stream is exhausted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from w3loot.core.blocks import Action
from w3loot.core.constants import (
    ITEM_ID_LENGTH,
    ITEM_ID_MAX_BYTE,
    ITEM_ID_MIN_BYTE,
    LOOT_ABILITY_FLAGS,
    LOOT_ACTION_ID,
)
from w3loot.core.schemas import LootEvent

logger = logging.getLogger(__name__)


def is_alphanumeric_payload(payload: Sequence[int]) -> bool:
    """
    Check that every byte lies in '0'..'z' (48-122 inclusive).

    The range also admits a few punctuation characters such as ':' and '_';
    item ids are accepted with them as-is.
    """
    return all(ITEM_ID_MIN_BYTE <= value <= ITEM_ID_MAX_BYTE for value in payload)


def decode_item_id(payload: Sequence[int]) -> str:
    """Turn the raw payload bytes into the displayed 4-character item id."""
    return "".join(chr(value) for value in payload)[::-1]


def encode_item_id(item_id: str) -> tuple[int, ...]:
    """Inverse of decode_item_id: the payload bytes a replay stores for item_id."""
    return tuple(ord(char) for char in reversed(item_id))


def is_loot_action(action: Action) -> bool:
    """True if the action is a container pickup with a well-formed item id."""
    return (
        action.action_id == LOOT_ACTION_ID
        and action.ability_flags == LOOT_ABILITY_FLAGS
        and len(action.payload) == ITEM_ID_LENGTH
        and is_alphanumeric_payload(action.payload)
    )


class LootExtractor:
    """Collects LootEvents in stream order."""

    def __init__(self):
        self.events: list[LootEvent] = []

    def observe(self, elapsed_ms: int, player_id: int, action: Action) -> LootEvent | None:
        """
        Record a loot event for a qualifying action.

        Malformed payloads are dropped without error.

        Returns:
            The new LootEvent, or None if the action was dropped
        """
        if not is_loot_action(action):
            logger.debug(f"Dropping malformed loot payload {action.payload!r}")
            return None

        event = LootEvent(
            elapsed_ms=elapsed_ms,
            player_id=player_id,
            item_id=decode_item_id(action.payload),
        )
        self.events.append(event)
        return event
