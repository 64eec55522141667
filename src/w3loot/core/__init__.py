"""
w3loot Core - Foundation modules for replay decoding.

This module contains the fundamental components:
- constants: Replay format constants and enums
- config: Application configuration management
- blocks: Typed replay block stream
- schemas: Data contracts for module boundaries
- players: Lobby colour table and player registry
- parser: .w3g container decoder
- errors: Exception hierarchy
"""

from w3loot.core.blocks import (
    Action,
    ChatBlock,
    CommandBlock,
    HeaderBlock,
    LeaveBlock,
    PlayerRecord,
    ReplayBlock,
    SlotRecord,
    TimingBlock,
)
from w3loot.core.schemas import (
    ChatLine,
    GameMetadata,
    LootEvent,
    LootLine,
    PlayerSlot,
    ReplayResult,
)

__all__ = [
    # Blocks
    "Action",
    "ChatBlock",
    "CommandBlock",
    "HeaderBlock",
    "LeaveBlock",
    "PlayerRecord",
    "ReplayBlock",
    "SlotRecord",
    "TimingBlock",
    # Schemas (data contracts)
    "ChatLine",
    "GameMetadata",
    "LootEvent",
    "LootLine",
    "PlayerSlot",
    "ReplayResult",
]
