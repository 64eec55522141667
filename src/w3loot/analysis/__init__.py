"""
w3loot Analysis - the replay event-stream interpreter.

This module contains:
- classifier: block routing and the single-pass ReplayFold accumulator
- loot: container pickup detection and item id decoding
- chat: chat transcript and "-convert" player aliases
- metadata: game metadata and map checksum verdict
- assembler: loot resolution, deduplication and player filtering
"""

from w3loot.analysis.assembler import assemble, deduplicate_loots, filter_loots_by_player
from w3loot.analysis.classifier import ReplayFold, classify

__all__: list[str] = [
    "ReplayFold",
    "assemble",
    "classify",
    "deduplicate_loots",
    "filter_loots_by_player",
]
