"""
Event classification and the single-pass replay fold.

ReplayFold is the explicit accumulator threaded through the block stream:
it owns the game clock, the player registry and the per-concern collectors,
and routes every block to the collector that cares about it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum

from w3loot.analysis.chat import ChatTranscript
from w3loot.analysis.loot import LootExtractor, is_loot_action
from w3loot.analysis.metadata import extract_game_metadata
from w3loot.core.blocks import (
    Action,
    ChatBlock,
    CommandBlock,
    HeaderBlock,
    ReplayBlock,
    TimingBlock,
)
from w3loot.core.players import PlayerRegistry, build_player_slots
from w3loot.core.schemas import GameMetadata
from w3loot.infra.reference import ChecksumAllowlist

logger = logging.getLogger(__name__)


class BlockKind(Enum):
    HEADER = "header"
    TIMING = "timing"
    COMMAND = "command"
    CHAT = "chat"
    IGNORE = "ignore"


def classify(block: ReplayBlock) -> BlockKind:
    """Route a block to the concern that handles it."""
    if isinstance(block, HeaderBlock):
        return BlockKind.HEADER
    if isinstance(block, TimingBlock):
        return BlockKind.TIMING
    if isinstance(block, CommandBlock):
        return BlockKind.COMMAND
    if isinstance(block, ChatBlock):
        return BlockKind.CHAT
    return BlockKind.IGNORE


def loot_candidates(command: CommandBlock) -> Iterator[Action]:
    """Yield the actions of a command block that are container pickups."""
    for action in command.actions:
        if is_loot_action(action):
            yield action


class ReplayFold:
    """
    Accumulates everything derived from one replay's block stream.

    Fresh per replay; never shared between analyses.
    """

    def __init__(self, allowlist: ChecksumAllowlist):
        self.allowlist = allowlist
        self.elapsed_ms = 0
        self.registry = PlayerRegistry()
        self.loot = LootExtractor()
        self.chat = ChatTranscript(self.registry)
        self.metadata: GameMetadata | None = None
        self.blocks_seen = 0

    def feed(self, block: ReplayBlock) -> None:
        """Update the accumulators with one block."""
        self.blocks_seen += 1
        kind = classify(block)

        if kind is BlockKind.HEADER:
            self._on_header(block)
        elif kind is BlockKind.TIMING:
            self.elapsed_ms += block.time_increment
            for command in block.commands:
                self._on_command(command)
        elif kind is BlockKind.COMMAND:
            self._on_command(block)
        elif kind is BlockKind.CHAT:
            self.chat.observe(self.elapsed_ms, block)

    def consume(self, blocks: Iterable[ReplayBlock]) -> ReplayFold:
        """Feed a whole stream; returns self for chaining."""
        for block in blocks:
            self.feed(block)
        logger.debug(
            f"Consumed {self.blocks_seen} blocks: {len(self.loot.events)} loot events, "
            f"{len(self.chat.lines)} chat lines, {self.elapsed_ms} ms"
        )
        return self

    def _on_header(self, block: HeaderBlock) -> None:
        if self.metadata is not None:
            logger.warning("Ignoring duplicate header block")
            return
        self.registry.load(build_player_slots(block.player_records, block.slot_records))
        self.metadata = extract_game_metadata(block, self.allowlist)

    def _on_command(self, command: CommandBlock) -> None:
        for action in loot_candidates(command):
            self.loot.observe(self.elapsed_ms, command.player_id, action)
