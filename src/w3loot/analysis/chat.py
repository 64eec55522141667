"""
Chat transcript builder.

Lines are stored with the speaker's display name at the moment they were
sent. The in-chat "-convert <name>" command registers an alias that later
lines and all loot resolution use; earlier lines keep the old name.
"""

from __future__ import annotations

import logging
import re

from w3loot.core.blocks import ChatBlock
from w3loot.core.constants import CHAT_MODES, CONVERT_COMMAND, ChatMode
from w3loot.core.players import PlayerRegistry
from w3loot.core.schemas import ChatLine
from w3loot.core.utils import ms_to_readable_time

logger = logging.getLogger(__name__)

CONVERT_PATTERN = re.compile(re.escape(CONVERT_COMMAND) + r"\s+(.+)")


def chat_mode_label(mode: int) -> str:
    """Map a chat channel code to its label; unknown codes are direct messages."""
    return str(CHAT_MODES.get(mode, ChatMode.DIRECT))


def parse_convert_command(message: str) -> str | None:
    """
    Extract the alias from a "-convert <name>" command.

    Returns:
        The trimmed alias, or None if the message holds no convert command
    """
    match = CONVERT_PATTERN.search(message)
    if not match:
        return None
    alias = match.group(1).strip()
    return alias or None


class ChatTranscript:
    """Accumulates chat lines and applies player aliases."""

    def __init__(self, registry: PlayerRegistry):
        self.registry = registry
        self.lines: list[ChatLine] = []

    def observe(self, elapsed_ms: int, block: ChatBlock) -> ChatLine:
        """Append the chat line, then apply any convert command it carries."""
        line = ChatLine(
            time=ms_to_readable_time(elapsed_ms),
            player=self.registry.display_name(block.player_id),
            color=self.registry.color_hex(block.player_id),
            mode=chat_mode_label(block.mode),
            message=block.message,
        )
        self.lines.append(line)
        self.apply_convert(block.player_id, block.message)
        return line

    def apply_convert(self, player_id: int, message: str) -> bool:
        """
        Set the player's converted name from a "-convert" command.

        The alias is always built on the original player name, so repeated
        converts replace each other instead of nesting.

        Returns:
            True if the converted name was updated
        """
        alias = parse_convert_command(message)
        if alias is None:
            return False

        slot = self.registry.get(player_id)
        if slot is None or alias == slot.player_name:
            return False

        slot.converted_name = f"{alias}({slot.player_name})"
        logger.debug(f"Player {player_id} converted to {slot.converted_name}")
        return True
