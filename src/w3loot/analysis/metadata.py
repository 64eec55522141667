"""
Replay metadata and map integrity check.

A map is valid when its checksum or its SHA1 appears in the allowlist;
either hash alone is enough.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from w3loot.core.blocks import HeaderBlock
from w3loot.core.schemas import GameMetadata
from w3loot.core.utils import format_version, ms_to_readable_time

if TYPE_CHECKING:
    from w3loot.infra.reference import ChecksumAllowlist

logger = logging.getLogger(__name__)


def extract_game_metadata(header: HeaderBlock, allowlist: ChecksumAllowlist) -> GameMetadata:
    """
    Build GameMetadata from the header block.

    Raises:
        AllowlistUnavailableError: If the allowlist could not be loaded
    """
    valid_map = allowlist.matches(header.map_checksum, header.map_checksum_sha1)
    if not valid_map:
        logger.info(f"Map not on allowlist: {header.map_name} ({header.map_checksum})")

    return GameMetadata(
        version=format_version(header.version),
        length=ms_to_readable_time(header.length_ms),
        map=header.map_name,
        host=header.map_creator,
        game_name=header.game_name,
        checksum=header.map_checksum,
        checksum_sha1=header.map_checksum_sha1,
        valid_map=valid_map,
    )
