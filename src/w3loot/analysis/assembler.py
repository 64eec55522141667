"""
Result assembly.

Runs after the block stream is exhausted: resolves loot events against the
final player table and the item catalog, removes duplicate lines and builds
the response. Resolution failures drop the single loot entry, never the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from w3loot.analysis.classifier import ReplayFold
from w3loot.core.errors import ReferenceLookupError
from w3loot.core.players import PlayerRegistry
from w3loot.core.schemas import GameMetadata, LootEvent, LootLine, ReplayResult
from w3loot.core.utils import ms_to_readable_time
from w3loot.infra.reference import ItemCatalog

logger = logging.getLogger(__name__)


def resolve_loot(event: LootEvent, registry: PlayerRegistry, catalog: ItemCatalog) -> LootLine:
    """
    Resolve a loot event into a display line.

    Raises:
        PlayerNotFoundError: If the player has no slot
        CatalogUnavailableError: If the item catalog was never loaded
        ItemNotFoundError: If the item id is unknown
    """
    slot = registry.require(event.player_id)
    return LootLine(
        time=ms_to_readable_time(event.elapsed_ms),
        player=slot.display_name,
        item=catalog.lookup(event.item_id),
        player_id=event.player_id,
        color=slot.hex,
    )


def resolve_loots(
    events: Iterable[LootEvent], registry: PlayerRegistry, catalog: ItemCatalog
) -> list[LootLine]:
    """Resolve every event, silently dropping the ones that cannot be resolved."""
    lines = []
    for event in events:
        try:
            lines.append(resolve_loot(event, registry, catalog))
        except ReferenceLookupError as e:
            logger.debug(f"Dropping loot {event.item_id} for player {event.player_id}: {e}")
    return lines


def deduplicate_loots(lines: Iterable[LootLine]) -> list[LootLine]:
    """
    Collapse lines with identical time, player and item, keeping first order.

    The same item picked up at two different times is kept twice.
    """
    seen = set()
    unique = []
    for line in lines:
        if line.key in seen:
            continue
        seen.add(line.key)
        unique.append(line)
    return unique


def filter_loots_by_player(
    lines: Iterable[LootLine], registry: PlayerRegistry, username: str | None
) -> list[LootLine]:
    """
    Keep lines whose player name or converted name contains username.

    Matching is case-insensitive. An empty or missing username keeps everything.
    """
    lines = list(lines)
    if not username:
        return lines

    kept = []
    for line in lines:
        slot = registry.get(line.player_id)
        if slot is not None and slot.matches(username):
            kept.append(line)
    return kept


def assemble(fold: ReplayFold, catalog: ItemCatalog, username: str | None = None) -> ReplayResult:
    """
    Build the final result from a fully consumed fold.

    Args:
        fold: Accumulated replay state
        catalog: Item catalog for name resolution
        username: Optional case-insensitive player filter for the loot list

    Returns:
        ReplayResult with game, player, chat and loot data
    """
    lines = resolve_loots(fold.loot.events, fold.registry, catalog)
    unique = deduplicate_loots(lines)
    loots = filter_loots_by_player(unique, fold.registry, username)

    dropped = len(fold.loot.events) - len(lines)
    if dropped:
        logger.info(f"Dropped {dropped} of {len(fold.loot.events)} loot events during resolution")

    return ReplayResult(
        game_data=fold.metadata or GameMetadata(),
        player_data=list(fold.registry.slots),
        chat_data=list(fold.chat.lines),
        loots=loots,
    )


def replay_matches(
    result: ReplayResult, map_name: str | None = None, message: str | None = None
) -> bool:
    """
    Check a finished replay against the batch filters.

    Both checks are case-insensitive substring matches: map_name against the
    map path, message against every chat line. A missing or empty filter
    always matches.
    """
    if map_name and map_name.lower() not in result.game_data.map.lower():
        return False
    if message:
        needle = message.lower()
        return any(needle in line.message.lower() for line in result.chat_data)
    return True
