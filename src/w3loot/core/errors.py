"""
Error types shared across w3loot.

Per-request failures (ReplayDecodeError, AllowlistUnavailableError) abort the
analysis of a single replay. ReferenceLookupError subclasses are per-item
failures: the result assembler drops the affected entry and carries on.
"""


class W3LootError(Exception):
    """Base class for all w3loot errors."""


class ReplayDecodeError(W3LootError):
    """The replay buffer could not be decoded."""


class AllowlistUnavailableError(W3LootError):
    """The map checksum allowlist could not be read, so no verdict is possible."""


class ReferenceLookupError(W3LootError, LookupError):
    """A single id could not be resolved to a display value."""


class CatalogUnavailableError(ReferenceLookupError):
    """The item catalog was never loaded."""


class ItemNotFoundError(ReferenceLookupError):
    """The item id is not in the catalog."""

    def __init__(self, item_id: str):
        super().__init__(f"Item with id {item_id} not found.")
        self.item_id = item_id


class PlayerNotFoundError(ReferenceLookupError):
    """The player id has no slot in this game."""

    def __init__(self, player_id: int):
        super().__init__(f"Player with id {player_id} not found.")
        self.player_id = player_id
