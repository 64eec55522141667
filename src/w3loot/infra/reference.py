"""
Process-wide reference data: the item catalog and the map checksum allowlist.

Both are loaded once before any replay is analyzed and never change
afterwards, so concurrent analyses read them without locking. They are passed
into each analysis explicitly (see ReferenceData) rather than looked up
globally.

Failure modes differ on purpose:
- catalog download failed: every item lookup fails individually and the
  affected loot lines are dropped
- allowlist unreadable: every map check raises AllowlistUnavailableError,
  which aborts that replay
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from w3loot.core.config import W3LootConfig, get_config
from w3loot.core.errors import (
    AllowlistUnavailableError,
    CatalogUnavailableError,
    ItemNotFoundError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Item Catalog
# =============================================================================


class ItemCatalog:
    """Item id -> item display name."""

    def __init__(self, items: dict[str, str] | None = None, error: str | None = None):
        self._items = dict(items or {})
        self.error = error

    @classmethod
    def from_entries(cls, entries: Iterable[dict[str, Any]]) -> ItemCatalog:
        """Build from `[{"id": ..., "name": ...}]`; the first entry for an id wins."""
        items: dict[str, str] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            item_id = entry.get("id")
            name = entry.get("name")
            if isinstance(item_id, str) and isinstance(name, str):
                items.setdefault(item_id, name)
        return cls(items)

    @classmethod
    def unavailable(cls, reason: str) -> ItemCatalog:
        return cls(error=reason)

    @classmethod
    def fetch(cls, url: str, timeout: float = 10.0) -> ItemCatalog:
        """
        Download the catalog. Never raises: failures yield an unavailable catalog.

        Args:
            url: URL of the JSON item list
            timeout: Request timeout in seconds
        """
        try:
            response = httpx.get(url, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
            entries = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching item data from {url}: {e}")
            return cls.unavailable(str(e))
        except ValueError as e:
            logger.error(f"Error parsing item data from {url}: {e}")
            return cls.unavailable(str(e))

        if not isinstance(entries, list):
            logger.error(f"Item data from {url} is not a JSON array")
            return cls.unavailable("Item data is not a JSON array")

        catalog = cls.from_entries(entries)
        logger.info(f"Item data initialized ({len(catalog)} items)")
        return catalog

    @property
    def available(self) -> bool:
        return self.error is None

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def lookup(self, item_id: str) -> str:
        """
        Resolve an item id to its name.

        Raises:
            CatalogUnavailableError: If the catalog failed to load
            ItemNotFoundError: If the id is unknown
        """
        if self.error is not None:
            raise CatalogUnavailableError("Item data not initialized.")
        name = self._items.get(item_id)
        if name is None:
            raise ItemNotFoundError(item_id)
        return name


# =============================================================================
# Checksum Allowlist
# =============================================================================


@dataclass
class ChecksumPair:
    """Known-good map hashes. Either may be empty."""

    md5: str = ""
    sha1: str = ""


class ChecksumAllowlist:
    """Set of map checksums considered recognized."""

    def __init__(self, pairs: Iterable[ChecksumPair] = (), error: str | None = None):
        self.pairs = list(pairs)
        self.error = error
        self._md5 = {p.md5.lower() for p in self.pairs if p.md5}
        self._sha1 = {p.sha1.lower() for p in self.pairs if p.sha1}

    @classmethod
    def from_entries(cls, entries: Iterable[dict[str, Any]]) -> ChecksumAllowlist:
        """
        Build from `[{"md5": ..., "sha1": ...}]`.

        The legacy key "md5sha1" is read as the SHA1 value.
        """
        pairs = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError(f"Allowlist entry is not an object: {entry!r}")
            md5 = entry.get("md5") or ""
            sha1 = entry.get("sha1") or entry.get("md5sha1") or ""
            pairs.append(ChecksumPair(md5=str(md5), sha1=str(sha1)))
        return cls(pairs)

    @classmethod
    def unavailable(cls, reason: str) -> ChecksumAllowlist:
        return cls(error=reason)

    @classmethod
    def load(cls, path: str | Path) -> ChecksumAllowlist:
        """
        Read the allowlist file.

        Raises:
            AllowlistUnavailableError: If the file is missing or malformed
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                entries = json.load(f)
            if not isinstance(entries, list):
                raise ValueError("allowlist is not a JSON array")
            allowlist = cls.from_entries(entries)
        except (OSError, ValueError) as e:
            raise AllowlistUnavailableError(f"Cannot read checksum allowlist {path}: {e}") from e

        logger.info(f"Loaded {len(allowlist.pairs)} map checksums from {path}")
        if not allowlist.pairs:
            logger.warning(
                f"Checksum allowlist {path} is empty, every map will report validMap=false. "
                "Set W3LOOT_ALLOWLIST_PATH to a file with the recognized map checksums"
            )
        return allowlist

    @property
    def available(self) -> bool:
        return self.error is None

    def matches(self, md5: str, sha1: str) -> bool:
        """
        True if md5 matches some entry's md5 OR sha1 matches some entry's sha1.

        Raises:
            AllowlistUnavailableError: If the allowlist could not be loaded
        """
        if self.error is not None:
            raise AllowlistUnavailableError(self.error)
        if md5 and md5.lower() in self._md5:
            return True
        return bool(sha1) and sha1.lower() in self._sha1


# =============================================================================
# Reference Data
# =============================================================================


@dataclass
class ReferenceData:
    """Read-only data shared by every analysis."""

    catalog: ItemCatalog
    allowlist: ChecksumAllowlist

    def status(self) -> dict[str, Any]:
        return {
            "catalog": {
                "available": self.catalog.available,
                "items": len(self.catalog),
                "error": self.catalog.error,
            },
            "allowlist": {
                "available": self.allowlist.available,
                "entries": len(self.allowlist.pairs),
                "error": self.allowlist.error,
            },
        }


def load_reference_data(config: W3LootConfig | None = None) -> ReferenceData:
    """
    Load catalog and allowlist once at startup.

    Neither failure is raised here; each is logged once and surfaces later
    through the lookups.
    """
    config = config or get_config()

    if config.catalog.enabled:
        catalog = ItemCatalog.fetch(config.catalog.url, timeout=config.catalog.timeout_seconds)
    else:
        logger.warning("Item catalog disabled by configuration")
        catalog = ItemCatalog.unavailable("Item catalog disabled")

    try:
        allowlist = ChecksumAllowlist.load(config.allowlist.path)
    except AllowlistUnavailableError as e:
        logger.error(str(e))
        allowlist = ChecksumAllowlist.unavailable(str(e))

    return ReferenceData(catalog=catalog, allowlist=allowlist)
