"""Tests for the item catalog and the map checksum allowlist."""

import json
import logging
from unittest.mock import MagicMock, patch

import httpx
import pytest

from w3loot.core.config import W3LootConfig, load_config
from w3loot.core.errors import AllowlistUnavailableError, CatalogUnavailableError, ItemNotFoundError
from w3loot.infra.reference import ChecksumAllowlist, ItemCatalog, load_reference_data


class TestItemCatalog:
    """Tests for ItemCatalog."""

    def test_lookup(self, catalog):
        assert catalog.lookup("12ih") == "Health Potion"
        assert "I000" in catalog
        assert len(catalog) == 3

    def test_unknown_item(self, catalog):
        with pytest.raises(ItemNotFoundError):
            catalog.lookup("none")

    def test_first_entry_wins(self):
        catalog = ItemCatalog.from_entries([{"id": "a", "name": "One"}, {"id": "a", "name": "Two"}])
        assert catalog.lookup("a") == "One"

    def test_malformed_entries_skipped(self):
        catalog = ItemCatalog.from_entries([{"id": "a"}, "junk", {"id": "b", "name": "B"}])
        assert len(catalog) == 1

    def test_unavailable(self):
        catalog = ItemCatalog.unavailable("offline")
        assert not catalog.available
        with pytest.raises(CatalogUnavailableError):
            catalog.lookup("12ih")

    def test_fetch(self):
        response = MagicMock()
        response.json.return_value = [{"id": "12ih", "name": "Health Potion"}]
        with patch("w3loot.infra.reference.httpx.get", return_value=response) as mock_get:
            catalog = ItemCatalog.fetch("https://example.invalid/items.json", timeout=2)
        assert catalog.available
        assert catalog.lookup("12ih") == "Health Potion"
        mock_get.assert_called_once_with(
            "https://example.invalid/items.json", timeout=2, follow_redirects=True
        )

    def test_fetch_network_error(self):
        """Download failures never raise; the catalog is unavailable."""
        with patch("w3loot.infra.reference.httpx.get", side_effect=httpx.ConnectError("down")):
            catalog = ItemCatalog.fetch("https://example.invalid/items.json")
        assert not catalog.available
        assert "down" in catalog.error

    def test_fetch_not_a_list(self):
        response = MagicMock()
        response.json.return_value = {"items": []}
        with patch("w3loot.infra.reference.httpx.get", return_value=response):
            assert not ItemCatalog.fetch("https://example.invalid/items.json").available

    def test_fetch_bad_json(self):
        response = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        with patch("w3loot.infra.reference.httpx.get", return_value=response):
            assert not ItemCatalog.fetch("https://example.invalid/items.json").available


class TestChecksumAllowlist:
    """Tests for ChecksumAllowlist."""

    def test_load(self, tmp_path):
        path = tmp_path / "checksums.json"
        path.write_text(json.dumps([{"md5": "deadbeef", "sha1": "ab" * 20}]))
        allowlist = ChecksumAllowlist.load(path)
        assert allowlist.matches("deadbeef", "")
        assert allowlist.matches("", "ab" * 20)
        assert not allowlist.matches("00000000", "cd" * 20)

    def test_legacy_sha1_key(self, tmp_path):
        path = tmp_path / "checksums.json"
        path.write_text(json.dumps([{"md5": "", "md5sha1": "ab" * 20}]))
        assert ChecksumAllowlist.load(path).matches("", "AB" * 20)

    def test_missing_file(self, tmp_path):
        with pytest.raises(AllowlistUnavailableError):
            ChecksumAllowlist.load(tmp_path / "nope.json")

    @pytest.mark.parametrize("content", ["{not json", '{"md5": "x"}', '["string"]'])
    def test_malformed_file(self, tmp_path, content):
        path = tmp_path / "checksums.json"
        path.write_text(content)
        with pytest.raises(AllowlistUnavailableError):
            ChecksumAllowlist.load(path)

    def test_unavailable_matches_raises(self):
        with pytest.raises(AllowlistUnavailableError):
            ChecksumAllowlist.unavailable("missing").matches("deadbeef", "")

    def test_bundled_allowlist_loads(self):
        allowlist = ChecksumAllowlist.load(W3LootConfig().allowlist.path)
        assert allowlist.available

    def test_empty_allowlist_warns(self, tmp_path, caplog):
        """An empty file loads, but every map would be unrecognized."""
        path = tmp_path / "checksums.json"
        path.write_text("[]")
        with caplog.at_level(logging.WARNING, logger="w3loot.infra.reference"):
            allowlist = ChecksumAllowlist.load(path)
        assert allowlist.available
        assert not allowlist.matches("deadbeef", "")
        assert "W3LOOT_ALLOWLIST_PATH" in caplog.text


class TestLoadReferenceData:
    """Tests for load_reference_data."""

    def test_catalog_disabled_and_allowlist_missing(self, tmp_path):
        config = W3LootConfig()
        config.catalog.enabled = False
        config.allowlist.path = str(tmp_path / "missing.json")
        reference = load_reference_data(config)
        status = reference.status()
        assert status["catalog"]["available"] is False
        assert status["allowlist"]["available"] is False
        assert "missing.json" in status["allowlist"]["error"]

    def test_loads_both(self, tmp_path):
        path = tmp_path / "checksums.json"
        path.write_text("[]")
        config = W3LootConfig()
        config.allowlist.path = str(path)
        response = MagicMock()
        response.json.return_value = [{"id": "12ih", "name": "Health Potion"}]
        with patch("w3loot.infra.reference.httpx.get", return_value=response):
            reference = load_reference_data(config)
        assert reference.status()["catalog"]["items"] == 1
        assert reference.allowlist.available

    def test_allowlist_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "deployment.json"
        path.write_text(json.dumps([{"md5": "deadbeef", "sha1": ""}]))
        monkeypatch.setenv("W3LOOT_ALLOWLIST_PATH", str(path))
        monkeypatch.setenv("W3LOOT_CATALOG_ENABLED", "false")
        reference = load_reference_data(load_config())
        assert reference.status()["allowlist"]["entries"] == 1
        assert reference.allowlist.matches("DEADBEEF", "")
