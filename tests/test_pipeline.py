"""End-to-end tests: replay bytes in, ReplayResult out."""

import pytest

from conftest import MAP_SHA1, loot_action
from w3loot.core.errors import AllowlistUnavailableError, ReplayDecodeError
from w3loot.infra.parallel import analyze_batch
from w3loot.infra.reference import ChecksumAllowlist, ChecksumPair, ReferenceData
from w3loot.pipeline import analyze_replay, analyze_replay_file


@pytest.fixture
def replay(replay_builder):
    builder = replay_builder(players=[(1, "Alice", 0), (2, "Player2", 1)], version=10032)
    builder.time_slot(1000, [(1, loot_action(b"hi21"))])
    builder.time_slot(1000, [(1, loot_action(b"hi21"))])
    builder.chat(2, "-convert Bob")
    builder.time_slot(60_000, [(2, loot_action(b"000I")), (2, loot_action(b"000I"))])
    builder.chat(2, "gg", mode=1)
    return builder.build()


class TestAnalyzeReplay:
    """Tests for analyze_replay."""

    def test_loot_lines(self, replay, reference):
        result = analyze_replay(replay, reference)
        assert [line.line for line in result.loots] == [
            "00:00:01 Alice: Health Potion",
            "00:00:02 Alice: Health Potion",
            "00:01:02 Bob(Player2): Ancient Relic",
        ]

    def test_metadata(self, replay, reference):
        game = analyze_replay(replay, reference).game_data
        assert game.version == "1.32"
        assert game.length == "01:02:03"
        assert game.game_name == "TwRPG"
        assert game.host == "Sfarmani"
        assert game.valid_map is True

    def test_valid_by_sha1_only(self, replay, catalog):
        reference = ReferenceData(catalog, ChecksumAllowlist([ChecksumPair(sha1=MAP_SHA1.hex())]))
        assert analyze_replay(replay, reference).game_data.valid_map

    def test_chat(self, replay, reference):
        chat = analyze_replay(replay, reference).chat_data
        assert [(c.player, c.mode, c.message) for c in chat] == [
            ("Player2", "All", "-convert Bob"),
            ("Bob(Player2)", "Allies", "gg"),
        ]

    def test_players(self, replay, reference):
        players = analyze_replay(replay, reference).player_data
        assert [(p.player_name, p.color_name, p.converted_name) for p in players] == [
            ("Alice", "Red", None),
            ("Player2", "Blue", "Bob(Player2)"),
        ]

    def test_username_filter(self, replay, reference):
        result = analyze_replay(replay, reference, username="BOB")
        assert [line.item for line in result.loots] == ["Ancient Relic"]

    def test_deterministic(self, replay, reference):
        assert analyze_replay(replay, reference) == analyze_replay(replay, reference)

    def test_not_a_replay(self, reference):
        with pytest.raises(ReplayDecodeError):
            analyze_replay(b"hello", reference)

    def test_allowlist_unavailable(self, replay, catalog):
        reference = ReferenceData(catalog, ChecksumAllowlist.unavailable("missing"))
        with pytest.raises(AllowlistUnavailableError):
            analyze_replay(replay, reference)

    def test_from_file(self, replay, reference, tmp_path):
        path = tmp_path / "game.w3g"
        path.write_bytes(replay)
        assert len(analyze_replay_file(path, reference).loots) == 3


class TestAnalyzeBatch:
    """Tests for parallel batch analysis."""

    def test_results_in_input_order(self, replay, reference, tmp_path):
        good = tmp_path / "good.w3g"
        good.write_bytes(replay)
        bad = tmp_path / "bad.w3g"
        bad.write_bytes(b"corrupt")

        batch = analyze_batch([good, bad, good], reference, max_workers=3)

        assert batch.total_replays == 3
        assert [r.success for r in batch.results] == [True, False, True]
        assert batch.successful == 2
        assert batch.failed == 1
        assert "bad header magic" in batch.results[1].error_message
        assert len(batch.results[0].analysis_data["loots"]) == 3

    def test_username_passed_through(self, replay, reference, tmp_path):
        path = tmp_path / "good.w3g"
        path.write_bytes(replay)
        batch = analyze_batch([path], reference, username="alice")
        assert {loot["player"] for loot in batch.results[0].analysis_data["loots"]} == {"Alice"}

    def test_map_filter_marks_unmatched(self, replay, reference, tmp_path):
        """A filtered-out replay is still a success, only flagged as unmatched."""
        path = tmp_path / "good.w3g"
        path.write_bytes(replay)
        batch = analyze_batch([path], reference, map_name="dota")
        assert batch.successful == 1
        assert batch.results[0].matched is False
        assert batch.matched_results == []
        assert batch.to_dict()["matched"] == 0

    def test_progress_callback(self, replay, reference, tmp_path):
        path = tmp_path / "good.w3g"
        path.write_bytes(replay)
        seen = []
        analyze_batch([path, path], reference, progress_callback=lambda p: seen.append(p.completed_tasks))
        assert sorted(seen) == [1, 2]

    def test_empty(self, reference):
        batch = analyze_batch([], reference)
        assert batch.total_replays == 0
        assert batch.to_dict()["successRate"] == 0.0
