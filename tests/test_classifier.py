"""Tests for block classification and the replay fold."""

import pytest

from w3loot.analysis.classifier import BlockKind, ReplayFold, classify
from w3loot.core.blocks import (
    Action,
    ChatBlock,
    CommandBlock,
    HeaderBlock,
    LeaveBlock,
    PlayerRecord,
    SlotRecord,
    TimingBlock,
)
from w3loot.core.errors import AllowlistUnavailableError
from w3loot.infra.reference import ChecksumAllowlist, ChecksumPair


def header():
    return HeaderBlock(
        version=26,
        map_checksum="deadbeef",
        player_records=[PlayerRecord(1, "Alice"), PlayerRecord(3, "Player3")],
        slot_records=[SlotRecord(player_id=1, color=0), SlotRecord(player_id=3, color=2)],
    )


def loot(item_bytes):
    return Action(action_id=16, ability_flags=64, payload=tuple(item_bytes))


@pytest.fixture
def fold():
    return ReplayFold(ChecksumAllowlist([ChecksumPair(md5="deadbeef")]))


class TestClassify:
    """Tests for classify."""

    def test_kinds(self):
        assert classify(header()) is BlockKind.HEADER
        assert classify(TimingBlock(100)) is BlockKind.TIMING
        assert classify(CommandBlock(1)) is BlockKind.COMMAND
        assert classify(ChatBlock(1, 0, "hi")) is BlockKind.CHAT
        assert classify(LeaveBlock(1)) is BlockKind.IGNORE


class TestReplayFold:
    """Tests for ReplayFold."""

    def test_header_populates_players_and_metadata(self, fold):
        fold.feed(header())
        assert [s.player_name for s in fold.registry.slots] == ["Alice", "Player3"]
        assert fold.metadata.valid_map is True

    def test_duplicate_header_ignored(self, fold):
        fold.feed(header())
        fold.feed(HeaderBlock(version=1, player_records=[], slot_records=[]))
        assert len(fold.registry) == 2
        assert fold.metadata.version == "1.26"

    def test_clock_is_sum_of_increments(self, fold):
        fold.consume([header(), TimingBlock(100), TimingBlock(250), TimingBlock(0)])
        assert fold.elapsed_ms == 350

    def test_loot_stamped_with_current_clock(self, fold):
        fold.consume(
            [
                header(),
                TimingBlock(500),
                TimingBlock(1500, [CommandBlock(1, [loot(b"hi21")])]),
            ]
        )
        assert [(e.elapsed_ms, e.player_id, e.item_id) for e in fold.loot.events] == [
            (2000, 1, "12ih")
        ]

    def test_non_loot_actions_ignored(self, fold):
        actions = [Action(action_id=16, ability_flags=66, payload=tuple(b"hi21")), Action(0x16)]
        fold.consume([header(), TimingBlock(10, [CommandBlock(1, actions)])])
        assert fold.loot.events == []

    def test_standalone_command_block(self, fold):
        fold.consume([header(), TimingBlock(40), CommandBlock(3, [loot(b"000I")])])
        assert fold.loot.events[0].elapsed_ms == 40

    def test_empty_command_collections(self, fold):
        """Timing blocks without commands only advance the clock."""
        fold.consume([header(), TimingBlock(10, []), TimingBlock(20, [CommandBlock(1, [])])])
        assert fold.loot.events == []
        assert fold.elapsed_ms == 30

    def test_chat_routed(self, fold):
        fold.consume([header(), TimingBlock(1000), ChatBlock(3, 0, "-convert Bob")])
        assert fold.chat.lines[0].time == "00:00:01"
        assert fold.registry.get(3).converted_name == "Bob(Player3)"

    def test_consume_returns_self(self, fold):
        assert fold.consume([]) is fold
        assert fold.metadata is None

    def test_unavailable_allowlist_aborts(self):
        fold = ReplayFold(ChecksumAllowlist.unavailable("missing"))
        with pytest.raises(AllowlistUnavailableError):
            fold.feed(header())
