"""Shared fixtures: reference data and a byte-level .w3g replay builder."""

import hashlib
import struct
import zlib

import pytest

from w3loot.core.constants import REFORGED_BLOCK_VERSION, REPLAY_MAGIC
from w3loot.infra.reference import ChecksumAllowlist, ChecksumPair, ItemCatalog, ReferenceData

MAP_CHECKSUM = bytes.fromhex("deadbeef")
MAP_SHA1 = hashlib.sha1(b"Twilight RPG").digest()


def encode_string(decoded: bytes) -> bytes:
    """Apply the map settings string encoding (no zero bytes in the output)."""
    out = bytearray()
    for start in range(0, len(decoded), 7):
        chunk = decoded[start : start + 7]
        mask = 1
        body = bytearray()
        for i, value in enumerate(chunk):
            if value % 2 == 0:
                body.append(value + 1)
            else:
                mask |= 1 << (i + 1)
                body.append(value)
        out.append(mask)
        out.extend(body)
    return bytes(out)


def loot_action(payload, flags=64, action_id=0x10) -> bytes:
    """A unit ability action carrying a 4-byte item id."""
    return bytes([action_id]) + struct.pack("<H", flags) + bytes(payload) + b"\x00" * 8


class ReplayBuilder:
    """
    Assembles a replay file (32-bit block sizes from version 10032 on).

    Usage:
        builder = ReplayBuilder(players=[(1, "Alice", 0)])
        builder.time_slot(100, [(1, loot_action(b"hi21"))])
        data = builder.build()
    """

    def __init__(
        self,
        players=((1, "Alice", 0), (2, "Bobby", 1)),
        version=26,
        length_ms=3_723_000,
        game_name="TwRPG",
        map_path="Maps\\TwRPG.w3x",
        creator="Sfarmani",
        checksum=MAP_CHECKSUM,
        sha1=MAP_SHA1,
    ):
        self.players = list(players)
        self.version = version
        self.length_ms = length_ms
        self.game_name = game_name
        self.map_path = map_path
        self.creator = creator
        self.checksum = checksum
        self.sha1 = sha1
        self.blocks = bytearray()

    # -- replay blocks -------------------------------------------------------

    def time_slot(self, increment: int, commands=()) -> "ReplayBuilder":
        """Add a time slot; commands is a list of (player_id, action bytes)."""
        data = b"".join(
            bytes([pid]) + struct.pack("<H", len(actions)) + actions for pid, actions in commands
        )
        self.blocks += b"\x1f" + struct.pack("<HH", len(data) + 2, increment) + data
        return self

    def chat(self, player_id: int, message: str, mode: int = 0) -> "ReplayBuilder":
        body = b"\x20" + struct.pack("<I", mode) + message.encode("utf-8") + b"\x00"
        self.blocks += b"\x20" + bytes([player_id]) + struct.pack("<H", len(body)) + body
        return self

    def leave(self, player_id: int) -> "ReplayBuilder":
        self.blocks += b"\x17" + struct.pack("<I", 1) + bytes([player_id]) + b"\x00" * 8
        return self

    def raw(self, data: bytes) -> "ReplayBuilder":
        self.blocks += data
        return self

    # -- container -----------------------------------------------------------

    def _player_record(self, record_id: int, player_id: int, name: str) -> bytes:
        return bytes([record_id, player_id]) + name.encode("utf-8") + b"\x00\x01\x00"

    def metadata(self) -> bytes:
        settings = (
            b"\x00" * 9
            + self.checksum
            + self.map_path.encode("utf-8")
            + b"\x00"
            + self.creator.encode("utf-8")
            + b"\x00"
        )
        if self.sha1:
            settings += b"\x00" + self.sha1

        host_id, host_name, _ = self.players[0]
        out = bytearray(b"\x00" * 4)
        out += self._player_record(0x00, host_id, host_name)
        out += self.game_name.encode("utf-8") + b"\x00"
        out += b"\x00"  # private string
        out += encode_string(settings) + b"\x00"
        out += struct.pack("<I", len(self.players)) + b"\x00" * 8
        for player_id, name, _ in self.players[1:]:
            out += self._player_record(0x16, player_id, name) + b"\x00" * 4

        slots = b"".join(
            bytes([player_id, 100, 2, 0, index % 2, color, 0x01, 1, 100])
            for index, (player_id, _, color) in enumerate(self.players)
        )
        out += b"\x19" + struct.pack("<HB", 7 + len(slots), len(self.players)) + slots
        out += b"\x00" * 6  # random seed, select mode, start spots
        return bytes(out)

    def build(self) -> bytes:
        raw = self.metadata() + bytes(self.blocks)
        compressed = zlib.compress(raw)
        size_format = "<II" if self.version >= REFORGED_BLOCK_VERSION else "<HH"
        block = struct.pack(size_format, len(compressed), len(raw)) + b"\x00" * 4 + compressed

        header_size = 0x44
        sub_header = (
            b"PX3W"
            + struct.pack("<I", self.version)
            + struct.pack("<HHI", 6059, 0x8000, self.length_ms)
            + b"\x00" * 4
        )
        header = REPLAY_MAGIC + struct.pack(
            "<IIIII", header_size, header_size + len(block), 1, len(raw), 1
        )
        return header + sub_header + block


@pytest.fixture
def replay_builder():
    return ReplayBuilder


@pytest.fixture
def catalog():
    return ItemCatalog.from_entries(
        [
            {"id": "12ih", "name": "Health Potion"},
            {"id": "I000", "name": "Ancient Relic"},
            {"id": "I001", "name": "Dragon Scale"},
        ]
    )


@pytest.fixture
def allowlist():
    return ChecksumAllowlist([ChecksumPair(md5=MAP_CHECKSUM.hex(), sha1="")])


@pytest.fixture
def reference(catalog, allowlist):
    return ReferenceData(catalog=catalog, allowlist=allowlist)
