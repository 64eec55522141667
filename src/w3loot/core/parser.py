"""
Replay Parser for Warcraft III Replay Files (.w3g)

Decodes the binary container into the typed block stream consumed by the
interpreter in w3loot.analysis:

- Replay header and sub-header (patch version, build, game length)
- zlib-compressed data blocks (classic 16-bit and Reforged 32-bit sizes)
- Game metadata: host, game name, encoded map settings (checksum, map path,
  creator, SHA1), player list and lobby slots
- Replay blocks: time slots with player command data, chat, leave records

Decoding is lazy: ReplayParser.blocks() yields blocks in replay order and
never seeks backwards. Only the action types needed to walk command data are
decoded; an unknown action id ends decoding of that player's command data for
the current time slot, since its length is not known.
"""

from __future__ import annotations

import logging
import struct
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from w3loot.core.blocks import (
    Action,
    ChatBlock,
    CommandBlock,
    HeaderBlock,
    LeaveBlock,
    PlayerRecord,
    ReplayBlock,
    SlotRecord,
    TimingBlock,
)
from w3loot.core.constants import (
    CHAT_FLAG_INGAME,
    REFORGED_BLOCK_VERSION,
    REPLAY_MAGIC,
    WORD_ABILITY_FLAGS_VERSION,
    ActionId,
    BlockId,
    RecordId,
)
from w3loot.core.errors import ReplayDecodeError

logger = logging.getLogger(__name__)


# =============================================================================
# BYTE READER
# =============================================================================


class ByteReader:
    """Little-endian cursor over a bytes buffer."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, size: int) -> bytes:
        if size < 0 or self.offset + size > len(self.data):
            raise ReplayDecodeError(
                f"Unexpected end of replay data at offset {self.offset} (wanted {size} bytes)"
            )
        chunk = self.data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def skip(self, size: int) -> None:
        self.read(size)

    def peek_u8(self) -> int | None:
        if self.offset >= len(self.data):
            return None
        return self.data[self.offset]

    def u8(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return struct.unpack("<H", self.read(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def cbytes(self) -> bytes:
        """Read a zero-terminated byte string (terminator consumed, not returned)."""
        end = self.data.find(b"\x00", self.offset)
        if end == -1:
            raise ReplayDecodeError(f"Unterminated string at offset {self.offset}")
        chunk = self.data[self.offset : end]
        self.offset = end + 1
        return chunk

    def cstring(self) -> str:
        return self.cbytes().decode("utf-8", errors="replace")


# =============================================================================
# HEADER
# =============================================================================


@dataclass
class ReplayHeader:
    """Replay file header and sub-header."""

    header_size: int
    compressed_size: int
    header_version: int
    decompressed_size: int
    block_count: int
    product: str
    version: int
    build: int
    flags: int
    length_ms: int

    @property
    def reforged_blocks(self) -> bool:
        return self.version >= REFORGED_BLOCK_VERSION

    @property
    def multiplayer(self) -> bool:
        return bool(self.flags & 0x8000)


def parse_header(data: bytes) -> ReplayHeader:
    """
    Parse the replay header.

    Raises:
        ReplayDecodeError: If the buffer is not a Warcraft III replay
    """
    if not data.startswith(REPLAY_MAGIC):
        raise ReplayDecodeError("Not a Warcraft III replay (bad header magic)")

    r = ByteReader(data, len(REPLAY_MAGIC))
    header_size = r.u32()
    compressed_size = r.u32()
    header_version = r.u32()
    decompressed_size = r.u32()
    block_count = r.u32()

    if header_version == 0:
        r.skip(2)
        version = r.u16()
        product = "WAR3"
    else:
        product = r.read(4)[::-1].decode("ascii", errors="replace")
        version = r.u32()
    build = r.u16()
    flags = r.u16()
    length_ms = r.u32()
    r.skip(4)  # header CRC32

    return ReplayHeader(
        header_size=header_size,
        compressed_size=compressed_size,
        header_version=header_version,
        decompressed_size=decompressed_size,
        block_count=block_count,
        product=product,
        version=version,
        build=build,
        flags=flags,
        length_ms=length_ms,
    )


def decompress_blocks(data: bytes, header: ReplayHeader) -> bytes:
    """
    Inflate and concatenate the compressed data blocks.

    Raises:
        ReplayDecodeError: On truncated or corrupt blocks
    """
    r = ByteReader(data, header.header_size)
    chunks = []
    for index in range(header.block_count):
        if header.reforged_blocks:
            compressed_size = r.u32()
            decompressed_size = r.u32()
        else:
            compressed_size = r.u16()
            decompressed_size = r.u16()
        r.skip(4)  # block checksum
        payload = r.read(compressed_size)

        inflater = zlib.decompressobj()
        try:
            chunk = inflater.decompress(payload) + inflater.flush()
        except zlib.error as e:
            raise ReplayDecodeError(f"Corrupt data block {index}: {e}") from e
        chunks.append(chunk[:decompressed_size])

    return b"".join(chunks)


# =============================================================================
# GAME METADATA
# =============================================================================


def decode_encoded_string(encoded: bytes) -> bytes:
    """
    Undo the map settings string encoding.

    Every 8th byte is a mask; for the 7 bytes that follow it, a cleared mask
    bit means the byte was stored incremented by one.
    """
    decoded = bytearray()
    mask = 0
    for index, value in enumerate(encoded):
        if index % 8 == 0:
            mask = value
        elif mask & (1 << (index % 8)) == 0:
            decoded.append((value - 1) & 0xFF)
        else:
            decoded.append(value)
    return bytes(decoded)


@dataclass
class MapSettings:
    """Fields of the decoded map settings string."""

    map_path: str = ""
    creator: str = ""
    checksum: str = ""
    checksum_sha1: str = ""


def parse_map_settings(decoded: bytes) -> MapSettings:
    """Parse the decoded map settings string."""
    r = ByteReader(decoded)
    r.skip(4)  # game settings flags
    r.skip(1)
    r.skip(4)  # map width and height
    checksum = r.read(4).hex()
    map_path = r.cstring()
    creator = r.cstring()
    checksum_sha1 = ""
    if r.peek_u8() == 0:
        r.skip(1)
    if r.remaining >= 20:
        checksum_sha1 = r.read(20).hex()
    return MapSettings(
        map_path=map_path, creator=creator, checksum=checksum, checksum_sha1=checksum_sha1
    )


def read_player_record(r: ByteReader) -> PlayerRecord:
    """Read a host (0x00) or additional (0x16) player record."""
    r.skip(1)  # record id
    player_id = r.u8()
    name = r.cstring()
    extra = r.u8()
    if extra == 0x01:
        r.skip(1)
    elif extra == 0x02:
        r.skip(2)
    elif extra == 0x08:
        r.skip(8)  # ladder runtime and race
    return PlayerRecord(player_id=player_id, name=name)


def read_slot_record(r: ByteReader, size: int) -> SlotRecord:
    """Read one lobby slot. Old replays use 7 or 8 byte slots."""
    raw = r.read(size)
    return SlotRecord(
        player_id=raw[0],
        download_percent=raw[1],
        slot_status=raw[2],
        computer=bool(raw[3]),
        team=raw[4],
        color=raw[5],
        race_flags=raw[6],
    )


def parse_game_metadata(r: ByteReader, header: ReplayHeader) -> HeaderBlock:
    """
    Parse the game metadata at the start of the decompressed data.

    Leaves the reader positioned at the first replay block.
    """
    r.skip(4)
    host = read_player_record(r)
    game_name = r.cstring()
    r.cbytes()  # private string
    settings = parse_map_settings(decode_encoded_string(r.cbytes()))
    r.skip(4)  # player count
    r.skip(4)  # game type, private flag
    r.skip(4)  # language id

    players = [host]
    while r.peek_u8() == RecordId.PLAYER:
        players.append(read_player_record(r))
        r.skip(4)

    while r.peek_u8() == RecordId.REFORGED_METADATA:
        r.skip(1)
        subtype = r.u8()
        length = r.u32()
        logger.debug(f"Skipping Reforged metadata record 0x{subtype:02x} ({length} bytes)")
        r.skip(length)

    record_id = r.u8()
    if record_id != RecordId.GAME_START:
        raise ReplayDecodeError(f"Expected game start record, found 0x{record_id:02x}")
    byte_count = r.u16()
    slot_count = r.u8()
    slot_size = (byte_count - 7) // slot_count if slot_count else 9
    if slot_size < 7:
        raise ReplayDecodeError(f"Invalid slot record size {slot_size}")
    slots = [read_slot_record(r, slot_size) for _ in range(slot_count)]
    r.skip(4)  # random seed
    r.skip(1)  # select mode
    r.skip(1)  # start spot count

    return HeaderBlock(
        version=header.version,
        build=header.build,
        length_ms=header.length_ms,
        game_name=game_name,
        map_name=settings.map_path,
        map_creator=settings.creator,
        map_checksum=settings.checksum,
        map_checksum_sha1=settings.checksum_sha1,
        host=host,
        player_records=players,
        slot_records=slots,
        multiplayer=header.multiplayer,
    )


# =============================================================================
# ACTIONS
# =============================================================================

# Payload size after the action id for actions that carry nothing w3loot needs
FIXED_ACTION_SIZES: dict[int, int] = {
    0x01: 0,  # pause
    0x02: 0,  # resume
    0x03: 1,  # set game speed
    0x04: 0,  # increase game speed
    0x05: 0,  # decrease game speed
    0x07: 4,  # save game finished
    0x18: 2,  # select group hotkey
    0x19: 12,  # select subgroup
    0x1A: 0,  # pre subselection
    0x1B: 9,
    0x1C: 9,  # select ground item
    0x1D: 8,  # cancel hero revival
    0x1E: 5,  # remove unit from building queue
    0x21: 8,
    0x20: 0,
    0x22: 0,
    0x23: 0,
    0x24: 0,
    0x25: 0,
    0x26: 0,
    0x27: 5,
    0x28: 5,
    0x29: 0,
    0x2A: 0,
    0x2B: 0,
    0x2C: 0,
    0x2D: 5,
    0x2E: 4,
    0x2F: 0,
    0x30: 0,
    0x31: 0,
    0x32: 0,
    0x50: 5,  # change ally options
    0x51: 9,  # transfer resources
    0x61: 0,  # ESC pressed
    0x62: 12,  # scenario trigger
    0x66: 0,  # hero skill submenu
    0x67: 0,  # building submenu
    0x68: 12,  # minimap signal
    0x69: 16,  # continue game
    0x6A: 16,  # continue game
    0x75: 1,  # arrow key
    ActionId.MOUSE_ACTION: 10,  # event, x, y, button
    0x7A: 20,
    0x7B: 16,
}

# Bytes following ability flags and the first item id, for unit ability actions
ABILITY_ACTION_TAILS: dict[int, int] = {
    ActionId.UNIT_ABILITY_NO_PARAMS: 8,
    ActionId.UNIT_ABILITY_TARGET_POSITION: 16,
    ActionId.UNIT_ABILITY_TARGET_OBJECT: 24,
    ActionId.GIVE_ITEM: 32,
    ActionId.UNIT_ABILITY_TWO_TARGETS: 37,
}


def read_action(action_id: int, r: ByteReader, flags_width: int) -> Action | None:
    """
    Read one action body. Returns None for action ids whose length is unknown.

    Raises:
        ReplayDecodeError: If the action is truncated
    """
    if action_id in ABILITY_ACTION_TAILS:
        ability_flags = r.u8() if flags_width == 1 else r.u16()
        item_id = tuple(r.read(4))
        r.skip(ABILITY_ACTION_TAILS[action_id])
        return Action(action_id=action_id, ability_flags=ability_flags, payload=item_id)

    if action_id in FIXED_ACTION_SIZES:
        r.skip(FIXED_ACTION_SIZES[action_id])
    elif action_id in (ActionId.CHANGE_SELECTION, ActionId.ASSIGN_GROUP_HOTKEY):
        r.skip(1)
        count = r.u16()
        r.skip(count * 8)
    elif action_id == 0x06:  # save game
        r.cbytes()
    elif action_id == 0x60:  # map trigger chat command
        r.skip(8)
        r.cbytes()
    elif action_id == 0x6B:  # sync stored integer
        r.cbytes()
        r.cbytes()
        r.cbytes()
        r.skip(4)
    elif action_id == ActionId.W3API:
        r.skip(8)  # command type, data
        r.skip(r.u32())
    elif action_id == ActionId.BLZ_SYNC:
        r.cbytes()  # identifier
        r.cbytes()  # value
        r.skip(4)
    elif action_id == ActionId.COMMAND_FRAME:
        r.skip(16)  # frame ids, event id, value
        r.cbytes()
    else:
        return None
    return Action(action_id=action_id)


def parse_actions(data: bytes, flags_width: int = 2) -> list[Action]:
    """Decode the actions of one player's command data."""
    r = ByteReader(data)
    actions = []
    while r.remaining:
        action_id = r.u8()
        try:
            action = read_action(action_id, r, flags_width)
        except ReplayDecodeError:
            logger.debug(f"Truncated action 0x{action_id:02x}, dropping rest of command data")
            break
        if action is None:
            logger.debug(f"Unknown action 0x{action_id:02x}, dropping rest of command data")
            break
        actions.append(action)
    return actions


def parse_command_data(data: bytes, flags_width: int = 2) -> list[CommandBlock]:
    """Split time slot command data into per-player command blocks."""
    r = ByteReader(data)
    commands = []
    while r.remaining >= 3:
        player_id = r.u8()
        length = r.u16()
        if length > r.remaining:
            logger.debug(f"Truncated command data for player {player_id}")
            break
        commands.append(CommandBlock(player_id, parse_actions(r.read(length), flags_width)))
    return commands


# =============================================================================
# REPLAY PARSER
# =============================================================================


class ReplayParser:
    """
    Decoder for a single .w3g replay buffer.

    Usage:
        parser = ReplayParser(buffer)
        for block in parser.blocks():
            ...
    """

    def __init__(self, data: bytes):
        self.data = data
        self.header: ReplayHeader | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> ReplayParser:
        return cls(Path(path).read_bytes())

    def parse_header(self) -> ReplayHeader:
        if self.header is None:
            self.header = parse_header(self.data)
        return self.header

    def blocks(self) -> Iterator[ReplayBlock]:
        """
        Yield the HeaderBlock, then every replay block in order.

        Raises:
            ReplayDecodeError: If the header, data blocks or metadata are invalid
        """
        header = self.parse_header()
        raw = decompress_blocks(self.data, header)
        r = ByteReader(raw)
        yield parse_game_metadata(r, header)

        flags_width = 1 if header.version < WORD_ABILITY_FLAGS_VERSION else 2
        try:
            yield from self._replay_blocks(r, flags_width)
        except ReplayDecodeError as e:
            # Replays of crashed games end mid-block
            logger.warning(f"Replay block stream ended early: {e}")

    def _replay_blocks(self, r: ByteReader, flags_width: int) -> Iterator[ReplayBlock]:
        while r.remaining:
            block_id = r.u8()
            if block_id == BlockId.END:
                return
            elif block_id in (BlockId.TIME_SLOT, BlockId.TIME_SLOT_OLD):
                length = r.u16()
                increment = r.u16()
                data = r.read(length - 2)
                yield TimingBlock(increment, parse_command_data(data, flags_width))
            elif block_id == BlockId.CHAT:
                yield self._read_chat(r)
            elif block_id == BlockId.LEAVE_GAME:
                reason = r.u32()
                player_id = r.u8()
                result = r.u32()
                r.skip(4)
                yield LeaveBlock(player_id=player_id, reason=reason, result=result)
            elif block_id in (BlockId.FIRST_START, BlockId.SECOND_START, BlockId.THIRD_START):
                r.skip(4)
            elif block_id == BlockId.CHECKSUM:
                r.skip(r.u8())
            elif block_id == BlockId.UNKNOWN_23:
                r.skip(10)
            elif block_id == BlockId.FORCED_END_COUNTDOWN:
                r.skip(8)
            else:
                logger.warning(
                    f"Unknown replay block 0x{block_id:02x} at offset {r.offset - 1}, stopping"
                )
                return

    def _read_chat(self, r: ByteReader) -> ChatBlock:
        player_id = r.u8()
        body = ByteReader(r.read(r.u16()))
        flags = body.u8()
        mode = 0
        if flags == CHAT_FLAG_INGAME:
            mode = body.u32()
        message = body.cstring() if body.remaining else ""
        return ChatBlock(
            player_id=player_id, mode=mode, message=message, in_game=flags == CHAT_FLAG_INGAME
        )


def parse_replay(path: str | Path) -> list[ReplayBlock]:
    """
    Decode a replay file into a list of blocks.

    Args:
        path: Path to the .w3g file

    Returns:
        All blocks, HeaderBlock first
    """
    return list(ReplayParser.from_file(path).blocks())
