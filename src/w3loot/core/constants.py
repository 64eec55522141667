"""
w3loot - Replay Constants

Block ids, action ids and chat channels of the Warcraft III replay format,
plus the values that identify a container loot action.
"""

from enum import IntEnum, StrEnum

REPLAY_MAGIC = b"Warcraft III recorded game\x1a\x00"

# Sub-header versions at or above this use 32-bit data block sizes
REFORGED_BLOCK_VERSION = 10032

# Before patch 1.13 the ability flags of unit actions were a single byte
WORD_ABILITY_FLAGS_VERSION = 13


class RecordId(IntEnum):
    """Record ids in the decompressed game metadata section."""

    HOST_PLAYER = 0x00
    PLAYER = 0x16
    GAME_START = 0x19
    REFORGED_METADATA = 0x39


class BlockId(IntEnum):
    """Replay block ids following the game start record."""

    END = 0x00
    LEAVE_GAME = 0x17
    FIRST_START = 0x1A
    SECOND_START = 0x1B
    THIRD_START = 0x1C
    TIME_SLOT_OLD = 0x1E
    TIME_SLOT = 0x1F
    CHAT = 0x20
    CHECKSUM = 0x22
    UNKNOWN_23 = 0x23
    FORCED_END_COUNTDOWN = 0x2F


class ActionId(IntEnum):
    """Player action ids inside command data (the subset w3loot names)."""

    UNIT_ABILITY_NO_PARAMS = 0x10
    UNIT_ABILITY_TARGET_POSITION = 0x11
    UNIT_ABILITY_TARGET_OBJECT = 0x12
    GIVE_ITEM = 0x13
    UNIT_ABILITY_TWO_TARGETS = 0x14
    CHANGE_SELECTION = 0x16
    ASSIGN_GROUP_HOTKEY = 0x17
    MOUSE_ACTION = 0x76
    W3API = 0x77
    BLZ_SYNC = 0x78
    COMMAND_FRAME = 0x79


# Item-use action with the "activate" flag combination: a pickup from a
# lootable container. Equip, drop and regular pickups use other flags.
LOOT_ACTION_ID = 16
LOOT_ABILITY_FLAGS = 64

# Inclusive byte range accepted for container item ids ('0'..'z')
ITEM_ID_MIN_BYTE = 48
ITEM_ID_MAX_BYTE = 122
ITEM_ID_LENGTH = 4

CONVERT_COMMAND = "-convert"


class ChatMode(StrEnum):
    """Chat channel labels."""

    ALL = "All"
    ALLIES = "Allies"
    OBSERVERS = "Observers"
    DIRECT = "Direct Message"


CHAT_MODES = {
    0x00: ChatMode.ALL,
    0x01: ChatMode.ALLIES,
    0x02: ChatMode.OBSERVERS,
}

# Chat flag marking an in-game message (followed by a 4-byte channel)
CHAT_FLAG_INGAME = 0x20

UNKNOWN_NAME = "Unknown"
