"""
w3loot Infrastructure - System infrastructure components.

This module contains:
- reference: item catalog and map checksum allowlist loading
- parallel: concurrent analysis of several replays
"""

__all__: list[str] = []
