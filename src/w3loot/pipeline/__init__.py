"""
w3loot Pipeline - Replay analysis orchestration.

This module handles the complete replay processing pipeline:
- Container decoding (ReplayParser)
- Single-pass interpretation (ReplayFold)
- Result assembly
"""

from w3loot.pipeline.orchestrator import analyze_replay, analyze_replay_file

__all__ = ["analyze_replay", "analyze_replay_file"]
