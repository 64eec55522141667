"""
w3loot - Warcraft III Replay Loot Viewer

Extracts container loot, chat transcripts, player colours and map metadata
from Warcraft III replay (.w3g) files.

Usage:
    from w3loot import analyze_replay_file, load_reference_data

    reference = load_reference_data()
    result = analyze_replay_file("LastReplay.w3g", reference)

    for loot in result.loots:
        print(loot.line)
"""

__version__ = "0.3.0"
__author__ = "w3loot Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name == "ReplayParser":
        from w3loot.core.parser import ReplayParser
        return ReplayParser
    elif name == "parse_replay":
        from w3loot.core.parser import parse_replay
        return parse_replay
    elif name == "analyze_replay":
        from w3loot.pipeline.orchestrator import analyze_replay
        return analyze_replay
    elif name == "analyze_replay_file":
        from w3loot.pipeline.orchestrator import analyze_replay_file
        return analyze_replay_file
    elif name == "load_reference_data":
        from w3loot.infra.reference import load_reference_data
        return load_reference_data
    elif name == "ReferenceData":
        from w3loot.infra.reference import ReferenceData
        return ReferenceData
    raise AttributeError(f"module 'w3loot' has no attribute '{name}'")


__all__ = [
    "__version__",
    "ReplayParser",
    "parse_replay",
    "analyze_replay",
    "analyze_replay_file",
    "load_reference_data",
    "ReferenceData",
]
