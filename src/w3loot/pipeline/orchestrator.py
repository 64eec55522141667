"""
Replay Analysis Orchestrator - Main pipeline for processing replays.

decode (ReplayParser) -> fold (ReplayFold) -> assemble (ReplayResult)
"""

from __future__ import annotations

import logging
from pathlib import Path

from w3loot.analysis.assembler import assemble
from w3loot.analysis.classifier import ReplayFold
from w3loot.core.parser import ReplayParser
from w3loot.core.schemas import ReplayResult
from w3loot.core.utils import timed
from w3loot.infra.reference import ReferenceData

logger = logging.getLogger(__name__)


class ReplayOrchestrator:
    """
    Orchestrates the analysis of single replays against shared reference data.

    Holds no per-replay state, so one instance can serve concurrent analyses.
    """

    def __init__(self, reference: ReferenceData):
        self.reference = reference

    def analyze(self, data: bytes, *, username: str | None = None) -> ReplayResult:
        """
        Analyze one replay buffer.

        Args:
            data: Raw .w3g bytes
            username: Optional player filter for the loot list

        Returns:
            ReplayResult

        Raises:
            ReplayDecodeError: If the buffer is not a decodable replay
            AllowlistUnavailableError: If the map check cannot run
        """
        fold = ReplayFold(self.reference.allowlist)
        fold.consume(ReplayParser(data).blocks())
        return assemble(fold, self.reference.catalog, username=username)

    def analyze_file(self, path: Path, *, username: str | None = None) -> ReplayResult:
        logger.info(f"Analyzing {path.name}")
        return self.analyze(path.read_bytes(), username=username)


@timed
def analyze_replay(
    data: bytes, reference: ReferenceData, username: str | None = None
) -> ReplayResult:
    """Analyze a replay buffer. See ReplayOrchestrator.analyze."""
    return ReplayOrchestrator(reference).analyze(data, username=username)


@timed
def analyze_replay_file(
    path: str | Path, reference: ReferenceData, username: str | None = None
) -> ReplayResult:
    """Analyze a replay file. See ReplayOrchestrator.analyze."""
    return ReplayOrchestrator(reference).analyze_file(Path(path), username=username)
