"""
Parallel Processing Module for Batch Replay Analysis

Each replay is an independent task with its own fold; the reference data is
shared read-only between workers. Threads are used rather than processes so
the loaded catalog is not pickled into every worker.
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from w3loot.infra.reference import ReferenceData

logger = logging.getLogger(__name__)

# Default to CPU count - 1, minimum 1
DEFAULT_WORKERS = max(1, (os.cpu_count() or 4) - 1)
MAX_WORKERS = os.cpu_count() or 8


@dataclass
class ReplayAnalysisTask:
    """A single replay analysis task."""

    replay_path: Path
    index: int = 0
    task_id: str = ""
    username: str | None = None
    map_name: str | None = None
    message: str | None = None

    def __post_init__(self):
        if not self.task_id:
            self.task_id = hashlib.md5(
                str(self.replay_path).encode(), usedforsecurity=False
            ).hexdigest()[:12]


@dataclass
class ReplayAnalysisResult:
    """Result of a single replay analysis."""

    task_id: str
    replay_path: str
    success: bool
    duration_seconds: float
    error_message: str | None = None
    analysis_data: dict | None = None
    # False when the replay parsed but failed the map or message filter
    matched: bool = True

    def to_dict(self) -> dict:
        return {
            "taskId": self.task_id,
            "replayPath": self.replay_path,
            "success": self.success,
            "durationSeconds": round(self.duration_seconds, 3),
            "error": self.error_message,
            "matched": self.matched,
            "result": self.analysis_data,
        }


@dataclass
class BatchAnalysisProgress:
    """Progress tracking for batch analysis."""

    total_tasks: int
    completed_tasks: int = 0
    failed_tasks: int = 0
    current_task: str = ""
    start_time: float = field(default_factory=time.time)

    @property
    def progress_percent(self) -> float:
        if self.total_tasks == 0:
            return 100.0
        return round((self.completed_tasks / self.total_tasks) * 100, 1)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time


@dataclass
class BatchAnalysisResult:
    """Result of batch analysis, in input order."""

    total_replays: int
    successful: int
    failed: int
    total_duration_seconds: float
    results: list[ReplayAnalysisResult] = field(default_factory=list)

    @property
    def matched_results(self) -> list[ReplayAnalysisResult]:
        return [r for r in self.results if r.success and r.matched]

    @property
    def success_rate(self) -> float:
        if self.total_replays == 0:
            return 0.0
        return round((self.successful / self.total_replays) * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalReplays": self.total_replays,
            "successful": self.successful,
            "failed": self.failed,
            "matched": len(self.matched_results),
            "successRate": self.success_rate,
            "totalDurationSeconds": round(self.total_duration_seconds, 2),
            "results": [r.to_dict() for r in self.results],
        }


def _analyze_single_replay(
    task: ReplayAnalysisTask, reference: ReferenceData
) -> ReplayAnalysisResult:
    """Worker function; converts every failure into an unsuccessful result."""
    from w3loot.analysis.assembler import replay_matches
    from w3loot.pipeline.orchestrator import analyze_replay_file

    start_time = time.time()
    try:
        result = analyze_replay_file(task.replay_path, reference, username=task.username)
        return ReplayAnalysisResult(
            task_id=task.task_id,
            replay_path=str(task.replay_path),
            success=True,
            duration_seconds=time.time() - start_time,
            analysis_data=result.to_dict(),
            matched=replay_matches(result, task.map_name, task.message),
        )
    except Exception as e:
        logger.error(f"Failed to analyze {task.replay_path}: {e}")
        return ReplayAnalysisResult(
            task_id=task.task_id,
            replay_path=str(task.replay_path),
            success=False,
            duration_seconds=time.time() - start_time,
            error_message=str(e),
        )


def analyze_batch(
    paths: list[Path | str],
    reference: ReferenceData,
    username: str | None = None,
    map_name: str | None = None,
    message: str | None = None,
    max_workers: int = DEFAULT_WORKERS,
    progress_callback: Callable[[BatchAnalysisProgress], None] | None = None,
) -> BatchAnalysisResult:
    """
    Analyze several replays concurrently.

    One failing replay never affects the others; its error is reported in its
    own result entry.

    Args:
        paths: Replay files
        reference: Shared catalog and allowlist
        username: Optional loot filter applied to every replay
        map_name: Optional map path filter; non-matching replays have matched=False
        message: Optional chat text filter; non-matching replays have matched=False
        max_workers: Worker thread count (clamped to 1..MAX_WORKERS)
        progress_callback: Optional callback invoked after each replay

    Returns:
        BatchAnalysisResult with results in the same order as paths
    """
    if not paths:
        return BatchAnalysisResult(
            total_replays=0, successful=0, failed=0, total_duration_seconds=0.0
        )

    tasks = [
        ReplayAnalysisTask(
            replay_path=Path(path),
            index=i,
            username=username,
            map_name=map_name,
            message=message,
        )
        for i, path in enumerate(paths)
    ]
    workers = max(1, min(max_workers, MAX_WORKERS, len(tasks)))
    progress = BatchAnalysisProgress(total_tasks=len(tasks))
    start_time = time.time()
    results: list[ReplayAnalysisResult | None] = [None] * len(tasks)

    logger.info(f"Starting batch analysis of {len(tasks)} replays with {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_task = {
            executor.submit(_analyze_single_replay, task, reference): task for task in tasks
        }
        for future in as_completed(future_to_task):
            task = future_to_task[future]
            result = future.result()
            results[task.index] = result

            progress.current_task = str(task.replay_path)
            progress.completed_tasks += 1
            if not result.success:
                progress.failed_tasks += 1
            if progress_callback:
                progress_callback(progress)

    total_duration = time.time() - start_time
    ordered = [r for r in results if r is not None]
    successful = sum(1 for r in ordered if r.success)

    logger.info(
        f"Batch analysis complete: {successful}/{len(ordered)} successful in {total_duration:.1f}s"
    )

    return BatchAnalysisResult(
        total_replays=len(ordered),
        successful=successful,
        failed=len(ordered) - successful,
        total_duration_seconds=total_duration,
        results=ordered,
    )
