"""Tests for copy run models."""

from pathlib import Path
from typing import Optional

from sessionsort.models.run import (
    EXIT_CANCELLED,
    EXIT_OK,
    CopyOutcome,
    CopyStatus,
    NoisePolicy,
    RunStatus,
    RunSummary,
)


def _outcome(status: CopyStatus, size: int = 0, error: Optional[str] = None) -> CopyOutcome:
    return CopyOutcome(
        source=Path("/src/a.jpg"),
        destination=Path("/dst/2024-03-05-10-00-00/a.jpg"),
        status=status,
        group_index=1,
        item_index=1,
        bytes_copied=size,
        error=error,
    )


def test_status_enums():
    """Enums should carry their wire values."""
    assert CopyStatus.COPIED.value == "copied"
    assert CopyStatus.SKIPPED.value == "skipped"
    assert CopyStatus.FAILED.value == "failed"
    assert RunStatus.CANCELLED.value == "cancelled"
    assert NoisePolicy("root") == NoisePolicy.ROOT


def test_summary_records_outcomes():
    summary = RunSummary()

    summary.record(_outcome(CopyStatus.COPIED, size=100))
    summary.record(_outcome(CopyStatus.COPIED, size=50))
    summary.record(_outcome(CopyStatus.SKIPPED))
    summary.record(_outcome(CopyStatus.FAILED, error="disk full"))

    assert summary.copied == 2
    assert summary.bytes_copied == 150
    assert summary.skipped == 1
    assert summary.failed == 1
    assert [e.error for e in summary.errors] == ["disk full"]


def test_exit_code_ignores_item_failures():
    """Per-item failures still exit 0."""
    summary = RunSummary()
    summary.record(_outcome(CopyStatus.FAILED, error="boom"))

    assert summary.exit_code == EXIT_OK


def test_exit_code_cancelled():
    summary = RunSummary(status=RunStatus.CANCELLED)

    assert summary.cancelled
    assert summary.exit_code == EXIT_CANCELLED
