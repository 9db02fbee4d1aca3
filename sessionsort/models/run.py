"""Copy run models - per-item outcomes and the run summary."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

EXIT_OK = 0
EXIT_SETUP_ERROR = 1
EXIT_CANCELLED = 130


class CopyStatus(str, Enum):
    """Outcome of a single planned copy."""

    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NoisePolicy(str, Enum):
    """What to do with items that joined no cluster."""

    DROP = "drop"
    SINGLETON = "singleton"
    ROOT = "root"


class RunStatus(str, Enum):
    """Status for a copy run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PLANNED = "planned"


class CopyOutcome(BaseModel):
    """Result of copying one item into its group directory."""

    source: Path
    destination: Path
    status: CopyStatus
    group_index: int
    item_index: int
    bytes_copied: int = 0
    error: Optional[str] = None


class RunSummary(BaseModel):
    """Aggregated result of a copy run."""

    status: RunStatus = RunStatus.COMPLETED
    group_count: int = 0
    groups_started: int = 0
    item_count: int = 0
    copied: int = 0
    skipped: int = 0
    failed: int = 0
    bytes_copied: int = 0
    noise_dropped: int = 0
    scan_errors: int = 0
    errors: List[CopyOutcome] = Field(default_factory=list)

    def record(self, outcome: CopyOutcome) -> None:
        """Fold a single copy outcome into the counters."""
        if outcome.status == CopyStatus.COPIED:
            self.copied += 1
            self.bytes_copied += outcome.bytes_copied
        elif outcome.status == CopyStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == CopyStatus.FAILED:
            self.failed += 1
            self.errors.append(outcome)

    @property
    def cancelled(self) -> bool:
        return self.status == RunStatus.CANCELLED

    @property
    def exit_code(self) -> int:
        """Process exit status for this run.

        Per-item failures are reported and counted but do not change the
        status; only a user interruption does.
        """
        if self.cancelled:
            return EXIT_CANCELLED
        return EXIT_OK
