"""Scanning, planning and copying - the side-effecting half of sessionsort."""

from .cancellation import CancellationToken, JobCancelledException, handle_signals
from .copy import CopyError, CopyExecutor, CopyPlan, CopyPlanner, copy_file
from .organize import SetupError, organize, prepare_directories
from .progress import (
    ConsoleProgressReporter,
    EventKind,
    MemoryProgressReporter,
    ProgressEvent,
)
from .scan import IMAGE_EXTENSIONS, scan_directory

__all__ = [
    "CancellationToken",
    "ConsoleProgressReporter",
    "CopyError",
    "CopyExecutor",
    "CopyPlan",
    "CopyPlanner",
    "EventKind",
    "IMAGE_EXTENSIONS",
    "JobCancelledException",
    "MemoryProgressReporter",
    "ProgressEvent",
    "SetupError",
    "copy_file",
    "handle_signals",
    "organize",
    "prepare_directories",
    "scan_directory",
]
