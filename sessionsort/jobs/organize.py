"""End-to-end session sorting.

scan -> group -> name -> plan -> copy. Every path is passed explicitly; the
process working directory is never changed.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

from ..analysis.policies import GroupingPolicy, build_policy
from ..config import Settings
from ..models.run import RunStatus, RunSummary
from .cancellation import CancellationToken
from .copy import CopyExecutor, CopyPlan, CopyPlanner
from .progress import EventKind, NullProgressReporter, ProgressEvent, ProgressReporter
from .scan import scan_directory

logger = logging.getLogger(__name__)


class SetupError(Exception):
    """Source or destination unusable; nothing has been copied."""


def prepare_directories(
    source: Union[Path, str], destination: Union[Path, str]
) -> Tuple[Path, Path]:
    """Validate the source and create the destination root.

    Returns:
        Resolved (source, destination) paths

    Raises:
        SetupError: If the source is missing or unreadable, or the
            destination cannot be created or written
    """
    source = Path(source).expanduser()
    destination = Path(destination).expanduser()

    if not source.exists():
        raise SetupError(f"Source directory does not exist: {source}")
    if not source.is_dir():
        raise SetupError(f"Source is not a directory: {source}")
    if not os.access(source, os.R_OK | os.X_OK):
        raise SetupError(f"Cannot access source directory: {source}")

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SetupError(f"Cannot create destination directory {destination}: {e}") from e
    if not destination.is_dir():
        raise SetupError(f"Destination is not a directory: {destination}")
    if not os.access(destination, os.W_OK | os.X_OK):
        raise SetupError(f"Cannot write to destination directory: {destination}")

    return source.resolve(), destination.resolve()


def report_plan(plan: CopyPlan, reporter: ProgressReporter) -> None:
    """Emit one PLANNED event per group and one per planned copy."""
    group_count = len(plan.groups)
    for group_index, group in enumerate(plan.groups, start=1):
        reporter.report(
            ProgressEvent(
                kind=EventKind.PLANNED,
                group_index=group_index,
                group_count=group_count,
                item_count=len(group.copies),
                group_name=group.name,
                destination=group.directory,
            )
        )
        for item_index, planned in enumerate(group.copies, start=1):
            reporter.report(
                ProgressEvent(
                    kind=EventKind.PLANNED,
                    group_index=group_index,
                    group_count=group_count,
                    item_index=item_index,
                    item_count=len(group.copies),
                    group_name=group.name,
                    source=planned.source,
                    destination=planned.destination,
                    message="exists" if planned.destination.exists() else "",
                )
            )


def organize(
    source: Union[Path, str],
    destination: Union[Path, str],
    settings: Optional[Settings] = None,
    reporter: Optional[ProgressReporter] = None,
    token: Optional[CancellationToken] = None,
    policy: Optional[GroupingPolicy] = None,
    dry_run: bool = False,
) -> RunSummary:
    """Sort the photos under source into session folders under destination.

    Args:
        source: Directory to scan
        destination: Root for the session folders (created if missing)
        settings: Configuration (defaults to environment/.env)
        reporter: Receives progress events
        token: Cancellation token polled between groups and items
        policy: Grouping policy overriding the configured one
        dry_run: Plan and report, copy nothing

    Returns:
        RunSummary of the run

    Raises:
        SetupError: If the directories are unusable
    """
    settings = settings or Settings()
    reporter = reporter or NullProgressReporter()
    token = token or CancellationToken()

    source_dir, destination_dir = prepare_directories(source, destination)

    scan = scan_directory(
        source_dir,
        timestamp_source=settings.timestamp_source,
        exclude=[destination_dir],
    )

    policy = policy or build_policy(settings)
    result = policy.group(scan.items)

    plan = CopyPlanner(destination_dir, settings.noise_policy).plan(result)

    if dry_run:
        report_plan(plan, reporter)
        return RunSummary(
            status=RunStatus.PLANNED,
            group_count=len(plan.groups),
            item_count=plan.item_count,
            noise_dropped=plan.noise_dropped,
            scan_errors=len(scan.errors),
        )

    executor = CopyExecutor(
        reporter=reporter,
        token=token,
        max_workers=settings.max_workers,
        preserve_metadata=settings.preserve_metadata,
    )
    summary = executor.execute(plan)
    summary.scan_errors = len(scan.errors)
    return summary
