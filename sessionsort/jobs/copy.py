"""
Copy planning and execution.

The planner turns a grouping result into concrete destination paths; the
executor walks the plan in order, creates one directory per group and
copies each member into it:

1. Check the cancellation token before every group and every item
2. Create the group directory before any of its members is copied
3. Skip destinations that already exist (idempotent re-runs) or that an
   earlier item of the plan claimed
4. Record per-item failures and carry on with the next item

With ``max_workers > 1`` copies run on a bounded thread pool. Directories
are still created on the coordinating thread, and every destination file is
created exclusively, so concurrent copies never overwrite each other.
"""

from __future__ import annotations

import logging
import shutil
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Set, Union

from ..analysis.naming import assign_group_names
from ..models.item import Group, GroupingResult, sort_items
from ..models.run import CopyOutcome, CopyStatus, NoisePolicy, RunStatus, RunSummary
from .cancellation import CancellationToken, JobCancelledException
from .progress import EventKind, NullProgressReporter, ProgressEvent, ProgressReporter

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
UNGROUPED_NAME = "(ungrouped)"


class CopyError(Exception):
    """A single file could not be copied."""

    def __init__(self, source: Path, destination: Path, reason: str) -> None:
        super().__init__(f"{reason}: {source} -> {destination}")
        self.source = source
        self.destination = destination
        self.reason = reason


def copy_file(
    source: Union[Path, str],
    destination: Union[Path, str],
    preserve_metadata: bool = True,
) -> int:
    """Stream-copy source to a destination that must not exist yet.

    The destination is created exclusively; if anything fails after it was
    created, the partial file is removed so a later run does not mistake it
    for a finished copy.

    Args:
        source: File to read
        destination: File to create
        preserve_metadata: Copy mode and timestamps after the data

    Returns:
        Number of bytes copied

    Raises:
        FileExistsError: If the destination already exists
        CopyError: If the source cannot be read or the destination written
    """
    source = Path(source)
    destination = Path(destination)

    try:
        src = open(source, "rb")
    except OSError as e:
        raise CopyError(source, destination, f"cannot open source ({e})") from e

    with src:
        try:
            dst = open(destination, "xb")
        except FileExistsError:
            raise
        except OSError as e:
            raise CopyError(
                source, destination, f"cannot create destination ({e})"
            ) from e

        try:
            with dst:
                shutil.copyfileobj(src, dst, CHUNK_SIZE)
                copied = dst.tell()
        except OSError as e:
            destination.unlink(missing_ok=True)
            raise CopyError(source, destination, f"write failed ({e})") from e
        except BaseException:
            destination.unlink(missing_ok=True)
            raise

    if preserve_metadata:
        try:
            shutil.copystat(source, destination)
        except OSError as e:
            logger.warning(f"Could not preserve metadata on {destination}: {e}")

    return copied


@dataclass(frozen=True)
class PlannedCopy:
    source: Path
    destination: Path


@dataclass
class PlannedGroup:
    """One destination directory and the copies that go into it."""

    name: str
    directory: Path
    copies: List[PlannedCopy] = field(default_factory=list)


@dataclass
class CopyPlan:
    """Ordered list of planned groups under a destination root."""

    destination_root: Path
    groups: List[PlannedGroup] = field(default_factory=list)
    noise_dropped: int = 0

    @property
    def item_count(self) -> int:
        return sum(len(g.copies) for g in self.groups)


class CopyPlanner:
    """Computes destination paths for a grouping result."""

    def __init__(
        self,
        destination_root: Union[Path, str],
        noise_policy: Union[NoisePolicy, str] = NoisePolicy.SINGLETON,
    ) -> None:
        self.destination_root = Path(destination_root)
        self.noise_policy = NoisePolicy(noise_policy)

    def plan(self, result: GroupingResult) -> CopyPlan:
        groups = list(result.groups)
        ungrouped = []
        dropped = 0

        if result.noise:
            if self.noise_policy == NoisePolicy.SINGLETON:
                groups.extend(Group(members=[item]) for item in result.noise)
                groups.sort(key=lambda g: g.representative.sort_key)
            elif self.noise_policy == NoisePolicy.ROOT:
                ungrouped = sort_items(result.noise)
            else:
                dropped = len(result.noise)
                logger.info(f"Dropping {dropped} items that joined no cluster")

        planned: List[PlannedGroup] = []
        for name, group in zip(assign_group_names(groups), groups):
            directory = self.destination_root / name
            planned.append(
                PlannedGroup(
                    name=name,
                    directory=directory,
                    copies=[
                        PlannedCopy(item.path, directory / item.path.name)
                        for item in group.members
                    ],
                )
            )

        if ungrouped:
            planned.append(
                PlannedGroup(
                    name=UNGROUPED_NAME,
                    directory=self.destination_root,
                    copies=[
                        PlannedCopy(item.path, self.destination_root / item.path.name)
                        for item in ungrouped
                    ],
                )
            )

        self._warn_on_collisions(planned)
        return CopyPlan(
            destination_root=self.destination_root,
            groups=planned,
            noise_dropped=dropped,
        )

    def _warn_on_collisions(self, planned: List[PlannedGroup]) -> None:
        counts = Counter(c.destination for g in planned for c in g.copies)
        for destination, count in counts.items():
            if count > 1:
                logger.warning(
                    f"{count} files map to {destination}; only the first is copied"
                )


class CopyExecutor:
    """
    Executes a CopyPlan.

    Never deletes or modifies source files. Cancellation is cooperative:
    checked before each group and each item; copies already running finish.
    """

    def __init__(
        self,
        reporter: Optional[ProgressReporter] = None,
        token: Optional[CancellationToken] = None,
        max_workers: int = 1,
        preserve_metadata: bool = True,
        copy_func: Callable[..., int] = copy_file,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.reporter: ProgressReporter = reporter or NullProgressReporter()
        self.token = token or CancellationToken()
        self.max_workers = max_workers
        self.preserve_metadata = preserve_metadata
        self.copy_func = copy_func

    def execute(self, plan: CopyPlan) -> RunSummary:
        """
        Copy every planned file.

        Returns:
            RunSummary with counts, failures and final status
        """
        summary = RunSummary(
            group_count=len(plan.groups),
            item_count=plan.item_count,
            noise_dropped=plan.noise_dropped,
        )
        logger.info(
            f"Copying {plan.item_count} files in {len(plan.groups)} groups "
            f"to {plan.destination_root} ({self.max_workers} workers)"
        )

        try:
            if self.max_workers > 1:
                self._run_parallel(plan, summary)
            else:
                self._run_sequential(plan, summary)
        except JobCancelledException as e:
            summary.status = RunStatus.CANCELLED
            logger.warning(
                f"Run cancelled after {summary.copied} copied, "
                f"{summary.skipped} skipped, {summary.failed} failed: {e}"
            )
            self.reporter.report(
                ProgressEvent(
                    kind=EventKind.CANCELLED,
                    group_index=summary.groups_started,
                    group_count=summary.group_count,
                    message=str(e),
                )
            )
            return summary

        logger.info(
            f"Run completed: {summary.copied} copied, {summary.skipped} skipped, "
            f"{summary.failed} failed"
        )
        self.reporter.report(
            ProgressEvent(
                kind=EventKind.FINISHED,
                group_index=summary.groups_started,
                group_count=summary.group_count,
                message=(
                    f"{summary.copied} copied, {summary.skipped} skipped, "
                    f"{summary.failed} failed"
                ),
            )
        )
        return summary

    def _run_sequential(self, plan: CopyPlan, summary: RunSummary) -> None:
        group_count = len(plan.groups)
        claimed: Set[Path] = set()
        for group_index, group in enumerate(plan.groups, start=1):
            self.token.raise_if_cancelled(f"before group {group_index}")
            if not self._start_group(group, group_index, group_count, summary):
                continue
            for item_index, planned in enumerate(group.copies, start=1):
                self.token.raise_if_cancelled(
                    f"before item {item_index} of group {group_index}"
                )
                if planned.destination in claimed:
                    summary.record(
                        self._skip_duplicate(
                            planned, group, group_index, group_count, item_index
                        )
                    )
                    continue
                claimed.add(planned.destination)
                summary.record(
                    self._copy_one(
                        planned, group, group_index, group_count, item_index
                    )
                )

    def _run_parallel(self, plan: CopyPlan, summary: RunSummary) -> None:
        group_count = len(plan.groups)
        futures: List[Future[CopyOutcome]] = []
        claimed: Set[Path] = set()
        cancelled: Optional[JobCancelledException] = None

        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="sessionsort-copy-",
        ) as pool:
            try:
                for group_index, group in enumerate(plan.groups, start=1):
                    self.token.raise_if_cancelled(f"before group {group_index}")
                    if not self._start_group(group, group_index, group_count, summary):
                        continue
                    for item_index, planned in enumerate(group.copies, start=1):
                        self.token.raise_if_cancelled(
                            f"before item {item_index} of group {group_index}"
                        )
                        if planned.destination in claimed:
                            summary.record(
                                self._skip_duplicate(
                                    planned,
                                    group,
                                    group_index,
                                    group_count,
                                    item_index,
                                )
                            )
                            continue
                        claimed.add(planned.destination)
                        futures.append(
                            pool.submit(
                                self._copy_unless_cancelled,
                                planned,
                                group,
                                group_index,
                                group_count,
                                item_index,
                            )
                        )
            except JobCancelledException as e:
                cancelled = e
                for future in futures:
                    future.cancel()

            for future in as_completed(futures):
                if future.cancelled():
                    continue
                outcome = future.result()
                if outcome.status == CopyStatus.CANCELLED:
                    continue
                summary.record(outcome)

        if cancelled is None and self.token.cancelled:
            cancelled = JobCancelledException(
                f"Cancelled ({self.token.reason}) while copies were queued"
            )
        if cancelled is not None:
            raise cancelled

    def _start_group(
        self,
        group: PlannedGroup,
        group_index: int,
        group_count: int,
        summary: RunSummary,
    ) -> bool:
        """Create the group directory; on failure every member fails."""
        summary.groups_started += 1
        self.reporter.report(
            ProgressEvent(
                kind=EventKind.GROUP_STARTED,
                group_index=group_index,
                group_count=group_count,
                item_count=len(group.copies),
                group_name=group.name,
                destination=group.directory,
            )
        )
        try:
            group.directory.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Cannot create directory {group.directory}: {e}")
            for item_index, planned in enumerate(group.copies, start=1):
                outcome = CopyOutcome(
                    source=planned.source,
                    destination=planned.destination,
                    status=CopyStatus.FAILED,
                    group_index=group_index,
                    item_index=item_index,
                    error=f"cannot create directory ({e})",
                )
                self._report_outcome(outcome, group, group_count)
                summary.record(outcome)
            return False

    def _skip_duplicate(
        self,
        planned: PlannedCopy,
        group: PlannedGroup,
        group_index: int,
        group_count: int,
        item_index: int,
    ) -> CopyOutcome:
        """Skip a copy whose destination an earlier item of the plan owns."""
        logger.info(
            f"Skipping {planned.source}: {planned.destination} belongs to an "
            f"earlier file"
        )
        outcome = CopyOutcome(
            source=planned.source,
            destination=planned.destination,
            status=CopyStatus.SKIPPED,
            group_index=group_index,
            item_index=item_index,
        )
        self._report_outcome(outcome, group, group_count)
        return outcome

    def _copy_unless_cancelled(
        self,
        planned: PlannedCopy,
        group: PlannedGroup,
        group_index: int,
        group_count: int,
        item_index: int,
    ) -> CopyOutcome:
        # Queued work must not start once cancellation is observed
        if self.token.cancelled:
            return CopyOutcome(
                source=planned.source,
                destination=planned.destination,
                status=CopyStatus.CANCELLED,
                group_index=group_index,
                item_index=item_index,
            )
        return self._copy_one(planned, group, group_index, group_count, item_index)

    def _copy_one(
        self,
        planned: PlannedCopy,
        group: PlannedGroup,
        group_index: int,
        group_count: int,
        item_index: int,
    ) -> CopyOutcome:
        outcome = CopyOutcome(
            source=planned.source,
            destination=planned.destination,
            status=CopyStatus.COPIED,
            group_index=group_index,
            item_index=item_index,
        )

        if planned.destination.exists():
            outcome.status = CopyStatus.SKIPPED
        else:
            try:
                outcome.bytes_copied = self.copy_func(
                    planned.source,
                    planned.destination,
                    preserve_metadata=self.preserve_metadata,
                )
            except FileExistsError:
                outcome.status = CopyStatus.SKIPPED
            except CopyError as e:
                logger.warning(f"Copy failed: {e}")
                outcome.status = CopyStatus.FAILED
                outcome.error = str(e)

        self._report_outcome(outcome, group, group_count)
        return outcome

    def _report_outcome(
        self, outcome: CopyOutcome, group: PlannedGroup, group_count: int
    ) -> None:
        kind = {
            CopyStatus.COPIED: EventKind.ITEM_COPIED,
            CopyStatus.SKIPPED: EventKind.ITEM_SKIPPED,
            CopyStatus.FAILED: EventKind.ITEM_FAILED,
        }[outcome.status]
        self.reporter.report(
            ProgressEvent(
                kind=kind,
                group_index=outcome.group_index,
                group_count=group_count,
                item_index=outcome.item_index,
                item_count=len(group.copies),
                group_name=group.name,
                source=outcome.source,
                destination=outcome.destination,
                message=outcome.error or "",
            )
        )
