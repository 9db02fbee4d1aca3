"""Progress reporting for copy runs.

The executor emits ProgressEvents through a reporter callback. Reporters
are observers only: they never influence the run. All reporters here are
safe to call from worker threads.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import click
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Kinds of progress events."""

    PLANNED = "planned"
    GROUP_STARTED = "group_started"
    ITEM_COPIED = "item_copied"
    ITEM_SKIPPED = "item_skipped"
    ITEM_FAILED = "item_failed"
    CANCELLED = "cancelled"
    FINISHED = "finished"


class ProgressEvent(BaseModel):
    """A single progress update, attributable to a (group, item) pair."""

    kind: EventKind
    group_index: int = 0
    group_count: int = 0
    item_index: int = 0
    item_count: int = 0
    group_name: str = ""
    source: Optional[Path] = None
    destination: Optional[Path] = None
    message: str = ""


class ProgressReporter(Protocol):
    def report(self, event: ProgressEvent) -> None: ...


class NullProgressReporter:
    """Discards every event."""

    def report(self, event: ProgressEvent) -> None:
        pass


class MemoryProgressReporter:
    """Records events in memory.

    Thread-safe; used for tests and for callers that inspect a run afterwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[ProgressEvent] = []

    def report(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[ProgressEvent]:
        with self._lock:
            return list(self._events)

    def of_kind(self, kind: EventKind) -> List[ProgressEvent]:
        return [e for e in self.events if e.kind == kind]


class LoggingProgressReporter:
    """Forwards events to a logger at DEBUG level."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def report(self, event: ProgressEvent) -> None:
        self.log.debug(
            f"{event.kind.value} group {event.group_index}/{event.group_count} "
            f"item {event.item_index}/{event.item_count} "
            f"{event.source or ''} {event.destination or ''} {event.message}".rstrip()
        )


class ConsoleProgressReporter:
    """Human-readable progress lines on standard output."""

    def __init__(self, echo: Callable[[str], None] = click.echo) -> None:
        self._echo = echo
        self._lock = threading.Lock()

    def format(self, event: ProgressEvent) -> str:
        position = (
            f"{event.group_index}:{event.group_count} "
            f"{event.item_index}:{event.item_count}"
        )
        if event.kind == EventKind.GROUP_STARTED:
            return (
                f"COPYING SESSION {event.group_index} OF {event.group_count}: "
                f"{event.group_name} ({event.item_count} files)..."
            )
        if event.kind == EventKind.PLANNED and event.item_index:
            note = " (exists, will skip)" if event.message == "exists" else ""
            return f"\t{position}: [{event.source}] => [{event.destination}]{note}"
        if event.kind == EventKind.PLANNED:
            return (
                f"PLANNED SESSION {event.group_index} OF {event.group_count}: "
                f"{event.group_name} ({event.item_count} files)"
            )
        if event.kind == EventKind.ITEM_COPIED:
            return f"\t{position}: [{event.source}] => [{event.destination}]"
        if event.kind == EventKind.ITEM_SKIPPED:
            return (
                f"\t{position}: [{event.source}] => [{event.destination}]\n"
                f"\t    * Destination file already exists. Skipping..."
            )
        if event.kind == EventKind.ITEM_FAILED:
            return (
                f"\t{position}: [{event.source}] => [{event.destination}]\n"
                f"\t    * Error copying file: {event.message}"
            )
        if event.kind == EventKind.CANCELLED:
            return f"INTERRUPTED, EXITING... {event.message}".rstrip()
        return f"DONE! {event.message}".rstrip()

    def report(self, event: ProgressEvent) -> None:
        line = self.format(event)
        with self._lock:
            self._echo(line)


class CompositeProgressReporter:
    """Fans events out to several reporters."""

    def __init__(self, *reporters: ProgressReporter) -> None:
        self.reporters = reporters

    def report(self, event: ProgressEvent) -> None:
        for reporter in self.reporters:
            reporter.report(event)
