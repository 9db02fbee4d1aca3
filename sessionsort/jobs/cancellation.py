"""Cooperative cancellation for copy runs.

A single token is shared between the signal handler and the processing
loop. The loop polls it at checkpoints (before each group and each item);
a copy already in flight is allowed to finish.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class JobCancelledException(Exception):
    """Raised at a checkpoint once cancellation has been requested."""


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "") -> None:
        """Raise JobCancelledException if cancellation was requested."""
        if self._event.is_set():
            raise JobCancelledException(
                f"Cancelled ({self.reason}){' ' + where if where else ''}"
            )


@contextmanager
def handle_signals(
    token: CancellationToken,
    signals: Sequence[int] = DEFAULT_SIGNALS,
) -> Iterator[CancellationToken]:
    """Route termination signals to a cancellation token.

    Installs handlers for the duration of the block and restores the
    previous ones afterwards. Must be entered from the main thread.
    """
    previous: Dict[int, Any] = {}

    def _handler(signum: int, frame: Any) -> None:
        name = signal.Signals(signum).name
        logger.warning(f"{name} received, finishing in-flight copies and stopping")
        token.cancel(name)

    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
