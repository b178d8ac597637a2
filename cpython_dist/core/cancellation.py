"""Cooperative cancellation and interrupt handling.

A ``CancellationToken`` is created once per run and passed to every external
call boundary (HTTP request, process spawn, filesystem walk).  The
``SignalListener`` is the only writer: the first SIGINT/SIGTERM cancels the
token, the second terminates the process immediately with exit code 130.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
from collections.abc import Callable, Iterable
from types import FrameType, TracebackType
from typing import Any

from cpython_dist.core.errors import OperationCancelledError

logger = logging.getLogger(__name__)

FORCED_EXIT_CODE = 130


class CancellationToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise ``OperationCancelledError`` if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError(f"operation cancelled: {self._reason}")


class SignalListener:
    """Installs interrupt handlers for the lifetime of a ``with`` block.

    Parameters
    ----------
    token:
        The run's cancellation token, cancelled on the first signal.
    signals:
        Signals to listen for.  Defaults to SIGINT and SIGTERM.
    exit_func:
        Called with ``130`` on the second signal.  ``os._exit`` by default so
        that no cleanup handlers run.
    """

    def __init__(
        self,
        token: CancellationToken,
        signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
        *,
        exit_func: Callable[[int], object] = os._exit,
    ) -> None:
        self._token = token
        self._signals = tuple(signals)
        self._exit_func = exit_func
        self._previous: dict[signal.Signals, Any] = {}
        self._received = 0

    @property
    def received(self) -> int:
        """Number of signals received so far."""
        return self._received

    def handle(self, signum: int, frame: FrameType | None = None) -> None:
        self._received += 1
        name = signal.Signals(signum).name
        if self._received == 1:
            logger.warning("Received %s, cancelling (send again to force exit)", name)
            self._token.cancel(f"received {name}")
            return
        logger.error("Received %s again, forcing exit", name)
        self._exit_func(FORCED_EXIT_CODE)

    def __enter__(self) -> SignalListener:
        for sig in self._signals:
            self._previous[sig] = signal.signal(sig, self.handle)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()
