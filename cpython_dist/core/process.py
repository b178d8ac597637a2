"""Process-runner backends for external tools (tar, docker).

Defines the ``ProcessRunner`` Protocol the stages depend on, and the default
``SubprocessRunner`` that spawns real processes with inherited standard
streams so that tool output is streamed live to the operator.

Tests substitute a recording fake that satisfies the same Protocol.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, runtime_checkable

from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import OperationCancelledError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for spawning an external command and waiting for it.

    Any object with a matching ``run`` method satisfies this protocol.
    """

    def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        stdin: Iterable[bytes] | None = None,
        token: CancellationToken | None = None,
    ) -> int:
        """Run *command* with *args* and return its exit status.

        Parameters
        ----------
        env:
            Extra variables layered over the current process environment.
        stdin:
            Optional byte chunks written to the child's standard input.
        token:
            Cancellation token checked before spawning and while waiting.
        """
        ...


# ---------------------------------------------------------------------------
# Default implementation
# ---------------------------------------------------------------------------


class SubprocessRunner:
    """Runs commands with ``subprocess.Popen``, forwarding stdout/stderr.

    Parameters
    ----------
    poll_interval:
        Seconds between cancellation checks while the child is running.
    terminate_grace:
        Seconds to wait after SIGTERM before the child is killed.
    """

    def __init__(self, poll_interval: float = 0.2, terminate_grace: float = 10.0) -> None:
        self.poll_interval = poll_interval
        self.terminate_grace = terminate_grace

    def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        stdin: Iterable[bytes] | None = None,
        token: CancellationToken | None = None,
    ) -> int:
        token = token or CancellationToken()
        token.raise_if_cancelled()

        argv = [command, *args]
        child_env = {**os.environ, **env} if env else None
        logger.debug("Spawning: %s", " ".join(argv))

        proc = subprocess.Popen(
            argv,
            env=child_env,
            stdin=subprocess.PIPE if stdin is not None else None,
        )
        try:
            if stdin is not None:
                self._feed(proc, stdin, token)
            return self._wait(proc, token)
        except BaseException:
            self._stop(proc)
            raise

    def _feed(
        self, proc: subprocess.Popen[bytes], chunks: Iterable[bytes], token: CancellationToken
    ) -> None:
        """Write *chunks* to the child's stdin, then close it."""
        assert proc.stdin is not None
        try:
            for chunk in chunks:
                token.raise_if_cancelled()
                if chunk:
                    proc.stdin.write(chunk)
        except BrokenPipeError:
            # The child exited early; its exit status reports why.
            logger.debug("%s closed its input early", proc.args)
        finally:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                pass

    def _wait(self, proc: subprocess.Popen[bytes], token: CancellationToken) -> int:
        while True:
            try:
                return proc.wait(timeout=self.poll_interval)
            except subprocess.TimeoutExpired:
                if token.cancelled:
                    raise OperationCancelledError(
                        f"operation cancelled: {token.reason}"
                    ) from None

    def _stop(self, proc: subprocess.Popen[bytes]) -> None:
        if proc.poll() is not None:
            return
        logger.warning("Terminating %s", proc.args)
        proc.terminate()
        try:
            proc.wait(timeout=self.terminate_grace)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
