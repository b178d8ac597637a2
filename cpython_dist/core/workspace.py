"""Run-scoped temporary directories."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)


class RunWorkspace:
    """Creates temporary directories for one run and removes them afterwards.

    Removal is best-effort: container runs may leave root-owned files in the
    output directory, so failures are logged rather than raised.  With
    ``keep=True`` nothing is removed.
    """

    def __init__(self, *, keep: bool = False, base_dir: Path | None = None) -> None:
        self.keep = keep
        self._base_dir = base_dir
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def create(self, prefix: str) -> Path:
        """Create and register a fresh directory."""
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=self._base_dir))
        self._paths.append(path)
        logger.debug("Created workspace directory %s", path)
        return path

    def cleanup(self) -> None:
        if self.keep:
            for path in self._paths:
                logger.info("Keeping workspace directory %s", path)
            return
        while self._paths:
            path = self._paths.pop()
            try:
                shutil.rmtree(path)
            except OSError as exc:
                logger.warning("Could not remove %s: %s", path, exc)

    def __enter__(self) -> RunWorkspace:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
