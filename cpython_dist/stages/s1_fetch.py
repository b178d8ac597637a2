"""Stage 1 — Source Fetch.

Downloads the buildpack source tarball and streams it straight into
``tar``, which extracts it into a fresh workspace directory with the
top-level wrapper directory stripped.

The extracted source directory is stored on run_context as ``source_dir``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import requests

from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import ExtractionError, FetchError
from cpython_dist.core.process import ProcessRunner
from cpython_dist.stages.base import BaseStage

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
TAR_ARGS = ("xzvf", "-", "-C", "{dest}", "--strip-components=1")


def _stream(response: requests.Response, url: str) -> Iterator[bytes]:
    try:
        yield from response.iter_content(chunk_size=CHUNK_SIZE)
    except requests.RequestException as exc:
        raise FetchError(f"download of {url} interrupted: {exc}") from exc


def fetch_source(
    url: str,
    dest: Path,
    *,
    session: requests.Session,
    runner: ProcessRunner,
    token: CancellationToken | None = None,
    timeout: float = 60.0,
) -> Path:
    """Download *url* and extract it into *dest*.

    Raises ``FetchError`` when the request fails or returns a non-2xx status,
    and ``ExtractionError`` when ``tar`` exits non-zero.
    """
    if token is not None:
        token.raise_if_cancelled()

    logger.info("Downloading %s", url)
    try:
        response = session.get(url, stream=True, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"cannot get {url}: {exc}") from exc

    with response:
        if not response.ok:
            raise FetchError(
                f"cannot get {url}: HTTP {response.status_code} {response.reason or ''}".rstrip()
            )
        args = [arg.format(dest=dest) for arg in TAR_ARGS]
        returncode = runner.run("tar", args, stdin=_stream(response, url), token=token)

    if returncode != 0:
        raise ExtractionError(f"cannot extract sources: tar exited with {returncode}")
    return dest


class SourceFetchStage(BaseStage):
    """Stage 1: Source Fetch — download and extract the buildpack."""

    @property
    def stage_id(self) -> str:
        return "s1_fetch"

    @property
    def display_name(self) -> str:
        return "Source Fetch"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Reads ``settings``, ``http_session``, ``runner``, ``workspace``."""
        settings = run_context["settings"]
        dest = run_context["workspace"].create("cpython-dist-src-")

        source_dir = fetch_source(
            settings.source_url,
            dest,
            session=run_context["http_session"],
            runner=run_context["runner"],
            token=run_context.get("token"),
            timeout=settings.http_timeout_seconds,
        )
        run_context["source_dir"] = source_dir

        return {
            "source_url": settings.source_url,
            "source_dir": str(source_dir),
        }
