"""Shared test fixtures for cpython-dist."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from pydantic import SecretStr
from rich.console import Console

from cpython_dist.config import DistSettings
from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import APIError
from cpython_dist.models.release import Release, ReleaseAsset, ReleaseRef

BUILDPACK_TOML = """\
api = "0.7"

[buildpack]
  id = "paketo-buildpacks/cpython"
  name = "Paketo Buildpack for CPython"

[metadata]
  default-versions = { python = "3.12.*" }

  [[metadata.dependencies]]
    id = "python"
    stacks = ["io.buildpacks.stacks.jammy"]
    version = "3.11.4"

  [[metadata.dependencies]]
    id = "python"
    stacks = ["io.buildpacks.stacks.jammy"]
    version = "3.12.2"
"""


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class Invocation:
    """One recorded process-runner call."""

    command: str
    args: list[str]
    env: dict[str, str] | None
    stdin: bytes | None


@dataclass
class RecordingRunner:
    """ProcessRunner fake that records invocations instead of spawning.

    ``handler`` is called with each ``Invocation`` and returns the exit
    status; it may also write files to simulate the tool's side effects.
    """

    handler: Callable[[Invocation], int] | None = None
    invocations: list[Invocation] = field(default_factory=list)

    def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        stdin: Iterable[bytes] | None = None,
        token: CancellationToken | None = None,
    ) -> int:
        if token is not None:
            token.raise_if_cancelled()
        data = b"".join(stdin) if stdin is not None else None
        invocation = Invocation(
            command=command,
            args=list(args),
            env=dict(env) if env is not None else None,
            stdin=data,
        )
        self.invocations.append(invocation)
        return self.handler(invocation) if self.handler else 0

    def calls_to(self, command: str, subcommand: str | None = None) -> list[Invocation]:
        return [
            inv
            for inv in self.invocations
            if inv.command == command and (subcommand is None or inv.args[:1] == [subcommand])
        ]


@dataclass
class FakeReleaseClient:
    """ReleaseClient fake backed by an in-memory asset list."""

    asset_names: list[str] = field(default_factory=list)
    release_id: int = 42
    lookup_error: APIError | None = None
    upload_error: APIError | None = None
    uploads: list[dict[str, Any]] = field(default_factory=list)
    lookups: int = 0

    def get_release_by_tag(
        self, ref: ReleaseRef, *, token: CancellationToken | None = None
    ) -> Release:
        self.lookups += 1
        if self.lookup_error is not None:
            raise self.lookup_error
        return Release(
            id=self.release_id,
            tag_name=ref.tag,
            assets=[
                ReleaseAsset(id=i + 1, name=name)
                for i, name in enumerate(self.asset_names)
            ],
        )

    def upload_release_asset(
        self,
        ref: ReleaseRef,
        release_id: int,
        path: Path,
        *,
        name: str,
        media_type: str,
        token: CancellationToken | None = None,
    ) -> ReleaseAsset:
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append(
            {
                "release_id": release_id,
                "path": path,
                "name": name,
                "media_type": media_type,
                "content": path.read_bytes(),
            }
        )
        return ReleaseAsset(id=100 + len(self.uploads), name=name, content_type=media_type)


class FakeResponse:
    """Minimal stand-in for a streamed ``requests.Response``."""

    def __init__(
        self,
        status_code: int = 200,
        chunks: Iterable[bytes] = (b"fake tarball data",),
        reason: str = "OK",
        payload: Any = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self._chunks = list(chunks)
        self._payload = payload
        self.closed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def iter_content(self, chunk_size: int = 8192):
        yield from self._chunks

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class FakeSession:
    """Records GETs and returns a canned response (or raises)."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> DistSettings:
    """Settings with deterministic values, independent of the environment."""
    return DistSettings(
        source_url="https://example.test/cpython/main.tar.gz",
        release_owner="octo",
        release_repo="cpython-dist",
        release_tag="v0.0.0",
        github_token=SecretStr("test-token"),
        upload_checksums=False,
        build_when_satisfied=False,
        keep_workdirs=False,
    )


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def quiet_console() -> Console:
    """A console writing to an in-memory buffer (read via ``.file.getvalue()``)."""
    return Console(file=io.StringIO(), width=200, force_terminal=False)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """An 'extracted' buildpack source tree with a buildpack.toml."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "buildpack.toml").write_text(BUILDPACK_TOML, encoding="utf-8")
    return src


def fake_toolchain(
    descriptor: str = BUILDPACK_TOML,
    *,
    fail_on: Callable[[Invocation], bool] | None = None,
    artifact_template: str = "python_{version}_linux_x64_jammy_a1b2c3d4.tgz",
) -> RecordingRunner:
    """A runner whose tar writes *descriptor* and whose docker run writes artifacts."""

    def handler(inv: Invocation) -> int:
        if fail_on is not None and fail_on(inv):
            return 1
        if inv.command == "tar":
            dest = Path(inv.args[inv.args.index("-C") + 1])
            (dest / "buildpack.toml").write_text(descriptor, encoding="utf-8")
        elif inv.command == "docker" and inv.args[0] == "run":
            host_dir = inv.args[1][2:].split(":", 1)[0]
            version = inv.args[inv.args.index("--version") + 1]
            name = artifact_template.format(version=version)
            (Path(host_dir) / name).write_bytes(f"archive {version}".encode())
            (Path(host_dir) / f"{name}.checksum").write_text(f"sha256:{version}")
        return 0

    return RecordingRunner(handler=handler)


# ---------------------------------------------------------------------------
# Factory fixtures, shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_toolchain() -> Callable[..., RecordingRunner]:
    """Factory fixture: a RecordingRunner simulating tar and docker."""
    return fake_toolchain


@pytest.fixture
def make_runner() -> Callable[..., RecordingRunner]:
    """Factory fixture: a bare RecordingRunner with an optional handler."""

    def _factory(handler: Callable[[Invocation], int] | None = None) -> RecordingRunner:
        return RecordingRunner(handler=handler)

    return _factory


@pytest.fixture
def make_release_client() -> Callable[..., FakeReleaseClient]:
    """Factory fixture: a FakeReleaseClient with the given asset names."""

    def _factory(asset_names: Iterable[str] = (), **overrides: Any) -> FakeReleaseClient:
        return FakeReleaseClient(asset_names=list(asset_names), **overrides)

    return _factory


@pytest.fixture
def make_response() -> Callable[..., FakeResponse]:
    """Factory fixture: a FakeResponse."""
    return FakeResponse


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    """Factory fixture: a FakeSession returning a canned response."""
    return FakeSession
