"""Run configuration — env-driven, built once at startup.

Centralized settings using pydantic-settings.  Reads from a ``.env`` file and
``CPYTHON_DIST_*`` environment variables; the API credential is read from
``GITHUB_TOKEN``.  The settings object is passed explicitly to every stage,
nothing reads the environment after startup.
"""

from __future__ import annotations

import logging

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cpython_dist.models.release import ReleaseRef

DEFAULT_SOURCE_URL = (
    "https://github.com/paketo-buildpacks/cpython/archive/refs/heads/main.tar.gz"
)


class DistSettings(BaseSettings):
    """Settings for one distribution run.

    Examples
    --------
    Override via environment::

        export GITHUB_TOKEN=ghp_...
        export CPYTHON_DIST_RELEASE_TAG=v0.0.1
        export CPYTHON_DIST_UPLOAD_CHECKSUMS=true

    Or via .env file::

        CPYTHON_DIST_LOG_LEVEL=DEBUG
        CPYTHON_DIST_KEEP_WORKDIRS=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CPYTHON_DIST_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Buildpack source
    source_url: str = DEFAULT_SOURCE_URL
    descriptor_name: str = "buildpack.toml"

    # Distribution release
    release_owner: str = "matejvasek"
    release_repo: str = "cpython-dist"
    release_tag: str = "v0.0.0"
    github_api_url: str = "https://api.github.com"
    github_uploads_url: str = "https://uploads.github.com"
    github_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("GITHUB_TOKEN", "CPYTHON_DIST_GITHUB_TOKEN"),
    )
    http_timeout_seconds: float = 60.0

    # Container build
    container_tool: str = "docker"
    builder_image: str = "compilation"
    build_context: str = "dependency/actions/compile"
    dockerfile: str = "dependency/actions/compile/jammy.Dockerfile"
    container_output_dir: str = "/home"
    target: str = "jammy"

    # Artifact naming
    arch_marker: str = "arm64"

    # Policies
    upload_checksums: bool = False
    build_when_satisfied: bool = False
    keep_workdirs: bool = False

    # Observability
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def release_ref(self) -> ReleaseRef:
        """The release both listed and uploaded to."""
        return ReleaseRef(
            owner=self.release_owner,
            repo=self.release_repo,
            tag=self.release_tag,
        )
