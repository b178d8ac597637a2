"""Compiled artifact models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ArtifactKind(str, Enum):
    """Classification of a build output file by its suffix."""

    ARCHIVE = "archive"
    CHECKSUM = "checksum"
    OTHER = "other"


class ArtifactFile(BaseModel):
    """A file produced by a compilation run, ready for upload.

    ``upload_name`` is the sanitized file name the asset is published under;
    ``path`` still points at the file on disk with its original name.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    upload_name: str
    media_type: str
    kind: ArtifactKind

    @property
    def original_name(self) -> str:
        return self.path.name
