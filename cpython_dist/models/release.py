"""Release models — the remote release and its assets."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ReleaseRef(BaseModel):
    """Identifies a release by owner, repository and tag."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    tag: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}@{self.tag}"


class ReleaseAsset(BaseModel):
    """One file attached to a release."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    content_type: str = "application/octet-stream"
    size: int = 0


class Release(BaseModel):
    """A release as returned by the hosting API (fields we use only)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    tag_name: str
    assets: list[ReleaseAsset] = []

    @property
    def asset_names(self) -> list[str]:
        return [asset.name for asset in self.assets]
