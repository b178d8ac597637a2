"""GitHub Releases bridge — release lookup and asset upload over the REST API.

Uses GitHub's REST API through a ``requests.Session`` that carries the bearer
token.  Only the two calls the pipeline needs are implemented:

* ``GET  /repos/{owner}/{repo}/releases/tags/{tag}``
* ``POST {uploads}/repos/{owner}/{repo}/releases/{id}/assets?name=...``

All failures surface as ``APIError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import requests
from pydantic import ValidationError

from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import APIError
from cpython_dist.models.release import Release, ReleaseAsset, ReleaseRef

logger = logging.getLogger(__name__)

USER_AGENT = "cpython-dist"
API_VERSION = "2022-11-28"


@runtime_checkable
class ReleaseClient(Protocol):
    """Protocol for the release-hosting service."""

    def get_release_by_tag(
        self, ref: ReleaseRef, *, token: CancellationToken | None = None
    ) -> Release:
        ...

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
        ...


def build_session(access_token: str) -> requests.Session:
    """Return a session with GitHub API headers and the bearer token."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": API_VERSION,
        }
    )
    if access_token:
        session.headers["Authorization"] = f"Bearer {access_token}"
    return session


class GitHubReleaseClient:
    """``ReleaseClient`` backed by the GitHub REST API.

    Parameters
    ----------
    session:
        Session carrying authentication headers (see ``build_session``).
    api_url:
        Base REST URL, ``https://api.github.com`` for github.com.
    uploads_url:
        Base upload URL, ``https://uploads.github.com`` for github.com.
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        api_url: str = "https://api.github.com",
        uploads_url: str = "https://uploads.github.com",
        timeout: float = 60.0,
    ) -> None:
        self._session = session
        self._api_url = api_url.rstrip("/")
        self._uploads_url = uploads_url.rstrip("/")
        self._timeout = timeout

    def get_release_by_tag(
        self, ref: ReleaseRef, *, token: CancellationToken | None = None
    ) -> Release:
        if token is not None:
            token.raise_if_cancelled()
        url = f"{self._api_url}/repos/{ref.owner}/{ref.repo}/releases/tags/{ref.tag}"
        logger.debug("Fetching release %s", ref)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise APIError(f"cannot get release {ref}: {exc}") from exc

        data = self._json_or_raise(response, f"cannot get release {ref}")
        try:
            release = Release.model_validate(data)
        except ValidationError as exc:
            raise APIError(f"unexpected release payload for {ref}: {exc}") from exc
        logger.info("Release %s has %d assets", ref, len(release.assets))
        return release

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
        if token is not None:
            token.raise_if_cancelled()
        url = f"{self._uploads_url}/repos/{ref.owner}/{ref.repo}/releases/{release_id}/assets"
        logger.debug("Uploading %s as %s (%s)", path, name, media_type)
        try:
            with path.open("rb") as fh:
                response = self._session.post(
                    url,
                    params={"name": name},
                    data=fh,
                    headers={"Content-Type": media_type},
                    timeout=self._timeout,
                )
        except OSError as exc:
            raise APIError(f"cannot open {path} for upload: {exc}") from exc
        except requests.RequestException as exc:
            raise APIError(f"cannot upload asset {name}: {exc}") from exc

        data = self._json_or_raise(response, f"cannot upload asset {name}")
        try:
            return ReleaseAsset.model_validate(data)
        except ValidationError as exc:
            raise APIError(f"unexpected upload payload for {name}: {exc}") from exc

    @staticmethod
    def _json_or_raise(response: requests.Response, context: str) -> Any:
        if not response.ok:
            detail = response.reason or ""
            try:
                detail = response.json().get("message", detail)
            except (ValueError, AttributeError):
                pass
            raise APIError(
                f"{context}: HTTP {response.status_code} {detail}".rstrip(),
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise APIError(f"{context}: invalid JSON response") from exc
