"""Tests for the GitHub Releases bridge."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from cpython_dist.bridge.github_releases import (
    GitHubReleaseClient,
    ReleaseClient,
    build_session,
)
from cpython_dist.core.errors import APIError, OperationCancelledError
from cpython_dist.models.release import ReleaseRef

REF = ReleaseRef(owner="octo", repo="cpython-dist", tag="v0.0.0")

RELEASE_PAYLOAD = {
    "id": 42,
    "tag_name": "v0.0.0",
    "assets": [
        {"id": 1, "name": "python_3.10.9_linux_arm64.tgz", "content_type": "application/tgz", "size": 10},
        {"id": 2, "name": "notes.txt", "state": "uploaded"},
    ],
}


class _ApiSession:
    """Records GET/POST calls and answers with canned responses."""

    def __init__(self, response, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def _call(self, method: str, url: str, **kwargs: Any):
        data = kwargs.get("data")
        if hasattr(data, "read"):
            kwargs["data"] = data.read()
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url: str, **kwargs: Any):
        return self._call("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any):
        return self._call("POST", url, **kwargs)


def _client(session) -> GitHubReleaseClient:
    return GitHubReleaseClient(
        session,
        api_url="https://api.example.test/",
        uploads_url="https://uploads.example.test",
        timeout=7,
    )


class TestBuildSession:
    def test_headers(self):
        session = build_session("secret")
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/vnd.github+json"
        assert session.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert session.headers["User-Agent"] == "cpython-dist"

    def test_no_token(self):
        assert "Authorization" not in build_session("").headers


class TestGetReleaseByTag:
    def test_success(self, make_response):
        session = _ApiSession(make_response(payload=RELEASE_PAYLOAD))
        release = _client(session).get_release_by_tag(REF)

        assert release.id == 42
        assert release.asset_names == ["python_3.10.9_linux_arm64.tgz", "notes.txt"]
        assert session.calls == [
            {
                "method": "GET",
                "url": "https://api.example.test/repos/octo/cpython-dist/releases/tags/v0.0.0",
                "timeout": 7,
            }
        ]

    def test_not_found(self, make_response):
        response = make_response(status_code=404, reason="Not Found", payload={"message": "Not Found"})
        with pytest.raises(APIError, match="HTTP 404 Not Found") as excinfo:
            _client(_ApiSession(response)).get_release_by_tag(REF)
        assert excinfo.value.status_code == 404

    def test_error_without_json_body(self, make_response):
        response = make_response(status_code=502, reason="Bad Gateway")
        with pytest.raises(APIError, match="HTTP 502 Bad Gateway"):
            _client(_ApiSession(response)).get_release_by_tag(REF)

    def test_transport_error(self, make_response):
        session = _ApiSession(make_response(), error=requests.Timeout("read timed out"))
        with pytest.raises(APIError, match="read timed out"):
            _client(session).get_release_by_tag(REF)

    def test_unexpected_payload(self, make_response):
        session = _ApiSession(make_response(payload={"tag_name": "v0.0.0"}))
        with pytest.raises(APIError, match="unexpected release payload"):
            _client(session).get_release_by_tag(REF)

    def test_cancelled(self, make_response, token):
        token.cancel("SIGINT")
        session = _ApiSession(make_response(payload=RELEASE_PAYLOAD))
        with pytest.raises(OperationCancelledError):
            _client(session).get_release_by_tag(REF, token=token)
        assert session.calls == []


class TestUploadReleaseAsset:
    def test_success(self, tmp_path: Path, make_response):
        path = tmp_path / "python_3.10.9_linux_x64_a1b2c3d4.tgz"
        path.write_bytes(b"archive-bytes")
        response = make_response(
            status_code=201,
            payload={"id": 9, "name": "python_3.10.9_linux_arm64.tgz", "content_type": "application/tgz"},
        )
        session = _ApiSession(response)

        asset = _client(session).upload_release_asset(
            REF, 42, path, name="python_3.10.9_linux_arm64.tgz", media_type="application/tgz"
        )

        assert asset.id == 9
        (call,) = session.calls
        assert call["method"] == "POST"
        assert call["url"] == "https://uploads.example.test/repos/octo/cpython-dist/releases/42/assets"
        assert call["params"] == {"name": "python_3.10.9_linux_arm64.tgz"}
        assert call["headers"] == {"Content-Type": "application/tgz"}
        assert call["data"] == b"archive-bytes"

    def test_rejected(self, tmp_path: Path, make_response):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"x")
        response = make_response(
            status_code=422, reason="Unprocessable Entity", payload={"message": "Validation Failed"}
        )
        with pytest.raises(APIError, match="HTTP 422 Validation Failed") as excinfo:
            _client(_ApiSession(response)).upload_release_asset(
                REF, 42, path, name="a.tgz", media_type="application/tgz"
            )
        assert excinfo.value.status_code == 422

    def test_missing_file(self, tmp_path: Path, make_response):
        session = _ApiSession(make_response(payload={"id": 1, "name": "a.tgz"}))
        with pytest.raises(APIError, match="cannot open"):
            _client(session).upload_release_asset(
                REF, 42, tmp_path / "gone.tgz", name="a.tgz", media_type="application/tgz"
            )
        assert session.calls == []


def test_client_satisfies_protocol(make_release_client):
    assert isinstance(_client(_ApiSession(None)), ReleaseClient)
    assert isinstance(make_release_client(), ReleaseClient)
