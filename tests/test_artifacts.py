from __future__ import annotations

from typing import List

import pytest
import requests

from provision_kit import artifacts
from provision_kit.config import ProvisionConfig
from provision_kit.errors import FilesystemError, NetworkError


class FakeResponse:
    def __init__(self, chunks: List[bytes], status: int = 200, fail_after: int | None = None) -> None:
        self._chunks = chunks
        self.status_code = status
        self._fail_after = fail_after
        self.closed = False

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:  # noqa: ANN002
        self.closed = True

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size: int = 1):  # noqa: ARG002
        for i, chunk in enumerate(self._chunks):
            if self._fail_after is not None and i >= self._fail_after:
                raise requests.ConnectionError("connection reset")
            yield chunk


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.urls: List[str] = []

    def get(self, url: str, stream: bool = False) -> FakeResponse:
        assert stream
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


def _cfg() -> ProvisionConfig:
    return ProvisionConfig(project_name="acme", alert_email="a@x.com")


def test_create_release_path_is_idempotent(tmp_path) -> None:
    first = artifacts.create_release_path("a.zip", str(tmp_path))
    second = artifacts.create_release_path("a.zip", str(tmp_path))

    assert first == second == str(tmp_path / "release" / "a.zip")
    assert (tmp_path / "release").is_dir()


def test_create_release_path_failure(tmp_path) -> None:
    (tmp_path / "release").write_text("not a directory")

    with pytest.raises(FilesystemError):
        artifacts.create_release_path("a.zip", str(tmp_path))


def test_fetch_artifact_builds_url_and_saves_body(tmp_path) -> None:
    resp = FakeResponse([b"PK\x03\x04", b"rest"])
    session = FakeSession(resp)

    path = artifacts.fetch_artifact(_cfg(), "inventory", work_dir=str(tmp_path), session=session)

    assert session.urls == [
        "https://github.com/GSA/grace-inventory/releases/download/v0.1.7/grace-inventory-lambda.zip"
    ]
    assert path == str(tmp_path / "release" / "grace-inventory-lambda.zip")
    assert (tmp_path / "release" / "grace-inventory-lambda.zip").read_bytes() == b"PK\x03\x04rest"
    assert resp.closed


def test_rotate_keypair_uses_ansible_version(tmp_path) -> None:
    cfg = ProvisionConfig(project_name="acme", alert_email="a@x.com", ansible_version="v9.9.9")
    session = FakeSession(FakeResponse([b"zip"]))

    artifacts.fetch_artifact(cfg, "rotate-keypair", work_dir=str(tmp_path), session=session)

    assert session.urls == [
        "https://github.com/GSA/grace-ansible-lambda/releases/download/v9.9.9/grace-ansible-rotate-keypair.zip"
    ]


def test_fetch_overwrites_existing_file(tmp_path) -> None:
    (tmp_path / "release").mkdir()
    (tmp_path / "release" / "x.zip").write_bytes(b"old-and-longer-content")

    artifacts.fetch("https://example.com/{version}/x.zip", "v1", "x.zip",
                    work_dir=str(tmp_path), session=FakeSession(FakeResponse([b"new"])))

    assert (tmp_path / "release" / "x.zip").read_bytes() == b"new"


def test_download_http_error_raises_network_error(tmp_path) -> None:
    session = FakeSession(FakeResponse([b"Not Found"], status=404))

    with pytest.raises(NetworkError) as excinfo:
        artifacts.download("https://example.com/a.zip", str(tmp_path / "a.zip"), session=session)

    assert "https://example.com/a.zip" in str(excinfo.value)


def test_download_connection_error_raises_network_error(tmp_path) -> None:
    session = FakeSession(error=requests.ConnectionError("refused"))

    with pytest.raises(NetworkError):
        artifacts.download("https://example.com/a.zip", str(tmp_path / "a.zip"), session=session)


def test_download_interrupted_leaves_partial_file(tmp_path) -> None:
    session = FakeSession(FakeResponse([b"abc", b"def"], fail_after=1))
    target = tmp_path / "a.zip"

    with pytest.raises(NetworkError):
        artifacts.download("https://example.com/a.zip", str(target), session=session)

    assert target.read_bytes() == b"abc"


def test_download_write_failure_raises_filesystem_error(tmp_path) -> None:
    session = FakeSession(FakeResponse([b"abc"]))
    target = tmp_path / "missing-dir" / "a.zip"

    with pytest.raises(FilesystemError) as excinfo:
        artifacts.download("https://example.com/a.zip", str(target), session=session)

    assert excinfo.value.path == str(target)


def test_unknown_artifact() -> None:
    with pytest.raises(ValueError):
        artifacts.fetch_artifact(_cfg(), "nope")
