"""Tests for staging package files into the build directory."""

from collections.abc import Callable
import email.message
import os
from pathlib import Path
from typing import Any, Never
import urllib.error

import pytest
from pytest import MonkeyPatch

from debunpack import staging
from debunpack.exceptions import (
    BAD_ARGUMENT_ERROR,
    MISSING_DEB_ERROR,
    MISSING_DIR_ERROR,
    TRANSFER_ERROR,
    BadArgumentError,
    MissingDirectoryError,
    MissingPackageFileError,
    TransferError,
)
from debunpack.models import InvocationRequest


def test_local_and_remote_files_are_staged_in_order(
    tmp_path: Path, build_dir: Path, make_deb: Callable[..., Path]
) -> None:
    local_a = make_deb("a.deb", b"local-a")
    local_b = make_deb("b.deb", b"local-b")
    remote = make_deb("remote.deb", b"remote", where=tmp_path / "mirror")

    request = InvocationRequest(
        local_files=[str(local_b), str(local_a)], remote_files=[remote.as_uri()]
    )
    staged = staging.stage_package_files(request, build_dir, working_dir=tmp_path)

    assert [p.name for p in staged] == ["b.deb", "a.deb", "remote.deb"]
    assert (build_dir / "a.deb").read_bytes() == b"local-a"
    assert (build_dir / "remote.deb").read_bytes() == b"remote"
    assert Path.cwd() == tmp_path


def test_stale_packages_are_removed(
    tmp_path: Path, build_dir: Path, make_deb: Callable[..., Path]
) -> None:
    (build_dir / "old.deb").write_bytes(b"stale")
    (build_dir / "Dockerfile").write_text("FROM scratch\n")
    fresh = make_deb("fresh.deb")

    staging.stage_package_files(
        InvocationRequest(local_files=[str(fresh)]), build_dir, working_dir=tmp_path
    )

    assert not (build_dir / "old.deb").exists()
    assert (build_dir / "fresh.deb").exists()
    assert (build_dir / "Dockerfile").exists()


def test_missing_local_file(tmp_path: Path, build_dir: Path) -> None:
    request = InvocationRequest(local_files=[str(tmp_path / "nope.deb")])
    with pytest.raises(MissingPackageFileError, match=r"Deb file \*.*nope.deb\* not found") as excinfo:
        staging.stage_package_files(request, build_dir, working_dir=tmp_path)
    assert excinfo.value.exit_code == MISSING_DEB_ERROR


def test_directory_is_not_a_package_file(tmp_path: Path, build_dir: Path) -> None:
    (tmp_path / "dir.deb").mkdir()
    request = InvocationRequest(local_files=[str(tmp_path / "dir.deb")])
    with pytest.raises(MissingPackageFileError):
        staging.stage_package_files(request, build_dir, working_dir=tmp_path)


def test_missing_build_dir(tmp_path: Path, make_deb: Callable[..., Path]) -> None:
    request = InvocationRequest(local_files=[str(make_deb("a.deb"))])
    with pytest.raises(MissingDirectoryError, match="Could not change to") as excinfo:
        staging.stage_package_files(request, tmp_path / "missing", working_dir=tmp_path)
    assert excinfo.value.exit_code == MISSING_DIR_ERROR


def test_missing_working_dir_after_download(
    tmp_path: Path, build_dir: Path, make_deb: Callable[..., Path]
) -> None:
    remote = make_deb("remote.deb", where=tmp_path / "mirror")
    request = InvocationRequest(remote_files=[remote.as_uri()])
    with pytest.raises(MissingDirectoryError, match="gone"):
        staging.stage_package_files(request, build_dir, working_dir=tmp_path / "gone")


def test_unreachable_remote_file(tmp_path: Path, build_dir: Path) -> None:
    url = (tmp_path / "mirror" / "absent.deb").as_uri()
    request = InvocationRequest(remote_files=[url])
    with pytest.raises(TransferError, match="Could not retrieve deb file from") as excinfo:
        staging.stage_package_files(request, build_dir, working_dir=tmp_path)
    assert excinfo.value.exit_code == TRANSFER_ERROR
    assert not (build_dir / "absent.deb").exists()
    assert Path.cwd() == tmp_path


def test_http_error_status_fails_the_transfer(
    tmp_path: Path, build_dir: Path, monkeypatch: MonkeyPatch
) -> None:
    def mock_urlopen(url: str, *args: Any, **kwargs: Any) -> Never:
        raise urllib.error.HTTPError(url, 404, "Not Found", email.message.Message(), None)

    monkeypatch.setattr("debunpack.staging.urllib.request.urlopen", mock_urlopen)

    with pytest.raises(TransferError, match="HTTP Error 404"):
        staging.download_remote_file("http://host/pkg.deb", build_dir)
    assert not (build_dir / "pkg.deb").exists()


def test_url_without_file_name(build_dir: Path) -> None:
    with pytest.raises(TransferError, match="has no file name"):
        staging.download_remote_file("http://host/", build_dir)


def test_url_without_scheme(build_dir: Path) -> None:
    with pytest.raises(TransferError):
        staging.download_remote_file("not-a-url.deb", build_dir)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://host/pool/main/pkg_1.0_amd64.deb", "pkg_1.0_amd64.deb"),
        ("https://host/pkg.deb?token=abc", "pkg.deb"),
        ("https://host/my%20pkg.deb", "my%20pkg.deb"),
        ("https://host/pool/%2E%2E", "%2E%2E"),
        ("https://host/pool/..", ".."),
        ("https://host/", ""),
    ],
)
def test_remote_file_name(url: str, expected: str) -> None:
    assert staging.remote_file_name(url) == expected


def test_entered_restores_directory_on_error(tmp_path: Path, build_dir: Path) -> None:
    with pytest.raises(RuntimeError):
        with staging.entered(build_dir, return_to=tmp_path):
            assert Path(os.getcwd()) == build_dir
            raise RuntimeError("boom")
    assert Path.cwd() == tmp_path


def test_source_inside_build_dir_survives_stale_cleanup(
    tmp_path: Path, build_dir: Path
) -> None:
    own = build_dir / "mypkg.deb"
    own.write_bytes(b"mine")
    (build_dir / "leftover.deb").write_bytes(b"stale")

    staged = staging.stage_package_files(
        InvocationRequest(local_files=[str(own)]), build_dir, working_dir=tmp_path
    )

    assert staged == [own]
    assert own.read_bytes() == b"mine"
    assert not (build_dir / "leftover.deb").exists()


def test_relative_source_in_build_dir_is_kept(
    tmp_path: Path, monkeypatch: MonkeyPatch
) -> None:
    (tmp_path / "mypkg.deb").write_bytes(b"mine")
    monkeypatch.chdir(tmp_path)

    staging.stage_package_files(
        InvocationRequest(local_files=["mypkg.deb"]), tmp_path, working_dir=tmp_path
    )

    assert (tmp_path / "mypkg.deb").read_bytes() == b"mine"


def test_duplicate_local_names_are_rejected(
    tmp_path: Path, build_dir: Path, make_deb: Callable[..., Path]
) -> None:
    first = make_deb("x.deb", b"first", where=tmp_path / "a")
    second = make_deb("x.deb", b"second", where=tmp_path / "b")
    request = InvocationRequest(local_files=[str(first), str(second)])

    with pytest.raises(BadArgumentError, match="would both be staged as x.deb") as excinfo:
        staging.stage_package_files(request, build_dir, working_dir=tmp_path)
    assert excinfo.value.exit_code == BAD_ARGUMENT_ERROR
    assert not (build_dir / "x.deb").exists()


def test_local_and_remote_name_clash_is_rejected(
    tmp_path: Path, build_dir: Path, make_deb: Callable[..., Path]
) -> None:
    local = make_deb("x.deb")
    request = InvocationRequest(
        local_files=[str(local)], remote_files=["http://host/pool/x.deb"]
    )
    with pytest.raises(BadArgumentError, match="would both be staged"):
        staging.stage_package_files(request, build_dir, working_dir=tmp_path)


@pytest.mark.parametrize("url", ["http://host/pool/..", "http://host/"])
def test_url_naming_a_directory_is_rejected(url: str, build_dir: Path) -> None:
    with pytest.raises(TransferError, match="has no file name"):
        staging.download_remote_file(url, build_dir)
    assert build_dir.parent.is_dir()


def test_failed_download_is_reported_when_working_dir_is_gone(
    tmp_path: Path, build_dir: Path
) -> None:
    url = (tmp_path / "mirror" / "absent.deb").as_uri()
    request = InvocationRequest(remote_files=[url])
    with pytest.raises(TransferError) as excinfo:
        staging.stage_package_files(request, build_dir, working_dir=tmp_path / "gone")
    assert excinfo.value.exit_code == TRANSFER_ERROR
