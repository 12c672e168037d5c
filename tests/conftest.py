"""Pytest fixtures for the deb-unpack-tester test suite."""

from collections.abc import Callable
from pathlib import Path

import pytest
from pytest import MonkeyPatch

from debunpack import config as config_module

_ENV_VARS = (
    config_module.ENV_BUILD_DIR,
    config_module.ENV_WORKING_DIR,
    config_module.ENV_LOCAL_DEB_FILES,
    config_module.ENV_REMOTE_DEB_FILES,
    config_module.ENV_REBUILD,
    config_module.ENV_COMPOSE_COMMAND,
    config_module.ENV_COMPOSE_FILE,
    config_module.ENV_CONTAINER_NAME,
    config_module.ENV_BASE_IMAGE,
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: MonkeyPatch, tmp_path: Path) -> Path:
    """
    Removes every variable the tool reads from the environment and runs the
    test from a scratch directory, so a developer's shell cannot leak in.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture
def make_deb(tmp_path: Path) -> Callable[..., Path]:
    """A factory fixture that writes a fake .deb file."""

    def _make(name: str, content: bytes = b"!<arch>\ndebian-binary", where: Path | None = None) -> Path:
        directory = where or tmp_path / "debs"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(content)
        return path

    return _make
