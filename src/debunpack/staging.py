"""Stages local and remote .deb files into the build directory."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
import os
from pathlib import Path, PurePosixPath
import shutil
import urllib.error
import urllib.parse
import urllib.request

from pyvider.telemetry import logger

from .exceptions import (
    BadArgumentError,
    MissingDirectoryError,
    MissingPackageFileError,
    TransferError,
)
from .models import InvocationRequest

DEB_GLOB = "*.deb"
INVALID_REMOTE_NAMES = frozenset({"", ".", ".."})


def _change_dir(path: Path) -> None:
    try:
        os.chdir(path)
    except OSError as e:
        raise MissingDirectoryError(f"Could not change to {path} dir.") from e


@contextmanager
def entered(directory: Path, return_to: Path) -> Iterator[Path]:
    """
    Changes into `directory` for the duration of the block, then into
    `return_to`. The process working directory is shared state, so callers
    must not stage concurrently.
    """
    _change_dir(directory)
    try:
        yield directory
    except BaseException:
        try:
            _change_dir(return_to)
        except MissingDirectoryError as restore_error:
            logger.debug(f"{restore_error} Keeping the original error.")
        raise
    _change_dir(return_to)


def clear_stale_packages(
    build_dir: Path, keep: Iterable[Path] = ()
) -> list[Path]:
    """
    Removes .deb files left in the build directory by a previous run. Paths
    in `keep` are requested sources and survive.
    """
    kept = {path.resolve() for path in keep}
    removed = []
    for stale in sorted(build_dir.glob(DEB_GLOB)):
        if stale.resolve() in kept:
            continue
        if stale.is_dir():
            shutil.rmtree(stale)
        else:
            stale.unlink()
        removed.append(stale)
    if removed:
        logger.debug(f"Removed {len(removed)} stale package file(s) from {build_dir}")
    return removed


def find_local_file(deb_file: str) -> Path:
    source = Path(deb_file)
    if not source.is_file():
        raise MissingPackageFileError(f"Deb file *{deb_file}* not found.")
    return source


def copy_local_file(deb_file: str, build_dir: Path) -> Path:
    source = find_local_file(deb_file)
    destination = build_dir / source.name
    if destination.exists() and destination.resolve() == source.resolve():
        logger.debug(f"{source} is already in {build_dir}")
        return destination
    logger.info(f"Copying {source} to {build_dir}")
    shutil.copyfile(source, destination)
    return destination


def remote_file_name(url: str) -> str:
    """Returns the file name a download of `url` is saved under, as `curl -O` does."""
    return PurePosixPath(urllib.parse.urlsplit(url).path).name


def download_remote_file(url: str, build_dir: Path) -> Path:
    """
    Downloads `url` into `build_dir`, failing on any HTTP error status or
    transfer problem. A partially written file is removed.
    """
    name = remote_file_name(url)
    if name in INVALID_REMOTE_NAMES:
        raise TransferError(
            f"Could not retrieve deb file from *{url}*! The URL has no file name."
        )
    destination = build_dir / name
    logger.info(f"Downloading {url}")
    try:
        with urllib.request.urlopen(url) as resp, destination.open("wb") as out:
            shutil.copyfileobj(resp, out)
    except (urllib.error.URLError, ValueError, OSError) as e:
        if destination.is_file():
            destination.unlink()
        raise TransferError(f"Could not retrieve deb file from *{url}*! {e}") from e
    logger.info(f"Downloaded to {destination}")
    return destination


def _check_unique_names(sources: list[Path], remote_files: Iterable[str]) -> None:
    """Rejects two packages that would land on the same build directory file."""
    origins = [(str(source), source.name) for source in sources]
    origins += [(url, remote_file_name(url)) for url in remote_files]

    seen: dict[str, str] = {}
    for origin, name in origins:
        if name in INVALID_REMOTE_NAMES:
            continue
        if name in seen:
            raise BadArgumentError(
                f"Deb files *{seen[name]}* and *{origin}* would both be staged as {name}."
            )
        seen[name] = origin


def stage_package_files(
    request: InvocationRequest, build_dir: Path, working_dir: Path
) -> list[Path]:
    """
    Copies local files and downloads remote files into `build_dir`, in
    command-line order. Returns the staged paths.
    """
    if not build_dir.is_dir():
        raise MissingDirectoryError(f"Could not change to {build_dir} dir.")

    logger.info(
        "Staging package files",
        build_dir=str(build_dir),
        local=len(request.local_files),
        remote=len(request.remote_files),
    )
    sources = [find_local_file(deb_file) for deb_file in request.local_files]
    _check_unique_names(sources, request.remote_files)
    clear_stale_packages(build_dir, keep=sources)

    staged = [copy_local_file(str(source), build_dir) for source in sources]

    with entered(build_dir, return_to=working_dir) as current:
        for url in request.remote_files:
            staged.append(download_remote_file(url, current))

    return staged
