"""
Layered configuration for `unpack-deb`.

Values are resolved lowest to highest from built-in defaults, the
`[tool.debunpack]` table of `pyproject.toml` in the working directory, and
environment variables. Command-line flags are applied last by
`debunpack.arguments.parse_args`.
"""

from collections.abc import Mapping
import os
from pathlib import Path
import shlex
import tomllib
from typing import Any

from attrs import define, field
from pyvider.telemetry import logger

from .exceptions import ConfigError
from .models import RequestDefaults

DEFAULT_COMPOSE_COMMAND = ("docker-compose",)
DEFAULT_CONTAINER_NAME = "deb-test"
DEFAULT_BASE_IMAGE = "ubuntu:22.04"
COMPOSE_FILE_NAME = "docker-compose.yml"
MANIFEST_NAME = "pyproject.toml"
TRUTHY = frozenset({"1", "true", "yes", "on"})

ENV_BUILD_DIR = "BUILD_DIR"
ENV_WORKING_DIR = "WORKING_DIR"
ENV_LOCAL_DEB_FILES = "LOCAL_DEB_FILES"
ENV_REMOTE_DEB_FILES = "REMOTE_DEB_FILES"
ENV_REBUILD = "DEBUNPACK_REBUILD"
ENV_COMPOSE_COMMAND = "DEBUNPACK_COMPOSE_COMMAND"
ENV_COMPOSE_FILE = "DEBUNPACK_COMPOSE_FILE"
ENV_CONTAINER_NAME = "DEBUNPACK_CONTAINER_NAME"
ENV_BASE_IMAGE = "DEBUNPACK_BASE_IMAGE"


@define(frozen=True)
class DebUnpackConfig:
    working_dir: Path
    build_dir: Path
    compose_command: tuple[str, ...] = DEFAULT_COMPOSE_COMMAND
    compose_file: Path | None = None
    container_name: str = DEFAULT_CONTAINER_NAME
    base_image: str = DEFAULT_BASE_IMAGE
    defaults: RequestDefaults = field(factory=RequestDefaults)

    def resolved_compose_file(self) -> Path:
        """The configured compose file, or the conventional one in the working dir."""
        return self.compose_file or self.working_dir / COMPOSE_FILE_NAME


def _split_files(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigError(f"'{key}' must be a string or a list of strings.")


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    raise ConfigError(f"'{key}' must be a boolean.")


def _as_command(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        command = tuple(shlex.split(value))
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        command = tuple(value)
    else:
        raise ConfigError(f"'{key}' must be a string or a list of strings.")
    if not command:
        raise ConfigError(f"'{key}' must not be empty.")
    return command


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{key}' must be a non-empty string.")
    return value


def _read_manifest(working_dir: Path) -> dict[str, Any]:
    manifest_path = working_dir / MANIFEST_NAME
    if not manifest_path.is_file():
        return {}
    try:
        with manifest_path.open("rb") as f:
            pyproject_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse {manifest_path}: {e}") from e

    table = pyproject_data.get("tool", {}).get("debunpack", {})
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.debunpack] in {manifest_path} must be a table.")
    if table:
        logger.debug(f"Loaded [tool.debunpack] from {manifest_path}")
    return table


def _layer(manifest: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlays environment variables on the manifest table."""
    env_keys = {
        ENV_BUILD_DIR: "build_dir",
        ENV_LOCAL_DEB_FILES: "local_deb_files",
        ENV_REMOTE_DEB_FILES: "remote_deb_files",
        ENV_REBUILD: "rebuild",
        ENV_COMPOSE_COMMAND: "compose_command",
        ENV_COMPOSE_FILE: "compose_file",
        ENV_CONTAINER_NAME: "container_name",
        ENV_BASE_IMAGE: "base_image",
    }
    merged = dict(manifest)
    for env_name, key in env_keys.items():
        value = environ.get(env_name)
        if value:
            merged[key] = value
    return merged


def load_config(
    environ: Mapping[str, str] | None = None, cwd: Path | None = None
) -> DebUnpackConfig:
    """Builds the effective configuration for one invocation."""
    env = os.environ if environ is None else environ
    working_dir = Path(env.get(ENV_WORKING_DIR) or cwd or Path.cwd()).resolve()

    settings = _layer(_read_manifest(working_dir), env)

    def _path(key: str) -> Path | None:
        if key not in settings:
            return None
        return working_dir / _as_str(settings[key], key)

    defaults = RequestDefaults(
        rebuild=_as_bool(settings.get("rebuild", False), "rebuild"),
        local_files=_split_files(settings.get("local_deb_files", []), "local_deb_files"),
        remote_files=_split_files(
            settings.get("remote_deb_files", []), "remote_deb_files"
        ),
    )

    config = DebUnpackConfig(
        working_dir=working_dir,
        build_dir=_path("build_dir") or working_dir,
        compose_command=_as_command(
            settings.get("compose_command", list(DEFAULT_COMPOSE_COMMAND)),
            "compose_command",
        ),
        compose_file=_path("compose_file"),
        container_name=_as_str(
            settings.get("container_name", DEFAULT_CONTAINER_NAME), "container_name"
        ),
        base_image=_as_str(settings.get("base_image", DEFAULT_BASE_IMAGE), "base_image"),
        defaults=defaults,
    )
    logger.debug(
        "Configuration resolved",
        working_dir=str(config.working_dir),
        build_dir=str(config.build_dir),
    )
    return config
