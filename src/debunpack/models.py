"""Immutable request models produced by the argument processor."""

from attrs import define, field


def _as_tuple(value: object) -> tuple[str, ...]:
    return tuple(value)  # type: ignore[arg-type]


@define(frozen=True, slots=True)
class RequestDefaults:
    """Values seeded from configuration before command-line flags apply."""

    rebuild: bool = False
    local_files: tuple[str, ...] = field(default=(), converter=_as_tuple)
    remote_files: tuple[str, ...] = field(default=(), converter=_as_tuple)


@define(frozen=True, slots=True)
class InvocationRequest:
    rebuild: bool = False
    local_files: tuple[str, ...] = field(default=(), converter=_as_tuple)
    remote_files: tuple[str, ...] = field(default=(), converter=_as_tuple)

    def __attrs_post_init__(self) -> None:
        if not self.local_files and not self.remote_files:
            raise ValueError("At least one local or remote package file is required.")

    @property
    def package_count(self) -> int:
        return len(self.local_files) + len(self.remote_files)
