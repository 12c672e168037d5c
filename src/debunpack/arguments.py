"""
Argument processing for `unpack-deb`.

The command line is scanned left to right. `-l` and `-r` are greedy: they
collect every following token until the next recognized flag or the end of
input. `-b` takes no argument. The scan fills a local parser state which is
merged with configuration defaults and validated into an immutable
`InvocationRequest`.
"""

from collections.abc import Sequence

from attrs import define, field

from .exceptions import BadArgumentError, MissingPackageSourceError
from .models import InvocationRequest, RequestDefaults

PROG_NAME = "unpack-deb"
USAGE = f"{PROG_NAME} [-l <local_deb_files>] [-r <remote_deb_files>] [-b(uild)]"

REBUILD_FLAG = "-b"
LOCAL_FLAG = "-l"
REMOTE_FLAG = "-r"
RECOGNIZED_FLAGS = frozenset({REBUILD_FLAG, LOCAL_FLAG, REMOTE_FLAG})


@define
class _ParserState:
    tokens: Sequence[str]
    position: int = 0
    rebuild: bool = False
    local_files: list[str] = field(factory=list)
    remote_files: list[str] = field(factory=list)
    local_given: bool = False
    remote_given: bool = False

    def peek(self) -> str | None:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def advance(self) -> str:
        token = self.tokens[self.position]
        self.position += 1
        return token


def is_flag(token: str) -> bool:
    """Returns True if `token` is exactly one of `-b`, `-l` or `-r`."""
    return token in RECOGNIZED_FLAGS


def _usage_error(message: str) -> BadArgumentError:
    return BadArgumentError(f"{message}  Usage:  {USAGE}")


def _consume_rebuild(state: _ParserState) -> None:
    following = state.peek()
    if following is not None and not is_flag(following):
        raise _usage_error(f"Option {REBUILD_FLAG} does not require an argument.")
    state.rebuild = True


def _consume_list(state: _ParserState, flag: str) -> list[str]:
    values = []
    while (token := state.peek()) is not None and not is_flag(token):
        values.append(state.advance())
    if not values:
        raise _usage_error(f"Option {flag} requires an argument.")
    return values


def _scan(tokens: Sequence[str]) -> _ParserState:
    state = _ParserState(tokens=tokens)
    while state.peek() is not None:
        token = state.advance()
        if token == REBUILD_FLAG:
            _consume_rebuild(state)
        elif token == LOCAL_FLAG:
            state.local_files.extend(_consume_list(state, token))
            state.local_given = True
        elif token == REMOTE_FLAG:
            state.remote_files.extend(_consume_list(state, token))
            state.remote_given = True
        else:
            raise _usage_error(f"Invalid option: {token}.")
    return state


def _merge(state: _ParserState, defaults: RequestDefaults) -> RequestDefaults:
    """Applies parsed flags over configuration defaults."""
    return RequestDefaults(
        rebuild=state.rebuild or defaults.rebuild,
        local_files=state.local_files if state.local_given else defaults.local_files,
        remote_files=(
            state.remote_files if state.remote_given else defaults.remote_files
        ),
    )


def parse_args(
    tokens: Sequence[str], defaults: RequestDefaults | None = None
) -> InvocationRequest:
    """
    Converts raw command-line tokens into a validated `InvocationRequest`.

    Raises `BadArgumentError` for an unrecognized option, a stray argument
    after `-b`, or a `-l`/`-r` occurrence with no values. Raises
    `MissingPackageSourceError` when neither the flags nor the defaults name
    any package file.
    """
    state = _scan(tokens)
    merged = _merge(state, defaults or RequestDefaults())

    if not merged.local_files and not merged.remote_files:
        raise MissingPackageSourceError("No local or remote .deb files specified!")

    return InvocationRequest(
        rebuild=merged.rebuild,
        local_files=merged.local_files,
        remote_files=merged.remote_files,
    )
