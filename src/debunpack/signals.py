"""
Signal handling for a running `unpack-deb` invocation.

Every trapped signal is logged. `INT` and `QUIT` are then re-delivered with
their default disposition so the usual termination and core dump behaviour
applies; the others end the run with the interrupted exit code.
"""

import atexit
from collections.abc import Callable
import enum
import os
import signal
from types import FrameType

from pyvider.telemetry import logger

from .exceptions import ScriptInterruptedError


class SignalAction(enum.Enum):
    EXIT = "exit"
    RERAISE = "reraise"


DISPATCH: dict[signal.Signals, SignalAction] = {
    signal.SIGHUP: SignalAction.EXIT,
    signal.SIGINT: SignalAction.RERAISE,
    signal.SIGQUIT: SignalAction.RERAISE,
    signal.SIGABRT: SignalAction.EXIT,
    signal.SIGTERM: SignalAction.EXIT,
}


def signal_label(signum: int) -> str:
    """`SIGTERM` -> `TERM`."""
    return signal.Signals(signum).name.removeprefix("SIG")


def _reraise(signum: int) -> None:
    signal.signal(signum, signal.SIG_DFL)
    os.kill(os.getpid(), signum)


def handle_signal(signum: int, frame: FrameType | None) -> None:
    label = signal_label(signum)
    logger.warning(f"Script interrupted by '{label}' signal")

    if DISPATCH[signal.Signals(signum)] is SignalAction.RERAISE:
        _reraise(signum)
    else:
        raise ScriptInterruptedError(f"Script interrupted by '{label}' signal")


def _on_exit() -> None:
    logger.debug("unpack-deb exiting")


def install_signal_handlers(
    handler: Callable[[int, FrameType | None], None] = handle_signal,
) -> None:
    for signum in DISPATCH:
        signal.signal(signum, handler)
    atexit.unregister(_on_exit)
    atexit.register(_on_exit)
