"""
Stages Debian package files and hands them to docker-compose, which builds an
image installing them and starts a detached container for manual inspection.
"""

from .arguments import parse_args
from .exceptions import (
    BadArgumentError,
    DebUnpackError,
    MissingDirectoryError,
    MissingPackageSourceError,
    ScriptInterruptedError,
    TransferError,
)
from .models import InvocationRequest, RequestDefaults

__all__ = [
    "BadArgumentError",
    "DebUnpackError",
    "InvocationRequest",
    "MissingDirectoryError",
    "MissingPackageSourceError",
    "RequestDefaults",
    "ScriptInterruptedError",
    "TransferError",
    "parse_args",
]
