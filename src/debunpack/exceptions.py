BAD_ARGUMENT_ERROR = 90
MISSING_DEB_ERROR = 91
MISSING_DIR_ERROR = 92
TRANSFER_ERROR = 93
SCRIPT_INTERRUPTED = 99


class DebUnpackError(Exception):
    exit_code: int = 1


class BadArgumentError(DebUnpackError):
    exit_code = BAD_ARGUMENT_ERROR


class ConfigError(BadArgumentError):
    pass


class MissingPackageSourceError(DebUnpackError):
    exit_code = MISSING_DEB_ERROR


class MissingPackageFileError(MissingPackageSourceError):
    pass


class MissingDirectoryError(DebUnpackError):
    exit_code = MISSING_DIR_ERROR


class TransferError(DebUnpackError):
    exit_code = TRANSFER_ERROR


class ScriptInterruptedError(DebUnpackError):
    exit_code = SCRIPT_INTERRUPTED


class OrchestrationError(DebUnpackError):
    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code
