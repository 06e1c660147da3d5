"""
Custom exceptions for wachturm.

Every fatal stage of a run raises a subclass of WachturmError; only the
entry point decides how the process exits.
"""


class WachturmError(Exception):
    """Base exception for all wachturm errors."""
    pass


class ConfigError(WachturmError):
    """Raised when required configuration is missing or invalid."""
    pass


class ExecFailure(WachturmError):
    """Raised when a package manager command cannot run or exits non-zero."""

    def __init__(self, command, message: str = ""):
        self.command = list(command)
        detail = f": {message}" if message else ""
        super().__init__(f"command '{' '.join(self.command)}' failed{detail}")


class OracleFailure(WachturmError):
    """Raised when the risk oracle call fails or returns an unusable payload."""
    pass


class StorageFailure(WachturmError):
    """Raised when a snapshot or summary cannot be written or read."""
    pass


class ApplyFailure(WachturmError):
    """Raised when the batch upgrade reports an error."""
    pass


class NotificationError(WachturmError):
    """Raised when a notification cannot be delivered."""
    pass
