"""
Custom exceptions for the throttler package.
"""

from typing import Optional


class ThrottlerError(Exception):
    """Base exception for all throttler errors."""

    pass


class ValidationError(ThrottlerError):
    """
    Raised when a throttling configuration fails validation.

    Carries every violated rule so the caller can fix them all at once.
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        message = "Configuration has following error(s):"
        for problem in self.problems:
            message += f" {problem};"
        super().__init__(message)


class BackendError(ThrottlerError):
    """Raised when the underlying OS tool reports a failure."""

    pass


class CommandFailedError(BackendError):
    """
    Raised when a tc/pfctl/dnctl command fails to execute.

    This may indicate insufficient permissions, invalid parameters,
    or missing kernel modules.
    """

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed (exit {returncode}): {command}"
        if stderr:
            message += f"\nStderr: {stderr}"
        super().__init__(message)


class UnsupportedPlatformError(ThrottlerError):
    """Raised when no throttling backend exists for the host OS."""

    def __init__(self, platform_name: Optional[str]):
        self.platform_name = platform_name
        super().__init__(f"OS is not supported: {platform_name or 'unknown'}")


class PersistenceCorruptionError(ThrottlerError):
    """
    Raised when the persisted status record cannot be read.

    The controller recovers from this by discarding the record.
    """

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Failed to read throttler status from: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidOperationError(ThrottlerError):
    """Raised when an operation does not apply to the current state."""

    pass


class SettingsLoadError(ThrottlerError):
    """
    Raised when the settings file cannot be loaded.

    Check that the file exists, is valid YAML, and has the expected structure.
    """

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Failed to load settings from: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
