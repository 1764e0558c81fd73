"""Error taxonomy for githelper."""

from typing import Optional


class GitHelperError(Exception):
    """Base class for all githelper errors."""

    error_code = "GITHELPER_ERROR"


class NotARepositoryError(GitHelperError):
    """Raised when a path does not contain a git working tree."""

    error_code = "NOT_A_REPOSITORY"

    def __init__(self, path):
        self.path = path
        super().__init__(f"Not a git repository: {path}")


class VcsOperationFailed(GitHelperError):
    """
    Raised when a version-control operation exits with a non-zero status.

    Attributes:
        operation: Name of the gateway operation (e.g. ``pull_rebase``)
        cause: Underlying error text, or ``"timeout"`` when a network
            operation exceeded its time limit
    """

    def __init__(self, operation: str, cause: str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")

    @property
    def error_code(self) -> str:
        return f"{self.operation.upper()}_FAILED"

    @property
    def timed_out(self) -> bool:
        return self.cause == "timeout"


class NothingToUndoError(GitHelperError):
    """Raised when undo is requested on a branch without commits."""

    error_code = "NOTHING_TO_UNDO"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No commits to undo")


class RepositoryLockError(GitHelperError):
    """Raised when the per-repository lock cannot be acquired in time."""

    error_code = "LOCK_TIMEOUT"
