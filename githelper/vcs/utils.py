"""Result types shared by the routines built on the VCS gateway."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..errors import GitHelperError


@dataclass
class OperationResult:
    """Result of a sync or undo operation."""
    success: bool
    message: str
    operation: str
    error_code: Optional[str] = None
    branch_used: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


def create_failure_result(
    operation: str,
    error: Exception,
    logger: logging.Logger,
    branch_used: Optional[str] = None,
    **details: Any
) -> OperationResult:
    """
    Convert an exception raised inside a routine into a failed result.

    Known githelper errors keep their own error code; anything else is
    logged with a traceback and reported as ``<OPERATION>_UNEXPECTED_ERROR``.

    Args:
        operation: Name of the routine that failed
        error: The exception that aborted it
        logger: Logger of the calling routine
        branch_used: Branch the routine was working on, if known
        **details: Extra context stored on the result

    Returns:
        OperationResult with success=False
    """
    if isinstance(error, GitHelperError):
        error_code = error.error_code
        message = str(error)
        logger.error(f"{operation} failed: {message}", extra={'operation': operation})
    else:
        error_code = f"{operation.upper()}_UNEXPECTED_ERROR"
        message = f"Unexpected error during {operation}: {error}"
        logger.error(message, exc_info=True, extra={'operation': operation})

    return OperationResult(
        success=False,
        message=message,
        operation=operation,
        error_code=error_code,
        branch_used=branch_used,
        details=dict(details)
    )
