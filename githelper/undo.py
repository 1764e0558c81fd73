"""Undo the most recent commit while keeping the working tree."""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import Config
from .errors import NothingToUndoError
from .vcs.gateway import GitGateway
from .vcs.lock import repository_lock
from .vcs.utils import OperationResult, create_failure_result

logger = logging.getLogger('githelper.undo')


def undo_last_commit(
    gateway: GitGateway,
    root: Union[str, Path],
    config: Optional[Config] = None
) -> OperationResult:
    """
    Revert the most recent commit, keeping working tree and index as they are.

    A repository with a single commit has nothing to soft-reset onto, so the
    branch ref is deleted instead, leaving an unborn branch with the files
    still staged.

    Returns:
        OperationResult; on success details["message"] holds the message of
        the undone commit (None for the root commit)
    """
    config = config or gateway.config

    try:
        handle = gateway.open_repository(root)

        with repository_lock(gateway, handle, config.lock_timeout):
            count = gateway.commit_count(handle)

            if count == 0:
                raise NothingToUndoError()

            if count == 1:
                gateway.delete_head_ref(handle)
                logger.info("Removed root commit", extra={'operation': 'undo'})
                return OperationResult(
                    success=True,
                    message="Undo of last commit successful",
                    operation="undo",
                    details={"message": None, "root_commit": True}
                )

            commit_message = gateway.last_commit_message(handle)
            gateway.reset_soft(handle, "HEAD~1")

    except NothingToUndoError as e:
        logger.warning(str(e), extra={'operation': 'undo'})
        return OperationResult(
            success=False,
            message=str(e),
            operation="undo",
            error_code=e.error_code
        )
    except Exception as e:
        return create_failure_result("undo", e, logger)

    logger.info(f'Undid commit "{commit_message}"', extra={'operation': 'undo'})
    return OperationResult(
        success=True,
        message=f'Undo of last commit "{commit_message}" successful',
        operation="undo",
        details={"message": commit_message, "root_commit": False}
    )
