"""Stash-protected synchronization of the current branch with its remote."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import Config
from .errors import VcsOperationFailed
from .vcs.gateway import GitGateway, RepositoryHandle
from .vcs.lock import repository_lock
from .vcs.utils import OperationResult, create_failure_result

logger = logging.getLogger('githelper.sync')


@dataclass
class SyncState:
    """Per-run state of one sync invocation."""
    had_local_changes: bool
    stash_created: bool = False
    stash_restored: Optional[bool] = None


@contextmanager
def stash_guard(gateway: GitGateway, handle: RepositoryHandle, state: SyncState):
    """
    Stash local changes for the duration of the block and restore them after.

    Once this run has created a stash entry, exactly one pop is attempted on
    every exit path. A dirty tree that git leaves unstashed (a moved
    submodule, for instance) creates no entry, and then nothing is popped so
    that an older stash stays where it is. When the block failed, a failing
    pop is logged and the block's error is the one that propagates; when the
    block succeeded, a failing pop raises.
    """
    if not state.had_local_changes:
        yield state
        return

    state.stash_created = gateway.stash(handle)
    if not state.stash_created:
        logger.warning("Local changes could not be stashed, syncing without a stash", extra={'operation': 'sync'})
        yield state
        return
    logger.info("Stashed local changes", extra={'operation': 'sync'})

    try:
        yield state
    except BaseException:
        try:
            gateway.stash_pop(handle)
            state.stash_restored = True
            logger.info("Restored stashed changes after failed sync", extra={'operation': 'sync'})
        except VcsOperationFailed as pop_error:
            state.stash_restored = False
            logger.error(
                f"Could not restore stashed changes, they remain in the stash: {pop_error.cause}",
                extra={'operation': 'sync'}
            )
        raise

    try:
        gateway.stash_pop(handle)
    except VcsOperationFailed:
        state.stash_restored = False
        raise
    state.stash_restored = True
    logger.info("Restored stashed changes", extra={'operation': 'sync'})


def sync(
    gateway: GitGateway,
    root: Union[str, Path],
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    config: Optional[Config] = None
) -> OperationResult:
    """
    Synchronize the checked-out branch with its remote counterpart.

    Sequence: stash (if the tree is dirty), pull --rebase, push the branch,
    push tags, pop the stash. A failing step aborts the remaining ones without
    retry, but stashed work is always restored once it was stashed.

    Args:
        gateway: VCS gateway
        root: Repository working tree
        remote: Remote name (defaults to the configured remote)
        branch: Branch to sync (defaults to the checked-out branch)
        config: Configuration (defaults to the gateway's)

    Returns:
        OperationResult; details carry had_local_changes, stash_created and
        stash_restored
    """
    config = config or gateway.config
    remote = remote or config.remote
    state: Optional[SyncState] = None

    try:
        handle = gateway.open_repository(root)
        branch = branch or gateway.current_branch(handle)
        logger.info(f"Starting sync of '{branch}' with '{remote}'", extra={'operation': 'sync'})

        with repository_lock(gateway, handle, config.lock_timeout):
            state = SyncState(had_local_changes=bool(gateway.status(handle)))

            with stash_guard(gateway, handle, state):
                gateway.pull_rebase(handle, remote, branch)
                gateway.push(handle, remote, branch)
                gateway.push_tags(handle, remote)

    except Exception as e:
        return create_failure_result(
            "sync", e, logger,
            branch_used=branch,
            remote=remote,
            had_local_changes=state.had_local_changes if state else None,
            stash_created=state.stash_created if state else None,
            stash_restored=state.stash_restored if state else None
        )

    logger.info(f"Sync of '{branch}' with '{remote}' completed", extra={'operation': 'sync'})
    return OperationResult(
        success=True,
        message=f"Branch '{branch}' synchronized with '{remote}'",
        operation="sync",
        branch_used=branch,
        details={
            "remote": remote,
            "had_local_changes": state.had_local_changes,
            "stash_created": state.stash_created,
            "stash_restored": state.stash_restored
        }
    )
