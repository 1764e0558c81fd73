"""Git command gateway using GitPython."""

import logging
import os
import stat
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple, Union

from git import Git, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from ..config import Config
from ..errors import NotARepositoryError, VcsOperationFailed
from ..platform import normalize_path
from .classifier import FileClassifier


@dataclass(frozen=True)
class RepositoryHandle:
    """A working-tree root that has been validated as a git repository."""
    root: Path

    def __str__(self) -> str:
        return str(self.root)


class GitGateway:
    """
    Capability set over git used by every githelper routine.

    Each operation takes an explicit RepositoryHandle and runs git with the
    handle's root as working directory; the process working directory is
    never changed. Mutating operations raise VcsOperationFailed when git
    exits with a non-zero status.
    """

    def __init__(self, config: Optional[Config] = None, classifier: Optional[FileClassifier] = None):
        """
        Initialize the gateway.

        Args:
            config: Configuration providing the network timeout
            classifier: Content-type classifier used by content_type()
        """
        self.config = config or Config()
        self.classifier = classifier or FileClassifier()
        self.logger = logging.getLogger('githelper.vcs')

    # Repository detection

    def is_repository(self, path: Union[str, Path]) -> bool:
        """Return True if ``path`` is inside a git working tree. Never raises."""
        try:
            path = normalize_path(path)
            if not path.is_dir():
                return False
            return Git(str(path)).rev_parse("--is-inside-work-tree") == "true"
        except Exception as e:
            self.logger.debug(f"Repository detection failed for {path}: {e}")
            return False

    def open_repository(self, path: Union[str, Path]) -> RepositoryHandle:
        """
        Validate ``path`` and return a handle for it.

        Raises:
            NotARepositoryError: if ``path`` is not inside a git working tree
        """
        if not self.is_repository(path):
            raise NotARepositoryError(path)
        return RepositoryHandle(root=normalize_path(path))

    # Queries

    def config_value(self, key: str) -> Optional[str]:
        """Return the effective value of a git configuration key, or None if unset."""
        try:
            value = Git().config("--get", key)
        except GitCommandError:
            return None
        return value or None

    def remotes(self, handle: RepositoryHandle) -> Set[str]:
        """Return the names of the configured remotes."""
        try:
            repo = Repo(handle.root, search_parent_directories=True)
            return {remote.name for remote in repo.remotes}
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise VcsOperationFailed("remotes", str(e))

    def commit_count(self, handle: RepositoryHandle) -> int:
        """Return the number of commits reachable from HEAD (0 on an unborn branch)."""
        git = self._git(handle)
        try:
            git.rev_parse("--verify", "-q", "HEAD")
        except GitCommandError:
            return 0
        return int(self._run(handle, "commit_count", "rev_list", "--count", "HEAD"))

    def current_branch(self, handle: RepositoryHandle) -> str:
        """Return the checked-out branch name. Detached HEAD is an error."""
        return self._run(handle, "current_branch", "symbolic_ref", "--short", "HEAD")

    def status(self, handle: RepositoryHandle) -> str:
        """Return porcelain status text; empty iff the working tree is clean."""
        return self._run(handle, "status", "status", "--porcelain")

    def last_commit_message(self, handle: RepositoryHandle) -> str:
        """Return the full message of the HEAD commit."""
        return self._run(handle, "last_commit_message", "log", "-1", "--pretty=%B").strip()

    def git_dir(self, handle: RepositoryHandle) -> Path:
        """Return the absolute path of the repository's git directory."""
        return Path(self._run(handle, "git_dir", "rev_parse", "--absolute-git-dir"))

    def log_entries(self, handle: RepositoryHandle) -> List[Tuple[str, str, str]]:
        """Return (subject, author, short date) for each commit, newest first."""
        if self.commit_count(handle) == 0:
            return []
        output = self._run(handle, "log", "log", "--pretty=format:%s%x1f%an%x1f%ad", "--date=short")
        entries = []
        for line in output.splitlines():
            subject, author, date = line.split("\x1f", 2)
            entries.append((subject, author, date))
        return entries

    def contributor_count(self, handle: RepositoryHandle) -> int:
        """Return the number of distinct commit authors reachable from HEAD."""
        if self.commit_count(handle) == 0:
            return 0
        output = self._run(handle, "contributor_count", "shortlog", "-s", "-n", "HEAD")
        return len([line for line in output.splitlines() if line.strip()])

    def content_type(self, path: Union[str, Path]) -> Optional[str]:
        """Return the content-based MIME type of ``path``."""
        return self.classifier.classify(path)

    # Mutations

    def stage_path(self, handle: RepositoryHandle, rel_path: str) -> None:
        self._run(handle, "stage_path", "add", "--", rel_path)

    def commit(self, handle: RepositoryHandle, message: str, paths: Sequence[str] = ()) -> None:
        """Commit the index, or only ``paths`` when given."""
        if paths:
            self._run(handle, "commit", "commit", "-m", message, "--", *paths)
        else:
            self._run(handle, "commit", "commit", "-m", message)

    def stash(self, handle: RepositoryHandle) -> bool:
        """
        Stash local changes, untracked files included.

        Returns:
            True if a new stash entry was created. ``git stash push`` exits 0
            without saving anything for changes it cannot stash, such as a
            moved submodule, so the stash ref is compared before and after.
        """
        before = self._stash_ref(handle)
        self._run(handle, "stash", "stash", "push", "--include-untracked")
        return self._stash_ref(handle) != before

    def stash_pop(self, handle: RepositoryHandle) -> None:
        self._run(handle, "stash_pop", "stash", "pop")

    def reset_soft(self, handle: RepositoryHandle, target: str = "HEAD~1") -> None:
        self._run(handle, "reset_soft", "reset", "--soft", target)

    def delete_head_ref(self, handle: RepositoryHandle) -> None:
        """Delete the branch HEAD points to; used to undo a root commit."""
        self._run(handle, "delete_head_ref", "update_ref", "-d", "HEAD")

    def pull_rebase(self, handle: RepositoryHandle, remote: str, branch: str) -> None:
        self._run_network(handle, "pull_rebase", "pull", "--rebase", remote, branch)

    def push(self, handle: RepositoryHandle, remote: str, branch: str) -> None:
        self._run_network(handle, "push", "push", remote, branch)

    def push_tags(self, handle: RepositoryHandle, remote: str) -> None:
        self._run_network(handle, "push_tags", "push", remote, "--tags")

    def set_executable(self, path: Union[str, Path]) -> None:
        """Grant the file owner execute permission."""
        try:
            mode = os.stat(path).st_mode
            os.chmod(path, mode | stat.S_IXUSR)
        except OSError as e:
            raise VcsOperationFailed("set_executable", str(e))

    # Internals

    def _git(self, handle: RepositoryHandle) -> Git:
        return Git(str(handle.root))

    def _stash_ref(self, handle: RepositoryHandle) -> Optional[str]:
        try:
            return self._git(handle).rev_parse("-q", "--verify", "refs/stash")
        except GitCommandError:
            return None

    def _run(self, handle: RepositoryHandle, operation: str, command: str, *args, **kwargs) -> str:
        """Run ``git <command> <args>`` in the handle's root."""
        self.logger.debug(f"git {command.replace('_', '-')} {' '.join(args)}", extra={'operation': operation})
        try:
            return getattr(self._git(handle), command)(*args, **kwargs)
        except GitCommandError as e:
            cause = _error_text(e)
            raise VcsOperationFailed(operation, cause) from e

    def _run_network(self, handle: RepositoryHandle, operation: str, command: str, *args) -> str:
        """Run a network operation bounded by the configured timeout."""
        timeout = self.config.network_timeout
        start_time = time.time()
        try:
            return self._run(handle, operation, command, *args, kill_after_timeout=timeout)
        except VcsOperationFailed as e:
            if "Timeout:" in e.cause or time.time() - start_time >= timeout:
                self.logger.error(f"{operation} did not complete within {timeout}s")
                raise VcsOperationFailed(operation, "timeout") from e
            raise


def _error_text(error: GitCommandError) -> str:
    """git's own error output, without GitPython's ``stderr: '...'`` wrapper."""
    text = (error.stderr or "").strip()
    prefix = "stderr: '"
    if text.startswith(prefix) and text.endswith("'"):
        text = text[len(prefix):-1].strip()
    return text or str(error)
