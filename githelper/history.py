"""Commit history overview and repository statistics."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from .vcs.gateway import GitGateway

logger = logging.getLogger('githelper.history')


@dataclass(frozen=True)
class LogEntry:
    """One line of the brief history overview."""
    subject: str
    author: str
    date: str

    def __str__(self) -> str:
        return f"{self.subject} | {self.author} | {self.date}"


@dataclass(frozen=True)
class RepositoryStats:
    commits: int
    contributors: int

    def __str__(self) -> str:
        return f"{self.commits} commits by {self.contributors} contributors"


def show_history(gateway: GitGateway, root: Union[str, Path]) -> List[LogEntry]:
    """
    Return the commit history of ``root``, newest first.

    Raises:
        NotARepositoryError: if ``root`` is not a git working tree
        VcsOperationFailed: if git log fails
    """
    handle = gateway.open_repository(root)
    entries = [LogEntry(*entry) for entry in gateway.log_entries(handle)]
    logger.debug(f"Read {len(entries)} log entries from {handle}")
    return entries


def repository_stats(gateway: GitGateway, root: Union[str, Path]) -> RepositoryStats:
    """Count commits and distinct contributors reachable from HEAD."""
    handle = gateway.open_repository(root)
    return RepositoryStats(
        commits=gateway.commit_count(handle),
        contributors=gateway.contributor_count(handle)
    )
