"""
Repository policy rules.

The rule set is declarative: RULES is an ordered tuple of Rule descriptors
and the engine only iterates it. Each check receives the shared
EvaluationContext and yields findings. Later rules observe the tree as left
by earlier ones (remediation commits happen while rules run).
"""

import fnmatch
import logging
import os
import stat
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from ..config import Config
from ..errors import VcsOperationFailed
from ..vcs.gateway import GitGateway, RepositoryHandle
from .decisions import DecisionSource
from .findings import Finding, FindingKind, RemediationDecision, RemediationStatus, Severity


@dataclass
class EvaluationContext:
    """State shared by the rules of one evaluation run."""
    gateway: GitGateway
    config: Config
    decide: DecisionSource
    root: Path
    handle: Optional[RepositoryHandle] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger('githelper.policy'))


@dataclass(frozen=True)
class Rule:
    """An ordered policy rule."""
    name: str
    check: Callable[[EvaluationContext], Iterator[Finding]]
    requires_repository: bool = True


def iter_regular_files(root: Path, pattern: Optional[str] = None) -> Iterator[Tuple[Path, str]]:
    """
    Yield (absolute path, root-relative POSIX path) for regular files under ``root``.

    Symbolic links, directories and the ``.git`` directory are skipped.
    Output is sorted so evaluation order is reproducible.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != ".git")
        for filename in sorted(filenames):
            if pattern and not fnmatch.fnmatch(filename, pattern):
                continue
            path = Path(dirpath) / filename
            if path.is_symlink() or not path.is_file():
                continue
            yield path, path.relative_to(root).as_posix()


def check_identity_settings(ctx: EvaluationContext) -> Iterator[Finding]:
    for key in ctx.config.identity_keys:
        if ctx.gateway.config_value(key) is None:
            yield Finding(
                kind=FindingKind.UNCONFIGURED_IDENTITY_SETTING,
                severity=Severity.ADVISORY,
                message=f'Git {key} not set. Set it using: git config --global {key} "value"',
                context={"key": key}
            )


def check_repository(ctx: EvaluationContext) -> Iterator[Finding]:
    if not ctx.gateway.is_repository(ctx.root):
        yield Finding(
            kind=FindingKind.NOT_A_REPOSITORY,
            severity=Severity.FATAL,
            message=f"Not a git repository: {ctx.root}",
            path=str(ctx.root)
        )
        return
    ctx.handle = ctx.gateway.open_repository(ctx.root)


def check_remote(ctx: EvaluationContext) -> Iterator[Finding]:
    if not ctx.gateway.remotes(ctx.handle):
        yield Finding(
            kind=FindingKind.NO_REMOTE_CONFIGURED,
            severity=Severity.ADVISORY,
            message="Repository has no remote configured"
        )


def check_required_files(ctx: EvaluationContext) -> Iterator[Finding]:
    for name in ctx.config.required_files:
        if not (ctx.root / name).is_file():
            yield Finding(
                kind=FindingKind.MISSING_REQUIRED_FILE,
                severity=Severity.ADVISORY,
                message=f"Missing {name}",
                path=name
            )


def check_executable_scripts(ctx: EvaluationContext) -> Iterator[Finding]:
    for path, rel_path in iter_regular_files(ctx.root, ctx.config.script_pattern):
        if path.stat().st_mode & stat.S_IXUSR:
            continue

        finding = Finding(
            kind=FindingKind.NON_EXECUTABLE_SCRIPT,
            severity=Severity.ADVISORY,
            message=f"Script {rel_path} is not executable",
            path=rel_path
        )

        if ctx.decide(finding) is not RemediationDecision.APPLY:
            ctx.logger.debug(f"Remediation skipped for {rel_path}", extra={'operation': 'remediate'})
            yield replace(finding, remediation=RemediationStatus.SKIPPED)
            continue

        yield from _remediate_script(ctx, finding, path, rel_path)


def _remediate_script(ctx: EvaluationContext, finding: Finding, path: Path, rel_path: str) -> List[Finding]:
    """Set the execute bit on one script and commit exactly that file."""
    message = ctx.config.remediation_commit_message

    try:
        ctx.gateway.set_executable(path)
    except VcsOperationFailed as e:
        ctx.logger.error(f"Could not grant execute permission to {rel_path}: {e.cause}",
                         extra={'operation': 'remediate'})
        return [replace(finding, remediation=RemediationStatus.FAILED, context={"error": e.cause})]

    try:
        ctx.gateway.stage_path(ctx.handle, rel_path)
        ctx.gateway.commit(ctx.handle, message, paths=[rel_path])
    except VcsOperationFailed as e:
        # The execute bit stays: it is correct locally even though it is not committed
        ctx.logger.warning(f"Execute permission granted to {rel_path} but {e.operation} failed: {e.cause}",
                           extra={'operation': 'remediate'})
        return [
            replace(finding, remediation=RemediationStatus.FAILED,
                    context={"operation": e.operation, "error": e.cause}),
            Finding(
                kind=FindingKind.UNCOMMITTED_REMEDIATION,
                severity=Severity.ERROR,
                message=f"Execute permission granted to {rel_path} but not committed ({e.operation} failed)",
                path=rel_path,
                context={"operation": e.operation, "error": e.cause}
            )
        ]

    try:
        branch = ctx.gateway.current_branch(ctx.handle)
    except VcsOperationFailed:
        branch = ""

    ctx.logger.info(f"Committed execute permission for {rel_path} to branch '{branch}'",
                    extra={'operation': 'remediate'})
    return [replace(finding, remediation=RemediationStatus.APPLIED,
                    context={"branch": branch, "commit_message": message})]


def check_disallowed_file_types(ctx: EvaluationContext) -> Iterator[Finding]:
    disallowed = set(ctx.config.disallowed_types)
    for path, rel_path in iter_regular_files(ctx.root):
        mime_type = ctx.gateway.content_type(path)
        if mime_type in disallowed:
            yield Finding(
                kind=FindingKind.DISALLOWED_FILE_TYPE,
                severity=Severity.ADVISORY,
                message=f"Found unsupported file type ({mime_type}): {rel_path}",
                path=rel_path,
                context={"mime_type": mime_type}
            )


RULES: Tuple[Rule, ...] = (
    Rule("identity_settings", check_identity_settings, requires_repository=False),
    Rule("repository", check_repository, requires_repository=False),
    Rule("remote", check_remote),
    Rule("required_files", check_required_files),
    Rule("executable_scripts", check_executable_scripts),
    Rule("disallowed_file_types", check_disallowed_file_types),
)

IDENTITY_RULES: Tuple[Rule, ...] = RULES[:1]
