"""Command line interface for githelper."""

import logging
import sys
from typing import List, Optional

import click

from .config import Config, load_configuration
from .errors import GitHelperError
from .history import repository_stats, show_history
from .platform import validate_git_availability
from .policy import (
    Finding, FindingKind, PolicyEngine, RemediationStatus, Severity,
    always_apply, always_skip, prompt_decision
)
from .sync import sync as sync_branch
from .undo import undo_last_commit
from .vcs import GitGateway, OperationResult

USAGE = """Usage: githelper COMMAND [ARGUMENTS]...

check
    check basic git user configuration
check DIR
    check basic git user configuration and check DIR for
    deviations of standard git practices
log
    display a brief overview of the git log of the PWD
stats
    display some brief stats about the PWD repository
undo
    undo last commit from git working tree while preserving
    local changes.
sync
    sync local branch with remote
"""


def setup_logging(config: Config) -> None:
    """Setup logging with the structured operation prefix."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            # Add structured data if available
            if hasattr(record, 'operation'):
                record.msg = f"[{record.operation}] {record.msg}"
            return super().format(record)

    logger = logging.getLogger('githelper')
    logger.setLevel(getattr(logging, config.log_level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(handler)
        logger.propagate = False


def _fail(message: str) -> None:
    click.secho(message, fg="red", err=True)


def _report_finding(finding: Finding) -> None:
    if finding.kind is FindingKind.NON_EXECUTABLE_SCRIPT:
        if finding.remediation is RemediationStatus.APPLIED:
            click.secho("Execute permission granted.", fg="green")
            click.echo(f"Committed changes to branch '{finding.context.get('branch', '')}'.")
            return
        if finding.remediation is RemediationStatus.FAILED:
            _fail(f"{finding.message}: remediation failed ({finding.context.get('error', 'unknown error')})")
            return
    _fail(finding.message)


def _report_result(result: OperationResult) -> None:
    if result.success:
        click.secho(result.message, fg="green")
    else:
        _fail(result.message)
        sys.exit(1)


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def main(ctx: click.Context):
    """githelper - common git tasks and best practices."""
    try:
        config = load_configuration()
    except ValueError as e:
        _fail(str(e))
        sys.exit(1)
    setup_logging(config)
    ctx.obj = {"config": config, "gateway": GitGateway(config)}

    if ctx.invoked_subcommand is None:
        click.echo(USAGE)
        ctx.exit(0)

    if ctx.invoked_subcommand != "help":
        git_available, git_error = validate_git_availability()
        if not git_available:
            _fail(git_error)
            sys.exit(1)


@main.command(name="help")
def help_command():
    """Print usage message."""
    click.echo(USAGE)


@main.command()
@click.argument("directory", required=False)
@click.option("--yes", "assume_yes", is_flag=True, help="Apply every remediation without asking")
@click.option("--no-input", is_flag=True, help="Never prompt; skip every remediation")
@click.pass_context
def check(ctx: click.Context, directory: Optional[str], assume_yes: bool, no_input: bool):
    """Check git configuration and, if given, DIRECTORY."""
    gateway: GitGateway = ctx.obj["gateway"]

    if assume_yes:
        decide = always_apply
    elif no_input or not sys.stdin.isatty():
        decide = always_skip
    else:
        decide = prompt_decision()

    engine = PolicyEngine(gateway, ctx.obj["config"], decide=decide)
    findings: List[Finding] = engine.evaluate(directory) if directory else engine.check_identity()

    if not any(f.kind is FindingKind.UNCONFIGURED_IDENTITY_SETTING for f in findings):
        click.secho("All basic settings configured", fg="green")

    for finding in findings:
        _report_finding(finding)

    if any(f.severity is Severity.FATAL for f in findings):
        sys.exit(1)


@main.command()
@click.pass_context
def log(ctx: click.Context):
    """Display a brief overview of the git log."""
    try:
        for entry in show_history(ctx.obj["gateway"], "."):
            click.echo(str(entry))
    except GitHelperError as e:
        _fail(str(e))
        sys.exit(1)


@main.command()
@click.pass_context
def stats(ctx: click.Context):
    """Display commit and contributor counts."""
    try:
        click.secho(str(repository_stats(ctx.obj["gateway"], ".")), fg="green")
    except GitHelperError as e:
        _fail(str(e))
        sys.exit(1)


@main.command()
@click.pass_context
def undo(ctx: click.Context):
    """Undo last commit while preserving local changes."""
    _report_result(undo_last_commit(ctx.obj["gateway"], ".", ctx.obj["config"]))


@main.command()
@click.option("--remote", default=None, help="Remote to sync with (default: configured remote)")
@click.pass_context
def sync(ctx: click.Context, remote: Optional[str]):
    """Sync local branch with remote."""
    _report_result(sync_branch(ctx.obj["gateway"], ".", remote=remote, config=ctx.obj["config"]))


if __name__ == "__main__":
    main()
