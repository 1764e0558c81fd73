"""Decision sources for interactive remediation."""

import sys
from typing import Callable, Optional, TextIO

from .findings import Finding, RemediationDecision

DecisionSource = Callable[[Finding], RemediationDecision]


def always_skip(finding: Finding) -> RemediationDecision:
    """Non-interactive default: never mutate the repository."""
    return RemediationDecision.SKIP


def always_apply(finding: Finding) -> RemediationDecision:
    return RemediationDecision.APPLY


def prompt_decision(
    input_stream: Optional[TextIO] = None,
    output_stream: Optional[TextIO] = None
) -> DecisionSource:
    """
    Build a decision source that asks a y/N question for each finding.

    Anything other than ``y`` or ``Y`` (including end of input) is a Skip.

    Args:
        input_stream: Where answers are read from (defaults to stdin)
        output_stream: Where questions are written (defaults to stdout)

    Returns:
        Callable returning a RemediationDecision for a finding
    """
    def decide(finding: Finding) -> RemediationDecision:
        stdin = input_stream or sys.stdin
        stdout = output_stream or sys.stdout
        stdout.write(
            f"Script {finding.path} is not executable. "
            "Grant execute permission to file owner [y/N]? "
        )
        stdout.flush()
        response = stdin.readline().strip()
        if response in ("y", "Y"):
            return RemediationDecision.APPLY
        return RemediationDecision.SKIP

    return decide
