"""Policy engine: evaluates the ordered rule set against a directory."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config import Config
from ..errors import VcsOperationFailed
from ..platform import normalize_path
from ..vcs.gateway import GitGateway
from .decisions import DecisionSource, always_skip
from .findings import Finding, FindingKind, Severity
from .rules import IDENTITY_RULES, RULES, EvaluationContext, Rule


class PolicyEngine:
    """
    Repository compliance checker.

    Rules run in a fixed order. Remediation is interactive and happens while
    rules run, through the injected decision source. A fatal finding (the
    target is not a repository) stops evaluation; any other finding, or a
    git failure inside one rule, never prevents later rules from running.
    """

    def __init__(
        self,
        gateway: GitGateway,
        config: Optional[Config] = None,
        decide: Optional[DecisionSource] = None,
        rules: Sequence[Rule] = RULES
    ):
        """
        Initialize the policy engine.

        Args:
            gateway: VCS gateway used for every repository interaction
            config: Policy configuration (required files, disallow list, ...)
            decide: Decision source for remediable findings; defaults to Skip
            rules: Ordered rule descriptors to evaluate
        """
        self.gateway = gateway
        self.config = config or gateway.config
        self.decide = decide or always_skip
        self.rules = tuple(rules)
        self.logger = logging.getLogger('githelper.policy')

    def evaluate(self, root: Union[str, Path]) -> List[Finding]:
        """
        Evaluate every rule against ``root``.

        Args:
            root: Directory to check; need not be the current directory

        Returns:
            Findings in rule order
        """
        return self._run(self.rules, normalize_path(root))

    def check_identity(self) -> List[Finding]:
        """Evaluate only the identity settings rule (no target directory)."""
        return self._run(IDENTITY_RULES, normalize_path("."))

    def _run(self, rules: Sequence[Rule], root: Path) -> List[Finding]:
        ctx = EvaluationContext(
            gateway=self.gateway,
            config=self.config,
            decide=self.decide,
            root=root,
            logger=self.logger
        )
        findings: List[Finding] = []

        for rule in rules:
            if rule.requires_repository and ctx.handle is None:
                self.logger.debug(f"Skipping rule {rule.name}: no repository handle")
                continue

            self.logger.debug(f"Evaluating rule {rule.name} on {root}", extra={'operation': 'check'})
            try:
                rule_findings = list(rule.check(ctx))
            except VcsOperationFailed as e:
                self.logger.error(f"Rule {rule.name} failed: {e}", extra={'operation': 'check'})
                rule_findings = [Finding(
                    kind=FindingKind.CHECK_FAILED,
                    severity=Severity.ERROR,
                    message=f"Check '{rule.name}' could not complete: {e}",
                    context={"rule": rule.name, "operation": e.operation, "error": e.cause}
                )]

            findings.extend(rule_findings)
            if any(finding.fatal for finding in rule_findings):
                self.logger.info(f"Evaluation stopped after fatal finding in rule {rule.name}")
                break

        self.logger.info(f"Evaluation of {root} produced {len(findings)} findings")
        return findings
