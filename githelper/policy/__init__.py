"""Repository compliance policy for githelper."""

from .engine import PolicyEngine
from .findings import Finding, FindingKind, RemediationDecision, RemediationStatus, Severity
from .decisions import always_apply, always_skip, prompt_decision
from .rules import RULES, Rule

__all__ = [
    'PolicyEngine',
    'Finding',
    'FindingKind',
    'RemediationDecision',
    'RemediationStatus',
    'Severity',
    'always_apply',
    'always_skip',
    'prompt_decision',
    'RULES',
    'Rule'
]
