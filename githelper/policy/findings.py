"""Finding types produced by policy evaluation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


class FindingKind(Enum):
    """Kinds of policy findings."""
    NOT_A_REPOSITORY = "NotARepository"
    UNCONFIGURED_IDENTITY_SETTING = "UnconfiguredIdentitySetting"
    NO_REMOTE_CONFIGURED = "NoRemoteConfigured"
    MISSING_REQUIRED_FILE = "MissingRequiredFile"
    NON_EXECUTABLE_SCRIPT = "NonExecutableScript"
    DISALLOWED_FILE_TYPE = "DisallowedFileType"
    UNCOMMITTED_REMEDIATION = "UncommittedRemediation"
    CHECK_FAILED = "CheckFailed"


class Severity(Enum):
    """How a finding affects the check run."""
    FATAL = "fatal"        # evaluation stops
    ADVISORY = "advisory"  # reported, never aborts anything
    ERROR = "error"        # an attempted action failed


class RemediationDecision(Enum):
    """User response to a remediable finding."""
    APPLY = "apply"
    SKIP = "skip"


class RemediationStatus(Enum):
    """What happened to a remediable finding after the decision."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class Finding:
    """A single result of policy evaluation."""
    kind: FindingKind
    severity: Severity
    message: str
    path: Optional[str] = None
    context: Mapping[str, str] = field(default_factory=dict)
    remediation: Optional[RemediationStatus] = None

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.FATAL
