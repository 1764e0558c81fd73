"""Configuration management for githelper."""

import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()  # Load .env file if it exists


DEFAULT_REQUIRED_FILES = ("README.md", ".gitignore", ".gitattributes")

DEFAULT_IDENTITY_KEYS = ("user.name", "user.email", "push.default")

DEFAULT_DISALLOWED_TYPES = (
    # Legacy office documents
    "application/msword",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/pdf",
    # Optical-disc images
    "application/x-iso9660-image",
    # Native executables
    "application/x-executable",
    "application/x-pie-executable",
    "application/x-dosexec",
    "application/x-mach-binary",
)


@dataclass
class Config:
    """Configuration class for githelper with validation and defaults."""

    # Synchronization
    remote: str = "origin"
    network_timeout: float = 120.0
    lock_timeout: float = 30.0

    # Policy
    required_files: Tuple[str, ...] = DEFAULT_REQUIRED_FILES
    identity_keys: Tuple[str, ...] = DEFAULT_IDENTITY_KEYS
    script_pattern: str = "*.sh"
    disallowed_types: Tuple[str, ...] = DEFAULT_DISALLOWED_TYPES
    remediation_commit_message: str = "Make scripts executable"

    # Logging
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate configuration after initialization."""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        self.log_level = self.log_level.upper()
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")

        if self.network_timeout <= 0:
            raise ValueError("network_timeout must be positive")

        if self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")

        if not self.remote:
            raise ValueError("remote must not be empty")

        if not self.remediation_commit_message.strip():
            raise ValueError("remediation_commit_message must not be empty")

        self.required_files = tuple(self.required_files)
        self.identity_keys = tuple(self.identity_keys)
        self.disallowed_types = tuple(self.disallowed_types)


def load_configuration() -> Config:
    """Load configuration from environment variables."""
    try:
        return Config(
            remote=os.getenv("GITHELPER_REMOTE", "origin"),
            network_timeout=float(os.getenv("GITHELPER_NETWORK_TIMEOUT", "120")),
            lock_timeout=float(os.getenv("GITHELPER_LOCK_TIMEOUT", "30")),
            log_level=os.getenv("GITHELPER_LOG_LEVEL", "WARNING"),
            remediation_commit_message=os.getenv("GITHELPER_COMMIT_MESSAGE", "Make scripts executable"),
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")
