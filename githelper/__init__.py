"""
githelper - repository hygiene and synchronization assistant.

This package checks a git working tree against a small compliance policy,
offers interactive remediation for non-executable scripts, and provides a
stash-protected sync routine and a reversible "undo last commit".
"""

__version__ = "1.0.0"
__description__ = "Repository hygiene checks and safe branch synchronization for git"

from .cli import main

__all__ = ["main"]
