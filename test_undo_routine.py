#!/usr/bin/env python3
"""Tests for undoing the last commit against real repositories."""

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, str(Path(__file__).parent))

from githelper.config import Config
from githelper.errors import VcsOperationFailed
from githelper.undo import undo_last_commit
from githelper.vcs.gateway import GitGateway


def git(repo_dir: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=repo_dir, capture_output=True, text=True, check=True)
    return result.stdout.strip()


def commit_count(repo_dir: Path) -> int:
    result = subprocess.run(["git", "rev-list", "--count", "HEAD"], cwd=repo_dir, capture_output=True, text=True)
    if result.returncode != 0:
        return 0
    return int(result.stdout.strip())


class TestUndoLastCommit(unittest.TestCase):
    """Test cases for undo_last_commit()."""

    def setUp(self):
        """Set up an empty repository on branch main."""
        print(f"\nSetting up test: {self._testMethodName}")
        self.temp_dir = Path(tempfile.mkdtemp())
        self.repo_dir = self.temp_dir / "repo"
        self.repo_dir.mkdir()
        git(self.repo_dir, "init")
        git(self.repo_dir, "symbolic-ref", "HEAD", "refs/heads/main")
        git(self.repo_dir, "config", "user.name", "Test User")
        git(self.repo_dir, "config", "user.email", "test@example.com")
        git(self.repo_dir, "config", "commit.gpgsign", "false")
        self.gateway = GitGateway(Config())

    def tearDown(self):
        """Clean up test environment after each test."""
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def _commit(self, name: str, content: str, message: str) -> None:
        (self.repo_dir / name).write_text(content)
        git(self.repo_dir, "add", name)
        git(self.repo_dir, "commit", "-m", message)

    def test_nothing_to_undo(self):
        result = undo_last_commit(self.gateway, self.repo_dir)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "NOTHING_TO_UNDO")
        print("  ✓ Empty history reported")

    def test_root_commit_is_removed(self):
        """Undoing the only commit leaves zero commits and identical files."""
        self._commit("a.txt", "alpha\n", "Initial commit")
        (self.repo_dir / "a.txt").write_text("edited\n")
        (self.repo_dir / "b.bin").write_bytes(b"\x00\x01\x02")
        before = {p.name: p.read_bytes() for p in self.repo_dir.iterdir() if p.is_file()}

        result = undo_last_commit(self.gateway, self.repo_dir)

        self.assertTrue(result.success, result.message)
        self.assertTrue(result.details["root_commit"])
        self.assertEqual(commit_count(self.repo_dir), 0)
        after = {p.name: p.read_bytes() for p in self.repo_dir.iterdir() if p.is_file()}
        self.assertEqual(before, after)
        self.assertEqual(git(self.repo_dir, "symbolic-ref", "--short", "HEAD"), "main")
        print("  ✓ Root commit removed, files untouched")

    def test_general_case_keeps_tree_and_index(self):
        """Undo decreases the count by one and reports the undone message."""
        self._commit("a.txt", "one\n", "First")
        self._commit("a.txt", "two\n", "Second")
        self._commit("b.txt", "three\n", "Third: add b")
        (self.repo_dir / "a.txt").write_text("staged edit\n")
        git(self.repo_dir, "add", "a.txt")
        (self.repo_dir / "c.txt").write_text("working edit\n")

        result = undo_last_commit(self.gateway, self.repo_dir)

        self.assertTrue(result.success, result.message)
        self.assertEqual(result.details["message"], "Third: add b")
        self.assertIn("Third: add b", result.message)
        self.assertEqual(commit_count(self.repo_dir), 2)
        self.assertEqual(git(self.repo_dir, "log", "-1", "--pretty=%s"), "Second")

        staged = git(self.repo_dir, "diff", "--cached", "--name-only").split()
        self.assertEqual(sorted(staged), ["a.txt", "b.txt"])
        self.assertEqual((self.repo_dir / "a.txt").read_text(), "staged edit\n")
        self.assertEqual((self.repo_dir / "b.txt").read_text(), "three\n")
        self.assertEqual((self.repo_dir / "c.txt").read_text(), "working edit\n")
        print("  ✓ Commit undone, index and tree preserved")

    def test_multiline_message_is_recovered(self):
        self._commit("a.txt", "one\n", "First")
        self._commit("a.txt", "two\n", "Subject line\n\nBody text")

        result = undo_last_commit(self.gateway, self.repo_dir)

        self.assertEqual(result.details["message"], "Subject line\n\nBody text")

    def test_reset_failure_is_reported(self):
        self._commit("a.txt", "one\n", "First")
        self._commit("a.txt", "two\n", "Second")

        with patch.object(self.gateway, "reset_soft", side_effect=VcsOperationFailed("reset_soft", "locked index")):
            result = undo_last_commit(self.gateway, self.repo_dir)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "RESET_SOFT_FAILED")
        self.assertEqual(commit_count(self.repo_dir), 2)

    def test_not_a_repository(self):
        plain_dir = self.temp_dir / "plain"
        plain_dir.mkdir()

        result = undo_last_commit(self.gateway, plain_dir)

        self.assertEqual(result.error_code, "NOT_A_REPOSITORY")


def run_tests():
    """Run all undo tests."""
    print("Running Undo Routine Tests")
    print("=" * 60)

    test_suite = unittest.TestLoader().loadTestsFromTestCase(TestUndoLastCommit)
    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout)
    result = runner.run(test_suite)

    success = len(result.failures) == 0 and len(result.errors) == 0
    print(f"\nOverall result: {'PASS' if success else 'FAIL'}")
    return success


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
