#!/usr/bin/env python3
"""Unit tests for content-based file classification."""

import subprocess
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import sys
sys.path.insert(0, str(Path(__file__).parent))

from githelper.config import Config
from githelper.vcs.classifier import FileClassifier
from githelper.vcs.gateway import GitGateway


class TestFileClassifier(unittest.TestCase):
    """Test cases for FileClassifier."""

    def setUp(self):
        self.classifier = FileClassifier(timeout=2.0)

    @patch('githelper.vcs.classifier.subprocess.run')
    def test_classify_returns_mime_type(self, mock_run):
        """The trimmed output of the file utility is the MIME type."""
        mock_run.return_value = MagicMock(returncode=0, stdout="application/pdf\n", stderr="")

        self.assertEqual(self.classifier.classify("/tmp/report.bin"), "application/pdf")

        args = mock_run.call_args[0][0]
        self.assertEqual(args[1:], ["--mime-type", "-b", "/tmp/report.bin"])
        self.assertEqual(mock_run.call_args[1]["timeout"], 2.0)
        print("  ✓ MIME type parsed from file utility output")

    @patch('githelper.vcs.classifier.subprocess.run')
    def test_classify_failure_returns_none(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="cannot open")
        self.assertIsNone(self.classifier.classify("/tmp/missing"))

    @patch('githelper.vcs.classifier.subprocess.run', side_effect=FileNotFoundError())
    def test_missing_file_utility_returns_none(self, mock_run):
        self.assertIsNone(self.classifier.classify("/tmp/file"))

    @patch('githelper.vcs.classifier.subprocess.run',
           side_effect=subprocess.TimeoutExpired(cmd="file", timeout=2.0))
    def test_file_utility_timeout_returns_none(self, mock_run):
        self.assertIsNone(self.classifier.classify("/tmp/file"))

    def test_gateway_delegates_to_classifier(self):
        """GitGateway.content_type is a single call into the classifier."""
        classifier = MagicMock()
        classifier.classify.return_value = "application/x-executable"
        gateway = GitGateway(Config(), classifier=classifier)

        self.assertEqual(gateway.content_type("/tmp/a.out"), "application/x-executable")
        classifier.classify.assert_called_once_with("/tmp/a.out")


def run_tests():
    """Run all classifier tests."""
    print("Running File Classifier Tests")
    print("=" * 60)

    test_suite = unittest.TestLoader().loadTestsFromTestCase(TestFileClassifier)
    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout)
    result = runner.run(test_suite)

    success = len(result.failures) == 0 and len(result.errors) == 0
    print(f"\nOverall result: {'PASS' if success else 'FAIL'}")
    return success


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
