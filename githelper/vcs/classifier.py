"""Content-based file type detection."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from ..platform import get_file_executable


class FileClassifier:
    """
    Classify files by content using the system ``file`` utility.

    The MIME type is derived from the file's bytes, not its extension, so a
    renamed PDF or ELF binary is still recognised.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self.executable = get_file_executable()
        self.logger = logging.getLogger('githelper.vcs.classifier')

    def classify(self, path: Union[str, Path]) -> Optional[str]:
        """
        Return the MIME type of ``path``.

        Returns:
            MIME type string such as ``application/pdf``, or None when the
            file could not be classified
        """
        try:
            result = subprocess.run(
                [self.executable, "--mime-type", "-b", str(path)],
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            self.logger.warning(f"File type utility '{self.executable}' not found")
            return None
        except subprocess.TimeoutExpired:
            self.logger.warning(f"File type utility timed out for {path}")
            return None

        if result.returncode != 0:
            self.logger.debug(f"Could not classify {path}: {result.stderr.strip()}")
            return None

        mime_type = result.stdout.strip()
        return mime_type or None
