"""Allow ``python -m githelper``."""

from .cli import main

main()
