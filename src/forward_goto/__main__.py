"""
Entry point for module execution (``python -m forward_goto``).

This module delegates execution to the CLI handler in ``forward_goto.cli.__main__``.
"""

import sys
from forward_goto.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
