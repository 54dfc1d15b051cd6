"""
CLI Command Handlers Facade.

Re-exports the handlers from `forward_goto.cli.handlers` so the dispatcher
(and tests patching it) have a single import location.
"""

from forward_goto.cli.handlers.check import handle_check
from forward_goto.cli.handlers.convert import handle_convert
from forward_goto.cli.handlers.tree import handle_tree

__all__ = [
  "handle_check",
  "handle_convert",
  "handle_tree",
]
