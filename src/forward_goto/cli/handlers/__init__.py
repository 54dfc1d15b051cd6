from .check import handle_check
from .convert import handle_convert
from .tree import handle_tree

__all__ = [
  "handle_check",
  "handle_convert",
  "handle_tree",
]
