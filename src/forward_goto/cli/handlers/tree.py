"""
Tree Command Handler.

Prints the block tree the rewriter works on for each selected function,
annotating every valid jump with the skip flag it would be replaced by.
"""

from pathlib import Path
from typing import Dict, Optional

import libcst as cst
from rich.markup import escape

from forward_goto.config import RuntimeConfig
from forward_goto.core.bindings import parameter_names
from forward_goto.core.engine import select_functions
from forward_goto.core.errors import TransformError
from forward_goto.core.rewriter import Rewriter
from forward_goto.core.suites import suite_statements
from forward_goto.core.transform import build_tree
from forward_goto.core.validator import Validator
from forward_goto.utils.console import console, log_error, log_warning
from forward_goto.utils.tree_view import TreeRenderer


def handle_tree(input_path: Path, function: Optional[str], transform_all: Optional[bool]) -> int:
  """
  Handles the 'tree' command execution.

  Args:
      input_path: Source file.
      function: Optional qualified name restricting the output to one function.
      transform_all: Override for function selection.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not input_path.is_file():
    log_error(f"Input file not found: {input_path}")
    return 1

  config = RuntimeConfig.load(transform_all=transform_all, search_path=input_path.parent)
  try:
    selected = select_functions(input_path.read_text(encoding="utf-8"), config)
  except (OSError, UnicodeDecodeError) as e:
    log_error(escape(f"Failed to read {input_path}: {e}"))
    return 1
  except cst.ParserSyntaxError as e:
    log_error(escape(f"Parse Error in {input_path}: {e}"))
    return 1

  if function is not None:
    selected = {name: node for name, node in selected.items() if name == function}
  if not selected:
    log_warning(f"No selected functions found in {input_path}")
    return 1

  for name, func_def in selected.items():
    tree = build_tree(suite_statements(func_def.body), config)
    flags: Dict[int, str] = {}
    try:
      validated = Validator(tree, parameter_names(func_def.params)).validate()
      rewriter = Rewriter(validated, flag_prefix=config.flag_prefix, reserved_names=parameter_names(func_def.params))
      rewriter.rewrite()
      flags = {flag.pair.jump: flag.name for flag in rewriter.flags}
    except TransformError as e:
      log_warning(f"{name}: {e.violation.kind.value}")

    console.print(TreeRenderer(tree, flags).render(title=name))

  return 0
