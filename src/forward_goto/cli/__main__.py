"""
Main Entry Point for the forward-goto CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `forward_goto.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from forward_goto import __version__
from forward_goto.cli import commands


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="forward-goto: Forward Jump Elimination for Python")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: CONVERT ---
  cmd_conv = subparsers.add_parser("convert", help="Rewrite a Python file or directory")
  cmd_conv.add_argument("path", type=Path, help="Input source file or directory")
  cmd_conv.add_argument("--out", type=Path, help="Output destination (file or dir)")
  cmd_conv.add_argument(
    "--all",
    dest="transform_all",
    action="store_true",
    default=None,
    help="Rewrite every function containing markers, not only decorated ones (Overrides config)",
  )
  cmd_conv.add_argument(
    "--strict",
    action="store_true",
    default=None,
    help="Fail on markers left outside rewritten functions (Overrides config)",
  )
  cmd_conv.add_argument(
    "--json-trace", type=Path, default=None, help="Dump full execution trace (events, diffs) to a JSON file."
  )

  # --- Command: CHECK ---
  cmd_check = subparsers.add_parser("check", help="Validate jumps and labels without writing")
  cmd_check.add_argument("path", type=Path, help="Input source file or directory")
  cmd_check.add_argument(
    "--all",
    dest="transform_all",
    action="store_true",
    default=None,
    help="Check every function containing markers (Overrides config)",
  )

  # --- Command: TREE ---
  cmd_tree = subparsers.add_parser("tree", help="Show the block tree of selected functions")
  cmd_tree.add_argument("path", type=Path, help="Input source file")
  cmd_tree.add_argument("--function", default=None, help="Qualified name of a single function to show")
  cmd_tree.add_argument(
    "--all",
    dest="transform_all",
    action="store_true",
    default=None,
    help="Show every function containing markers (Overrides config)",
  )

  args = parser.parse_args(argv)

  if args.command == "convert":
    return commands.handle_convert(
      args.path,
      args.out,
      args.transform_all,
      args.strict,
      args.json_trace,
    )

  elif args.command == "check":
    return commands.handle_check(args.path, args.transform_all)

  elif args.command == "tree":
    return commands.handle_tree(args.path, args.function, args.transform_all)

  return 0


if __name__ == "__main__":
  sys.exit(main())
