"""
Check Command Handler.

Validates the jumps and labels of every selected function without writing
anything, and lists each violation with its position.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from rich.markup import escape
from rich.table import Table

from forward_goto.config import RuntimeConfig
from forward_goto.core.engine import GotoEngine
from forward_goto.utils.console import console, log_error, log_info, log_success, log_warning


def handle_check(input_path: Path, transform_all: Optional[bool]) -> int:
  """
  Handles the 'check' command execution.

  Args:
      input_path: Source file or directory.
      transform_all: Override for function selection.

  Returns:
      int: 0 if every file is valid, 1 otherwise.
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  config = RuntimeConfig.load(
    transform_all=transform_all,
    search_path=input_path if input_path.is_dir() else input_path.parent,
  )
  engine = GotoEngine(config=config)

  files = [input_path] if input_path.is_file() else sorted(input_path.rglob("*.py"))
  if not files:
    log_warning(f"No .py files found in {input_path}")
    return 0

  rows: List[Tuple[str, str, str, str]] = []
  checked = 0
  for path in files:
    try:
      code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
      rows.append((str(path), "?", "Error", f"Failed to read: {e}"))
      continue

    result = engine.run(code)
    checked += len(result.functions)
    if result.violations:
      for v in result.violations:
        rows.append((str(path), str(v.position or "?"), v.kind.value, v.message))
    elif not result.success:
      rows.extend((str(path), "?", "Error", e) for e in result.errors)
    for warning in result.warnings:
      log_warning(escape(f"{path}:{warning}"))

  if not rows:
    log_success(f"{len(files)} file(s) valid, {checked} function(s) would be rewritten.")
    return 0

  table = Table(title="Jump/Label Violations")
  table.add_column("File", style="cyan")
  table.add_column("Position", justify="right")
  table.add_column("Kind", style="bold red")
  table.add_column("Message")
  for row in rows:
    table.add_row(*(escape(cell) for cell in row))

  console.print(table)
  log_info(f"{len(rows)} violation(s) in {len({r[0] for r in rows})} file(s).")
  return 1
