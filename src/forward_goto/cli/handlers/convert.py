"""
Convert Command Handler.

This module implements the logic for the `forward-goto convert` command.
It orchestrates:
1. Configuration loading (``pyproject.toml`` plus CLI overrides).
2. Rewriting via the Engine, file by file.
3. Output writing and trace logging.
4. A summary table of files with issues.
"""

import json
from pathlib import Path
from typing import Dict, Optional

from rich.markup import escape
from rich.table import Table

from forward_goto.config import RuntimeConfig
from forward_goto.core.conversion_result import ConversionResult
from forward_goto.core.engine import GotoEngine
from forward_goto.utils.console import (
  console,
  log_error,
  log_info,
  log_success,
  log_warning,
)


def handle_convert(
  input_path: Path,
  output_path: Optional[Path],
  transform_all: Optional[bool],
  strict: Optional[bool],
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'convert' command execution.

  Args:
      input_path: Path to the source file or directory to convert.
      output_path: Path where generated code should be saved. When omitted
          for a single file, the result is printed to stdout.
      transform_all: Override for function selection.
      strict: Override for strict mode.
      json_trace_path: Optional path to dump execution trace JSON.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  config = RuntimeConfig.load(
    transform_all=transform_all,
    strict_mode=strict,
    search_path=input_path if input_path.is_dir() else input_path.parent,
  )

  batch_results: Dict[str, ConversionResult] = {}

  if input_path.is_file():
    result = _convert_single_file(input_path, output_path, config, json_trace_path)
    batch_results[input_path.name] = result
    if not result.success:
      _print_batch_summary(batch_results)
      return 1

  elif input_path.is_dir():
    if not output_path:
      log_error("Directory conversion requires --out destination directory.")
      return 1

    py_files = sorted(input_path.rglob("*.py"))
    if not py_files:
      log_warning(f"No .py files found in {input_path}")
      return 0

    log_info(f"Processing {len(py_files)} files from {input_path}...")

    for src_file in py_files:
      rel_path = src_file.relative_to(input_path)
      batch_trace = (output_path / rel_path).with_suffix(".trace.json") if json_trace_path else None
      result = _convert_single_file(src_file, output_path / rel_path, config, batch_trace)
      batch_results[str(rel_path)] = result

  _print_batch_summary(batch_results)
  return 0 if all(r.success for r in batch_results.values()) else 1


def _convert_single_file(
  input_path: Path,
  output_path: Optional[Path],
  config: RuntimeConfig,
  json_trace_path: Optional[Path] = None,
) -> ConversionResult:
  """
  Rewrites a single file.

  Files that fail are not written: the destination would otherwise hold code
  with unresolved markers.

  Args:
      input_path: Source file path.
      output_path: Destination file path (stdout if None).
      config: Runtime configuration object.
      json_trace_path: Path to save trace event logs.

  Returns:
      ConversionResult: Result object containing status and code.
  """
  try:
    code = input_path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read {input_path}: {e}")
    return ConversionResult(success=False, errors=[str(e)])

  result = GotoEngine(config=config).run(code)

  if json_trace_path and result.trace_events:
    try:
      json_trace_path.parent.mkdir(parents=True, exist_ok=True)
      with open(json_trace_path, "wt", encoding="utf-8") as f:
        json.dump(result.trace_events, f, indent=2)
      log_info(f"Trace saved to [path]{json_trace_path}[/path]")
    except OSError as e:
      log_error(f"Failed to write trace: {e}")

  for warning in result.warnings:
    log_warning(escape(f"{input_path}:{warning}"))

  if not result.success:
    for error in result.errors:
      log_error(escape(f"{input_path}:{error}"))
    return result

  if output_path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.code, encoding="utf-8")
    rewritten = ", ".join(result.functions) or "no functions"
    log_success(f"Rewrote [path]{input_path}[/path] -> [path]{output_path}[/path] ({rewritten})")
  else:
    print(result.code, end="")

  return result


def _print_batch_summary(results: Dict[str, ConversionResult]) -> None:
  """
  Renders a summary table of conversion results to the console.

  Args:
      results: Dictionary mapping filenames to conversion results.
  """
  total = len(results)
  successes = sum(1 for r in results.values() if r.success and not r.warnings)
  failures = total - successes

  if failures == 0:
    log_success(f"Batch Complete: {successes}/{total} files rewritten cleanly.")
    return

  table = Table(title="Rewrite Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success and not res.warnings:
      continue
    status = "❌ Failed" if not res.success else "⚠️ Warnings"
    issues = "; ".join(res.errors or res.warnings) or "Unknown Error"
    table.add_row(escape(filename), status, escape(issues))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {successes} Passed, {failures} with Issues.")
