"""
Tests for Console Utilities.

Verifies:
1. Logging helpers render through the injected console.
2. `reset_console` restores a fresh backend.
"""

from rich.console import Console

from forward_goto.utils.console import (
  console,
  get_console,
  log_error,
  log_info,
  log_success,
  log_warning,
  reset_console,
  set_console,
)


def teardown_function():
  reset_console()


def test_custom_console_injection():
  capture_console = Console(record=True, file=None, width=120)
  set_console(capture_console)

  log_info("Rewriting module")
  log_success("Done")
  log_warning("Stray marker")
  log_error("Rejected")

  output = capture_console.export_text()
  assert "Rewriting module" in output
  assert "SUCCESS" in output
  assert "Stray marker" in output
  assert "Rejected" in output


def test_proxy_forwards_to_backend():
  capture_console = Console(record=True, width=120)
  set_console(capture_console)

  console.print("[bold]tree[/bold]")
  assert get_console() is capture_console
  assert console.export_text() == "tree\n"


def test_reset_functionality():
  temp = Console(record=True)
  set_console(temp)
  reset_console()
  assert get_console() is not temp
