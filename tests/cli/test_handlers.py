"""
Tests for the CLI command handlers, run against real files.
"""

import json

import pytest
from rich.console import Console

from forward_goto.cli.__main__ import main
from forward_goto.utils.console import reset_console, set_console

VALID = """\
from forward_goto import forward_goto, forward_label, rewrite_forward_goto


@rewrite_forward_goto
def first_even(items):
  found = None
  for item in items:
    if item % 2 == 0:
      found = item
      forward_goto(done)
  found = -1
  forward_label(done)
  return found
"""

INVALID = """\
@rewrite_forward_goto
def bad():
  forward_goto(a)
  x = 1
  forward_label(a)
  return x
"""


@pytest.fixture
def recorder():
  rec = Console(record=True, width=200)
  set_console(rec)
  yield rec
  reset_console()


@pytest.fixture
def project(tmp_path):
  src = tmp_path / "src"
  (src / "pkg").mkdir(parents=True)
  (src / "valid.py").write_text(VALID, encoding="utf-8")
  (src / "pkg" / "invalid.py").write_text(INVALID, encoding="utf-8")
  return tmp_path


def test_convert_file_writes_output(project, recorder):
  out = project / "out.py"
  trace = project / "trace.json"
  assert main(["convert", str(project / "src" / "valid.py"), "--out", str(out), "--json-trace", str(trace)]) == 0

  code = out.read_text(encoding="utf-8")
  assert "forward_goto(done)" not in code
  assert "_goto_skip_done = True" in code
  assert "Rewrote" in recorder.export_text()

  events = json.loads(trace.read_text(encoding="utf-8"))
  assert any(e["type"] == "pair_resolved" for e in events)


def test_convert_file_to_stdout(project, recorder, capsys):
  assert main(["convert", str(project / "src" / "valid.py")]) == 0
  assert "_goto_skip_done = False" in capsys.readouterr().out


def test_convert_invalid_file_is_not_written(project, recorder):
  out = project / "bad_out.py"
  assert main(["convert", str(project / "src" / "pkg" / "invalid.py"), "--out", str(out)]) == 1
  assert not out.exists()
  text = recorder.export_text()
  assert "SkipsDeclaration" in text
  assert "Rewrite Report" in text


def test_convert_directory(project, recorder):
  out = project / "build"
  assert main(["convert", str(project / "src"), "--out", str(out)]) == 1

  assert (out / "valid.py").exists()
  assert not (out / "pkg" / "invalid.py").exists()


def test_convert_directory_requires_out(project, recorder):
  assert main(["convert", str(project / "src")]) == 1
  assert "requires --out" in recorder.export_text()


def test_convert_missing_input(tmp_path, recorder):
  assert main(["convert", str(tmp_path / "missing.py")]) == 1
  assert "Input not found" in recorder.export_text()


def test_check_reports_violations(project, recorder):
  assert main(["check", str(project / "src")]) == 1
  text = recorder.export_text()
  assert "Jump/Label Violations" in text
  assert "SkipsDeclaration" in text
  assert "3:2" in text


def test_check_valid_file(project, recorder):
  assert main(["check", str(project / "src" / "valid.py")]) == 0
  assert "1 function(s) would be rewritten" in recorder.export_text()


def test_tree_output(project, recorder):
  assert main(["tree", str(project / "src" / "valid.py")]) == 0
  text = recorder.export_text()
  assert "first_even" in text
  assert "jump done -> _goto_skip_done" in text


def test_tree_unknown_function(project, recorder):
  assert main(["tree", str(project / "src" / "valid.py"), "--function", "nope"]) == 1
  assert "No selected functions" in recorder.export_text()


def test_check_reports_unreadable_file(project, recorder):
  (project / "src" / "latin1.py").write_bytes(b"name = '\xff'\n")
  assert main(["check", str(project / "src")]) == 1
  text = recorder.export_text()
  assert "Failed to read" in text
  # The other files are still checked.
  assert "SkipsDeclaration" in text


def test_tree_parse_error(tmp_path, recorder):
  broken = tmp_path / "broken.py"
  broken.write_text("def f(:\n", encoding="utf-8")
  assert main(["tree", str(broken)]) == 1
  assert "Parse Error" in recorder.export_text()
