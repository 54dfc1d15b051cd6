"""
Tests for Node Diff Utility.
"""

import libcst as cst

from forward_goto.utils.node_diff import capture_node_source, diff_nodes


def test_capture_simple_call():
  """Verify source code capture for a detached Call node."""
  node = cst.Call(func=cst.Name("forward_goto"), args=[cst.Arg(cst.Name("done"))])
  assert capture_node_source(node) == "forward_goto(done)"


def test_capture_function():
  func = cst.parse_module("def f():\n  return 1\n").body[0]
  source = capture_node_source(func)
  assert source.startswith("def f():\n")
  assert "return 1" in source


def test_diff_nodes_detection():
  node_a = cst.Call(func=cst.Name("foo"))
  node_b = cst.Call(func=cst.Name("bar"))

  before, after, changed = diff_nodes(node_a, node_b)

  assert changed is True
  assert before == "foo()"
  assert after == "bar()"


def test_diff_nodes_ignores_surrounding_whitespace():
  line = cst.parse_statement("x = 1\n")
  spaced = line.with_changes(leading_lines=[cst.EmptyLine()])

  _, _, changed = diff_nodes(line, spaced)
  assert changed is False
