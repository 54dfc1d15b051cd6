"""
Tests for the Statement Tree renderer.
"""

import pytest
from rich.console import Console

from forward_goto.core.builder import TreeBuilder
from forward_goto.core.suites import suite_statements
from forward_goto.enums import NodeKind
from forward_goto.utils.console import reset_console, set_console
from forward_goto.utils.tree_view import TreeRenderer


@pytest.fixture
def recorder():
  rec = Console(record=True, width=120)
  set_console(rec)
  yield rec
  reset_console()


def build(parse, code):
  return TreeBuilder().build(suite_statements(parse(code).body))


def test_blocks_and_markers_are_rendered(parse, recorder):
  tree = build(
    parse,
    """
    def f(items):
      for item in items:
        if item:
          forward_goto(done)
      forward_label(done)
    """,
  )
  jump = tree.of_kind(NodeKind.JUMP)[0]
  recorder.print(TreeRenderer(tree, {jump.id: "_goto_skip_done"}).render(title="f"))
  text = recorder.export_text()

  assert "for item in items:" in text
  assert "body (loop_body)" in text
  assert "body (conditional)" in text
  assert "jump done -> _goto_skip_done" in text
  assert "label done" in text


def test_malformed_and_long_lines(parse, recorder):
  tree = build(
    parse,
    """
    def f():
      value = forward_goto(a)
      call_with_a_really_long_name(argument_one, argument_two, argument_three)
    """,
  )
  recorder.print(TreeRenderer(tree).render())
  text = recorder.export_text()

  assert "malformed value = forward_goto(a)" in text
  assert "statement position" in text
  assert "..." in text
  assert "argument_three" not in text
