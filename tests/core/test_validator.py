"""
Tests for jump/label validation.

Covers the violation taxonomy, the lowest common ancestor computation,
declaration safety and the stability of repeated validation.
"""

import sys

import pytest

from forward_goto.core.builder import TreeBuilder
from forward_goto.core.bindings import parameter_names
from forward_goto.core.errors import TransformError
from forward_goto.core.suites import suite_statements
from forward_goto.core.validator import Validator, compute_paths
from forward_goto.enums import NodeKind, ViolationKind


def validator_for(parse, code):
  func = parse(code)
  tree = TreeBuilder().build(suite_statements(func.body))
  return Validator(tree, parameter_names(func.params))


def kinds(parse, code):
  return [v.kind for v in validator_for(parse, code).violations()]


def test_straight_line_pair(parse):
  validated = validator_for(
    parse,
    """
    def f():
      a()
      forward_goto(done)
      b()
      forward_label(done)
      c()
    """,
  ).validate()
  assert len(validated.pairs) == 1
  pair = validated.pairs[0]
  assert pair.label == "done"
  assert pair.lca == validated.tree.root
  assert (pair.jump_index, pair.label_index) == (1, 3)
  assert pair.depth == 0


def test_lca_of_nested_jump(parse):
  validated = validator_for(
    parse,
    """
    def f(a, b):
      if a:
        if b:
          forward_goto(done)
      middle()
      forward_label(done)
    """,
  ).validate()
  pair = validated.pairs[0]
  assert pair.lca == validated.tree.root
  assert (pair.jump_index, pair.label_index) == (0, 2)
  assert validated.paths[pair.jump].depth == 2


def test_lca_inside_loop_body(parse):
  validated = validator_for(
    parse,
    """
    def f(xs):
      for x in xs:
        if x:
          forward_goto(next_item)
        work(x)
        forward_label(next_item)
    """,
  ).validate()
  pair = validated.pairs[0]
  assert pair.depth == 1
  assert validated.tree.blocks[pair.lca].role == "body"


def test_unused_label_is_allowed(parse):
  validated = validator_for(
    parse,
    """
    def f():
      forward_label(never)
      return 1
    """,
  ).validate()
  assert validated.pairs == []
  assert len(validated.unused_labels) == 1


def test_duplicate_label(parse):
  validator = validator_for(
    parse,
    """
    def f():
      forward_label(a)
      x = 1
      forward_label(a)
    """,
  )
  violations = validator.violations()
  assert [v.kind for v in violations] == [ViolationKind.DUPLICATE_LABEL]
  second = validator.tree.of_kind(NodeKind.LABEL)[1]
  assert violations[0].node_id == second.id
  assert violations[0].label == "a"


def test_undeclared_label(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_goto(missing)
      return 1
    """,
  ) == [ViolationKind.UNDECLARED_LABEL]


def test_multi_jump(parse):
  validator = validator_for(
    parse,
    """
    def f(a):
      if a:
        forward_goto(done)
      forward_goto(done)
      forward_label(done)
    """,
  )
  violations = validator.violations()
  assert [v.kind for v in violations] == [ViolationKind.UNSUPPORTED_MULTI_JUMP]
  assert violations[0].node_id == validator.tree.of_kind(NodeKind.JUMP)[1].id


def test_backward_jump(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_label(top)
      x = 1
      forward_goto(top)
    """,
  ) == [ViolationKind.BACKWARD_OR_SIDEWAYS_JUMP]


def test_sideways_jump_between_branches(parse):
  assert kinds(
    parse,
    """
    def f(c):
      if c:
        forward_goto(other)
      else:
        forward_label(other)
    """,
  ) == [ViolationKind.BACKWARD_OR_SIDEWAYS_JUMP]


def test_jump_into_branch_is_scope_escape(parse):
  assert kinds(
    parse,
    """
    def f(a, b):
      if a:
        forward_goto(inside)
      between()
      if b:
        before()
        forward_label(inside)
        after()
    """,
  ) == [ViolationKind.SCOPE_ESCAPE_VIOLATION]


def test_skipped_declaration(parse):
  validator = validator_for(
    parse,
    """
    def f():
      forward_goto(a)
      x = 1
      forward_label(a)
      print(x)
    """,
  )
  violations = validator.violations()
  assert [v.kind for v in violations] == [ViolationKind.SKIPS_DECLARATION]
  assert "x" in violations[0].message
  assert violations[0].node_id == validator.tree.of_kind(NodeKind.JUMP)[0].id


def test_skipped_declaration_in_nested_block(parse):
  assert kinds(
    parse,
    """
    def f(c):
      forward_goto(a)
      if c:
        for item in range(3):
          pass
      forward_label(a)
      return item
    """,
  ) == [ViolationKind.SKIPS_DECLARATION]


def test_skipped_function_definition(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_goto(a)
      def helper():
        return 1
      forward_label(a)
      return helper()
    """,
  ) == [ViolationKind.SKIPS_DECLARATION]


def test_rebinding_existing_name_is_safe(parse):
  assert kinds(
    parse,
    """
    def f(flag):
      x = 0
      if flag:
        forward_goto(a)
      x = 1
      forward_label(a)
      return x
    """,
  ) == []


def test_rebinding_parameter_is_safe(parse):
  assert kinds(
    parse,
    """
    def f(x, *rest, key=None, **extra):
      forward_goto(a)
      x = 2
      rest = ()
      forward_label(a)
      return x, rest, key, extra
    """,
  ) == []


def test_binding_not_read_after_label_is_safe(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_goto(a)
      tmp = compute()
      log(tmp)
      forward_label(a)
      return 0
    """,
  ) == []


def test_read_in_nested_scope_counts(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_goto(a)
      y = 1
      forward_label(a)
      return lambda: y
    """,
  ) == [ViolationKind.SKIPS_DECLARATION]


@pytest.mark.skipif(sys.version_info < (3, 12), reason="type statements need Python 3.12")
def test_skipped_type_alias(parse):
  assert kinds(
    parse,
    """
    def f():
      forward_goto(a)
      type Pair = tuple[int, int]
      forward_label(a)
      return Pair
    """,
  ) == [ViolationKind.SKIPS_DECLARATION]


def test_malformed_marker_is_reported(parse):
  assert kinds(
    parse,
    """
    def f():
      value = forward_goto(a)
      forward_label(a)
    """,
  ) == [ViolationKind.MALFORMED_MARKER]


def test_violations_sorted_in_document_order(parse):
  violations = validator_for(
    parse,
    """
    def f():
      forward_goto(missing)
      forward_label(dup)
      forward_label(dup)
      forward_goto()
    """,
  ).violations()
  assert [v.kind for v in violations] == [
    ViolationKind.UNDECLARED_LABEL,
    ViolationKind.DUPLICATE_LABEL,
    ViolationKind.MALFORMED_MARKER,
  ]


def test_validate_raises_first_violation(parse):
  validator = validator_for(
    parse,
    """
    def f():
      forward_label(top)
      forward_goto(top)
      forward_goto(nowhere)
    """,
  )
  with pytest.raises(TransformError) as exc:
    validator.validate()
  assert exc.value.kind == ViolationKind.BACKWARD_OR_SIDEWAYS_JUMP


def test_rejection_is_idempotent(parse):
  validator = validator_for(
    parse,
    """
    def f():
      forward_goto(a)
      x = 1
      forward_label(a)
      print(x)
    """,
  )
  with pytest.raises(TransformError) as first:
    validator.validate()
  with pytest.raises(TransformError) as second:
    validator.validate()
  assert first.value.violation == second.value.violation


def test_paths_order_keys(parse):
  func = parse(
    """
    def f(a):
      one()
      if a:
        two()
      else:
        three()
      four()
    """
  )
  tree = TreeBuilder().build(suite_statements(func.body))
  paths = compute_paths(tree)
  orders = [paths[s.id].order for s in tree.walk()]
  assert orders == sorted(orders)
  assert orders == [(0,), (1,), (1, 0, 0), (1, 1, 0), (2,)]
