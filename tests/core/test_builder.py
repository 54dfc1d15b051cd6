"""
Tests for the Tree Builder.

Verifies:
1. Block kinds and roles for every compound statement that owns a suite.
2. Marker recognition (bare names, strings, attribute calls, custom names).
3. Splitting of simple statement lines containing markers.
4. Malformed markers are recorded, never rejected.
5. Nested functions are opaque.
"""

from forward_goto.core.builder import TreeBuilder
from forward_goto.core.markers import MarkerMatcher
from forward_goto.core.suites import suite_statements
from forward_goto.enums import BlockKind, NodeKind


def build(parse, code, matcher=None):
  func = parse(code)
  return TreeBuilder(matcher=matcher).build(suite_statements(func.body))


def child_blocks(tree, stmt_id):
  return [tree.blocks[b] for b in tree.statements[stmt_id].blocks]


def test_if_elif_else_are_conditional(parse):
  tree = build(
    parse,
    """
    def f(a, b):
      if a:
        x()
      elif b:
        y()
      else:
        z()
    """,
  )
  root = tree.blocks[tree.root]
  assert len(root.children) == 1
  blocks = child_blocks(tree, root.children[0])
  assert [b.role for b in blocks] == ["body", "elif", "orelse"]
  assert all(b.kind == BlockKind.CONDITIONAL for b in blocks)
  assert all(b.depth == 1 for b in blocks)


def test_loop_body_and_else(parse):
  tree = build(
    parse,
    """
    def f(xs):
      for x in xs:
        use(x)
      else:
        done()
      while cond():
        step()
    """,
  )
  root = tree.blocks[tree.root]
  for_blocks = child_blocks(tree, root.children[0])
  assert [(b.kind, b.role) for b in for_blocks] == [
    (BlockKind.LOOP_BODY, "body"),
    (BlockKind.CONDITIONAL, "orelse"),
  ]
  while_blocks = child_blocks(tree, root.children[1])
  assert [b.kind for b in while_blocks] == [BlockKind.LOOP_BODY]


def test_try_roles(parse):
  tree = build(
    parse,
    """
    def f():
      try:
        a()
      except ValueError:
        b()
      except KeyError:
        c()
      else:
        d()
      finally:
        e()
    """,
  )
  blocks = child_blocks(tree, tree.blocks[tree.root].children[0])
  assert [b.role for b in blocks] == ["body", "handler", "handler", "try_else", "finally"]
  assert [b.kind for b in blocks] == [
    BlockKind.PLAIN,
    BlockKind.CONDITIONAL,
    BlockKind.CONDITIONAL,
    BlockKind.CONDITIONAL,
    BlockKind.PLAIN,
  ]
  assert [b.branch for b in blocks] == [0, 1, 2, 3, 4]


def test_with_and_match(parse):
  tree = build(
    parse,
    """
    def f(cmd):
      with open("x") as fh:
        fh.read()
      match cmd:
        case "a":
          a()
        case _:
          b()
    """,
  )
  root = tree.blocks[tree.root]
  assert [b.kind for b in child_blocks(tree, root.children[0])] == [BlockKind.PLAIN]
  assert [(b.kind, b.role) for b in child_blocks(tree, root.children[1])] == [
    (BlockKind.CONDITIONAL, "case"),
    (BlockKind.CONDITIONAL, "case"),
  ]


def test_markers_share_interned_label(parse):
  tree = build(
    parse,
    """
    def f():
      forward_goto(done)
      work()
      forward_label("done")
    """,
  )
  jumps = tree.of_kind(NodeKind.JUMP)
  labels = tree.of_kind(NodeKind.LABEL)
  assert len(jumps) == 1 and len(labels) == 1
  assert jumps[0].label_id == labels[0].label_id
  assert tree.labels.name_of(jumps[0].label_id) == "done"
  assert jumps[0].label_id == 0


def test_attribute_markers(parse):
  tree = build(
    parse,
    """
    def f():
      fg.forward_goto(done)
      fg.forward_label(done)
    """,
  )
  kinds = [s.kind for s in tree.walk()]
  assert kinds == [NodeKind.JUMP, NodeKind.LABEL]


def test_custom_marker_names(parse):
  tree = build(
    parse,
    """
    def f():
      skip_to(end)
      forward_goto(end)
      here(end)
    """,
    matcher=MarkerMatcher("skip_to", "here"),
  )
  kinds = [s.kind for s in tree.walk()]
  assert kinds == [NodeKind.JUMP, NodeKind.OPAQUE, NodeKind.LABEL]


def test_simple_line_is_split(parse):
  tree = build(
    parse,
    """
    def f():
      a = 1; forward_goto(done); b = 2
      forward_label(done)
    """,
  )
  kinds = [s.kind for s in tree.walk()]
  assert kinds == [NodeKind.OPAQUE, NodeKind.JUMP, NodeKind.OPAQUE, NodeKind.LABEL]
  assert all(len(s.node.body) == 1 for s in tree.walk())


def test_one_line_suite_is_expanded(parse):
  tree = build(
    parse,
    """
    def f(a):
      if a: forward_goto(done); other()
      forward_label(done)
    """,
  )
  root = tree.blocks[tree.root]
  body = child_blocks(tree, root.children[0])[0]
  assert [tree.statements[s].kind for s in body.children] == [NodeKind.JUMP, NodeKind.OPAQUE]


def test_nested_function_is_opaque(parse):
  tree = build(
    parse,
    """
    def f():
      def g():
        forward_goto(x)
        forward_label(x)
      lambda: forward_goto(y)
      return g
    """,
  )
  kinds = [s.kind for s in tree.walk()]
  assert kinds == [NodeKind.OPAQUE, NodeKind.OPAQUE, NodeKind.OPAQUE]


def test_malformed_markers_are_recorded(parse):
  tree = build(
    parse,
    """
    def f():
      forward_goto()
      forward_goto(a, b)
      forward_label(label=a)
      forward_goto("not an identifier")
      forward_goto(a.b)
      y = forward_goto(a)
      if forward_label(a):
        pass
    """,
  )
  malformed = tree.of_kind(NodeKind.MALFORMED)
  assert len(malformed) == 7
  assert "exactly one" in malformed[0].reason
  assert "positionally" in malformed[2].reason
  assert "identifier" in malformed[3].reason
  assert "statement position" in malformed[5].reason
  assert "header" in malformed[6].reason
  # The malformed compound statement keeps its nested block.
  assert len(malformed[6].blocks) == 1


def test_walk_is_document_order(parse):
  tree = build(
    parse,
    """
    def f(a):
      one()
      if a:
        two()
      else:
        three()
      four()
    """,
  )
  rendered = [s.node for s in tree.walk() if s.kind == NodeKind.OPAQUE]
  names = [line.body[0].value.func.value for line in rendered]
  assert names == ["one", "two", "three", "four"]
