"""
Tree Builder.

Turns the statement list of a function body into a `StatementTree`. Every
compound statement listed by `extract_suites` becomes a COMPOUND node whose
suites are child blocks; marker calls become JUMP / LABEL nodes with interned
label ids. The builder never rejects input: malformed markers are recorded as
MALFORMED nodes and reported later by the validator, so diagnostics can refer
to positions in the built tree.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import libcst as cst

from forward_goto.core.errors import SourcePosition
from forward_goto.core.markers import MarkerCallFinder, MarkerMatcher
from forward_goto.core.suites import extract_suites, suite_statements
from forward_goto.core.tree import StatementTree
from forward_goto.enums import BlockKind, NodeKind

PositionLookup = Callable[[cst.CSTNode], Optional[SourcePosition]]

# (statement to store, node to resolve the source position from)
_Item = Tuple[cst.BaseStatement, cst.CSTNode]


def _no_positions(node: cst.CSTNode) -> Optional[SourcePosition]:
  return None


class TreeBuilder:
  """
  Builds the arena for one function body.
  """

  def __init__(self, matcher: Optional[MarkerMatcher] = None, positions: Optional[PositionLookup] = None):
    """
    Args:
        matcher: Marker recogniser (defaults to ``forward_goto`` / ``forward_label``).
        positions: Callable resolving a libcst node to its source position.
            Only nodes of the originally parsed module have positions.
    """
    self.matcher = matcher or MarkerMatcher()
    self.positions = positions or _no_positions

  def build(self, statements: Sequence[cst.BaseStatement]) -> StatementTree:
    """
    Builds the tree of a statement sequence.

    Args:
        statements: The body statements, in source order.

    Returns:
        StatementTree: The arena with its root block set.
    """
    tree = StatementTree()
    root = tree.new_block(BlockKind.PLAIN, owner=None, branch=0, role="body", suite=None)
    tree.root = root.id
    self._fill(tree, root.id, [(stmt, stmt) for stmt in statements])
    return tree

  def _fill(self, tree: StatementTree, block_id: int, items: List[_Item]) -> None:
    for stmt, source in items:
      if isinstance(stmt, cst.SimpleStatementLine):
        self._add_simple_line(tree, block_id, stmt, source)
      else:
        self._add_compound(tree, block_id, stmt)

  def _add_simple_line(self, tree: StatementTree, block_id: int, line: cst.SimpleStatementLine, source: cst.CSTNode) -> None:
    matches = [self.matcher.match_statement(small) for small in line.body]
    if all(m is None for m in matches):
      self._add_opaque(tree, block_id, line, source)
      return

    # One node per small statement so markers can be replaced individually.
    originals = line.body if source is line else [source]
    for i, (small, match) in enumerate(zip(line.body, matches)):
      piece = line.with_changes(
        body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)],
        leading_lines=line.leading_lines if i == 0 else [],
        trailing_whitespace=line.trailing_whitespace if i == len(line.body) - 1 else cst.TrailingWhitespace(),
      )
      position = self.positions(originals[i])

      if match is None:
        self._add_opaque(tree, block_id, piece, originals[i])
      elif match.kind == NodeKind.MALFORMED:
        tree.new_statement(NodeKind.MALFORMED, piece, block_id, position=position, reason=match.reason)
      else:
        label_id = tree.labels.intern(match.label)
        tree.new_statement(match.kind, piece, block_id, label_id=label_id, position=position)

  def _add_opaque(self, tree: StatementTree, block_id: int, stmt: cst.BaseStatement, source: cst.CSTNode) -> None:
    stray = self._stray_marker(stmt)
    if stray is not None:
      tree.new_statement(
        NodeKind.MALFORMED,
        stmt,
        block_id,
        position=self.positions(stray) or self.positions(source),
        reason="marker call used outside statement position",
      )
      return
    tree.new_statement(NodeKind.OPAQUE, stmt, block_id, position=self.positions(source))

  def _add_compound(self, tree: StatementTree, block_id: int, stmt: cst.BaseStatement) -> None:
    slots = extract_suites(stmt)
    if slots is None:
      self._add_opaque(tree, block_id, stmt, stmt)
      return

    stray = self._stray_marker(stmt)
    if stray is not None:
      node = tree.new_statement(
        NodeKind.MALFORMED,
        stmt,
        block_id,
        position=self.positions(stray) or self.positions(stmt),
        reason="marker call used in a compound statement header",
      )
    else:
      node = tree.new_statement(NodeKind.COMPOUND, stmt, block_id, position=self.positions(stmt))

    for branch, slot in enumerate(slots):
      block = tree.new_block(slot.kind, owner=node.id, branch=branch, role=slot.role, suite=slot.suite)
      node.blocks.append(block.id)
      statements = suite_statements(slot.suite)
      sources = statements if isinstance(slot.suite, cst.IndentedBlock) else list(slot.suite.body)
      self._fill(tree, block.id, list(zip(statements, sources)))

  def _stray_marker(self, stmt: cst.BaseStatement) -> Optional[cst.Call]:
    finder = MarkerCallFinder(self.matcher)
    stmt.visit(finder)
    return finder.found[0] if finder.found else None
