"""
Skip-Flag Rewriter.

Turns a `ValidatedTree` back into libcst statements with every jump replaced
by structured code. For each jump/label pair:

1.  A fresh flag is initialised to ``False`` in the lowest common ancestor
    (LCA) block, right before the child holding the jump.
2.  The jump becomes ``flag = True``.
3.  Every LCA child between the jump's child and the label is guarded with
    ``if not flag:``. Nested blocks are guarded as a unit.
4.  On every level between the jump and the LCA, the statements following the
    jump's ancestor are guarded too, so falling off the end of the jump's own
    block behaves like jumping. Loop bodies are left with ``break`` instead,
    and a ``try ... else:`` is guarded when the jump leaves the ``try`` body.
5.  Label markers are deleted.

Edits are planned against statement ids first and applied during a single
emission walk, so the arena is never mutated while paths are in use. Blocks
without edits are emitted verbatim.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import libcst as cst

from forward_goto.core.bindings import collect_usage
from forward_goto.core.suites import make_suite, replace_suites
from forward_goto.core.tree import Statement
from forward_goto.core.validator import JumpLabelPair, ValidatedTree
from forward_goto.enums import BlockKind, NodeKind


@dataclass(frozen=True)
class SkipFlag:
  """
  A synthesized boolean recording that the jump of `pair` was taken.
  """

  name: str
  pair: JumpLabelPair


class Rewriter:
  """
  Emits the structured equivalent of a validated tree.
  """

  def __init__(self, validated: ValidatedTree, flag_prefix: str = "_goto_skip", reserved_names: Iterable[str] = ()):
    """
    Args:
        validated: Output of the `Validator`.
        flag_prefix: Prefix of the generated flag names.
        reserved_names: Names the flags must not shadow (e.g. parameters).
            Names used anywhere in the body are reserved automatically.
    """
    self.validated = validated
    self.tree = validated.tree
    self.flag_prefix = flag_prefix
    self.flags: List[SkipFlag] = []

    self._reserved: Set[str] = set(reserved_names)
    for stmt_id in self.tree.blocks[self.tree.root].children:
      usage = collect_usage(self.tree.statements[stmt_id].node)
      self._reserved |= usage.bound | usage.read

    self._inits: Dict[int, List[str]] = {}
    self._jump_flags: Dict[int, str] = {}
    self._jump_breaks: Set[int] = set()
    self._guards: Dict[int, List[str]] = {}
    self._block_guards: Dict[int, List[str]] = {}
    self._breaks_after: Dict[int, List[str]] = {}
    self._touched: Set[int] = set()
    self._footers: Dict[int, List[cst.EmptyLine]] = {}

  def rewrite(self) -> List[cst.BaseStatement]:
    """
    Plans and applies all edits.

    Returns:
        List[cst.BaseStatement]: The rewritten body (never empty).
    """
    # Innermost pairs first; ties in document order of the jumps.
    for pair in sorted(self.validated.pairs, key=lambda p: (-p.depth, self.validated.paths[p.jump].order)):
      self._plan_pair(pair)

    for stmt in self.tree.of_kind(NodeKind.LABEL):
      self._touched.update(self.validated.paths[stmt.id].blocks)

    body = self._emit_block(self.tree.root)
    return body or [cst.SimpleStatementLine(body=[cst.Pass()])]

  def rewrite_suite(self, suite: cst.BaseSuite) -> cst.BaseSuite:
    """
    Rewrites the body and puts it back into `suite` (e.g. a function body).
    Comments of a label ending the body are kept in the suite footer.
    """
    body = self.rewrite()
    return _with_footer(make_suite(suite, body), self._footers.get(self.tree.root))

  # --- Planning ---

  def _new_flag(self, label: str) -> str:
    base = f"{self.flag_prefix}_{label}"
    name = base
    counter = 1
    while name in self._reserved:
      name = f"{base}_{counter}"
      counter += 1
    self._reserved.add(name)
    return name

  def _plan_pair(self, pair: JumpLabelPair) -> None:
    flag = self._new_flag(pair.label)
    self.flags.append(SkipFlag(name=flag, pair=pair))

    lca = self.tree.blocks[pair.lca]
    self._inits.setdefault(lca.children[pair.jump_index], []).append(flag)
    self._jump_flags[pair.jump] = flag

    for stmt_id in lca.children[pair.jump_index + 1 : pair.label_index]:
      self._guards.setdefault(stmt_id, []).append(flag)

    # Exit every block between the jump site and the LCA.
    current = self.tree.statements[pair.jump]
    while current.parent != pair.lca:
      block = self.tree.blocks[current.parent]
      if block.kind == BlockKind.LOOP_BODY:
        if current.id == pair.jump:
          self._jump_breaks.add(pair.jump)
        else:
          self._breaks_after.setdefault(current.id, []).append(flag)
      else:
        for stmt_id in block.children[current.index + 1 :]:
          self._guards.setdefault(stmt_id, []).append(flag)

      owner = self.tree.statements[block.owner]
      if block.role == "body":
        for sibling in owner.blocks:
          if self.tree.blocks[sibling].role == "try_else":
            self._block_guards.setdefault(sibling, []).append(flag)
            self._touched.add(sibling)
      current = owner

    self._touched.update(self.validated.paths[pair.jump].blocks)
    self._touched.update(self.validated.paths[pair.target].blocks)

  # --- Emission ---

  def _emit_block(self, block_id: int) -> List[cst.BaseStatement]:
    out: List[cst.BaseStatement] = []
    run: List[cst.BaseStatement] = []
    run_flags: Tuple[str, ...] = ()
    # Comments of deleted labels, attached to the next emitted statement.
    pending: List[cst.EmptyLine] = []

    def flush() -> None:
      nonlocal run, run_flags
      if run:
        out.append(_guard(run_flags, run))
      run, run_flags = [], ()

    def attach(node: cst.BaseStatement) -> cst.BaseStatement:
      nonlocal pending
      if pending:
        node = node.with_changes(leading_lines=[*pending, *node.leading_lines])
        pending = []
      return node

    for stmt_id in self.tree.blocks[block_id].children:
      stmt = self.tree.statements[stmt_id]

      if stmt.kind == NodeKind.LABEL:
        pending.extend(_label_comments(stmt.node))
        continue

      for flag in self._inits.get(stmt_id, []):
        flush()
        out.append(attach(_assign(flag, False)))

      emitted = self._emit_statement(stmt)
      flags = tuple(self._guards.get(stmt_id, ()))
      if emitted:
        emitted[0] = attach(emitted[0])
        if flags and flags == run_flags:
          run.extend(emitted)
        elif flags:
          flush()
          run, run_flags = list(emitted), flags
        else:
          flush()
          out.extend(emitted)

      for flag in self._breaks_after.get(stmt_id, []):
        flush()
        out.append(attach(_break_if(flag)))

    flush()
    if pending:
      self._footers[block_id] = pending
    return out

  def _emit_statement(self, stmt: Statement) -> List[cst.BaseStatement]:
    if stmt.kind == NodeKind.JUMP:
      flag = self._jump_flags[stmt.id]
      emitted: List[cst.BaseStatement] = [
        _assign(flag, True).with_changes(
          leading_lines=stmt.node.leading_lines,
          trailing_whitespace=stmt.node.trailing_whitespace,
        )
      ]
      if stmt.id in self._jump_breaks:
        emitted.append(cst.SimpleStatementLine(body=[cst.Break()]))
      return emitted

    if stmt.blocks and any(b in self._touched for b in stmt.blocks):
      suites = [self._emit_suite(b) for b in stmt.blocks]
      return [replace_suites(stmt.node, suites)]

    return [stmt.node]

  def _emit_suite(self, block_id: int) -> cst.BaseSuite:
    block = self.tree.blocks[block_id]
    if block_id not in self._touched:
      return block.suite

    body = self._emit_block(block_id)
    flags = self._block_guards.get(block_id)
    if flags and body:
      body = [_guard(tuple(flags), body)]
    return _with_footer(make_suite(block.suite, body), self._footers.get(block_id))


def _assign(flag: str, value: bool) -> cst.SimpleStatementLine:
  return cst.SimpleStatementLine(
    body=[cst.Assign(targets=[cst.AssignTarget(target=cst.Name(flag))], value=cst.Name("True" if value else "False"))]
  )


def _break_if(flag: str) -> cst.If:
  return cst.If(test=cst.Name(flag), body=cst.IndentedBlock(body=[cst.SimpleStatementLine(body=[cst.Break()])]))


def _guard_test(flags: Sequence[str]) -> cst.BaseExpression:
  if len(flags) == 1:
    return cst.UnaryOperation(operator=cst.Not(), expression=cst.Name(flags[0]))

  expr: cst.BaseExpression = cst.Name(flags[0])
  for flag in flags[1:]:
    expr = cst.BooleanOperation(left=expr, operator=cst.Or(), right=cst.Name(flag))
  expr = expr.with_changes(lpar=[cst.LeftParen()], rpar=[cst.RightParen()])
  return cst.UnaryOperation(operator=cst.Not(), expression=expr)


def _guard(flags: Sequence[str], body: List[cst.BaseStatement]) -> cst.If:
  """
  Wraps `body` in ``if not (flags...):``, hoisting the first statement's
  leading blank lines and comments above the guard.
  """
  first = body[0]
  leading: Optional[Sequence[cst.EmptyLine]] = getattr(first, "leading_lines", None)
  if leading:
    body = [first.with_changes(leading_lines=[]), *body[1:]]
    return cst.If(test=_guard_test(flags), body=cst.IndentedBlock(body=body), leading_lines=leading)
  return cst.If(test=_guard_test(flags), body=cst.IndentedBlock(body=body))


def _label_comments(line: cst.SimpleStatementLine) -> List[cst.EmptyLine]:
  """Leading lines of a label, plus its trailing comment as a line of its own."""
  lines = list(line.leading_lines)
  comment = line.trailing_whitespace.comment
  if comment is not None:
    lines.append(cst.EmptyLine(comment=comment))
  return lines


def _with_footer(suite: cst.BaseSuite, lines: Optional[Sequence[cst.EmptyLine]]) -> cst.BaseSuite:
  if lines and isinstance(suite, cst.IndentedBlock):
    return suite.with_changes(footer=[*lines, *suite.footer])
  return suite
