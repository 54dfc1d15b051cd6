"""
Suite Access for Compound Statements.

Describes which libcst compound statements own nested statement sequences,
how those sequences are classified, and how to put rewritten sequences back.
`extract_suites` and `replace_suites` are exact mirrors: the list returned by
the former is the list the latter expects.
"""

from typing import Iterator, List, NamedTuple, Optional

import libcst as cst

from forward_goto.enums import BlockKind


class SuiteSlot(NamedTuple):
  suite: cst.BaseSuite
  kind: BlockKind
  role: str


_TRY_TYPES = tuple(t for t in (getattr(cst, "Try", None), getattr(cst, "TryStar", None)) if t is not None)


def extract_suites(node: cst.CSTNode) -> Optional[List[SuiteSlot]]:
  """
  Lists the nested suites of a compound statement.

  Nested function and class definitions are not listed: their bodies belong
  to a different scope and are treated as opaque statements.

  Args:
      node: A statement node.

  Returns:
      Optional[List[SuiteSlot]]: The suites in source order, or None if the
      statement does not own any block this pass descends into.
  """
  if isinstance(node, cst.If):
    slots = [SuiteSlot(node.body, BlockKind.CONDITIONAL, "body")]
    orelse = node.orelse
    while isinstance(orelse, cst.If):
      slots.append(SuiteSlot(orelse.body, BlockKind.CONDITIONAL, "elif"))
      orelse = orelse.orelse
    if isinstance(orelse, cst.Else):
      slots.append(SuiteSlot(orelse.body, BlockKind.CONDITIONAL, "orelse"))
    return slots

  if isinstance(node, (cst.For, cst.While)):
    slots = [SuiteSlot(node.body, BlockKind.LOOP_BODY, "body")]
    if node.orelse is not None:
      slots.append(SuiteSlot(node.orelse.body, BlockKind.CONDITIONAL, "orelse"))
    return slots

  if isinstance(node, cst.With):
    return [SuiteSlot(node.body, BlockKind.PLAIN, "body")]

  if isinstance(node, _TRY_TYPES):
    slots = [SuiteSlot(node.body, BlockKind.PLAIN, "body")]
    slots.extend(SuiteSlot(h.body, BlockKind.CONDITIONAL, "handler") for h in node.handlers)
    if node.orelse is not None:
      slots.append(SuiteSlot(node.orelse.body, BlockKind.CONDITIONAL, "try_else"))
    if node.finalbody is not None:
      slots.append(SuiteSlot(node.finalbody.body, BlockKind.PLAIN, "finally"))
    return slots

  if isinstance(node, cst.Match):
    return [SuiteSlot(case.body, BlockKind.CONDITIONAL, "case") for case in node.cases]

  return None


def replace_suites(node: cst.BaseCompoundStatement, suites: List[cst.BaseSuite]) -> cst.BaseCompoundStatement:
  """
  Returns a copy of `node` with its nested suites replaced.

  Args:
      node: The compound statement originally passed to `extract_suites`.
      suites: New suites, one per slot, in the same order.

  Returns:
      cst.BaseCompoundStatement: The rebuilt statement.
  """
  it = iter(suites)

  if isinstance(node, cst.If):
    return _rebuild_if(node, it)

  if isinstance(node, (cst.For, cst.While)):
    body = next(it)
    orelse = node.orelse.with_changes(body=next(it)) if node.orelse is not None else None
    return node.with_changes(body=body, orelse=orelse)

  if isinstance(node, cst.With):
    return node.with_changes(body=next(it))

  if isinstance(node, _TRY_TYPES):
    body = next(it)
    handlers = [h.with_changes(body=next(it)) for h in node.handlers]
    orelse = node.orelse.with_changes(body=next(it)) if node.orelse is not None else None
    finalbody = node.finalbody.with_changes(body=next(it)) if node.finalbody is not None else None
    return node.with_changes(body=body, handlers=handlers, orelse=orelse, finalbody=finalbody)

  if isinstance(node, cst.Match):
    return node.with_changes(cases=[case.with_changes(body=next(it)) for case in node.cases])

  raise TypeError(f"Statement has no rewritable suites: {type(node).__name__}")


def _rebuild_if(node: cst.If, it: Iterator[cst.BaseSuite]) -> cst.If:
  body = next(it)
  orelse = node.orelse
  if isinstance(orelse, cst.If):
    orelse = _rebuild_if(orelse, it)
  elif isinstance(orelse, cst.Else):
    orelse = orelse.with_changes(body=next(it))
  return node.with_changes(body=body, orelse=orelse)


def suite_statements(suite: cst.BaseSuite) -> List[cst.BaseStatement]:
  """
  Returns the statements of a suite as full statement nodes.

  A one-line suite (``if x: a(); b()``) is expanded into one
  `SimpleStatementLine` per small statement.
  """
  if isinstance(suite, cst.IndentedBlock):
    return list(suite.body)
  return [cst.SimpleStatementLine(body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)]) for small in suite.body]


def make_suite(original: Optional[cst.BaseSuite], body: List[cst.BaseStatement]) -> cst.BaseSuite:
  """
  Builds an indented suite for rewritten statements, keeping the original
  header, indentation and footer when the original was already indented.
  """
  if not body:
    body = [cst.SimpleStatementLine(body=[cst.Pass()])]
  if isinstance(original, cst.IndentedBlock):
    return original.with_changes(body=body)
  return cst.IndentedBlock(body=body)
