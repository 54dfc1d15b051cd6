"""
Marker Recognition.

Jumps and labels are written as ordinary call statements:

.. code-block:: python

    forward_goto(done)      # or forward_goto("done")
    ...
    forward_label(done)

`MarkerMatcher` recognises the fixed statement forms. `MarkerCallFinder`
locates marker calls in any other position (inside expressions or compound
statement headers) so the validator can reject them.
"""

from typing import List, NamedTuple, Optional

import libcst as cst

from forward_goto.enums import NodeKind


class MarkerMatch(NamedTuple):
  kind: NodeKind
  label: Optional[str] = None
  reason: Optional[str] = None


class MarkerMatcher:
  """
  Classifies calls and small statements against the configured marker names.
  """

  def __init__(self, jump_marker: str = "forward_goto", label_marker: str = "forward_label"):
    self.jump_marker = jump_marker
    self.label_marker = label_marker

  def call_kind(self, call: cst.Call) -> Optional[NodeKind]:
    """
    Returns JUMP or LABEL if `call` invokes a marker, else None.
    """
    func = call.func
    if isinstance(func, cst.Name):
      name = func.value
    elif isinstance(func, cst.Attribute):
      name = func.attr.value
    else:
      return None

    if name == self.jump_marker:
      return NodeKind.JUMP
    if name == self.label_marker:
      return NodeKind.LABEL
    return None

  def match_statement(self, small: cst.BaseSmallStatement) -> Optional[MarkerMatch]:
    """
    Matches an expression statement of the form ``marker(label)``.

    Args:
        small: One small statement of a simple statement line.

    Returns:
        Optional[MarkerMatch]: None if the statement is not a marker call.
        A MALFORMED match if it is a marker call with the wrong arguments.
    """
    if not isinstance(small, cst.Expr) or not isinstance(small.value, cst.Call):
      return None

    call = small.value
    kind = self.call_kind(call)
    if kind is None:
      return None

    marker = self.jump_marker if kind == NodeKind.JUMP else self.label_marker
    if len(call.args) != 1:
      return MarkerMatch(NodeKind.MALFORMED, reason=f"'{marker}' takes exactly one label argument")

    arg = call.args[0]
    if arg.keyword is not None or arg.star:
      return MarkerMatch(NodeKind.MALFORMED, reason=f"'{marker}' label must be passed positionally")

    label = _label_name(arg.value)
    if label is None:
      return MarkerMatch(NodeKind.MALFORMED, reason=f"'{marker}' label must be an identifier or identifier string")

    return MarkerMatch(kind, label=label)


def _label_name(value: cst.BaseExpression) -> Optional[str]:
  if isinstance(value, cst.Name):
    return value.value
  if isinstance(value, cst.SimpleString):
    text = value.evaluated_value
    if isinstance(text, str) and text.isidentifier():
      return text
  return None


class MarkerCallFinder(cst.CSTVisitor):
  """
  Collects marker calls outside statement position.

  Traversal stops at nested suites (handled by the tree builder as separate
  statements) and at nested scopes (functions, classes, lambdas), whose
  markers belong to another function.
  """

  def __init__(self, matcher: MarkerMatcher):
    self.matcher = matcher
    self.found: List[cst.Call] = []

  def visit_Call(self, node: cst.Call) -> Optional[bool]:
    if self.matcher.call_kind(node) is not None:
      self.found.append(node)
    return True

  def visit_IndentedBlock(self, node: cst.IndentedBlock) -> Optional[bool]:
    return False

  def visit_SimpleStatementSuite(self, node: cst.SimpleStatementSuite) -> Optional[bool]:
    return False

  def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
    return False

  def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
    return False

  def visit_Lambda(self, node: cst.Lambda) -> Optional[bool]:
    return False
