"""
Name Binding and Usage Collection.

Provides the `NameUsageCollector`, a LibCST visitor recording which local
names a statement binds and which names it reads. The validator uses it for
the declaration-safety check: a name bound only inside a skipped region must
not be read after the label.

The analysis is deliberately syntactic and conservative:
- Names read inside nested functions, lambdas and comprehensions count as
  reads of the enclosing function's names.
- Bindings inside nested scopes are ignored (they live in another frame).
- Attribute names and keyword argument names are neither bindings nor reads.
"""

from dataclasses import dataclass, field
from typing import Set

import libcst as cst


@dataclass
class NameUsage:
  bound: Set[str] = field(default_factory=set)
  read: Set[str] = field(default_factory=set)


class NameUsageCollector(cst.CSTVisitor):
  """
  Collects bound and read names of a statement.

  When `header_only` is set, nested suites are not visited. This is used for
  compound statements whose blocks are represented as separate arena nodes.
  """

  def __init__(self, header_only: bool = False):
    self.header_only = header_only
    self.usage = NameUsage()
    self._scope_depth = 0

  def _bind(self, name: str) -> None:
    if self._scope_depth == 0:
      self.usage.bound.add(name)

  def _bind_target(self, target: cst.BaseExpression) -> None:
    """
    Records the names bound by an assignment target.
    Recurses for tuple/list unpacking; attributes and subscripts are reads.
    """
    if isinstance(target, cst.Name):
      self._bind(target.value)
    elif isinstance(target, (cst.Tuple, cst.List)):
      for element in target.elements:
        self._bind_target(element.value)
    elif isinstance(target, cst.StarredElement):
      self._bind_target(target.value)
    else:
      target.visit(self)

  # --- Reads ---

  def visit_Name(self, node: cst.Name) -> None:
    self.usage.read.add(node.value)

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    node.value.visit(self)
    return False

  def visit_Arg(self, node: cst.Arg) -> bool:
    node.value.visit(self)
    return False

  def visit_Global(self, node: cst.Global) -> bool:
    return False

  def visit_Nonlocal(self, node: cst.Nonlocal) -> bool:
    return False

  # --- Suites ---

  def visit_IndentedBlock(self, node: cst.IndentedBlock) -> bool:
    return not self.header_only

  def visit_SimpleStatementSuite(self, node: cst.SimpleStatementSuite) -> bool:
    return not self.header_only

  # --- Bindings ---

  def visit_Assign(self, node: cst.Assign) -> bool:
    for target in node.targets:
      self._bind_target(target.target)
    node.value.visit(self)
    return False

  def visit_AnnAssign(self, node: cst.AnnAssign) -> bool:
    node.annotation.visit(self)
    if node.value is not None:
      self._bind_target(node.target)
      node.value.visit(self)
    return False

  def visit_NamedExpr(self, node: cst.NamedExpr) -> bool:
    self._bind_target(node.target)
    node.value.visit(self)
    return False

  def visit_For(self, node: cst.For) -> bool:
    self._bind_target(node.target)
    node.iter.visit(self)
    node.body.visit(self)
    if node.orelse is not None:
      node.orelse.visit(self)
    return False

  def visit_WithItem(self, node: cst.WithItem) -> bool:
    node.item.visit(self)
    if node.asname is not None:
      self._bind_target(node.asname.name)
    return False

  def visit_ExceptHandler(self, node: cst.ExceptHandler) -> bool:
    if node.type is not None:
      node.type.visit(self)
    if node.name is not None:
      self._bind_target(node.name.name)
    node.body.visit(self)
    return False

  def visit_ExceptStarHandler(self, node: cst.ExceptStarHandler) -> bool:
    node.type.visit(self)
    if node.name is not None:
      self._bind_target(node.name.name)
    node.body.visit(self)
    return False

  def visit_Import(self, node: cst.Import) -> bool:
    for alias in node.names:
      if alias.asname is not None:
        self._bind_target(alias.asname.name)
      else:
        root = alias.name
        while isinstance(root, cst.Attribute):
          root = root.value
        self._bind_target(root)
    return False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
    if isinstance(node.names, cst.ImportStar):
      return False
    for alias in node.names:
      target = alias.asname.name if alias.asname is not None else alias.name
      self._bind_target(target)
    return False

  def visit_MatchAs(self, node: cst.MatchAs) -> bool:
    if node.name is not None:
      self._bind(node.name.value)
    if node.pattern is not None:
      node.pattern.visit(self)
    return False

  def visit_MatchStar(self, node: cst.MatchStar) -> bool:
    if node.name is not None:
      self._bind(node.name.value)
    return False

  def visit_MatchMapping(self, node: cst.MatchMapping) -> bool:
    for element in node.elements:
      element.key.visit(self)
      element.pattern.visit(self)
    if node.rest is not None:
      self._bind(node.rest.value)
    return False

  def visit_MatchKeywordElement(self, node: cst.MatchKeywordElement) -> bool:
    node.pattern.visit(self)
    return False

  def visit_CompFor(self, node: cst.CompFor) -> bool:
    node.iter.visit(self)
    for condition in node.ifs:
      condition.visit(self)
    if node.inner_for_in is not None:
      node.inner_for_in.visit(self)
    return False

  # --- Nested scopes ---

  def visit_Param(self, node: cst.Param) -> bool:
    if node.annotation is not None:
      node.annotation.visit(self)
    if node.default is not None:
      node.default.visit(self)
    return False

  def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
    self._bind(node.name.value)
    for decorator in node.decorators:
      decorator.visit(self)
    node.params.visit(self)
    if node.returns is not None:
      node.returns.visit(self)
    self._scope_depth += 1
    node.body.visit(self)
    self._scope_depth -= 1
    return False

  def visit_ClassDef(self, node: cst.ClassDef) -> bool:
    self._bind(node.name.value)
    for decorator in node.decorators:
      decorator.visit(self)
    for arg in (*node.bases, *node.keywords):
      arg.visit(self)
    self._scope_depth += 1
    node.body.visit(self)
    self._scope_depth -= 1
    return False

  def visit_TypeAlias(self, node: cst.TypeAlias) -> bool:
    self._bind(node.name.value)
    self._scope_depth += 1
    if node.type_parameters is not None:
      node.type_parameters.visit(self)
    node.value.visit(self)
    self._scope_depth -= 1
    return False

  def visit_Lambda(self, node: cst.Lambda) -> None:
    self._scope_depth += 1

  def leave_Lambda(self, original_node: cst.Lambda) -> None:
    self._scope_depth -= 1


def collect_usage(node: cst.CSTNode, header_only: bool = False) -> NameUsage:
  """
  Returns the names bound and read by `node`.

  Args:
      node: Any statement node.
      header_only: Skip nested suites (compound statement headers only).
  """
  collector = NameUsageCollector(header_only=header_only)
  node.visit(collector)
  return collector.usage


def parameter_names(params: cst.Parameters) -> Set[str]:
  """
  Returns every name bound by a function's parameter list.
  """
  names = {p.name.value for p in (*params.posonly_params, *params.params, *params.kwonly_params)}
  if isinstance(params.star_arg, cst.Param):
    names.add(params.star_arg.name.value)
  if params.star_kwarg is not None:
    names.add(params.star_kwarg.name.value)
  return names
