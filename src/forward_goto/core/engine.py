"""
Orchestration Engine for Forward-Jump Elimination.

This module provides the `GotoEngine`, the driver that applies the rewrite
pass to a whole Python module.

The Engine pipeline consists of:

1.  **Ingestion Phase**: parses the source into a LibCST tree wrapped with
    position metadata, so violations can point at a line and column.
2.  **Selection**: picks the functions to rewrite. By default these are the
    functions decorated with the configured decorator (``@rewrite_forward_goto``);
    with ``transform_all`` every function containing a marker is selected.
3.  **Validation & Rewriting**: each selected function is validated on the
    original tree (for positions) and rewritten innermost-first. The selecting
    decorator is stripped.
4.  **Post-processing**: markers left outside rewritten functions are reported
    as warnings, or as errors in strict mode.

A single violation fails the run: the result then carries the input code
unchanged, so invalid configurations never produce emitted code.
"""

from typing import Dict, List, Optional, Tuple

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from forward_goto.config import RuntimeConfig
from forward_goto.core.bindings import parameter_names
from forward_goto.core.conversion_result import ConversionResult
from forward_goto.core.errors import SourcePosition, TransformError, Violation
from forward_goto.core.markers import MarkerMatcher
from forward_goto.core.suites import suite_statements
from forward_goto.core.tracer import TraceLogger, get_tracer, reset_tracer
from forward_goto.core.transform import build_tree, check, rewrite_function
from forward_goto.enums import NodeKind
from forward_goto.utils.node_diff import diff_nodes


def _position_of(code_range) -> Optional[SourcePosition]:
  if code_range is None:
    return None
  return SourcePosition(line=code_range.start.line, column=code_range.start.column)


class FunctionSelector:
  """
  Decides which function definitions are rewritten.
  """

  def __init__(self, config: RuntimeConfig):
    self.config = config

  def is_selector(self, decorator: cst.Decorator) -> bool:
    """
    True if `decorator` is the configured decorator, bare, called or
    accessed through a module attribute.
    """
    expr = decorator.decorator
    if isinstance(expr, cst.Call):
      expr = expr.func
    if isinstance(expr, cst.Name):
      return expr.value == self.config.decorator
    if isinstance(expr, cst.Attribute):
      return expr.attr.value == self.config.decorator
    return False

  def has_markers(self, node: cst.FunctionDef) -> bool:
    tree = build_tree(suite_statements(node.body), self.config)
    return any(s.kind in (NodeKind.JUMP, NodeKind.LABEL, NodeKind.MALFORMED) for s in tree.walk())

  def is_selected(self, node: cst.FunctionDef) -> bool:
    """
    Decides whether a function is rewritten.

    Args:
        node: The function definition.

    Returns:
        bool: True if it carries the selecting decorator, or if
        ``transform_all`` is set and its body contains markers.
    """
    if any(self.is_selector(d) for d in node.decorators):
      return True
    return self.config.transform_all and self.has_markers(node)


class _ScopedTransformer(cst.CSTTransformer):
  """Tracks the qualified name of the function being visited."""

  def __init__(self):
    super().__init__()
    self._scope: List[str] = []

  def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
    self._scope.append(node.name.value)
    return True

  def leave_ClassDef(self, original_node: cst.ClassDef, updated_node: cst.ClassDef) -> cst.ClassDef:
    self._scope.pop()
    return updated_node

  def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
    self._scope.append(node.name.value)
    return True


class FunctionRewriter(_ScopedTransformer):
  """
  Rewrites every selected function of a module.

  Functions are processed in post-order, so a selected function nested in
  another selected function is rewritten first and is opaque to the outer one.
  Violations are collected on `violations`; a function with violations is
  left as it is.
  """

  METADATA_DEPENDENCIES = (PositionProvider,)

  def __init__(self, config: RuntimeConfig, tracer: TraceLogger):
    super().__init__()
    self.config = config
    self.tracer = tracer
    self.selector = FunctionSelector(config)
    self.violations: List[Violation] = []
    self.rewritten: List[str] = []

  def _lookup(self, node: cst.CSTNode) -> Optional[SourcePosition]:
    return _position_of(self.get_metadata(PositionProvider, node, None))

  def leave_FunctionDef(self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef) -> cst.FunctionDef:
    qualname = ".".join(self._scope)
    self._scope.pop()

    if not self.selector.is_selected(original_node):
      return updated_node

    self.tracer.start_phase(f"Rewrite {qualname}", "Build, validate and rewrite")

    # Validate the original node: it is the one carrying position metadata.
    found = check(
      suite_statements(original_node.body),
      parameter_names(original_node.params),
      self.config,
      self._lookup,
    )
    if found:
      for violation in found:
        self.tracer.log_violation(violation.kind.value, violation.message, str(violation.position or ""))
      self.violations.extend(found)
      self.tracer.end_phase()
      return updated_node

    try:
      result, flags = rewrite_function(updated_node, self.config)
    except TransformError as e:
      self.tracer.log_violation(e.kind.value, e.violation.message)
      self.violations.append(e.violation)
      self.tracer.end_phase()
      return updated_node

    for flag in flags:
      self.tracer.log_pair(flag.pair.label, flag.name, flag.pair.depth)

    if self.config.strip_decorator:
      result = result.with_changes(decorators=[d for d in result.decorators if not self.selector.is_selector(d)])

    before, after, changed = diff_nodes(original_node, result)
    if changed:
      self.tracer.log_mutation(f"FunctionDef {qualname}", before, after)

    self.rewritten.append(qualname)
    self.tracer.end_phase()
    return result


class StrayMarkerScanner(cst.CSTVisitor):
  """
  Finds marker calls anywhere in a module.
  """

  METADATA_DEPENDENCIES = (PositionProvider,)

  def __init__(self, matcher: MarkerMatcher):
    super().__init__()
    self.matcher = matcher
    self.found: List[Tuple[str, Optional[SourcePosition]]] = []

  def visit_Call(self, node: cst.Call) -> None:
    kind = self.matcher.call_kind(node)
    if kind is not None:
      name = self.matcher.jump_marker if kind == NodeKind.JUMP else self.matcher.label_marker
      self.found.append((name, _position_of(self.get_metadata(PositionProvider, node, None))))


class GotoEngine:
  """
  The main compilation unit.

  Encapsulates the configuration and the pipeline required to rewrite a
  single module of code.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None):
    """
    Initializes the Engine.

    Args:
        config (RuntimeConfig, optional): The runtime configuration object.
            Loaded from ``pyproject.toml`` if None.
    """
    self.config = config or RuntimeConfig.load()

  def parse(self, code: str) -> cst.Module:
    """
    Parses source string into a LibCST Module.

    Raises:
        libcst.ParserSyntaxError: If the input code is invalid Python.
    """
    return cst.parse_module(code)

  def run(self, code: str) -> ConversionResult:
    """
    Executes the full rewrite pipeline.

    Args:
        code (str): The input source string.

    Returns:
        ConversionResult: Object containing transformed code and error logs.
    """
    reset_tracer()
    tracer = get_tracer()
    tracer.start_phase("Forward Goto Pipeline", f"strict={self.config.strict_mode}")

    tracer.start_phase("Preprocessing", "Parsing")
    try:
      wrapper = MetadataWrapper(self.parse(code))
    except cst.ParserSyntaxError as e:
      tracer.log_violation("ParseError", str(e))
      tracer.end_phase()
      tracer.end_phase()
      return ConversionResult(code=code, errors=[f"Parse Error: {e}"], success=False, trace_events=tracer.export())
    tracer.end_phase()

    rewriter = FunctionRewriter(self.config, tracer)
    tree = wrapper.visit(rewriter)

    if rewriter.violations:
      tracer.end_phase()
      return ConversionResult(
        code=code,
        errors=[v.render() for v in rewriter.violations],
        violations=rewriter.violations,
        success=False,
        trace_events=tracer.export(),
      )

    warnings, errors = self._scan_leftovers(tree, tracer)
    tracer.end_phase()
    return ConversionResult(
      code=tree.code,
      errors=errors,
      warnings=warnings,
      functions=rewriter.rewritten,
      success=not errors,
      trace_events=tracer.export(),
    )

  def _scan_leftovers(self, tree: cst.Module, tracer: TraceLogger) -> Tuple[List[str], List[str]]:
    scanner = StrayMarkerScanner(MarkerMatcher(self.config.jump_marker, self.config.label_marker))
    MetadataWrapper(tree).visit(scanner)

    messages = [_leftover_message(name, position) for name, position in scanner.found]
    for message in messages:
      tracer.log_warning(message)

    if self.config.strict_mode:
      return [], messages
    return messages, []


def _leftover_message(name: str, position: Optional[SourcePosition]) -> str:
  prefix = f"{position}: " if position else ""
  return f"{prefix}'{name}' call outside a rewritten function"


def select_functions(code: str, config: Optional[RuntimeConfig] = None) -> Dict[str, cst.FunctionDef]:
  """
  Returns the functions the engine would rewrite, keyed by qualified name.

  Raises:
      libcst.ParserSyntaxError: If the input code is invalid Python.
  """
  config = config or RuntimeConfig()
  collector = _SelectionCollector(config)
  cst.parse_module(code).visit(collector)
  return collector.selected


class _SelectionCollector(cst.CSTVisitor):
  def __init__(self, config: RuntimeConfig):
    self.selector = FunctionSelector(config)
    self.selected: Dict[str, cst.FunctionDef] = {}
    self._scope: List[str] = []

  def visit_ClassDef(self, node: cst.ClassDef) -> Optional[bool]:
    self._scope.append(node.name.value)
    return True

  def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
    self._scope.pop()

  def visit_FunctionDef(self, node: cst.FunctionDef) -> Optional[bool]:
    self._scope.append(node.name.value)
    if self.selector.is_selected(node):
      self.selected[".".join(self._scope)] = node
    return True

  def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
    self._scope.pop()
