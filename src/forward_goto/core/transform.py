"""
Stateless entry points of the rewrite pass.

``transform`` runs the three stages (build, validate, rewrite) on a statement
sequence. ``transform_function`` applies it to the body of a function
definition, treating the parameters as bound on entry.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import libcst as cst

from forward_goto.config import RuntimeConfig
from forward_goto.core.bindings import parameter_names
from forward_goto.core.builder import PositionLookup, TreeBuilder
from forward_goto.core.errors import Violation
from forward_goto.core.markers import MarkerMatcher
from forward_goto.core.rewriter import Rewriter, SkipFlag
from forward_goto.core.suites import suite_statements
from forward_goto.core.tree import StatementTree
from forward_goto.core.validator import ValidatedTree, Validator


def build_tree(
  statements: Sequence[cst.BaseStatement],
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> StatementTree:
  """
  Builds the statement arena using the configured marker names.
  """
  config = config or RuntimeConfig()
  matcher = MarkerMatcher(config.jump_marker, config.label_marker)
  return TreeBuilder(matcher=matcher, positions=positions).build(statements)


def validate(
  statements: Sequence[cst.BaseStatement],
  parameters: Iterable[str] = (),
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> ValidatedTree:
  """
  Builds and validates without rewriting.

  Raises:
      TransformError: With the first violation in document order.
  """
  tree = build_tree(statements, config, positions)
  return Validator(tree, parameters).validate()


def transform(
  statements: Sequence[cst.BaseStatement],
  parameters: Iterable[str] = (),
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> List[cst.BaseStatement]:
  """
  Eliminates the forward jumps of a statement sequence.

  Args:
      statements: Body statements in source order.
      parameters: Names bound on entry (function parameters).
      config: Marker names and flag prefix.
      positions: Optional lookup used to attach source positions to violations.

  Returns:
      List[cst.BaseStatement]: Equivalent statements without markers.

  Raises:
      TransformError: If the jump/label configuration is rejected.
  """
  config = config or RuntimeConfig()
  parameters = set(parameters)
  validated = validate(statements, parameters, config, positions)
  return Rewriter(validated, flag_prefix=config.flag_prefix, reserved_names=parameters).rewrite()


def check(
  statements: Sequence[cst.BaseStatement],
  parameters: Iterable[str] = (),
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> List[Violation]:
  """
  Lists every violation of a statement sequence (empty when it is valid).
  """
  tree = build_tree(statements, config, positions)
  return Validator(tree, parameters).violations()


def rewrite_function(
  func_def: cst.FunctionDef,
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> Tuple[cst.FunctionDef, List[SkipFlag]]:
  """
  Rewrites the body of a function definition and reports the flags it used.

  Raises:
      TransformError: If the jump/label configuration is rejected.
  """
  config = config or RuntimeConfig()
  parameters = parameter_names(func_def.params)
  validated = validate(suite_statements(func_def.body), parameters, config, positions)
  rewriter = Rewriter(validated, flag_prefix=config.flag_prefix, reserved_names=parameters)
  return func_def.with_changes(body=rewriter.rewrite_suite(func_def.body)), rewriter.flags


def transform_function(
  func_def: cst.FunctionDef,
  config: Optional[RuntimeConfig] = None,
  positions: Optional[PositionLookup] = None,
) -> cst.FunctionDef:
  """
  Rewrites the body of a function definition.

  Args:
      func_def: The function to rewrite. Decorators are left untouched.
      config: Marker names and flag prefix.
      positions: Optional source position lookup.

  Returns:
      cst.FunctionDef: The function with a rewritten body.

  Raises:
      TransformError: If the jump/label configuration is rejected.
  """
  return rewrite_function(func_def, config, positions)[0]
