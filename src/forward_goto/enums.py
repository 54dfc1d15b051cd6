"""
Enumerations for forward-goto.

This module defines the tags used by the statement arena (block and node
kinds) and the violation taxonomy reported by the validator.
"""

from enum import Enum


class BlockKind(str, Enum):
  """
  Classification of a nested statement sequence.

  The kind decides how the rewriter exits the block when a jump leaves it:
  plain and conditional blocks fall through under guards, loop bodies break.
  """

  PLAIN = "plain"  # function body, with, try, finally
  CONDITIONAL = "conditional"  # if/elif/else arms, except handlers, match cases, loop/try else
  LOOP_BODY = "loop_body"  # for/while bodies


class NodeKind(str, Enum):
  """
  Tag of a statement node inside the arena.
  """

  OPAQUE = "opaque"
  COMPOUND = "compound"
  JUMP = "jump"
  LABEL = "label"
  MALFORMED = "malformed"


class ViolationKind(str, Enum):
  """
  Reasons a jump/label configuration is rejected.
  """

  DUPLICATE_LABEL = "DuplicateLabel"
  UNDECLARED_LABEL = "UndeclaredLabel"
  UNSUPPORTED_MULTI_JUMP = "UnsupportedMultiJump"
  BACKWARD_OR_SIDEWAYS_JUMP = "BackwardOrSidewaysJump"
  SCOPE_ESCAPE_VIOLATION = "ScopeEscapeViolation"
  SKIPS_DECLARATION = "SkipsDeclaration"
  MALFORMED_MARKER = "MalformedMarker"
