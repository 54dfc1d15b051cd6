"""
Structured failures of the rewrite pass.

A rejected jump/label configuration is described by a `Violation` (kind,
label, message, source position). The core raises it wrapped in a
`TransformError`; the engine catches the error and stores the violation in
its `ConversionResult`.
"""

from typing import Optional

from pydantic import BaseModel, Field

from forward_goto.enums import ViolationKind


class SourcePosition(BaseModel):
  """
  One-based line and zero-based column of a node in the parsed source.
  """

  line: int
  column: int = 0

  def __str__(self) -> str:
    return f"{self.line}:{self.column}"


class Violation(BaseModel):
  """
  A single rejected jump/label configuration.
  """

  kind: ViolationKind = Field(description="Taxonomy kind of the failure.")
  label: Optional[str] = Field(None, description="Label name involved, if any.")
  message: str = Field(description="Human-readable explanation.")
  position: Optional[SourcePosition] = Field(None, description="Position of the offending node.")
  node_id: Optional[int] = Field(None, description="Arena id of the offending node.")

  def render(self) -> str:
    """
    Formats the violation as a one-line diagnostic.

    Returns:
        str: ``"<line>:<col>: <Kind>: <message>"`` (position omitted when unknown).
    """
    prefix = f"{self.position}: " if self.position else ""
    return f"{prefix}{self.kind.value}: {self.message}"


class TransformError(Exception):
  """
  Raised when a statement sequence cannot be rewritten.

  Attributes:
      violation (Violation): The first failure found in document order.
  """

  def __init__(self, violation: Violation):
    super().__init__(violation.render())
    self.violation = violation

  @property
  def kind(self) -> ViolationKind:
    return self.violation.kind

  @property
  def position(self) -> Optional[SourcePosition]:
    return self.violation.position
