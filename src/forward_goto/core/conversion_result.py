"""
Data structures representing the output of the rewrite pipeline.

This module defines the `ConversionResult` Pydantic model, which encapsulates
the generated code, any errors encountered, the structured violations and the
execution trace logs.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from forward_goto.core.errors import Violation


class ConversionResult(BaseModel):
  """
  Container for the results of a rewrite job.
  """

  code: str = Field(default="", description="The generated source code.")
  errors: List[str] = Field(default_factory=list, description="List of error messages encountered.")
  warnings: List[str] = Field(default_factory=list, description="Non-fatal findings (e.g. stray markers).")
  violations: List[Violation] = Field(default_factory=list, description="Rejected jump/label configurations.")
  functions: List[str] = Field(default_factory=list, description="Names of the functions rewritten.")
  success: bool = Field(
    default=True,
    description="True if every selected function was rewritten.",
  )
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")
