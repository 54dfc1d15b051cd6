"""
forward-goto Package.

A source-to-source pass eliminating forward jumps from Python functions.
Jumps and labels are written as marker calls; the pass replaces them with
boolean skip flags and ``if not flag:`` guards, preserving behavior exactly.

Usage
-----

Live Functions
^^^^^^^^^^^^^^

.. code-block:: python

    from forward_goto import forward_goto, forward_label, rewrite_forward_goto

    @rewrite_forward_goto
    def first_positive(items):
      result = None
      for item in items:
        if item > 0:
          result = item
          forward_goto(found)
      log("none found")
      forward_label(found)
      return result

Simple String Conversion
^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import forward_goto as fg
    print(fg.convert(source_code))

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from forward_goto import GotoEngine, RuntimeConfig

    engine = GotoEngine(config=RuntimeConfig(transform_all=True))
    res = engine.run(source_code)

    if res.success:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Optional

from forward_goto.config import RuntimeConfig
from forward_goto.core.conversion_result import ConversionResult
from forward_goto.core.engine import GotoEngine
from forward_goto.core.errors import SourcePosition, TransformError, Violation
from forward_goto.core.transform import check, transform, transform_function
from forward_goto.enums import ViolationKind
from forward_goto.runtime import forward_goto, forward_label, rewrite_forward_goto

__version__ = "0.1.0"


def convert(
  code: str,
  transform_all: bool = False,
  strict: bool = False,
  config: Optional[RuntimeConfig] = None,
) -> str:
  """
  Rewrites the forward jumps of every selected function in a source string.

  This is a high-level convenience wrapper around the `GotoEngine`. For
  file-based conversions use `forward_goto.cli` or the engine directly.

  Args:
      code (str): The source code to convert.
      transform_all (bool): Rewrite every function containing markers, not
          only those decorated with ``@rewrite_forward_goto``.
      strict (bool): Treat markers left outside rewritten functions as errors.
      config (RuntimeConfig, optional): Explicit configuration. Overrides the
          two flags above.

  Returns:
      str: The rewritten source code.

  Raises:
      ValueError: If the conversion fails (syntax errors or rejected jumps).
  """
  config = config or RuntimeConfig(transform_all=transform_all, strict_mode=strict)
  result = GotoEngine(config=config).run(code)

  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Rewrite failed:\n{error_msg}")

  return result.code


__all__ = [
  "ConversionResult",
  "GotoEngine",
  "RuntimeConfig",
  "SourcePosition",
  "TransformError",
  "Violation",
  "ViolationKind",
  "check",
  "convert",
  "forward_goto",
  "forward_label",
  "rewrite_forward_goto",
  "transform",
  "transform_function",
  "__version__",
]
