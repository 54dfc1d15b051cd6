"""
Runtime Rewriting of Live Functions.

Provides the ``@rewrite_forward_goto`` decorator, which recompiles a function
from its rewritten source at definition time, and the ``forward_goto`` /
``forward_label`` markers used inside such functions.

.. code-block:: python

    from forward_goto import forward_goto, forward_label, rewrite_forward_goto

    @rewrite_forward_goto
    def parse(data):
      if not data:
        forward_goto(done)
      handle(data)
      forward_label(done)
      return finish()

The markers are plain functions that raise when executed: reaching one means
the enclosing function was never rewritten.

Constraints:
- The decorator must be the innermost one. Decorators listed above it are
  applied by Python to the rewritten function as usual.
- Functions with free variables (closures, or methods using ``super()``) are
  rejected, since recompiling them would lose their cells.
- The source must be available to ``inspect`` (no REPL or ``exec`` input).
"""

import inspect
import textwrap
from typing import Any, Callable, Dict, Optional

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from forward_goto.config import RuntimeConfig
from forward_goto.core.errors import SourcePosition
from forward_goto.core.transform import transform_function


def forward_goto(label: Any) -> None:
  """
  Jump marker. Rewritten away by ``@rewrite_forward_goto``.

  Raises:
      RuntimeError: Always, when executed un-rewritten.
  """
  raise RuntimeError(f"forward_goto({label!r}) executed outside a function decorated with @rewrite_forward_goto")


def forward_label(label: Any) -> None:
  """
  Label marker. Rewritten away by ``@rewrite_forward_goto``.

  Raises:
      RuntimeError: Always, when executed un-rewritten.
  """
  raise RuntimeError(f"forward_label({label!r}) executed outside a function decorated with @rewrite_forward_goto")


def _find_function(module: cst.Module, name: str) -> Optional[cst.FunctionDef]:
  for stmt in module.body:
    if isinstance(stmt, cst.FunctionDef) and stmt.name.value == name:
      return stmt
  return None


def _recompile(func: Callable, config: RuntimeConfig) -> Callable:
  if func.__code__.co_freevars:
    names = ", ".join(func.__code__.co_freevars)
    raise TypeError(f"Cannot rewrite {func.__qualname__}: it closes over {names}")

  try:
    source = inspect.getsource(func)
  except OSError as e:
    raise OSError(f"Could not get source for {func.__qualname__}: {e}") from e

  wrapper = MetadataWrapper(cst.parse_module(textwrap.dedent(source)))
  func_def = _find_function(wrapper.module, func.__name__)
  if func_def is None:
    raise TypeError(f"Could not find the definition of {func.__qualname__} in its source")

  ranges = wrapper.resolve(PositionProvider)
  line_offset = func.__code__.co_firstlineno - 1
  first_line = source.splitlines()[0]
  column_offset = len(first_line) - len(first_line.lstrip())

  def positions(node: cst.CSTNode) -> Optional[SourcePosition]:
    code_range = ranges.get(node)
    if code_range is None:
      return None
    return SourcePosition(line=code_range.start.line + line_offset, column=code_range.start.column + column_offset)

  # Keep tracebacks pointing at the original def line.
  padding = "\n" * (line_offset + ranges[func_def.name].start.line - 1)

  rewritten = transform_function(func_def, config, positions).with_changes(decorators=[], leading_lines=[])
  code = padding + cst.Module(body=[rewritten]).code

  namespace: Dict[str, Any] = {}
  exec(compile(code, func.__code__.co_filename, "exec"), func.__globals__, namespace)
  new_func = namespace[func.__name__]

  new_func.__defaults__ = func.__defaults__
  new_func.__kwdefaults__ = func.__kwdefaults__
  new_func.__qualname__ = func.__qualname__
  new_func.__module__ = func.__module__
  new_func.__wrapped__ = func
  return new_func


def rewrite_forward_goto(func: Optional[Callable] = None, *, config: Optional[RuntimeConfig] = None) -> Callable:
  """
  Rewrites the forward jumps of a function at definition time.

  Usable bare (``@rewrite_forward_goto``) or with a configuration
  (``@rewrite_forward_goto(config=RuntimeConfig(flag_prefix="_skip"))``).

  Args:
      func: The function to rewrite.
      config: Marker names and flag prefix (defaults to the built-in names).

  Returns:
      Callable: The recompiled function, or a decorator when called without `func`.

  Raises:
      TypeError: If the function is a closure.
      TransformError: If the jump/label configuration is rejected.
  """
  resolved = config or RuntimeConfig()

  def decorator(f: Callable) -> Callable:
    return _recompile(f, resolved)

  if func is None:
    return decorator
  return decorator(func)
