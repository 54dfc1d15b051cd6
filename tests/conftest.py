"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Helpers to parse a function from a snippet and to execute rewritten code.
"""

import sys
import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import libcst as cst
import pytest

# Add src to path so we can import 'forward_goto' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from forward_goto.core.transform import transform_function  # noqa: E402


def parse_function(code: str) -> cst.FunctionDef:
  """Parses a snippet holding exactly one function definition."""
  module = cst.parse_module(textwrap.dedent(code).lstrip("\n"))
  func = module.body[0]
  assert isinstance(func, cst.FunctionDef)
  return func


def rewrite_source(code: str, **kwargs: Any) -> str:
  """Rewrites the single function of `code` and returns the new module source."""
  module = cst.parse_module(textwrap.dedent(code).lstrip("\n"))
  func = module.body[0]
  return module.with_changes(body=[transform_function(func, **kwargs)]).code


def load_function(code: str, name: Optional[str] = None, env: Optional[Dict[str, Any]] = None) -> Callable:
  """Executes rewritten source and returns the function it defines."""
  namespace: Dict[str, Any] = dict(env or {})
  exec(compile(code, "<rewritten>", "exec"), namespace)
  if name is None:
    name = cst.parse_module(code).body[0].name.value
  return namespace[name]


@pytest.fixture
def rewrite() -> Callable[..., str]:
  return rewrite_source


@pytest.fixture
def compile_rewritten() -> Callable[..., Callable]:
  """Rewrites a snippet and returns the resulting live function."""

  def _compile(code: str, env: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Callable:
    return load_function(rewrite_source(code, **kwargs), env=env)

  return _compile


@pytest.fixture
def parse() -> Callable[[str], cst.FunctionDef]:
  return parse_function
