"""
Runtime Configuration Store.

Holds the marker names, decorator name and flag naming used by the rewrite
pass. Values are read from ``[tool.forward_goto]`` in the nearest
``pyproject.toml`` and may be overridden by explicit arguments (CLI flags).
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  try:
    import tomli as tomllib
  except ImportError:
    tomllib = None  # type: ignore


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the rewrite engine.
  """

  jump_marker: str = Field("forward_goto", description="Name of the jump marker call.")
  label_marker: str = Field("forward_label", description="Name of the label marker call.")
  decorator: str = Field("rewrite_forward_goto", description="Decorator selecting functions to rewrite.")
  flag_prefix: str = Field("_goto_skip", description="Prefix of synthesized skip flag variables.")

  transform_all: bool = Field(False, description="If True, rewrite every function containing markers.")
  strip_decorator: bool = Field(True, description="Remove the selecting decorator from rewritten functions.")
  strict_mode: bool = Field(False, description="If True, markers left outside rewritten functions are errors.")

  @field_validator("jump_marker", "label_marker", "decorator", "flag_prefix")
  @classmethod
  def validate_identifier(cls, v: str) -> str:
    """
    Ensures configured names are usable as Python identifiers.

    Args:
        v (str): The configured name.

    Returns:
        str: The stripped name.

    Raises:
        ValueError: If the name is not an identifier.
    """
    v_clean = v.strip()
    if not v_clean.isidentifier():
      raise ValueError(f"Not a valid identifier: '{v}'")
    return v_clean

  @classmethod
  def load(
    cls,
    transform_all: Optional[bool] = None,
    strict_mode: Optional[bool] = None,
    overrides: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        transform_all (Optional[bool]): Override for function selection.
        strict_mode (Optional[bool]): Override for strict mode.
        overrides (Optional[Dict]): Any other field overrides.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    settings: Dict[str, Any] = {k: v for k, v in toml_config.items() if k in cls.model_fields}
    settings.update(overrides or {})

    if transform_all is not None:
      settings["transform_all"] = transform_all
    if strict_mode is not None:
      settings["strict_mode"] = strict_mode

    return cls(**settings)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Recursively searches parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  if not tomllib:
    return {}, None

  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("forward_goto", {}), parent

  return {}, None
