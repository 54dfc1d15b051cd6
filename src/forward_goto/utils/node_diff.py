"""
AST Node Serialization for Trace Diffs.

Renders arbitrary LibCST nodes to source code "in vacuum", so a function can
be recorded before and after rewriting without serializing the whole file.
"""

from typing import Tuple

import libcst as cst

# A dummy module used as a context to render detached nodes.
_RENDER_CTX = cst.parse_module("")


def capture_node_source(node: cst.CSTNode) -> str:
  """
  Renders a LibCST node into its Python source code string representation.

  Args:
      node: The CST node to serialise. Nodes built by the rewriter (detached
          from any parsed module) are supported.

  Returns:
      str: The Python code string.
  """
  return _RENDER_CTX.code_for_node(node)


def diff_nodes(original: cst.CSTNode, modified: cst.CSTNode) -> Tuple[str, str, bool]:
  """
  Compares two nodes and returns their source strings.

  Args:
      original: The node before transformation.
      modified: The node after transformation.

  Returns:
      tuple: (source_before, source_after, has_changed). Surrounding
      whitespace is ignored when deciding whether the node changed.
  """
  src_before = capture_node_source(original)
  src_after = capture_node_source(modified)
  return src_before, src_after, src_before.strip() != src_after.strip()
