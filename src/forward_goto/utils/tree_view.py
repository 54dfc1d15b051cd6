"""
Statement Tree Visualization.

Renders a `StatementTree` as a `rich.tree.Tree`: one branch per block (with
its kind and role), one leaf per statement. Jumps and labels are highlighted
and, when a validated tree is given, each jump is annotated with the skip
flag chosen for it.
"""

from typing import Dict, Optional

import libcst as cst
from rich.markup import escape
from rich.tree import Tree

from forward_goto.core.tree import Block, Statement, StatementTree
from forward_goto.enums import NodeKind

_RENDER_CTX = cst.parse_module("")
_MAX_LABEL = 60


def _summary(node: cst.CSTNode) -> str:
  """First line of the node's source, truncated."""
  if isinstance(node, (cst.BaseCompoundStatement, cst.SimpleStatementLine)):
    node = node.with_changes(leading_lines=[])
  text = _RENDER_CTX.code_for_node(node).strip().splitlines()
  first = text[0] if text else ""
  if len(first) > _MAX_LABEL:
    first = first[: _MAX_LABEL - 3] + "..."
  return escape(first)


class TreeRenderer:
  """
  Converts an arena into a Rich renderable.
  """

  def __init__(self, tree: StatementTree, flags: Optional[Dict[int, str]] = None):
    """
    Args:
        tree: The arena to render.
        flags: Optional mapping of jump statement id to flag name.
    """
    self.tree = tree
    self.flags = flags or {}

  def render(self, title: str = "body") -> Tree:
    root = Tree(f"[bold]{escape(title)}[/bold]")
    self._add_block(root, self.tree.blocks[self.tree.root])
    return root

  def _add_block(self, branch: Tree, block: Block) -> None:
    for stmt_id in block.children:
      stmt = self.tree.statements[stmt_id]
      node = branch.add(self._describe(stmt))
      for child_id in stmt.blocks:
        child = self.tree.blocks[child_id]
        sub = node.add(f"[dim]{child.role} ({child.kind.value}) #{child.id}[/dim]")
        self._add_block(sub, child)

  def _describe(self, stmt: Statement) -> str:
    if stmt.kind in (NodeKind.JUMP, NodeKind.LABEL):
      name = escape(self.tree.labels.name_of(stmt.label_id))
      text = f"[bold magenta]{stmt.kind.value} {name}[/bold magenta]"
      if stmt.id in self.flags:
        text += f" -> [cyan]{self.flags[stmt.id]}[/cyan]"
      return text
    if stmt.kind == NodeKind.MALFORMED:
      return f"[bold red]malformed[/bold red] {_summary(stmt.node)} [dim]({escape(stmt.reason or '')})[/dim]"
    return _summary(stmt.node)
