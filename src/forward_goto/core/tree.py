"""
Arena Storage for the Statement Tree.

Blocks and statements of one function body live in flat lists and refer to
each other by integer id. The tree is built once by the `TreeBuilder` and is
read-only afterwards: the validator derives `Path` keys from it and the
rewriter plans its edits against those keys without mutating the arena.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import libcst as cst

from forward_goto.core.errors import SourcePosition
from forward_goto.enums import BlockKind, NodeKind


class LabelTable:
  """
  Interns label names to small integer ids, one table per tree.
  """

  def __init__(self):
    self._ids: Dict[str, int] = {}
    self._names: List[str] = []

  def intern(self, name: str) -> int:
    """
    Returns the id of `name`, allocating one on first sight.
    """
    if name not in self._ids:
      self._ids[name] = len(self._names)
      self._names.append(name)
    return self._ids[name]

  def name_of(self, label_id: int) -> str:
    return self._names[label_id]


@dataclass
class Block:
  """
  An ordered sequence of statement ids.

  Attributes:
      id: Arena id.
      kind: Plain, conditional or loop body.
      owner: Id of the compound statement owning this block (None for the root).
      branch: Position of this block among its owner's suites.
      role: Suite role within the owner ("body", "elif", "orelse", "handler", "try_else", "finally", "case").
      depth: Nesting depth, 0 for the root.
      children: Statement ids in source order.
      suite: The original libcst suite (None for the root).
  """

  id: int
  kind: BlockKind
  owner: Optional[int]
  branch: int
  role: str
  depth: int
  children: List[int] = field(default_factory=list)
  suite: Optional[cst.BaseSuite] = None


@dataclass
class Statement:
  """
  A single statement of the arena.

  `node` is the libcst statement the entry was built from. Compound statements
  list their nested blocks in `blocks`, in the order `extract_suites` yields
  them. Markers carry their interned `label_id`.
  """

  id: int
  kind: NodeKind
  node: cst.BaseStatement
  parent: int
  index: int
  label_id: Optional[int] = None
  blocks: List[int] = field(default_factory=list)
  position: Optional[SourcePosition] = None
  reason: Optional[str] = None


@dataclass(frozen=True)
class Path:
  """
  Location of a statement relative to the root block.

  Attributes:
      blocks: Ancestor block ids from the root down to the immediate parent.
      indices: Index of the enclosing statement inside each of those blocks
          (the last entry is the statement's own index).
      order: Document-order key, alternating statement index and branch index.
  """

  blocks: Tuple[int, ...]
  indices: Tuple[int, ...]
  order: Tuple[int, ...]

  @property
  def parent(self) -> int:
    return self.blocks[-1]

  @property
  def depth(self) -> int:
    return len(self.blocks) - 1


class StatementTree:
  """
  Arena holding every block and statement of one function body.
  """

  def __init__(self):
    self.blocks: List[Block] = []
    self.statements: List[Statement] = []
    self.labels = LabelTable()
    self.root: int = -1

  def new_block(
    self, kind: BlockKind, owner: Optional[int], branch: int, role: str, suite: Optional[cst.BaseSuite]
  ) -> Block:
    depth = 0 if owner is None else self.blocks[self.statements[owner].parent].depth + 1
    block = Block(id=len(self.blocks), kind=kind, owner=owner, branch=branch, role=role, depth=depth, suite=suite)
    self.blocks.append(block)
    return block

  def new_statement(self, kind: NodeKind, node: cst.BaseStatement, parent: int, **kwargs) -> Statement:
    block = self.blocks[parent]
    stmt = Statement(id=len(self.statements), kind=kind, node=node, parent=parent, index=len(block.children), **kwargs)
    self.statements.append(stmt)
    block.children.append(stmt.id)
    return stmt

  def walk(self, block_id: Optional[int] = None) -> Iterator[Statement]:
    """
    Yields statements in document order (pre-order, branches left to right).

    Args:
        block_id: Block to start from (defaults to the root).
    """
    block = self.blocks[self.root if block_id is None else block_id]
    for stmt_id in block.children:
      stmt = self.statements[stmt_id]
      yield stmt
      for child in stmt.blocks:
        yield from self.walk(child)

  def of_kind(self, kind: NodeKind) -> List[Statement]:
    return [s for s in self.walk() if s.kind == kind]

