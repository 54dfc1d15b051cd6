"""
Jump/Label Validation.

Walks a `StatementTree`, computes the `Path` of every statement and checks each
jump/label configuration:

1.  **Cardinality**: one declaration and at most one jump per label.
2.  **Forward-only**: in the lowest common ancestor (LCA) block, the label
    follows the child holding the jump.
3.  **Scope**: the label sits directly in the LCA; jumping into a construct
    the jump site is not part of is rejected.
4.  **Declaration-safety**: names introduced between the jump and the label
    are not read at or after the label.

Validation never mutates the tree, so running it twice reports the same
failure at the same position.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from forward_goto.core.bindings import NameUsage, collect_usage
from forward_goto.core.errors import TransformError, Violation
from forward_goto.core.tree import Path, Statement, StatementTree
from forward_goto.enums import NodeKind, ViolationKind


@dataclass(frozen=True)
class JumpLabelPair:
  """
  A validated jump and its unique label.

  Attributes:
      label_id: Interned label id.
      label: Label name.
      jump: Statement id of the jump.
      target: Statement id of the label declaration.
      lca: Block id of the lowest common ancestor.
      jump_index: Index, inside the LCA, of the child that is or holds the jump.
      label_index: Index of the label inside the LCA.
      depth: Nesting depth of the LCA.
  """

  label_id: int
  label: str
  jump: int
  target: int
  lca: int
  jump_index: int
  label_index: int
  depth: int


@dataclass
class ValidatedTree:
  """
  A tree whose jumps all passed validation, annotated with paths and pairs.
  """

  tree: StatementTree
  paths: Dict[int, Path]
  pairs: List[JumpLabelPair] = field(default_factory=list)
  unused_labels: List[int] = field(default_factory=list)


def compute_paths(tree: StatementTree) -> Dict[int, Path]:
  """
  Computes the path of every statement of the tree.

  Args:
      tree: The built arena.

  Returns:
      Dict[int, Path]: Mapping of statement id to its path.
  """
  paths: Dict[int, Path] = {}

  def walk(block_id: int, blocks: Tuple[int, ...], indices: Tuple[int, ...], order: Tuple[int, ...]) -> None:
    for index, stmt_id in enumerate(tree.blocks[block_id].children):
      path = Path(blocks=blocks + (block_id,), indices=indices + (index,), order=order + (index,))
      paths[stmt_id] = path
      for child in tree.statements[stmt_id].blocks:
        walk(child, path.blocks, path.indices, path.order + (tree.blocks[child].branch,))

  walk(tree.root, (), (), ())
  return paths


class Validator:
  """
  Checks the jump/label invariants of one tree.
  """

  def __init__(self, tree: StatementTree, parameters: Iterable[str] = ()):
    """
    Args:
        tree: The arena built for the function body.
        parameters: Names bound on entry (function parameters).
    """
    self.tree = tree
    self.parameters: Set[str] = set(parameters)
    self.paths = compute_paths(tree)
    self._usage: Dict[int, NameUsage] = {}

  def validate(self) -> ValidatedTree:
    """
    Validates the tree.

    Returns:
        ValidatedTree: The tree annotated with its validated pairs.

    Raises:
        TransformError: With the first violation in document order.
    """
    violations, pairs = self._check()
    if violations:
      raise TransformError(violations[0])

    jumped = {p.label_id for p in pairs}
    unused = [s.id for s in self.tree.of_kind(NodeKind.LABEL) if s.label_id not in jumped]
    return ValidatedTree(tree=self.tree, paths=self.paths, pairs=pairs, unused_labels=unused)

  def violations(self) -> List[Violation]:
    """
    Returns every violation, sorted in document order of the offending nodes.
    """
    return self._check()[0]

  def _check(self) -> Tuple[List[Violation], List[JumpLabelPair]]:
    found: List[Tuple[Tuple[int, ...], Violation]] = []
    pairs: List[JumpLabelPair] = []

    for stmt in self.tree.of_kind(NodeKind.MALFORMED):
      found.append(self._violation(stmt, ViolationKind.MALFORMED_MARKER, stmt.reason or "malformed marker"))

    labels = self._group(NodeKind.LABEL)
    jumps = self._group(NodeKind.JUMP)

    for label_id, decls in labels.items():
      for extra in decls[1:]:
        name = self.tree.labels.name_of(label_id)
        found.append(self._violation(extra, ViolationKind.DUPLICATE_LABEL, f"label '{name}' is declared more than once"))

    for label_id, sites in jumps.items():
      name = self.tree.labels.name_of(label_id)
      for extra in sites[1:]:
        found.append(
          self._violation(extra, ViolationKind.UNSUPPORTED_MULTI_JUMP, f"label '{name}' is targeted by more than one jump")
        )

      decls = labels.get(label_id, [])
      if not decls:
        found.append(self._violation(sites[0], ViolationKind.UNDECLARED_LABEL, f"label '{name}' is never declared"))
        continue
      if len(sites) > 1 or len(decls) > 1:
        continue

      pair, violation = self._check_pair(label_id, sites[0], decls[0])
      if violation is not None:
        found.append(violation)
      else:
        pairs.append(pair)

    found.sort(key=lambda item: item[0])
    pairs.sort(key=lambda p: self.paths[p.jump].order)
    return [v for _, v in found], pairs

  def _check_pair(
    self, label_id: int, jump: Statement, label: Statement
  ) -> Tuple[Optional[JumpLabelPair], Optional[Tuple[Tuple[int, ...], Violation]]]:
    name = self.tree.labels.name_of(label_id)
    jump_path = self.paths[jump.id]
    label_path = self.paths[label.id]

    level = 0
    while (
      level + 1 < len(jump_path.blocks)
      and level + 1 < len(label_path.blocks)
      and jump_path.blocks[level + 1] == label_path.blocks[level + 1]
    ):
      level += 1

    lca = jump_path.blocks[level]
    jump_index = jump_path.indices[level]
    label_index = label_path.indices[level]

    if label_index <= jump_index:
      return None, self._violation(
        jump, ViolationKind.BACKWARD_OR_SIDEWAYS_JUMP, f"label '{name}' does not follow its jump"
      )

    if len(label_path.blocks) - 1 > level:
      return None, self._violation(
        jump, ViolationKind.SCOPE_ESCAPE_VIOLATION, f"label '{name}' is nested in a block the jump is not part of"
      )

    skipped = self._skipped_bindings(jump_path, label_path)
    if skipped:
      names = ", ".join(sorted(skipped))
      return None, self._violation(
        jump,
        ViolationKind.SKIPS_DECLARATION,
        f"jump to '{name}' skips the binding of {names}, which is read after the label",
      )

    pair = JumpLabelPair(
      label_id=label_id,
      label=name,
      jump=jump.id,
      target=label.id,
      lca=lca,
      jump_index=jump_index,
      label_index=label_index,
      depth=self.tree.blocks[lca].depth,
    )
    return pair, None

  def _skipped_bindings(self, jump_path: Path, label_path: Path) -> Set[str]:
    """
    Names bound between the jump and the label (and not before the jump)
    that are read after the label, all in document order.
    """
    bound_before = set(self.parameters)
    introduced: Set[str] = set()
    read_after: Set[str] = set()

    for stmt in self.tree.walk():
      order = self.paths[stmt.id].order
      usage = self._usage_of(stmt)
      if order < jump_path.order:
        bound_before |= usage.bound
      elif jump_path.order < order < label_path.order:
        introduced |= usage.bound
      elif order > label_path.order:
        read_after |= usage.read

    return (introduced - bound_before) & read_after

  def _usage_of(self, stmt: Statement) -> NameUsage:
    if stmt.id not in self._usage:
      if stmt.kind in (NodeKind.JUMP, NodeKind.LABEL):
        self._usage[stmt.id] = NameUsage()
      else:
        self._usage[stmt.id] = collect_usage(stmt.node, header_only=bool(stmt.blocks))
    return self._usage[stmt.id]

  def _group(self, kind: NodeKind) -> Dict[int, List[Statement]]:
    groups: Dict[int, List[Statement]] = {}
    for stmt in self.tree.of_kind(kind):
      groups.setdefault(stmt.label_id, []).append(stmt)
    return groups

  def _violation(self, stmt: Statement, kind: ViolationKind, message: str) -> Tuple[Tuple[int, ...], Violation]:
    label = self.tree.labels.name_of(stmt.label_id) if stmt.label_id is not None else None
    violation = Violation(kind=kind, label=label, message=message, position=stmt.position, node_id=stmt.id)
    return self.paths[stmt.id].order, violation
