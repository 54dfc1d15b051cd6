"""
Rewrite Trace Logger.

This module records the step-by-step execution of the rewrite engine. It
captures:
1. Lifecycle Phases (Parsing, Rewriting Function X).
2. Resolved jump/label pairs and the flag chosen for each.
3. AST Mutations (function before and after rewriting).
4. Violations and warnings.

The output is a structured list of Event Log dictionaries suitable for JSON serialization.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  PAIR_RESOLVED = "pair_resolved"
  AST_MUTATION = "ast_mutation"
  VIOLATION = "violation"
  ANALYSIS_WARNING = "analysis_warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records rewrite events for inspection and JSON export.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase (e.g., 'Rewrite f'). Returns Phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None

    event = TraceEvent(
      id=phase_id,
      type=TraceEventType.PHASE_START,
      timestamp=time.time(),
      description=name,
      parent_id=parent,
      metadata={"detail": description},
    )
    self._events.append(event)
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self):
    """Ends the current active phase."""
    if not self._active_phases:
      return

    phase_id = self._active_phases.pop()
    event = TraceEvent(
      id=str(uuid.uuid4()),
      type=TraceEventType.PHASE_END,
      timestamp=time.time(),
      description="End Phase",
      parent_id=phase_id,
    )
    self._events.append(event)

  def log_pair(self, label: str, flag: str, lca_depth: int):
    """Logs a jump/label pair and the skip flag synthesized for it."""
    self._log_simple(
      TraceEventType.PAIR_RESOLVED,
      f"Resolved jump to '{label}' via {flag}",
      {"label": label, "flag": flag, "lca_depth": lca_depth},
    )

  def log_mutation(self, node_type: str, before: str, after: str):
    """Logs an AST transformation."""
    self._log_simple(TraceEventType.AST_MUTATION, f"Transformed {node_type}", {"before": before, "after": after})

  def log_violation(self, kind: str, message: str, position: Optional[str] = None):
    self._log_simple(TraceEventType.VIOLATION, message, {"kind": kind, "position": position})

  def log_warning(self, message: str):
    self._log_simple(TraceEventType.ANALYSIS_WARNING, message, {"level": "warning"})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]):
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]


# Contextual instance, replaced at the start of every engine run.
_GLOBAL_TRACER = TraceLogger()


def get_tracer() -> TraceLogger:
  return _GLOBAL_TRACER


def reset_tracer():
  global _GLOBAL_TRACER
  _GLOBAL_TRACER = TraceLogger()
