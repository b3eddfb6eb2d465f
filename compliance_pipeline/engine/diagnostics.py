"""
Diagnostic records and the emitter that collects them for one pack.

The emitter holds exactly one diagnostic per (rule id, path) key. A
traversal is bracketed by begin_pass()/end_pass(): recording replaces any
entry with the same key, and end_pass() drops keys the pass did not
produce, so re-running a pack never duplicates or leaks diagnostics.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import json
import logging

from .classifier import Disposition
from .listeners import DiagnosticListener, notify
from .rules import RuleLevel


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """One reported (or silently recorded) outcome of a rule on a node."""
    rule_id: str
    path: str
    disposition: Disposition
    level: RuleLevel
    rule_level: RuleLevel
    message: str
    resource_type: Optional[str] = None
    rule_info: str = ""
    justification: Optional[str] = None
    error: Optional[str] = None
    ignored_suppression: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.rule_id, self.path)

    @property
    def is_waived(self) -> bool:
        return self.disposition is Disposition.SUPPRESSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rule_id': self.rule_id,
            'path': self.path,
            'disposition': self.disposition.value,
            'level': self.level.value,
            'rule_level': self.rule_level.value,
            'message': self.message,
            'resource_type': self.resource_type,
            'rule_info': self.rule_info,
            'justification': self.justification,
            'error': self.error,
            'ignored_suppression': self.ignored_suppression,
        }


class DiagnosticEmitter:
    """
    Collects diagnostics for one pack and exposes reporting views.

    Design decisions:
    - Silent dispositions are still recorded so listeners and verbose
      output can see them; the default view hides them
    - Waived violations are reported at INFO and never fail the gate
    - Evaluation errors always count toward the gate
    """

    def __init__(self, verbose: bool = False, listeners: Optional[Iterable[DiagnosticListener]] = None):
        self.verbose = verbose
        self.listeners: List[DiagnosticListener] = list(listeners or [])
        self._entries: Dict[Tuple[str, str], Diagnostic] = {}
        self._seen: Set[Tuple[str, str]] = set()
        self._in_pass = False

    def add_listener(self, listener: DiagnosticListener) -> None:
        self.listeners.append(listener)

    def begin_pass(self) -> None:
        self._seen = set()
        self._in_pass = True

    def record(self, diagnostic: Diagnostic) -> None:
        """Record a diagnostic, replacing any entry with the same key."""
        key = diagnostic.key
        if key in self._seen:
            logger.warning(f"Diagnostic {key} recorded twice in one pass; keeping the latest")
        self._entries.pop(key, None)
        self._entries[key] = diagnostic
        self._seen.add(key)
        notify(self.listeners, diagnostic)

    def end_pass(self) -> None:
        """Drop diagnostics for keys the finished pass did not produce."""
        stale = [key for key in self._entries if key not in self._seen]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Pruned {len(stale)} stale diagnostics")
        self._in_pass = False

    def reset(self) -> None:
        self._entries.clear()
        self._seen = set()
        self._in_pass = False

    def all(self) -> List[Diagnostic]:
        return list(self._entries.values())

    def diagnostics(self) -> List[Diagnostic]:
        """
        Diagnostics visible to the host.

        Violations and evaluation errors are always visible. Waived and
        compliant entries are added in verbose mode. Not-applicable entries
        are never shown.
        """
        visible = {Disposition.VIOLATION, Disposition.EVALUATION_ERROR}
        if self.verbose:
            visible |= {Disposition.SUPPRESSED, Disposition.COMPLIANT}
        return [d for d in self._entries.values() if d.disposition in visible]

    def waived(self) -> List[Diagnostic]:
        return [d for d in self._entries.values() if d.is_waived]

    def by_disposition(self, disposition: Disposition) -> List[Diagnostic]:
        return [d for d in self._entries.values() if d.disposition is disposition]

    def by_level(self) -> Dict[str, List[Diagnostic]]:
        """Group visible diagnostics into 'info', 'warning' and 'error' buckets."""
        buckets: Dict[str, List[Diagnostic]] = {'info': [], 'warning': [], 'error': []}
        names = {RuleLevel.INFO: 'info', RuleLevel.WARN: 'warning', RuleLevel.ERROR: 'error'}
        for diagnostic in self.diagnostics():
            buckets[names[diagnostic.level]].append(diagnostic)
        return buckets

    def gate_failures(self, fail_on: RuleLevel = RuleLevel.ERROR) -> List[Diagnostic]:
        """Violations at or above fail_on, plus every evaluation error."""
        failures = []
        for diagnostic in self._entries.values():
            if diagnostic.disposition is Disposition.EVALUATION_ERROR:
                failures.append(diagnostic)
            elif (diagnostic.disposition is Disposition.VIOLATION
                  and diagnostic.level.rank >= fail_on.rank):
                failures.append(diagnostic)
        return failures

    def passed(self, fail_on: RuleLevel = RuleLevel.ERROR) -> bool:
        return not self.gate_failures(fail_on)

    def counts(self) -> Dict[str, int]:
        counts = {d.value: 0 for d in Disposition}
        for diagnostic in self._entries.values():
            counts[diagnostic.disposition.value] += 1
        return counts

    def to_json(self, include_silent: bool = False) -> str:
        """
        Serialize diagnostics deterministically.

        Identical inputs give byte-identical output: entries keep traversal
        order and keys are sorted.
        """
        entries = self.all() if include_silent else self.diagnostics()
        return json.dumps([d.to_dict() for d in entries], sort_keys=True, indent=2)

    def __len__(self) -> int:
        return len(self._entries)
