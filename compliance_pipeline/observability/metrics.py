"""
Metrics collection for compliance check runs.

This module provides CheckMetrics, a dataclass that tracks observability
metrics for a single check run including:
- Counts of nodes visited and (rule, node) evaluations
- Disposition distribution across all packs
- Which rules reported violations and how often
- Invalid suppressions dropped in non-strict mode
- Per-pack gate results

Design decisions:
- Single metrics object per run, covering every pack evaluated in it
- Defaultdict used for automatic initialization of counters
- Serializable to_dict() for storage in the check_runs table
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List
from collections import defaultdict

from engine import Diagnostic, Disposition, RulePack


@dataclass
class CheckMetrics:
    """
    Metrics for a single check run.

    Designed to be serialized to JSON for storage in the check_runs table.
    """
    run_id: str
    started_at: datetime
    completed_at: datetime = None

    # Core counts
    packs_run: int = 0
    nodes_visited: int = 0
    evaluations: int = 0
    violations: int = 0
    suppressed: int = 0
    errors: int = 0
    invalid_suppressions: int = 0
    unresolved_values: int = 0

    # Key: disposition value (e.g., "reported-violation"), Value: count
    disposition_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    # Key: rule_id (e.g., "Baseline-S1"), Value: unwaived violation count
    violations_by_rule: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    # Key: pack name, Value: dict with gate status
    pack_results: Dict[str, Dict] = field(default_factory=dict)

    # Problems encountered outside rule evaluation
    quality_issues: List[Dict] = field(default_factory=list)

    def record_diagnostic(self, diagnostic: Diagnostic):
        """
        Record one diagnostic of the run.

        Args:
            diagnostic: Diagnostic recorded by a pack
        """
        self.evaluations += 1
        self.disposition_counts[diagnostic.disposition.value] += 1

        if diagnostic.disposition is Disposition.VIOLATION:
            self.violations += 1
            self.violations_by_rule[diagnostic.rule_id] += 1
        elif diagnostic.disposition is Disposition.SUPPRESSED:
            self.suppressed += 1
        elif diagnostic.disposition is Disposition.EVALUATION_ERROR:
            self.errors += 1

    def record_pack(self, pack: RulePack):
        """
        Record the outcome of a completed pack traversal.

        Args:
            pack: Pack after run()
        """
        self.packs_run += 1
        self.nodes_visited += pack.walker.nodes_visited
        self.invalid_suppressions += len(pack.invalid_suppressions)

        for diagnostic in pack.emitter.all():
            self.record_diagnostic(diagnostic)

        self.pack_results[pack.name] = {
            "passed": pack.passed(),
            "gate_failures": len(pack.gate_failures()),
            "fail_on": pack.config.fail_on.value,
        }

    def record_error(self, error: str, context: Dict = None):
        """
        Record an error encountered outside rule evaluation.

        Args:
            error: Error message
            context: Optional dict with additional context (e.g., pack name)
        """
        self.quality_issues.append({
            "type": "error",
            "message": error,
            "context": context or {}
        })

    @property
    def passed(self) -> bool:
        return all(result["passed"] for result in self.pack_results.values())

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary for JSON serialization.

        Returns:
            Dictionary representation suitable for JSON storage
        """
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "packs_run": self.packs_run,
            "nodes_visited": self.nodes_visited,
            "evaluations": self.evaluations,
            "violations": self.violations,
            "suppressed": self.suppressed,
            "errors": self.errors,
            "invalid_suppressions": self.invalid_suppressions,
            "unresolved_values": self.unresolved_values,
            "disposition_counts": dict(self.disposition_counts),
            "violations_by_rule": dict(self.violations_by_rule),
            "pack_results": self.pack_results,
            "quality_issues": self.quality_issues
        }
