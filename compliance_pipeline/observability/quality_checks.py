"""
Data quality checks for stored check runs.

This module implements QualityChecker, which runs SQL-based validation checks
against the diagnostics table after each check run.

Checks implemented:
- Waived have justification: every suppressed violation carries its reason
- Rule id prefix: every message starts with its rule id
- Unique keys: one diagnostic per (pack, rule, path) in a run
- Errors carry detail: evaluation errors record the error text
- Evaluation errors: rules that crashed, warning above a threshold

Design decisions:
- Each check returns a QualityCheckResult with pass/fail and details
- Checks are SQL-based (run against database, not Python)
- Checks are scoped to one run_id
"""
from typing import List, Dict, Any
from dataclasses import dataclass

from engine import Disposition


@dataclass
class QualityCheckResult:
    """
    Result of a single quality check.

    Attributes:
        check_name: Unique identifier for the check
        passed: True if check passed, False otherwise
        message: Human-readable summary of the result
        details: Optional dict with additional context (e.g., counts)
    """
    check_name: str
    passed: bool
    message: str
    details: Dict[str, Any] = None


class QualityChecker:
    """
    Runs data quality checks against stored diagnostics.

    Each check method executes a SQL query against the database and returns
    a QualityCheckResult indicating pass/fail status.
    """

    def __init__(self, database, error_threshold: int = 0):
        """
        Initialize quality checker.

        Args:
            database: Database instance with active connection
            error_threshold: Evaluation errors tolerated before the check fails
        """
        self.db = database
        self.error_threshold = error_threshold

    def run_all_checks(self, run_id: str) -> List[QualityCheckResult]:
        """
        Run all quality checks for one run.

        Returns:
            List of QualityCheckResult objects, one per check
        """
        results = []
        results.append(self.check_waived_have_justification(run_id))
        results.append(self.check_rule_id_prefix(run_id))
        results.append(self.check_unique_keys(run_id))
        results.append(self.check_errors_carry_detail(run_id))
        results.append(self.check_evaluation_errors(run_id))
        return results

    def check_waived_have_justification(self, run_id: str) -> QualityCheckResult:
        """
        Ensure every waived violation records its justification.

        Waivers without a recorded reason cannot be audited.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM diagnostics
            WHERE run_id = ?
              AND disposition = ?
              AND (justification IS NULL OR trim(justification) = '')
        """, [run_id, Disposition.SUPPRESSED.value]).fetchone()[0]

        return QualityCheckResult(
            check_name="waived_have_justification",
            passed=result == 0,
            message=f"{result} waived violations without justification" if result > 0 else "All waived violations are justified",
            details={"missing_count": result}
        )

    def check_rule_id_prefix(self, run_id: str) -> QualityCheckResult:
        """
        Ensure every message starts with its rule id.

        Downstream tooling filters output by this prefix.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM diagnostics
            WHERE run_id = ?
              AND (message IS NULL OR NOT starts_with(message, rule_id))
        """, [run_id]).fetchone()[0]

        return QualityCheckResult(
            check_name="rule_id_prefix",
            passed=result == 0,
            message=f"{result} messages without rule id prefix" if result > 0 else "All messages carry the rule id",
            details={"invalid_count": result}
        )

    def check_unique_keys(self, run_id: str) -> QualityCheckResult:
        """
        Ensure no (pack, rule, path) key was stored twice.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM (
                SELECT pack_name, rule_id, path FROM diagnostics
                WHERE run_id = ?
                GROUP BY pack_name, rule_id, path
                HAVING count(*) > 1
            )
        """, [run_id]).fetchone()[0]

        return QualityCheckResult(
            check_name="unique_keys",
            passed=result == 0,
            message=f"{result} duplicated diagnostic keys" if result > 0 else "All diagnostic keys unique",
            details={"duplicate_count": result}
        )

    def check_errors_carry_detail(self, run_id: str) -> QualityCheckResult:
        """
        Ensure evaluation errors record what went wrong.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM diagnostics
            WHERE run_id = ?
              AND disposition = ?
              AND (error IS NULL OR trim(error) = '')
        """, [run_id, Disposition.EVALUATION_ERROR.value]).fetchone()[0]

        return QualityCheckResult(
            check_name="errors_carry_detail",
            passed=result == 0,
            message=f"{result} evaluation errors without detail" if result > 0 else "All evaluation errors have detail",
            details={"missing_count": result}
        )

    def check_evaluation_errors(self, run_id: str) -> QualityCheckResult:
        """
        Count evaluation errors in the run.

        A crashing rule hides the real verdict for its nodes.
        """
        conn = self.db.connect()
        rows = conn.execute("""
            SELECT rule_id, count(*) FROM diagnostics
            WHERE run_id = ? AND disposition = ?
            GROUP BY rule_id
            ORDER BY rule_id
        """, [run_id, Disposition.EVALUATION_ERROR.value]).fetchall()
        total = sum(count for _, count in rows)

        return QualityCheckResult(
            check_name="evaluation_errors",
            passed=total <= self.error_threshold,
            message=f"{total} evaluation errors" if total > 0 else "No evaluation errors",
            details={"error_count": total, "by_rule": {rule_id: count for rule_id, count in rows}}
        )
