"""
Generate human-readable check reports in Markdown format.

This module provides CheckReporter, which transforms CheckMetrics, pack
diagnostics and quality check results into formatted Markdown reports.

Report sections:
- Header with run metadata (ID, timestamp, duration, gate result)
- Summary table with core metrics
- Pack results with gate status
- Violations (and, when requested, waived violations)
- Rules with the most violations
- Data quality check results

Design decisions:
- Markdown output for readability and version control friendliness
- Uses tabulate library for clean table formatting (GitHub-flavored)
- Reports saved with timestamp for historical tracking
"""
from datetime import datetime
from typing import List, Optional
from pathlib import Path
from tabulate import tabulate

from engine import Diagnostic

from .metrics import CheckMetrics
from .quality_checks import QualityCheckResult


class CheckReporter:
    """
    Generates human-readable Markdown reports from check run metrics.
    """

    def generate_report(
        self,
        metrics: CheckMetrics,
        diagnostics: List[Diagnostic],
        quality_results: Optional[List[QualityCheckResult]] = None,
        waived: Optional[List[Diagnostic]] = None
    ) -> str:
        """
        Generate full check report in Markdown format.

        Args:
            metrics: CheckMetrics from a completed run
            diagnostics: Reportable diagnostics of all packs
            quality_results: Quality check results, if storage was used
            waived: Waived violations to list for audit

        Returns:
            Markdown-formatted report as string
        """
        lines = []

        # Header
        lines.append("# Compliance Check Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.1f} seconds")
        lines.append(f"**Result:** {'PASSED' if metrics.passed else 'FAILED'}")
        lines.append("")

        # Summary table
        lines.append("## Summary")
        summary_data = [
            ["Packs", metrics.packs_run],
            ["Nodes Visited", metrics.nodes_visited],
            ["Evaluations", metrics.evaluations],
            ["Violations", metrics.violations],
            ["Waived Violations", metrics.suppressed],
            ["Evaluation Errors", metrics.errors],
            ["Invalid Suppressions", metrics.invalid_suppressions],
            ["Unresolved Values", metrics.unresolved_values],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        # Pack results
        if metrics.pack_results:
            lines.append("## Packs")
            pack_data = []
            for name, result in sorted(metrics.pack_results.items()):
                status = "✓" if result["passed"] else "✗"
                pack_data.append([status, name, result["fail_on"], result["gate_failures"]])
            lines.append(tabulate(
                pack_data, headers=["Status", "Pack", "Fail On", "Gate Failures"], tablefmt="github"
            ))
            lines.append("")

        # Violations
        if diagnostics:
            lines.append("## Findings")
            finding_data = [
                [d.level.value, d.rule_id, d.path, d.disposition.value]
                for d in diagnostics
            ]
            lines.append(tabulate(
                finding_data, headers=["Level", "Rule", "Resource", "Disposition"], tablefmt="github"
            ))
            lines.append("")

        if waived:
            lines.append("## Waived Violations")
            waived_data = [[d.rule_id, d.path, d.justification] for d in waived]
            lines.append(tabulate(waived_data, headers=["Rule", "Resource", "Reason"], tablefmt="github"))
            lines.append("")

        # Rules with violations
        if metrics.violations_by_rule:
            lines.append("## Violations by Rule")
            rules_data = [[k, v] for k, v in sorted(metrics.violations_by_rule.items())]
            lines.append(tabulate(rules_data, headers=["Rule", "Count"], tablefmt="github"))
            lines.append("")

        # Quality checks
        if quality_results:
            lines.append("## Data Quality Checks")
            quality_data = []
            for qr in quality_results:
                status = "✓" if qr.passed else "✗"
                quality_data.append([status, qr.check_name, qr.message])
            lines.append(tabulate(quality_data, headers=["Status", "Check", "Details"], tablefmt="github"))
            lines.append("")

        return "\n".join(lines)

    def save_report(self, report: str, output_dir: Path) -> Path:
        """
        Save report to file with timestamp.

        Args:
            report: Markdown report content
            output_dir: Directory to save report in

        Returns:
            Path to saved report file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        filepath = output_dir / f"check-report-{timestamp}.md"
        filepath.write_text(report)
        return filepath
