"""
Observability layer for compliance check runs.

This module provides metrics collection, quality checks, report files
and Markdown reporting for check runs.

Main exports:
- CheckMetrics: Tracks metrics for a check run
- QualityChecker: Runs data quality checks over stored diagnostics
- QualityCheckResult: Result of a quality check
- CheckReporter: Generates Markdown reports
- ReportLogger: Writes per-pack CSV/JSON compliance reports
"""
from .metrics import CheckMetrics
from .quality_checks import QualityChecker, QualityCheckResult
from .report_logger import ReportLogger
from .reporter import CheckReporter

__all__ = [
    "CheckMetrics",
    "QualityChecker",
    "QualityCheckResult",
    "CheckReporter",
    "ReportLogger",
]
