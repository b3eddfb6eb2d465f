"""
Per-pack compliance report files (CSV and/or JSON).

ReportLogger is a diagnostic listener: it collects one report line per
(rule, resource) key while a pack runs and writes
'<pack>-NagReport.csv' / '<pack>-NagReport.json' on write().

Report columns: Rule ID, Resource ID, Compliance, Exception Reason,
Rule Level, Rule Info. Not-applicable pairs are left out.
"""
import csv
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from engine import Diagnostic, DiagnosticListener


logger = logging.getLogger(__name__)

CSV_HEADERS = ["Rule ID", "Resource ID", "Compliance", "Exception Reason", "Rule Level", "Rule Info"]
SUPPORTED_FORMATS = ("csv", "json")

COMPLIANT = "Compliant"
NON_COMPLIANT = "Non-Compliant"
SUPPRESSED = "Suppressed"
UNKNOWN = "UNKNOWN"


class ReportLogger(DiagnosticListener):
    """
    Collects report lines for one pack and writes them to report files.
    """

    def __init__(self, pack_name: str, output_dir: Path, formats: Iterable[str] = ("csv",)):
        """
        Initialize report logger.

        Args:
            pack_name: Pack whose diagnostics this logger receives
            output_dir: Directory for report files
            formats: Any of 'csv', 'json'

        Raises:
            ValueError: If no format or an unknown format is given
        """
        formats = [f.lower() for f in formats]
        if not formats:
            raise ValueError("Must provide at least 1 report format.")
        unknown = [f for f in formats if f not in SUPPORTED_FORMATS]
        if unknown:
            raise ValueError(f"Unrecognized output format(s) {', '.join(unknown)} for the ReportLogger")

        self.pack_name = pack_name
        self.output_dir = Path(output_dir)
        self.formats = formats
        self._lines: Dict[Tuple[str, str], Dict[str, str]] = {}

    def on_compliance(self, diagnostic: Diagnostic) -> None:
        self._add_line(diagnostic, COMPLIANT, "N/A")

    def on_non_compliance(self, diagnostic: Diagnostic) -> None:
        self._add_line(diagnostic, NON_COMPLIANT, "N/A")

    def on_suppressed(self, diagnostic: Diagnostic) -> None:
        self._add_line(diagnostic, SUPPRESSED, diagnostic.justification or "N/A")

    def on_error(self, diagnostic: Diagnostic) -> None:
        self._add_line(diagnostic, UNKNOWN, "N/A")

    def on_not_applicable(self, diagnostic: Diagnostic) -> None:
        # A pair that became N/A must not keep a line from an earlier pass
        self._lines.pop(diagnostic.key, None)

    def _add_line(self, diagnostic: Diagnostic, compliance: str, exception_reason: str) -> None:
        key = diagnostic.key
        self._lines.pop(key, None)
        self._lines[key] = {
            "ruleId": diagnostic.rule_id,
            "resourceId": diagnostic.path,
            "compliance": compliance,
            "exceptionReason": exception_reason,
            "ruleLevel": diagnostic.rule_level.value,
            "ruleInfo": diagnostic.rule_info,
        }

    @property
    def lines(self) -> List[Dict[str, str]]:
        return list(self._lines.values())

    def retain(self, keys: Iterable[Tuple[str, str]]) -> None:
        """Drop lines whose key is not in keys (stale after a re-run)."""
        keep = set(keys)
        self._lines = {k: v for k, v in self._lines.items() if k in keep}

    def report_path(self, fmt: str) -> Path:
        return self.output_dir / f"{self.pack_name}-NagReport.{fmt}"

    def write(self) -> List[Path]:
        """
        Write the collected lines to one file per format.

        Returns:
            Paths of the written files
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        written = []
        for fmt in self.formats:
            path = self.report_path(fmt)
            if fmt == "csv":
                self._write_csv(path)
            else:
                self._write_json(path)
            written.append(path)
            logger.info(f"Wrote {len(self._lines)} report lines to {path}")
        return written

    def _write_csv(self, path: Path) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerow(CSV_HEADERS)
            for line in self._lines.values():
                writer.writerow([
                    line["ruleId"],
                    line["resourceId"],
                    line["compliance"],
                    line["exceptionReason"],
                    line["ruleLevel"],
                    line["ruleInfo"],
                ])

    def _write_json(self, path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"lines": self.lines}, f, indent=2)
