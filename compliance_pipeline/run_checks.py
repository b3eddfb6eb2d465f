#!/usr/bin/env python3
"""
Host runner for compliance rule packs.

This module coordinates one compliance check run:
1. Tree: Materialize the resource tree from a YAML/JSON document
2. Packs: Evaluate every configured pack against the tree
3. Report files: Write per-pack CSV/JSON compliance reports
4. Storage: Persist diagnostics and run metadata in DuckDB
5. Quality: Run data quality checks over the stored diagnostics
6. Reporting: Generate the Markdown run report

The run is:
- Deterministic: Same tree, packs and suppressions give the same diagnostics
- Idempotent: Re-saving a run replaces its stored diagnostics
- Gated: The exit code is non-zero when any pack fails its gate

Usage:
    python run_checks.py [--config path/to/config.yaml] [--verbose]
"""
import sys
import yaml
import logging
import argparse
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from engine import Diagnostic, LoggingListener, PackConfig, RulePack, Suppression
from observability import CheckMetrics, CheckReporter, QualityChecker, ReportLogger
from packs import PACK_FACTORIES
from resource_tree import ResourceTree, TemplateTreeProvider
from storage import Database, DiagnosticStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class ComplianceRun:
    """
    Orchestrates one check run over a resource tree.

    Design decisions:
    - Single run_id tracks the entire execution
    - Each pack gets its own report logger; all packs share the metrics
    - Configuration problems are raised before any pack runs
    - Storage defaults to an in-memory DuckDB database
    """

    def __init__(self, config_path: str = "config.yaml", verbose: Optional[bool] = None):
        """
        Initialize run with configuration.

        Args:
            config_path: Path to YAML configuration file
            verbose: Override pack.verbose from the configuration
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(self.config_path) as f:
            self.config = yaml.safe_load(f) or {}

        # Validate required configuration keys
        required_keys = ["tree", "packs"]
        for key in required_keys:
            if key not in self.config:
                raise ValueError(f"Missing required config key: {key}")

        if not self.config["tree"] or "path" not in self.config["tree"]:
            raise ValueError("Missing required tree configuration: tree.path")

        self.pack_names: List[str] = list(self.config["packs"] or [])
        if not self.pack_names:
            raise ValueError("At least one pack must be configured under 'packs'")
        for name in self.pack_names:
            if name not in PACK_FACTORIES:
                raise ValueError(
                    f"Unknown pack: {name}. Available: {', '.join(sorted(PACK_FACTORIES))}"
                )

        pack_section = dict(self.config.get("pack") or {})
        if verbose is not None:
            pack_section["verbose"] = verbose
        self.pack_config = PackConfig.from_dict(pack_section)

        self.suppressions = [
            Suppression.from_dict(record) for record in (self.config.get("suppressions") or [])
        ]

        output = self.config.get("output") or {}
        self.output_dir = Path(output.get("directory", "output"))
        self.report_formats = output.get("report_formats", ["csv"])

        database = self.config.get("database") or {}
        self.db = Database(database.get("path", ":memory:"))
        self.store = DiagnosticStore(self.db)
        self.quality_checker = QualityChecker(self.db)
        self.reporter = CheckReporter()

        self.packs: Dict[str, RulePack] = {}
        self._unresolved = 0

        logger.info(f"Check run initialized with config: {config_path}")

    def _tree_path(self) -> Path:
        path = Path(self.config["tree"]["path"])
        if not path.is_absolute() and not path.exists():
            # Relative to the config file when not found from the working directory
            path = self.config_path.parent / path
        return path

    def load_tree(self) -> ResourceTree:
        provider = TemplateTreeProvider.from_file(
            str(self._tree_path()),
            parameters=self.config["tree"].get("parameters")
        )
        tree = provider.load()
        self._unresolved = provider.unresolved_count
        logger.info(f"  Loaded {len(tree)} nodes")
        return tree

    def run(self) -> CheckMetrics:
        """
        Execute the complete check run.

        Returns:
            CheckMetrics object with run statistics

        Raises:
            RuntimeError: If the tree cannot be loaded, a pack is misconfigured,
                or storage fails
        """
        run_id = self.db.get_current_run_id()
        metrics = CheckMetrics(run_id=run_id, started_at=datetime.utcnow())

        logger.info(f"=== Starting Check Run: {run_id} ===")

        try:
            # Stage 1: Database initialization
            logger.info("Stage 1: Initializing database schema")
            self.db.initialize_schema()

            # Stage 2: Resource tree
            logger.info("Stage 2: Loading resource tree")
            tree = self.load_tree()
            metrics.unresolved_values = self._unresolved

            # Stage 3: Packs
            logger.info("Stage 3: Evaluating rule packs")
            for name in self.pack_names:
                self._run_pack(name, tree, run_id, metrics)

            # Stage 4: Quality checks
            logger.info("Stage 4: Running quality checks")
            quality_results = self.quality_checker.run_all_checks(run_id)
            for result in quality_results:
                if not result.passed:
                    logger.warning(f"  Quality check {result.check_name} failed: {result.message}")

            # Stage 5: Reporting
            logger.info("Stage 5: Generating reports")
            metrics.completed_at = datetime.utcnow()
            report = self.reporter.generate_report(
                metrics,
                self.diagnostics(),
                quality_results,
                waived=self.waived() if self.pack_config.verbose else None
            )
            report_path = self.reporter.save_report(report, self.output_dir)

            status = "completed" if metrics.passed else "gate_failed"
            self.store.record_run(
                run_id, metrics.started_at, metrics.completed_at, status,
                metrics.to_dict(), tree_source=str(self._tree_path())
            )

            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            logger.info(f"=== Check Run Complete ===")
            logger.info(f"Duration: {duration:.1f}s")
            logger.info(f"Violations: {metrics.violations}")
            logger.info(f"Report: {report_path}")

        except Exception as e:
            metrics.record_error(str(e))
            logger.error(f"Check run failed: {e}", exc_info=True)
            raise RuntimeError(f"Check run failed: {e}") from e

        return metrics

    def _run_pack(self, name: str, tree: ResourceTree, run_id: str, metrics: CheckMetrics):
        """
        Evaluate one pack, write its report files and store its diagnostics.

        Args:
            name: Pack name from PACK_FACTORIES
            tree: Materialized resource tree
            run_id: Check run identifier
            metrics: CheckMetrics to update
        """
        report_logger = ReportLogger(name, self.output_dir, self.report_formats)
        pack = PACK_FACTORIES[name](
            suppressions=self.suppressions,
            config=self.pack_config,
            listeners=[LoggingListener(), report_logger],
        )
        self.packs[name] = pack

        logger.info(f"  Running pack {name}")
        pack.run(tree)
        metrics.record_pack(pack)

        report_logger.retain(d.key for d in pack.emitter.all())
        for path in report_logger.write():
            logger.info(f"    Report file: {path}")

        stored = self.store.save_diagnostics(pack.emitter.all(), run_id, name)
        logger.info(f"    Stored {stored} diagnostics")

    def diagnostics(self) -> List[Diagnostic]:
        return [d for pack in self.packs.values() for d in pack.diagnostics()]

    def waived(self) -> List[Diagnostic]:
        return [d for pack in self.packs.values() for d in pack.emitter.waived()]


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run compliance rule packs against a resource tree"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Include waived and compliant entries and enable debug logging"
    )
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        run = ComplianceRun(config_path=args.config, verbose=True if args.verbose else None)
        metrics = run.run()

        # Print summary
        print("\n" + "=" * 60)
        print("Compliance Check Summary")
        print("=" * 60)
        print(f"Run ID: {metrics.run_id}")
        print(f"Nodes: {metrics.nodes_visited}")
        print(f"Violations: {metrics.violations}")
        print(f"Waived: {metrics.suppressed}")
        print(f"Errors: {metrics.errors}")
        print("\nPacks:")
        for name, result in sorted(metrics.pack_results.items()):
            status = "PASS" if result["passed"] else "FAIL"
            print(f"  {name:20} {status:4} ({result['gate_failures']} gate failures)")
        print("=" * 60)

        sys.exit(0 if metrics.passed else 1)

    except Exception as e:
        logger.error(f"Check run failed: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
