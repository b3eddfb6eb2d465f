"""
Persistence of pack diagnostics and check run metadata.

Design decisions:
- DELETE + INSERT per (run_id, pack_name) for idempotent saves
- seq column preserves traversal order so stored runs reload identically
- Silent dispositions are stored too; reports filter them at query time
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from engine import Diagnostic, Disposition, RuleLevel
from .database import Database


logger = logging.getLogger(__name__)


class DiagnosticStore:
    """
    Saves and loads diagnostics recorded by rule packs.
    """

    def __init__(self, database: Database):
        """
        Initialize store with database connection.

        Args:
            database: Database instance with initialized schema
        """
        self.db = database

    def save_diagnostics(self, diagnostics: List[Diagnostic], run_id: str, pack_name: str) -> int:
        """
        Store every diagnostic of one pack traversal.

        Args:
            diagnostics: Diagnostics in traversal order (emitter.all())
            run_id: Check run identifier
            pack_name: Name of the pack that produced them

        Returns:
            Number of records stored
        """
        conn = self.db.connect()

        # Clear previous save of this pack in this run for idempotent loads
        conn.execute(
            "DELETE FROM diagnostics WHERE run_id = ? AND pack_name = ?",
            [run_id, pack_name]
        )

        stored = 0
        for seq, diagnostic in enumerate(diagnostics):
            conn.execute("""
                INSERT INTO diagnostics
                (run_id, pack_name, seq, rule_id, path, resource_type, disposition,
                 level, rule_level, message, rule_info, justification, error,
                 ignored_suppression)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, [
                run_id,
                pack_name,
                seq,
                diagnostic.rule_id,
                diagnostic.path,
                diagnostic.resource_type,
                diagnostic.disposition.value,
                diagnostic.level.value,
                diagnostic.rule_level.value,
                diagnostic.message,
                diagnostic.rule_info,
                diagnostic.justification,
                diagnostic.error,
                diagnostic.ignored_suppression,
            ])
            stored += 1

        logger.debug(f"Stored {stored} diagnostics for {pack_name} in {run_id}")
        return stored

    def load_diagnostics(self, run_id: str, pack_name: Optional[str] = None) -> List[Diagnostic]:
        """
        Load stored diagnostics back in traversal order.

        Args:
            run_id: Check run identifier
            pack_name: Restrict to one pack; all packs when None

        Returns:
            List of Diagnostic records
        """
        conn = self.db.connect()
        query = """
            SELECT rule_id, path, disposition, level, rule_level, message,
                   resource_type, rule_info, justification, error, ignored_suppression
            FROM diagnostics
            WHERE run_id = ?
        """
        params: List[Any] = [run_id]
        if pack_name is not None:
            query += " AND pack_name = ?"
            params.append(pack_name)
        query += " ORDER BY pack_name, seq"

        rows = conn.execute(query, params).fetchall()
        return [
            Diagnostic(
                rule_id=row[0],
                path=row[1],
                disposition=Disposition(row[2]),
                level=RuleLevel(row[3]),
                rule_level=RuleLevel(row[4]),
                message=row[5],
                resource_type=row[6],
                rule_info=row[7] or "",
                justification=row[8],
                error=row[9],
                ignored_suppression=row[10],
            )
            for row in rows
        ]

    def record_run(
        self,
        run_id: str,
        started_at: datetime,
        completed_at: Optional[datetime],
        status: str,
        metrics: Dict[str, Any],
        tree_source: Optional[str] = None
    ):
        """
        Insert or replace check run metadata.

        Args:
            run_id: Check run identifier
            started_at: Run start time
            completed_at: Run end time
            status: 'completed', 'failed' or 'gate_failed'
            metrics: Serialized CheckMetrics
            tree_source: Where the resource tree was loaded from
        """
        conn = self.db.connect()
        conn.execute("DELETE FROM check_runs WHERE run_id = ?", [run_id])
        conn.execute("""
            INSERT INTO check_runs
            (run_id, started_at, completed_at, status, tree_source,
             packs_run, violations, errors, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            run_id,
            started_at,
            completed_at,
            status,
            tree_source,
            metrics.get("packs_run", 0),
            metrics.get("violations", 0),
            metrics.get("errors", 0),
            json.dumps(metrics),
        ])

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get stored run metadata, or None if the run is unknown."""
        conn = self.db.connect()
        row = conn.execute("""
            SELECT run_id, started_at, completed_at, status, tree_source,
                   packs_run, violations, errors, metadata
            FROM check_runs WHERE run_id = ?
        """, [run_id]).fetchone()
        if row is None:
            return None
        return {
            "run_id": row[0],
            "started_at": row[1],
            "completed_at": row[2],
            "status": row[3],
            "tree_source": row[4],
            "packs_run": row[5],
            "violations": row[6],
            "errors": row[7],
            "metadata": json.loads(row[8]) if row[8] else {},
        }
