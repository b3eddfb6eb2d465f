"""
Database connection and schema management for compliance check runs.

This module provides:
- DuckDB connection lifecycle management
- Diagnostics table holding every recorded (rule, node) outcome per run
- Check run metadata tracking

Design decisions:
- DuckDB file per deployment, in-memory (":memory:") for tests and one-off runs
- JSON column for the serialized run metrics
- Diagnostics keyed by (run_id, pack_name, rule_id, path)
- Indexed on rule_id and disposition for report queries
"""
import duckdb
from datetime import datetime
from typing import Optional


class Database:
    """
    Manages DuckDB connection and schema initialization.

    This class is responsible for:
    - Creating and maintaining a single database connection
    - Setting up the check_runs and diagnostics tables
    - Providing run ID generation for check run tracking
    """

    def __init__(self, db_path: str = "compliance_checks.duckdb"):
        """
        Initialize database manager.

        Args:
            db_path: Path to DuckDB database file (created if doesn't exist)
        """
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create database connection.

        Returns:
            Active DuckDB connection
        """
        if self.conn is None:
            self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize_schema(self):
        """
        Create all required tables if they don't exist.

        Tables created:
        - check_runs: Check run metadata
        - diagnostics: Diagnostics recorded by each pack in each run
        """
        conn = self.connect()

        conn.execute("""
            CREATE TABLE IF NOT EXISTS check_runs (
                run_id VARCHAR PRIMARY KEY,
                started_at TIMESTAMP,
                completed_at TIMESTAMP,
                status VARCHAR,
                tree_source VARCHAR,
                packs_run INTEGER,
                violations INTEGER,
                errors INTEGER,
                metadata JSON
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS diagnostics (
                run_id VARCHAR NOT NULL,
                pack_name VARCHAR NOT NULL,
                seq INTEGER NOT NULL,
                rule_id VARCHAR NOT NULL,
                path VARCHAR NOT NULL,
                resource_type VARCHAR,
                disposition VARCHAR NOT NULL,
                level VARCHAR NOT NULL,
                rule_level VARCHAR NOT NULL,
                message VARCHAR,
                rule_info VARCHAR,
                justification VARCHAR,
                error VARCHAR,
                ignored_suppression VARCHAR,
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_diag_run
            ON diagnostics(run_id, pack_name)
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_diag_rule
            ON diagnostics(rule_id)
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_diag_disposition
            ON diagnostics(disposition)
        """)

    def get_current_run_id(self) -> str:
        """
        Generate a unique run ID for this check run.

        Returns:
            Run ID in format: run_YYYYMMDD_HHMMSS
        """
        return f"run_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
