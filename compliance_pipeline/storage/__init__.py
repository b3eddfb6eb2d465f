"""
Storage layer for compliance check runs.

This module provides persistence of diagnostics using DuckDB.

Components:
- Database: Connection management and schema initialization
- DiagnosticStore: Save and load pack diagnostics and run metadata

Usage:
    from storage import Database, DiagnosticStore

    # Initialize database
    db = Database("compliance_checks.duckdb")
    db.initialize_schema()

    # Store the diagnostics of a pack traversal
    store = DiagnosticStore(db)
    store.save_diagnostics(pack.emitter.all(), run_id, pack.name)
"""

from .database import Database
from .diagnostic_store import DiagnosticStore

__all__ = [
    "Database",
    "DiagnosticStore",
]
