"""
SQLite database layer for the campus portal.

Uses raw sqlite3 with WAL mode and parameterized queries. The portal keeps
every record in a single key-value table; see record_store.py for the
store interface built on top of it.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from flask import current_app, g

DEFAULT_DATABASE = str(Path(__file__).parent / "campus_portal.db")


SCHEMA = """
-- Flat record store: keys are "<type-prefix>:<id>", values are JSON documents
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ''
);
"""


def get_db():
    """Return a DB connection from Flask g, creating if needed."""
    if "db" not in g:
        db_path = current_app.config.get("DATABASE", DEFAULT_DATABASE)
        g.db = sqlite3.connect(db_path, timeout=10)
        g.db.row_factory = sqlite3.Row
        g.db.execute("PRAGMA journal_mode=WAL")
    return g.db


def close_db(e=None) -> None:
    """Teardown handler — close DB connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db() -> None:
    """Execute schema DDL to create all tables."""
    db = get_db()
    db.executescript(SCHEMA)
    db.commit()


def init_app(app) -> None:
    """Register teardown and create the schema once per process."""
    app.teardown_appcontext(close_db)
    with app.app_context():
        init_db()
