# storage/db.py
import sqlite3
import os
from pathlib import Path


_DEFAULT_DB_PATH = Path.home() / ".studylib" / "studylib.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    document_name TEXT NOT NULL,
    chapter_id    TEXT NOT NULL,
    mode          TEXT NOT NULL,
    artifact_json TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    PRIMARY KEY (document_name, chapter_id, mode)
);

CREATE INDEX IF NOT EXISTS idx_cache_document
    ON cache_entries (document_name);
"""


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """
    Abre y configura la conexión a SQLite.
    Siempre devuelve rows como dicts (row_factory).
    """
    path = db_path or os.environ.get("STUDYLIB_DB_PATH") or str(_DEFAULT_DB_PATH)

    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")   # mejor performance en lecturas concurrentes
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Crea las tablas si no existen. Idempotente."""
    with conn:
        conn.executescript(_SCHEMA)
