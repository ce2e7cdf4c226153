# storage/cache.py
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

from studylib.models import Flashcard, ProcessingMode, QuizQuestion
from studylib.storage.db import get_connection, init_schema
from studylib.storage.models import CacheEntry

logger = logging.getLogger(__name__)


class ContentCache:
    """
    Única interfaz entre el pipeline y los artefactos ya generados.
    Clave: (document_name, chapter_id, mode), igualdad exacta de strings.
    Las entradas no expiran: solo se borran con clear / clear_all.
    Recibe un db_path para facilitar el testing con :memory:.
    """

    def __init__(self, db_path: str | None = None):
        self._conn = get_connection(db_path)
        init_schema(self._conn)

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def get(self, document_name: str, chapter_id: str, mode: str) -> Optional[Any]:
        entry = self.get_entry(document_name, chapter_id, mode)
        return entry.artifact if entry else None

    def get_entry(self, document_name: str, chapter_id: str, mode: str) -> CacheEntry | None:
        row = self._conn.execute(
            """
            SELECT * FROM cache_entries
            WHERE document_name = ? AND chapter_id = ? AND mode = ?
            """,
            (document_name, chapter_id, _mode_key(mode)),
        ).fetchone()
        return self._row_to_entry(row) if row else None

    def count(self, document_name: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM cache_entries WHERE document_name = ?",
            (document_name,),
        ).fetchone()
        return row["n"]

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def put(self, document_name: str, chapter_id: str, mode: str, artifact: Any) -> None:
        """Upsert: la última escritura gana."""
        created_at = datetime.now(timezone.utc).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO cache_entries (document_name, chapter_id, mode, artifact_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(document_name, chapter_id, mode) DO UPDATE SET
                    artifact_json = excluded.artifact_json,
                    created_at    = excluded.created_at
                """,
                (document_name, chapter_id, _mode_key(mode), _encode(artifact), created_at),
            )
        logger.debug("Caché guardada: %s / %s / %s", document_name, chapter_id, _mode_key(mode))

    def clear(self, document_name: str, chapter_id: str, mode: str) -> bool:
        """Devuelve True si había una entrada para borrar."""
        with self._conn:
            cursor = self._conn.execute(
                """
                DELETE FROM cache_entries
                WHERE document_name = ? AND chapter_id = ? AND mode = ?
                """,
                (document_name, chapter_id, _mode_key(mode)),
            )
        return cursor.rowcount > 0

    def clear_all(self, document_name: str) -> None:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM cache_entries WHERE document_name = ?",
                (document_name,),
            )
        logger.info("Caché de '%s' limpiada (%d entradas)", document_name, cursor.rowcount)

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Helpers internos
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(
            document_name = row["document_name"],
            chapter_id    = row["chapter_id"],
            mode          = row["mode"],
            artifact      = _decode(row["mode"], row["artifact_json"]),
            created_at    = row["created_at"],
        )


def _mode_key(mode: Any) -> str:
    return mode.value if isinstance(mode, ProcessingMode) else str(mode)


def _encode(artifact: Any) -> str:
    if isinstance(artifact, list):
        artifact = [a.to_dict() if hasattr(a, "to_dict") else a for a in artifact]
    return json.dumps(artifact, ensure_ascii=False)


def _decode(mode: str, artifact_json: str) -> Any:
    """Quiz y flashcards vuelven como objetos, igual que se guardaron."""
    data = json.loads(artifact_json)
    if mode == ProcessingMode.QUIZ.value and isinstance(data, list):
        return [QuizQuestion.from_dict(q) for q in data]
    if mode == ProcessingMode.FLASHCARD.value and isinstance(data, list):
        return [Flashcard.from_dict(c) for c in data]
    return data
