# storage/models.py
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Una fila de cache_entries con el artefacto ya decodificado."""
    document_name: str
    chapter_id:    str
    mode:          str
    artifact:      Any
    created_at:    str   # ISO-8601 UTC
