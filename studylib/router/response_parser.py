# router/response_parser.py
import json
import logging
import re
from typing import Any, Optional

from studylib.errors import FormatError

logger = logging.getLogger(__name__)

# Primer bloque ``` ... ```, con o sin etiqueta de lenguaje y aunque esté en una sola línea
_FENCED_BLOCK_RE = re.compile(
    r"```[\w+-]*\s*(.*?)```",
    re.DOTALL,
)

_NOT_JSON = object()


def parse_structured_response(raw_text: Optional[str], mode: str) -> Any:
    """
    Convierte la respuesta del modelo en datos estructurados.

    Estrategia (compartida por quiz, flashcard, mindmap y arrows):
    1. JSON directo sobre el texto recortado (el camino feliz)
    2. JSON dentro del primer bloque ``` ... ```
    3. FormatError con el nombre del modo

    Nunca devuelve un valor por defecto: si no hay JSON, falla.
    """
    text = (raw_text or "").strip()

    # Intento 1: JSON directo
    result = _try_parse(text)
    if result is not _NOT_JSON:
        return result

    # Intento 2: dentro del primer bloque markdown
    block = extract_fenced_block(text)
    if block is not None:
        result = _try_parse(block)
        if result is not _NOT_JSON:
            logger.warning(
                "Respuesta %s envuelta en markdown — se usó el bloque ``` interno",
                mode,
            )
            return result

    logger.error("Respuesta %s no parseable (%d caracteres)", mode, len(text))
    raise FormatError(mode)


def extract_fenced_block(text: str) -> Optional[str]:
    """Contenido del primer bloque ``` ... ``` o None si no hay ninguno."""
    match = _FENCED_BLOCK_RE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def _try_parse(text: str) -> Any:
    if not text:
        return _NOT_JSON
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return _NOT_JSON
