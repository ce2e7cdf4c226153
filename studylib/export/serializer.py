# export/serializer.py
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from studylib.errors import UnsupportedFormatError
from studylib.export.html_templates import render_flashcard_html, render_quiz_html
from studylib.export.mindmap import MIND_MAP_FORMATS, as_view, combine_mind_maps, render_mind_map
from studylib.export.raster import html_to_pdf
from studylib.models import BookResult, ChapterResult, ProcessingMode
from studylib.notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

_OUTPUT_DIR = Path.home() / ".studylib" / "output"

# Formatos ofrecidos por modo
_LIST_FORMATS    = ("JSON", "CSV", "HTML", "PDF")
_SUMMARY_FORMATS = ("JSON", "MD")

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]+')


@dataclass(frozen=True)
class ExportOutcome:
    """Resultado de una exportación. export() nunca lanza: todo queda acá."""
    ok:    bool
    path:  Optional[Path] = None
    error: Optional[str]  = None


class Exporter:
    """
    Responsabilidad única: convertir el resultado de un modo en bytes de
    un formato y guardarlos en {output_dir}/{title}.{formato}.

    No sabe nada de modelos, parsers ni caché. Dos exportaciones no
    comparten estado mutable, así que pueden correr en paralelo.
    """

    def __init__(self, output_dir: Path | None = None, notifier: Optional[Notifier] = None):
        self._output_dir = output_dir or _OUTPUT_DIR
        self._notifier   = notifier or LoggingNotifier()

    @staticmethod
    def formats_for(mode: ProcessingMode | str) -> tuple[str, ...]:
        mode = ProcessingMode(_mode_value(mode))
        if mode is ProcessingMode.MINDMAP:
            return tuple(MIND_MAP_FORMATS)
        if mode is ProcessingMode.SUMMARY:
            return _SUMMARY_FORMATS
        return _LIST_FORMATS

    # ------------------------------------------------------------------
    # Serialización
    # ------------------------------------------------------------------

    def serialize(self, title: str, fmt: str, data: Any, mode: ProcessingMode | str) -> bytes:
        """
        Raises:
            UnsupportedFormatError: el formato no existe para el modo.
        """
        fmt  = fmt.upper()
        mode = ProcessingMode(_mode_value(mode))

        if mode is ProcessingMode.MINDMAP:
            return render_mind_map(as_view(title, data), fmt)

        if mode is ProcessingMode.SUMMARY:
            if fmt == "JSON":
                return to_json(data)
            if fmt == "MD":
                return summary_to_markdown(data)
            raise UnsupportedFormatError(fmt, mode.value)

        if fmt == "JSON":
            return to_json(data)
        if fmt == "CSV":
            return to_csv(data)
        if fmt == "HTML":
            return _list_html(title, data, mode).encode("utf-8")
        if fmt == "PDF":
            return html_to_pdf(_list_html(title, data, mode))
        raise UnsupportedFormatError(fmt, mode.value)

    # ------------------------------------------------------------------
    # Guardado
    # ------------------------------------------------------------------

    def export(self, title: str, fmt: str, data: Any, mode: ProcessingMode | str) -> ExportOutcome:
        """
        Serializa y escribe el archivo. Avisa éxito o error por el
        notificador y nunca deja escapar una excepción.
        """
        try:
            payload = self.serialize(title, fmt, data, mode)
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path = self._output_dir / f"{_safe_filename(title)}.{fmt.lower()}"
            path.write_bytes(payload)
        except Exception as e:
            logger.error("Exportación de '%s' como %s fallida: %s", title, fmt, e)
            self._notifier.error(f"Export failed: {e}")
            return ExportOutcome(ok=False, error=str(e))

        logger.info("Exportado: %s (%d bytes)", path, len(payload))
        self._notifier.success(f"{title} has been successfully exported as {fmt.upper()}.")
        return ExportOutcome(ok=True, path=path)

    async def export_async(self, title: str, fmt: str, data: Any, mode: ProcessingMode | str) -> ExportOutcome:
        """El render a PNG/PDF bloquea: se corre en un hilo aparte."""
        return await asyncio.to_thread(self.export, title, fmt, data, mode)

    def export_book(self, book: BookResult, fmt: str) -> ExportOutcome:
        return self.export(book.title, fmt, book_payload(book), book.mode)

    def export_chapter(self, chapter: ChapterResult, mode: ProcessingMode, fmt: str) -> ExportOutcome:
        return self.export(chapter.title, fmt, chapter_payload(chapter, mode), mode)


# ------------------------------------------------------------------
# Datos a exportar según el modo
# ------------------------------------------------------------------

def book_payload(book: BookResult) -> Any:
    if book.mode is ProcessingMode.MINDMAP:
        return combine_mind_maps(book.title, book.chapters)
    if book.mode is ProcessingMode.SUMMARY:
        chapters: list[Any] = list(book.chapters)
        if book.overall_summary:
            chapters.insert(0, {"title": book.title, "summary": book.overall_summary})
        return chapters
    return book.artifacts()


def chapter_payload(chapter: ChapterResult, mode: ProcessingMode) -> Any:
    if mode is ProcessingMode.SUMMARY:
        return [chapter]
    return chapter.artifact(mode) or []


# ------------------------------------------------------------------
# Formatos de texto
# ------------------------------------------------------------------

def to_json(data: Any) -> bytes:
    return json.dumps(_plain(data), indent=2, ensure_ascii=False).encode("utf-8")


def to_csv(data: Sequence[Any]) -> bytes:
    """
    Header con las claves del primer elemento; cada valor entre comillas
    dobles. Las comillas internas NO se escapan. Listas unidas con ",".
    """
    rows = _plain(list(data))
    if not rows:
        return b""

    header = ",".join(rows[0].keys())
    lines  = [
        ",".join(f'"{_csv_value(value)}"' for value in row.values())
        for row in rows
    ]
    return "\n".join([header, *lines]).encode("utf-8")


def summary_to_markdown(chapters: Sequence[Any]) -> bytes:
    sections = []
    for chapter in _plain(list(chapters)):
        sections.append(f"## {chapter.get('title', '')}\n{chapter.get('summary') or ''}")
    return ("\n\n".join(sections) + "\n").encode("utf-8") if sections else b""


# ------------------------------------------------------------------
# Helpers internos
# ------------------------------------------------------------------

def _list_html(title: str, data: Sequence[Any], mode: ProcessingMode) -> str:
    if mode is ProcessingMode.QUIZ:
        return render_quiz_html(title, data)
    return render_flashcard_html(title, data)


def _plain(data: Any) -> Any:
    """Objetos del modelo → dicts, recursivamente sobre listas."""
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_plain(item) for item in data]
    return data


def _csv_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _mode_value(mode: ProcessingMode | str) -> str:
    return mode.value if isinstance(mode, ProcessingMode) else str(mode).lower()


def _safe_filename(title: str) -> str:
    return _UNSAFE_FILENAME_RE.sub("-", title).strip() or "export"
