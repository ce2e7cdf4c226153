# studylib/processor/parsers/pdf_parser.py
import logging
import os
import re

from studylib.errors import ExtractionError
from studylib.processor.models import DocumentTree, TocNode
from .base import BaseParser, Marker, carve_text

logger = logging.getLogger(__name__)

_CHAPTER_RE = re.compile(
    r'^\s*(cap[ií]tulo|chapter|parte|part|prologue|pr[oó]logo|ep[ií]logo|epilogue)\b\s*[\divxlc]*',
    re.IGNORECASE,
)
_MIN_HEADING_MATCHES = 2


class PdfParser(BaseParser):
    """
    Adaptador para archivos .pdf.

    Extrae el texto de cada página usando PyMuPDF (fitz).
    El árbol sale del outline del PDF (get_toc). Si no hay outline,
    intenta detectar encabezados de capítulo al inicio de página; si
    tampoco hay al menos 2, devuelve un árbol vacío con todo el texto.

    Requiere: pip install pymupdf
    """

    def can_handle(self, file_path: str) -> bool:
        return file_path.lower().endswith(".pdf")

    def parse(self, file_path: str) -> DocumentTree:
        try:
            import fitz  # pymupdf
        except ImportError:
            raise ImportError(
                "El soporte PDF requiere pymupdf. Instálalo con: pip install pymupdf"
            )

        try:
            doc = fitz.open(file_path)
        except Exception as e:
            raise ExtractionError(f"No se pudo leer el PDF '{file_path}': {e}") from e

        try:
            pages    = [page.get_text("text") for page in doc]
            outline  = doc.get_toc(simple=True)
            metadata = doc.metadata or {}
        finally:
            doc.close()

        if outline:
            nodes, markers = self._tree_from_outline(outline, pages)
        else:
            nodes, markers = self._tree_from_headings(pages)
            if nodes:
                logger.info("PDF sin outline: %d capítulos detectados por encabezado", len(nodes))

        front_text = carve_text(pages, markers, _clean_page_text)

        return DocumentTree(
            title       = self._extract_title(metadata, pages, file_path),
            author      = (metadata.get("author") or "").strip(),
            source_path = file_path,
            nodes       = nodes,
            front_text  = front_text,
        )

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _tree_from_outline(
        self,
        outline: list,
        pages:   list[str],
    ) -> tuple[list[TocNode], list[tuple[Marker, TocNode]]]:
        """
        Convierte [[nivel, título, página], ...] en árbol.
        Un nivel que salta (1 → 3) cuelga del último nodo disponible.
        """
        roots:   list[TocNode] = []
        stack:   list[tuple[int, TocNode]] = []
        markers: list[tuple[Marker, TocNode]] = []

        for entry in outline:
            level, title, page_no = entry[0], entry[1], entry[2]
            node = TocNode(title=" ".join(str(title).split()))

            while stack and stack[-1][0] >= level:
                stack.pop()
            if stack:
                stack[-1][1].children.append(node)
            else:
                roots.append(node)
            stack.append((level, node))

            # page_no es 1-based; -1 significa destino fuera del documento
            if 1 <= page_no <= len(pages):
                page_idx = page_no - 1
                markers.append(((page_idx, _title_offset(pages[page_idx], node.title)), node))

        return roots, markers

    def _tree_from_headings(
        self,
        pages: list[str],
    ) -> tuple[list[TocNode], list[tuple[Marker, TocNode]]]:
        candidates = []
        for idx, page in enumerate(pages):
            first_line = next((l.strip() for l in page.split("\n") if l.strip()), "")
            if _CHAPTER_RE.match(first_line):
                candidates.append((idx, first_line))

        if len(candidates) < _MIN_HEADING_MATCHES:
            return [], []

        nodes:   list[TocNode] = []
        markers: list[tuple[Marker, TocNode]] = []
        for idx, heading in candidates:
            node = TocNode(title=heading)
            nodes.append(node)
            markers.append(((idx, 0), node))
        return nodes, markers

    def _extract_title(self, metadata: dict, pages: list[str], file_path: str) -> str:
        """Metadata del PDF, luego primera línea corta de la primera página, luego el nombre del archivo."""
        title = (metadata.get("title") or "").strip()
        if title:
            return title
        for page in pages:
            first_line = next((l.strip() for l in page.split("\n") if l.strip()), "")
            if not first_line:
                continue
            words = first_line.split()
            if len(words) <= 12 and not first_line.endswith("."):
                return first_line
            break
        return os.path.splitext(os.path.basename(file_path))[0]


def _title_offset(page_text: str, title: str) -> int:
    """
    Offset del título dentro de la página. Si dos capítulos comparten página
    esto los separa; si el título no aparece literal, el capítulo empieza
    al inicio de la página.
    """
    if not title:
        return 0
    pos = page_text.find(title)
    if pos >= 0:
        return pos
    pos = page_text.lower().find(title.lower())
    return pos if pos >= 0 else 0


def _clean_page_text(text: str) -> str:
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()
