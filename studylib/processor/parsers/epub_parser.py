import html as html_lib
import logging
import os
import posixpath
import re
from typing import Optional
from urllib.parse import unquote

from studylib.errors import ExtractionError
from studylib.processor.models import DocumentTree, TocNode
from .base import BaseParser, Marker, carve_text

logger = logging.getLogger(__name__)

_SUPPORTED_EXTENSIONS = {'.epub'}

_BLOCK_TAGS_RE = re.compile(
    r'<(p|br|div|h[1-6]|li|tr|blockquote|section)[^>]*>',
    re.IGNORECASE,
)
_INVISIBLE_RE = re.compile(
    r'<(head|script|style)[^>]*>.*?</\1>',
    re.IGNORECASE | re.DOTALL,
)


class EpubParser(BaseParser):
    """
    Adaptador para archivos .epub.

    Estrategia:
      - El índice (book.toc) define el árbol: Link = hoja, (Section, [hijos]) = rama.
      - Cada entrada apunta a un documento del spine y opcionalmente a un ancla
        (capitulo.xhtml#seccion-2). El HTML del spine se corta en esas anclas,
        así dos subcapítulos del mismo archivo reciben textos distintos.
      - Un EPUB sin índice devuelve un árbol vacío con todo el texto en front_text.

    Dependencia: ebooklib  →  pip install ebooklib
    """

    def can_handle(self, file_path: str) -> bool:
        _, ext = os.path.splitext(file_path)
        return ext.lower() in _SUPPORTED_EXTENSIONS

    def parse(self, file_path: str) -> DocumentTree:
        try:
            import ebooklib
            from ebooklib import epub
        except ImportError:
            raise ImportError(
                "ebooklib no está instalado. "
                "Ejecuta: pip install ebooklib"
            )

        try:
            book = epub.read_epub(file_path)
        except Exception as e:
            raise ExtractionError(f"No se pudo leer el EPUB '{file_path}': {e}") from e

        names, documents = self._spine_documents(book)
        nodes, markers   = self._build_tree(book.toc, names, documents)

        front_text = carve_text(documents, markers, self._html_to_text)
        if not nodes:
            logger.info("EPUB sin índice navegable: %s", file_path)

        return DocumentTree(
            title       = self._extract_title(book, file_path),
            author      = self._extract_author(book),
            source_path = file_path,
            nodes       = nodes,
            front_text  = front_text,
            language    = self._extract_language(book),
        )

    # ------------------------------------------------------------------ #
    #  Helpers privados                                                    #
    # ------------------------------------------------------------------ #

    def _spine_documents(self, book) -> tuple[list[str], list[str]]:
        """Documentos XHTML en orden de lectura: (nombres, html)."""
        import ebooklib

        names: list[str] = []
        documents: list[str] = []
        for entry in book.spine:
            item_id = entry[0] if isinstance(entry, (tuple, list)) else entry
            item = book.get_item_with_id(item_id)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            names.append(_normalize_href(item.get_name()))
            documents.append(_decode(item.get_content()))
        return names, documents

    def _build_tree(
        self,
        toc,
        names:     list[str],
        documents: list[str],
    ) -> tuple[list[TocNode], list[tuple[Marker, TocNode]]]:
        markers: list[tuple[Marker, TocNode]] = []

        def visit(entries) -> list[TocNode]:
            nodes: list[TocNode] = []
            for entry in entries:
                if isinstance(entry, (tuple, list)) and len(entry) == 2:
                    head, children = entry
                else:
                    head, children = entry, []

                node = TocNode(title=_clean_title(getattr(head, "title", "") or ""))
                marker = self._locate(getattr(head, "href", None), names, documents)
                if marker is not None:
                    markers.append((marker, node))

                node.children = visit(children)
                nodes.append(node)
            return nodes

        return visit(toc or []), markers

    def _locate(
        self,
        href:      Optional[str],
        names:     list[str],
        documents: list[str],
    ) -> Optional[Marker]:
        """Convierte un href del índice en (índice del spine, offset del ancla)."""
        if not href:
            return None

        path, _, anchor = unquote(href).partition("#")
        index = _find_document(_normalize_href(path), names)
        if index is None:
            logger.debug("Entrada del índice sin documento en el spine: %s", href)
            return None

        if not anchor:
            return (index, 0)

        match = re.search(
            r'<[^>]+\bid\s*=\s*["\']' + re.escape(anchor) + r'["\']',
            documents[index],
        )
        return (index, match.start() if match else 0)

    def _extract_title(self, book, file_path: str) -> str:
        titles = book.get_metadata('DC', 'title')
        if titles and str(titles[0][0]).strip():
            return str(titles[0][0]).strip()
        return os.path.splitext(os.path.basename(file_path))[0]

    def _extract_author(self, book) -> str:
        creators = book.get_metadata('DC', 'creator')
        return ", ".join(str(c[0]).strip() for c in creators if c and c[0]) if creators else ""

    def _extract_language(self, book) -> str | None:
        langs = book.get_metadata('DC', 'language')
        if langs:
            return str(langs[0][0]).strip().lower()
        return None

    def _html_to_text(self, html: str) -> str:
        """
        Convierte un fragmento HTML del EPUB a texto plano limpio.
        Los cortes por ancla siempre caen en un '<', así que el fragmento
        nunca empieza a mitad de etiqueta.
        """
        html = _INVISIBLE_RE.sub('', html)

        # Convertir etiquetas de bloque en saltos de línea antes de limpiar
        html = _BLOCK_TAGS_RE.sub('\n', html)

        # Eliminar todas las etiquetas restantes
        html = re.sub(r'<[^>]+>', '', html)

        html = html_lib.unescape(html)

        # Normalizar espacios y saltos de línea excesivos
        html = re.sub(r'[ \t\xa0]+', ' ', html)
        html = re.sub(r' *\n *', '\n', html)
        html = re.sub(r'\n{3,}', '\n\n', html)

        return html.strip()


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode('utf-8')
    except UnicodeDecodeError:
        return content.decode('latin-1')


def _normalize_href(href: str) -> str:
    return posixpath.normpath(href.strip().lstrip("/")) if href.strip() else ""


def _find_document(path: str, names: list[str]) -> Optional[int]:
    if path in names:
        return names.index(path)
    # Los href del índice a veces son relativos al nav y no a la raíz del OPF
    base = posixpath.basename(path)
    for i, name in enumerate(names):
        if posixpath.basename(name) == base:
            return i
    return None


def _clean_title(title: str) -> str:
    return re.sub(r'\s+', ' ', html_lib.unescape(title)).strip()
