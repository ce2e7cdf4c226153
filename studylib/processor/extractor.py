# studylib/processor/extractor.py
import hashlib
import logging

from studylib.errors import ExtractionError
from studylib.models import ChapterUnit
from studylib.processor.classifier import is_non_essential
from studylib.processor.models import DocumentTree, TocNode

logger = logging.getLogger(__name__)


class ChapterExtractor:
    """
    Responsabilidad única: recorrer el árbol de un DocumentTree y devolver
    la secuencia ordenada de ChapterUnits sobre la que trabaja el resto
    del pipeline. No sabe nada de modelos, caché ni exportación.

    - Modo básico: una unidad por entrada de primer nivel, con todo su texto.
    - Modo smart: baja hasta max_sub_chapter_depth niveles extra. Un nodo
      con hijos emitidos se queda solo con su texto propio; un nodo en el
      límite de profundidad absorbe el texto de todo su subárbol.
    """

    def extract(
        self,
        tree:                  DocumentTree,
        use_smart_detection:   bool = False,
        skip_non_essential:    bool = True,
        max_sub_chapter_depth: int  = 0,
    ) -> list[ChapterUnit]:
        """
        Raises:
            ExtractionError: árbol ilegible o sin texto utilizable.
                             Nunca se devuelve una secuencia parcial.
        """
        if not isinstance(tree, DocumentTree):
            raise ExtractionError(
                f"Árbol de documento ilegible: se esperaba DocumentTree, "
                f"llegó {type(tree).__name__}"
            )

        max_depth = max(0, int(max_sub_chapter_depth)) if use_smart_detection else 0

        candidates: list[tuple[str, str, int]] = []
        self._collect(tree.nodes, 0, max_depth, skip_non_essential, candidates)
        candidates = [(t, c.strip(), d) for t, c, d in candidates if c.strip()]

        if not candidates:
            # Sin estructura detectable: el libro entero es un solo capítulo
            whole = tree.full_text().strip()
            if not whole:
                raise ExtractionError(
                    f"'{tree.title}' no contiene texto utilizable"
                )
            logger.info("'%s' sin estructura detectable — un solo capítulo", tree.title)
            candidates = [(tree.title, whole, 0)]

        chapters = self._assign_identity(candidates)
        logger.info(
            "'%s': %d capítulos extraídos (smart=%s, profundidad=%d, saltar_no_esenciales=%s)",
            tree.title, len(chapters), use_smart_detection, max_depth, skip_non_essential,
        )
        return chapters

    # ------------------------------------------------------------------
    # Pasos internos
    # ------------------------------------------------------------------

    def _collect(
        self,
        nodes:     list[TocNode],
        level:     int,
        max_depth: int,
        skip:      bool,
        out:       list[tuple[str, str, int]],
    ) -> None:
        total = len(nodes)
        for position, node in enumerate(nodes):
            if skip and is_non_essential(node.title, position, total):
                logger.debug("Saltando entrada no esencial: '%s'", node.title)
                continue

            if level < max_depth and node.children:
                out.append((node.title, node.text, level))
                self._collect(node.children, level + 1, max_depth, skip, out)
            else:
                out.append((node.title, _subtree_text(node, skip), level))

    @staticmethod
    def _assign_identity(candidates: list[tuple[str, str, int]]) -> list[ChapterUnit]:
        """
        order = posición final en la secuencia (0..n-1).
        id    = hash estable de (profundidad, título); si el mismo título
                se repite en la misma profundidad se le agrega el order.
        """
        chapters: list[ChapterUnit] = []
        seen: set[str] = set()

        for order, (title, content, depth) in enumerate(candidates):
            title = title.strip() or f"Sección {order + 1}"
            chapter_id = _chapter_id(title, depth)
            if chapter_id in seen:
                chapter_id = f"{chapter_id}-{order}"
            seen.add(chapter_id)

            chapters.append(ChapterUnit(
                id      = chapter_id,
                title   = title,
                content = content,
                depth   = depth,
                order   = order,
            ))
        return chapters


def _subtree_text(node: TocNode, skip: bool) -> str:
    """
    Texto de un nodo más su subárbol. Con skip, los descendientes no
    esenciales quedan afuera igual que si se los recorriera uno por uno.
    """
    if not skip:
        return node.full_text()

    parts = [node.text.strip()]
    total = len(node.children)
    for position, child in enumerate(node.children):
        if is_non_essential(child.title, position, total):
            continue
        parts.append(_subtree_text(child, skip))
    return "\n\n".join(p for p in parts if p)


def _chapter_id(title: str, depth: int) -> str:
    key    = f"{depth}:{' '.join(title.lower().split())}"
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]
    return f"ch-{digest}"
